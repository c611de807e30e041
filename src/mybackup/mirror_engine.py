from __future__ import annotations

import os
import shutil
import stat

from mybackup.ignore_engine import IgnoreEngine
from mybackup.models import MirrorStats
from mybackup.paths import CONTAINMENT_SUBSTRING, base_name, containment_check, strip_trailing_separator
from mybackup.reporter import Reporter


COPY_CHUNK_SIZE = 1024 * 1024
FOLDER_MODE = 0o777


class Mirror:
    """Recursively copies a file or a directory tree into a destination directory.

    Every ``OSError`` is reported where it happens and only abandons the one
    artifact it concerns; siblings and ancestors carry on.
    """

    def __init__(
        self,
        reporter: Reporter,
        containment: str = CONTAINMENT_SUBSTRING,
        ignore_engine: IgnoreEngine | None = None,
    ) -> None:
        self.reporter = reporter
        self.containment = containment
        self._is_within = containment_check(containment)
        self._ignore_engine = ignore_engine

    def copy(self, source: str, destination_dir: str) -> MirrorStats:
        stats = MirrorStats()
        name = base_name(strip_trailing_separator(source))
        self._mirror(source, destination_dir, name, stats)
        return stats

    def _mirror(self, source: str, destination_dir: str, relative: str, stats: MirrorStats) -> None:
        target = strip_trailing_separator(destination_dir)
        if self._is_within(source, target):
            self.reporter.report(
                f"{source} is the same as, or within the target folder {target}. "
                "This artifact has not been copied"
            )
            stats.skipped += 1
            return

        try:
            source_stat = os.stat(source)
        except OSError as exc:
            self._fail(stats, f"Cannot read {source}: {exc}")
            return

        is_dir = stat.S_ISDIR(source_stat.st_mode)
        if self._ignore_engine is not None and self._ignore_engine.is_ignored(relative, is_dir=is_dir):
            self.reporter.report(f"{source} excluded by pattern")
            stats.excluded += 1
            return

        if is_dir:
            self._copy_folder(source, target, relative, stats)
        else:
            self._copy_file(source, target, stats)

    def _copy_folder(self, source: str, destination_dir: str, relative: str, stats: MirrorStats) -> None:
        try:
            children = os.listdir(source)
        except OSError as exc:
            self._fail(stats, f"Cannot list {source}: {exc}")
            return

        folder = os.path.join(destination_dir, base_name(strip_trailing_separator(source)))
        self.reporter.report(f"Creating folder {folder}")
        try:
            os.makedirs(folder, mode=FOLDER_MODE, exist_ok=True)
        except OSError as exc:
            self._fail(stats, f"Cannot create folder {folder}: {exc}")
            return
        stats.folders += 1

        for child in children:
            self._mirror(os.path.join(source, child), folder, f"{relative}/{child}", stats)

    def _copy_file(self, source: str, destination_dir: str, stats: MirrorStats) -> None:
        destination_file = os.path.join(destination_dir, base_name(source))

        try:
            source_handle = open(source, "rb")
        except OSError as exc:
            self._fail(stats, f"Cannot open {source}: {exc}")
            return

        with source_handle:
            try:
                target_handle = open(destination_file, "wb")
            except OSError as exc:
                self._fail(stats, f"Cannot create {destination_file}: {exc}")
                return

            with target_handle:
                try:
                    shutil.copyfileobj(source_handle, target_handle, COPY_CHUNK_SIZE)
                    target_handle.flush()
                    os.fsync(target_handle.fileno())
                except OSError as exc:
                    self._fail(stats, f"Copy of {source} to {destination_file} failed: {exc}")
                    return

        stats.copied += 1
        self.reporter.report(f"{source} file copied")

    def _fail(self, stats: MirrorStats, message: str) -> None:
        stats.failed += 1
        self.reporter.error(message)
