from datetime import timedelta
from pathlib import Path
import threading
import time

import pytest

from mybackup.dispatcher import BackupDispatcher
from mybackup.manifest import ManifestError
from mybackup.mirror_engine import Mirror
from mybackup.models import MirrorStats
from mybackup.reporter import RecordingReporter


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


class RecordingMirror(Mirror):
    def __init__(self, reporter: RecordingReporter, delay: float = 0.0) -> None:
        super().__init__(reporter)
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def copy(self, source: str, destination_dir: str) -> MirrorStats:
        with self._lock:
            self.calls.append((source, destination_dir))
            self.active += 1
            self.peak = max(self.peak, self.active)
        time.sleep(self.delay)
        with self._lock:
            self.active -= 1
        return MirrorStats(copied=1)


class ExplodingMirror(Mirror):
    def copy(self, source: str, destination_dir: str) -> MirrorStats:
        if source == "boom":
            raise RuntimeError("boom")
        return MirrorStats(copied=1)


def test_dispatch_launches_one_task_per_entry(tmp_path: Path) -> None:
    reporter = RecordingReporter()
    mirror = RecordingMirror(reporter)
    entries = ["a", "b", "a", "c"]

    summary = BackupDispatcher(mirror, reporter).dispatch(entries, str(tmp_path))

    assert summary.tasks_launched == 4
    assert summary.signals_consumed == 4
    assert summary.copied == 4
    assert sorted(mirror.calls) == sorted((entry, str(tmp_path)) for entry in entries)


def test_dispatch_runs_entries_concurrently(tmp_path: Path) -> None:
    reporter = RecordingReporter()
    mirror = RecordingMirror(reporter, delay=0.2)

    BackupDispatcher(mirror, reporter).dispatch(["a", "b", "c"], str(tmp_path))

    assert mirror.peak > 1


def test_max_workers_bounds_concurrency(tmp_path: Path) -> None:
    reporter = RecordingReporter()
    mirror = RecordingMirror(reporter, delay=0.05)

    summary = BackupDispatcher(mirror, reporter, max_workers=2).dispatch(
        [f"entry-{i}" for i in range(8)], str(tmp_path)
    )

    assert summary.tasks_launched == 8
    assert summary.signals_consumed == 8
    assert mirror.peak <= 2


def test_max_workers_must_be_positive() -> None:
    reporter = RecordingReporter()
    with pytest.raises(ValueError, match="max_workers"):
        BackupDispatcher(Mirror(reporter), reporter, max_workers=0)


def test_empty_manifest_completes_immediately(tmp_path: Path) -> None:
    reporter = RecordingReporter()
    manifest = tmp_path / "manifest.txt"
    manifest.write_text("\n\n", encoding="utf-8")
    ticks = iter([5.0, 5.0])

    summary = BackupDispatcher(Mirror(reporter), reporter, clock=lambda: next(ticks)).run(
        manifest, str(tmp_path / "backup")
    )

    assert summary.tasks_launched == 0
    assert summary.signals_consumed == 0
    assert reporter.messages() == ["Time taken: 0:00:00"]


def test_elapsed_time_is_reported_after_join(tmp_path: Path) -> None:
    reporter = RecordingReporter()
    ticks = iter([10.0, 12.5])
    dispatcher = BackupDispatcher(RecordingMirror(reporter), reporter, clock=lambda: next(ticks))

    summary = dispatcher.dispatch(["a", "b"], str(tmp_path))

    assert summary.elapsed == timedelta(seconds=2.5)
    assert reporter.messages()[-1] == "Time taken: 0:00:02.500000"


def test_crashing_task_still_signals_completion(tmp_path: Path) -> None:
    reporter = RecordingReporter()

    summary = BackupDispatcher(ExplodingMirror(reporter), reporter).dispatch(
        ["ok", "boom", "ok"], str(tmp_path)
    )

    assert summary.signals_consumed == 3
    assert summary.copied == 2
    assert summary.failed == 1
    assert any("Unhandled error while backing up boom" in line for line in reporter.errors())


def test_run_backs_up_manifest_entries(tmp_path: Path) -> None:
    docs = tmp_path / "src" / "docs"
    _write(docs / "a.txt", "A")
    _write(docs / "c" / "d.txt", "D")
    single = tmp_path / "src" / "single.txt"
    _write(single, "S")
    target = tmp_path / "backup"
    target.mkdir()
    manifest = tmp_path / "manifest.txt"
    manifest.write_text(
        "\n".join([str(docs), str(tmp_path / "missing"), str(single), str(target)]) + "\n",
        encoding="utf-8",
    )
    reporter = RecordingReporter()

    summary = BackupDispatcher(Mirror(reporter), reporter).run(manifest, str(target))

    assert summary.tasks_launched == 4
    assert summary.copied == 3
    assert summary.failed == 1
    assert summary.skipped == 1
    assert (target / "docs" / "a.txt").read_text(encoding="utf-8") == "A"
    assert (target / "docs" / "c" / "d.txt").read_text(encoding="utf-8") == "D"
    assert (target / "single.txt").read_text(encoding="utf-8") == "S"
    assert sorted(p.name for p in target.iterdir()) == ["docs", "single.txt"]
    assert reporter.messages()[-1].startswith("Time taken: ")


def test_run_with_unreadable_manifest_raises(tmp_path: Path) -> None:
    reporter = RecordingReporter()

    with pytest.raises(ManifestError):
        BackupDispatcher(Mirror(reporter), reporter).run(tmp_path / "missing.txt", str(tmp_path))


def test_thread_start_failure_is_reported_and_frees_slot(tmp_path: Path, monkeypatch) -> None:
    real_thread = threading.Thread

    class NoSecondThread(real_thread):
        def start(self) -> None:
            if self.name == "backup-1":
                raise RuntimeError("can't start new thread")
            super().start()

    monkeypatch.setattr(threading, "Thread", NoSecondThread)
    reporter = RecordingReporter()
    mirror = RecordingMirror(reporter)

    summary = BackupDispatcher(mirror, reporter, max_workers=1).dispatch(["a", "b", "c"], str(tmp_path))

    assert summary.tasks_launched == 2
    assert summary.signals_consumed == 3
    assert summary.copied == 2
    assert summary.failed == 1
    assert sorted(source for source, _ in mirror.calls) == ["a", "c"]
    assert any("Cannot start backup of b" in line for line in reporter.errors())
