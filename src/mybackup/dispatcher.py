from __future__ import annotations

from datetime import timedelta
from pathlib import Path
import threading
import time
import traceback
from typing import Callable, Sequence

from mybackup.manifest import read_manifest
from mybackup.mirror_engine import Mirror
from mybackup.models import BackupTask, CompletionSignal, MirrorStats, RunSummary
from mybackup.reporter import Reporter


class BackupDispatcher:
    """Runs one thread per manifest entry and waits for all of them.

    Fan-out is unbounded unless ``max_workers`` is given, in which case a
    bounded semaphore caps how many top-level copies run at once.
    """

    def __init__(
        self,
        mirror: Mirror,
        reporter: Reporter,
        max_workers: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_workers is not None and max_workers < 1:
            raise ValueError("max_workers must be a positive integer")
        self.mirror = mirror
        self.reporter = reporter
        self.max_workers = max_workers
        self._clock = clock

    def run(self, manifest_path: Path, target_folder: str) -> RunSummary:
        entries = read_manifest(manifest_path)
        return self.dispatch(entries, target_folder)

    def dispatch(self, entries: Sequence[str], target_folder: str) -> RunSummary:
        summary = RunSummary()
        slots = threading.BoundedSemaphore(self.max_workers) if self.max_workers else None
        signals: list[CompletionSignal] = []

        started = self._clock()
        for index, entry in enumerate(entries):
            task = BackupTask(source=entry, destination=target_folder)
            signal = CompletionSignal()
            signals.append(signal)
            if slots is not None:
                slots.acquire()
            worker = threading.Thread(
                target=self._execute,
                args=(task, signal, slots),
                name=f"backup-{index}",
                daemon=True,
            )
            try:
                worker.start()
            except RuntimeError as exc:
                if slots is not None:
                    slots.release()
                self.reporter.error(f"Cannot start backup of {entry}: {exc}")
                signal.set(MirrorStats(failed=1))
                continue
            summary.tasks_launched += 1

        for signal in signals:
            summary.absorb(signal.wait())

        summary.elapsed = timedelta(seconds=self._clock() - started)
        self.reporter.report(f"Time taken: {summary.elapsed}")
        return summary

    def _execute(
        self,
        task: BackupTask,
        signal: CompletionSignal,
        slots: threading.BoundedSemaphore | None,
    ) -> None:
        stats = MirrorStats()
        try:
            stats = self.mirror.copy(task.source, task.destination)
        except Exception:
            stats.failed += 1
            self.reporter.error(f"Unhandled error while backing up {task.source}:\n{traceback.format_exc()}")
        finally:
            if slots is not None:
                slots.release()
            signal.set(stats)
