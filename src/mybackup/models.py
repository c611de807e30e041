from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
import threading


@dataclass(frozen=True, slots=True)
class BackupTask:
    source: str
    destination: str


@dataclass(slots=True)
class MirrorStats:
    copied: int = 0
    folders: int = 0
    skipped: int = 0
    excluded: int = 0
    failed: int = 0


class CompletionSignal:
    """One-shot latch written by a backup thread and read by the dispatcher."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._stats: MirrorStats | None = None
        self._consumed = False

    @property
    def is_set(self) -> bool:
        return self._event.is_set()

    @property
    def consumed(self) -> bool:
        return self._consumed

    def set(self, stats: MirrorStats) -> None:
        with self._lock:
            if self._event.is_set():
                raise RuntimeError("completion signal already set")
            self._stats = stats
            self._event.set()

    def wait(self) -> MirrorStats:
        with self._lock:
            if self._consumed:
                raise RuntimeError("completion signal already consumed")
            self._consumed = True
        self._event.wait()
        return self._stats


@dataclass(slots=True)
class RunSummary:
    tasks_launched: int = 0
    signals_consumed: int = 0
    copied: int = 0
    folders: int = 0
    skipped: int = 0
    excluded: int = 0
    failed: int = 0
    elapsed: timedelta = timedelta(0)

    def absorb(self, stats: MirrorStats) -> None:
        self.copied += stats.copied
        self.folders += stats.folders
        self.skipped += stats.skipped
        self.excluded += stats.excluded
        self.failed += stats.failed
        self.signals_consumed += 1
