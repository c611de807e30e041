from __future__ import annotations

from collections import deque
from datetime import datetime
import logging
from pathlib import Path
import sys
import threading


LOGGER_NAME = "mybackup.backup"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
DEFAULT_LOG_FILE_PREFIX = "backupLog"


class Reporter:
    """Sink for the progress and error lines produced by a backup run."""

    def report(self, message: str) -> None:
        raise NotImplementedError

    def error(self, message: str) -> None:
        self.report(message)


class LoggingReporter(Reporter):
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(LOGGER_NAME)

    def report(self, message: str) -> None:
        self.logger.info("%s", message)

    def error(self, message: str) -> None:
        self.logger.error("%s", message)


class RecordingReporter(Reporter):
    def __init__(self, max_lines: int | None = None) -> None:
        self._lines: deque[tuple[int, str]] = deque(maxlen=max_lines)
        self._lock = threading.Lock()

    def report(self, message: str) -> None:
        with self._lock:
            self._lines.append((logging.INFO, message))

    def error(self, message: str) -> None:
        with self._lock:
            self._lines.append((logging.ERROR, message))

    def messages(self) -> list[str]:
        with self._lock:
            return [line for _, line in self._lines]

    def errors(self) -> list[str]:
        with self._lock:
            return [line for level, line in self._lines if level >= logging.ERROR]


def log_file_path(log_dir: Path, prefix: str = DEFAULT_LOG_FILE_PREFIX, now: datetime | None = None) -> Path:
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    return log_dir / f"{prefix}-{stamp}.log"


def configure_logging(log_file: Path | None = None, console: bool = False) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8", errors="backslashreplace")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger
