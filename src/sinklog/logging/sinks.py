"""
Log sink abstractions and concrete implementations.
"""

from __future__ import annotations

import os
import sys
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import IO, Callable

from structlog.typing import EventDict

from sinklog.errors import LogDirectoryError, LogFileOpenError

from .formatters import ConsoleFormatter, orjson_dumps

DEFAULT_LOG_DIR = "./logs"
DEFAULT_DATE_FORMAT = "%Y%m%d"
DIR_MODE = 0o755
FILE_MODE = 0o644


# =============================================================================
# Sink Abstraction (Strategy Pattern)
# =============================================================================


class BaseSink(ABC):
    """Abstract base class for log sinks.

    Subclasses write one record per ``emit`` call while holding ``_lock``, so
    records from concurrent threads never interleave within a sink.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @abstractmethod
    def emit(self, event_dict: EventDict) -> None:
        """Emit a log event to the sink."""
        ...

    @abstractmethod
    def sync(self) -> None:
        """Flush buffered output. Raises on failure."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the sink and release resources."""
        ...


class ConsoleSink(BaseSink):
    """Human-readable sink on a text stream.

    Args:
        stream: Output stream (default: sys.stdout at construction time)
        use_color: Force ANSI colors on or off; None colors only TTYs
    """

    def __init__(self, stream: IO[str] | None = None, use_color: bool | None = None):
        super().__init__()
        self._stream = stream if stream is not None else sys.stdout
        if use_color is None:
            use_color = bool(getattr(self._stream, "isatty", lambda: False)())
        self._use_color = use_color

    def emit(self, event_dict: EventDict) -> None:
        line = ConsoleFormatter.format(event_dict, use_color=self._use_color)
        with self._lock:
            self._stream.write(line + "\n")
            self._stream.flush()

    def sync(self) -> None:
        with self._lock:
            self._stream.flush()

    def close(self) -> None:
        pass


class DailyFileSink(BaseSink):
    """Newline-delimited JSON file sink, one file per local calendar day.

    Records go to ``<log_dir>/<base_path>_<date>.log``. The directory is
    created if missing and the file is opened in append mode, so a restart on
    the same day keeps writing to the same file. When the date changes the
    sink switches to the new day's file. Records emitted after ``close`` are
    dropped.

    Raises:
        LogDirectoryError: the log directory cannot be created.
        LogFileOpenError: the log file cannot be opened.
    """

    def __init__(
        self,
        base_path: str,
        log_dir: str | Path = DEFAULT_LOG_DIR,
        date_format: str = DEFAULT_DATE_FORMAT,
        clock: Callable[[], datetime] | None = None,
    ):
        super().__init__()
        self._base_path = base_path
        self._log_dir = Path(log_dir)
        self._date_format = date_format
        self._clock = clock or datetime.now
        self._day = self._today()
        self._path = self.path_for(self._day)
        self._file: IO[str] | None = self._open(self._path)

    @property
    def path(self) -> Path:
        """Path of the file currently written to."""
        return self._path

    def path_for(self, day: str) -> Path:
        return self._log_dir / f"{self._base_path}_{day}.log"

    def _today(self) -> str:
        return self._clock().strftime(self._date_format)

    @staticmethod
    def _open(path: Path) -> IO[str]:
        try:
            path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as exc:
            raise LogDirectoryError(f"failed to create log directory {path.parent}: {exc}") from exc

        try:
            fd = os.open(path, os.O_APPEND | os.O_CREAT | os.O_WRONLY, FILE_MODE)
        except OSError as exc:
            raise LogFileOpenError(f"failed to open log file {path}: {exc}") from exc
        return os.fdopen(fd, "a", encoding="utf-8")

    def _maybe_rotate(self) -> None:
        day = self._today()
        if day == self._day or self._file is None:
            return
        new_path = self.path_for(day)
        new_file = self._open(new_path)
        self._file.close()
        self._file, self._day, self._path = new_file, day, new_path

    def emit(self, event_dict: EventDict) -> None:
        line = orjson_dumps(event_dict)
        with self._lock:
            if self._file is None:
                return
            self._maybe_rotate()
            self._file.write(line + "\n")
            self._file.flush()

    def sync(self) -> None:
        with self._lock:
            if self._file is None:
                return
            self._file.flush()
            os.fsync(self._file.fileno())

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None

