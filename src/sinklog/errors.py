"""
Exception hierarchy for sinklog.
"""

from __future__ import annotations


class SinklogError(Exception):
    """Base class for all sinklog errors."""


class LogSinkError(SinklogError, OSError):
    """A sink could not be set up. Raised during initialization only."""


class LogDirectoryError(LogSinkError):
    """The log directory could not be created."""


class LogFileOpenError(LogSinkError):
    """The log file could not be opened for appending."""


class LogSyncError(SinklogError):
    """One or more sinks failed to flush.

    Args:
        errors: The underlying exceptions, one per failing sink.
    """

    def __init__(self, errors: list[BaseException]):
        self.errors = list(errors)
        detail = "; ".join(f"{type(e).__name__}: {e}" for e in self.errors)
        super().__init__(f"failed to sync {len(self.errors)} sink(s): {detail}")


class LoggerNotInitializedError(SinklogError, RuntimeError):
    """The default logger was used before init_logger() was called."""
