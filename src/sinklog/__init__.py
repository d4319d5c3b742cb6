"""
sinklog: a process-wide structured logging facade.

Usage:
    import sinklog

    sinklog.init_logger("billing", "billing")
    sinklog.info("invoice sent", invoice_id=42)
    sinklog.sync()
"""

from sinklog.errors import (
    LogDirectoryError,
    LogFileOpenError,
    LoggerNotInitializedError,
    LogSinkError,
    LogSyncError,
    SinklogError,
)
from sinklog.logging import (
    StructuredLogger,
    debug,
    error,
    execute_and_log_error,
    get_logger,
    info,
    init_logger,
    sync,
    warn,
    warning,
)

__all__ = [
    "StructuredLogger",
    "init_logger",
    "get_logger",
    "debug",
    "info",
    "warn",
    "warning",
    "error",
    "sync",
    "execute_and_log_error",
    "SinklogError",
    "LogSinkError",
    "LogDirectoryError",
    "LogFileOpenError",
    "LogSyncError",
    "LoggerNotInitializedError",
]
