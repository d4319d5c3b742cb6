"""
Structured logging with a console sink and a daily JSON file sink.

- console: human-readable, tab-separated lines on stdout
- file: newline-delimited JSON in ./logs/<base>_<YYYYMMDD>.log

Library: structlog for the processor pipeline, orjson for JSON serialization.
"""

from .core import (
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
from .interceptors import StdlibHandler, capture_stdlib
from .sinks import BaseSink, ConsoleSink, DailyFileSink

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
    "BaseSink",
    "ConsoleSink",
    "DailyFileSink",
    "StdlibHandler",
    "capture_stdlib",
]
