"""
Interceptors for capturing standard library and third-party logs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .core import StructuredLogger


class StdlibHandler(logging.Handler):
    """
    Redirect standard library logging events to a StructuredLogger.

    The record's own source location is kept, so ``caller`` points at the
    code that called the stdlib logger rather than at this handler.
    """

    def __init__(self, logger: StructuredLogger, level: int = logging.NOTSET):
        super().__init__(level)
        self._logger = logger

    def emit(self, record: logging.LogRecord) -> None:
        try:
            # Skip structlog's own stdlib output to avoid loops
            if record.name.startswith("structlog"):
                return

            fields: dict[str, Any] = {"source": record.name}
            if record.exc_info:
                fields["exc_info"] = record.exc_info

            self._logger.log_at(
                record.levelno,
                record.getMessage(),
                fields,
                location=(record.pathname, record.lineno),
            )
        except Exception:
            self.handleError(record)


def capture_stdlib(logger: StructuredLogger) -> StdlibHandler:
    """Install a StdlibHandler on the root logger, replacing earlier ones."""
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if isinstance(handler, StdlibHandler):
            root_logger.removeHandler(handler)

    handler = StdlibHandler(logger)
    root_logger.addHandler(handler)
    if root_logger.level == logging.NOTSET or root_logger.level > logger.level:
        root_logger.setLevel(logger.level)
    return handler
