"""
Core logger, processor chain and the process-wide default logger.
"""

from __future__ import annotations

import atexit
import contextlib
import logging
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import IO, Any, Callable, Iterable, NoReturn, TypeVar

import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder
from structlog.typing import EventDict, WrappedLogger

from sinklog.config import LoggingSettings, settings as app_settings
from sinklog.config.logging import ConsoleColor
from sinklog.errors import LoggerNotInitializedError, LogSyncError

from .sinks import BaseSink, ConsoleSink, DailyFileSink

T = TypeVar("T")

EXECUTE_ERROR_MESSAGE = "An error occurred while executing the function."

# =============================================================================
# Structlog Processors
# =============================================================================

# Frames from structlog and from this package are skipped, so the location
# is the first frame outside the logging machinery.
_CALLSITE = CallsiteParameterAdder(
    parameters=[CallsiteParameter.PATHNAME, CallsiteParameter.LINENO],
    additional_ignores=["sinklog.logging"],
)

_HEAD_KEYS = ("timestamp", "level", "logger", "message", "caller", "file", "line")

# Location handed over by the stdlib bridge; consumed by add_callsite.
_RECORD_FILE = "_record_file"
_RECORD_LINE = "_record_line"

# Keys the processor chain writes itself, or that structlog's method
# signatures claim. User fields with these names are stored as ``fields.<name>``.
RESERVED_KEYS = frozenset(
    {"self", "event", "method_name", "exception", "stack", _RECORD_FILE, _RECORD_LINE, *_HEAD_KEYS}
)
FIELD_PREFIX = "fields."

_STANDARD_LEVELS = frozenset({logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL})


def prepare_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Move user fields off the reserved record keys."""
    return {(FIELD_PREFIX + k if k in RESERVED_KEYS else k): v for k, v in fields.items()}


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add local ISO 8601 timestamp (milliseconds, UTC offset) to log event."""
    event_dict["timestamp"] = datetime.now().astimezone().isoformat(timespec="milliseconds")
    return event_dict


def uppercase_level(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["level"] = str(event_dict.get("level", method_name)).upper()
    return event_dict


def rename_event_key(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename structlog's 'event' to 'message'."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def add_callsite(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Attach file, line and caller ("file:line").

    A location handed over by the stdlib bridge is used as is; otherwise the
    first frame outside the logging machinery is taken.
    """
    record_file = event_dict.pop(_RECORD_FILE, None)
    record_line = event_dict.pop(_RECORD_LINE, None)
    if record_file is not None:
        event_dict["file"], event_dict["line"] = record_file, record_line
    else:
        event_dict = _CALLSITE(logger, method_name, event_dict)
        event_dict["file"] = event_dict.pop("pathname", None)
        event_dict["line"] = event_dict.pop("lineno", None)
    if event_dict["file"] is None:
        event_dict["caller"] = "unknown"
    else:
        event_dict["caller"] = f"{event_dict['file']}:{event_dict['line']}"
    return event_dict


def order_keys(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Put the fixed record keys first; user fields follow in call order."""
    ordered = {k: event_dict.pop(k) for k in _HEAD_KEYS if k in event_dict}
    ordered.update(event_dict)
    return ordered


class MultiSinkRenderer:
    """Final processor: write the event to every sink, then drop it.

    A failing sink is reported on stderr and never raised to the caller.
    """

    def __init__(self, sinks: list[BaseSink]):
        self._sinks = sinks

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> NoReturn:
        for sink in self._sinks:
            try:
                sink.emit(event_dict)
            except Exception as exc:
                sys.stderr.write(f"sinklog: {type(sink).__name__} write failed: {exc!r}\n")
        raise structlog.DropEvent


def _to_level(level: int | str) -> int:
    """Resolve a level name or number to one of the standard stdlib levels."""
    if isinstance(level, int):
        resolved: Any = level
    else:
        resolved = logging.getLevelName(str(getattr(level, "value", level)).upper())
    if resolved not in _STANDARD_LEVELS:
        raise ValueError(f"unknown log level: {level!r}")
    return resolved


def _method_for(level: int) -> str:
    """Name of the leveled method for a numeric level, clamped to debug..critical."""
    if level >= logging.CRITICAL:
        return "critical"
    if level >= logging.ERROR:
        return "error"
    if level >= logging.WARNING:
        return "warning"
    if level >= logging.INFO:
        return "info"
    return "debug"


# =============================================================================
# StructuredLogger
# =============================================================================


class StructuredLogger:
    """A named logger writing every record to a fixed set of sinks.

    Instances are cheap to derive (``named``, ``bind``); derived loggers share
    the parent's sinks, so closing any of them closes the sinks for all.

    Args:
        name: Name tagged on every record (``logger`` key)
        sinks: Output destinations
        level: Minimum severity; lower records are dropped before processing
        add_caller: Attach file/line/caller metadata
        context: Fields attached to every record
    """

    def __init__(
        self,
        name: str,
        sinks: Iterable[BaseSink],
        *,
        level: int | str = logging.INFO,
        add_caller: bool = True,
        context: dict[str, Any] | None = None,
    ):
        self.name = name
        self.level = _to_level(level)
        self.add_caller = add_caller
        self._sinks = list(sinks)
        self._context = prepare_fields(dict(context or {}))

        processors: list[Any] = [
            structlog.stdlib.add_log_level,
            uppercase_level,
            add_timestamp,
            rename_event_key,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]
        if add_caller:
            processors.append(add_callsite)
        processors += [order_keys, MultiSinkRenderer(self._sinks)]

        self._bound = structlog.wrap_logger(
            structlog.ReturnLogger(),
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(self.level),
            context_class=dict,
            cache_logger_on_first_use=True,
        ).bind(**{**self._context, "logger": name})

    @classmethod
    def create(
        cls,
        module_name: str,
        base_path: str,
        *,
        settings: LoggingSettings | None = None,
        level: int | str | None = None,
        log_dir: str | Path | None = None,
        stream: IO[str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> StructuredLogger:
        """Build a logger with a console sink and a daily JSON file sink.

        Keyword arguments override the corresponding settings.

        Raises:
            LogDirectoryError: the log directory cannot be created.
            LogFileOpenError: the day's log file cannot be opened.
        """
        cfg = settings or app_settings.logging

        sinks: list[BaseSink] = []
        if cfg.file:
            sinks.append(
                DailyFileSink(
                    base_path,
                    log_dir=log_dir if log_dir is not None else cfg.log_dir,
                    date_format=cfg.date_format,
                    clock=clock,
                )
            )
        if cfg.console:
            use_color = {ConsoleColor.ALWAYS: True, ConsoleColor.NEVER: False}.get(cfg.console_color)
            sinks.insert(0, ConsoleSink(stream=stream, use_color=use_color))

        logger = cls(
            module_name,
            sinks,
            level=level if level is not None else cfg.level,
            add_caller=cfg.add_caller,
        )
        if cfg.capture_stdlib:
            from .interceptors import capture_stdlib

            capture_stdlib(logger)
        return logger

    @property
    def sinks(self) -> list[BaseSink]:
        return list(self._sinks)

    def _derive(self, name: str, context: dict[str, Any]) -> StructuredLogger:
        return StructuredLogger(
            name,
            self._sinks,
            level=self.level,
            add_caller=self.add_caller,
            context=context,
        )

    def named(self, suffix: str) -> StructuredLogger:
        """Child logger named ``<name>.<suffix>``."""
        return self._derive(f"{self.name}.{suffix}", self._context)

    def bind(self, /, **fields: Any) -> StructuredLogger:
        """Child logger that adds ``fields`` to every record."""
        return self._derive(self.name, {**self._context, **fields})

    def is_enabled_for(self, level: int | str) -> bool:
        threshold = level if isinstance(level, int) else _to_level(level)
        return threshold >= self.level

    # -- leveled calls --------------------------------------------------------

    def log_at(
        self,
        level: int,
        message: str,
        fields: dict[str, Any],
        *,
        location: tuple[str, int] | None = None,
    ) -> None:
        """Log ``fields`` at a numeric stdlib level, rounded down to a standard level.

        ``location`` replaces the call-site lookup with a known ``(file, line)``.
        """
        kw = prepare_fields(fields)
        if location is not None and self.add_caller:
            kw[_RECORD_FILE], kw[_RECORD_LINE] = location
        getattr(self._bound, _method_for(level))(message, **kw)

    def debug(self, message: str, /, **fields: Any) -> None:
        self.log_at(logging.DEBUG, message, fields)

    def info(self, message: str, /, **fields: Any) -> None:
        self.log_at(logging.INFO, message, fields)

    def warn(self, message: str, /, **fields: Any) -> None:
        self.log_at(logging.WARNING, message, fields)

    warning = warn

    def error(self, message: str, /, **fields: Any) -> None:
        self.log_at(logging.ERROR, message, fields)

    def log(self, level: int, message: str, /, **fields: Any) -> None:
        self.log_at(level, message, fields)

    # -- lifecycle ------------------------------------------------------------

    def sync(self) -> None:
        """Flush every sink.

        Raises:
            LogSyncError: one or more sinks failed; all sinks were attempted.
        """
        errors: list[BaseException] = []
        for sink in self._sinks:
            try:
                sink.sync()
            except (OSError, ValueError) as exc:
                errors.append(exc)
        if errors:
            raise LogSyncError(errors)

    def close(self) -> None:
        """Sync, then close every sink. Sync failures are raised after closing."""
        try:
            self.sync()
        finally:
            for sink in self._sinks:
                sink.close()

    def execute_and_log_error(
        self,
        fn: Callable[..., T],
        /,
        *args: Any,
        reraise: bool = False,
        **kwargs: Any,
    ) -> T | None:
        """Call ``fn(*args, **kwargs)`` once and log an error record if it raises.

        Returns the result of ``fn``, or None when it raised and ``reraise`` is
        false.
        """
        try:
            return fn(*args, **kwargs)
        except Exception as exc:
            self.error(
                EXECUTE_ERROR_MESSAGE,
                error=str(exc),
                error_type=type(exc).__name__,
                function=getattr(fn, "__qualname__", repr(fn)),
                exc_info=exc,
            )
            if reraise:
                raise
            return None


# =============================================================================
# Default Logger (process-wide)
# =============================================================================

_default_logger: StructuredLogger | None = None
_init_lock = threading.Lock()
_atexit_registered = False


def _close_default() -> None:
    logger = _default_logger
    if logger is None:
        return
    # The console stream may already be gone at interpreter shutdown.
    with contextlib.suppress(LogSyncError):
        logger.close()


def init_logger(module_name: str, base_path: str, **options: Any) -> StructuredLogger:
    """Create the process-wide default logger.

    Only the first call creates a logger; later calls return it unchanged and
    log a warning. ``options`` are passed to ``StructuredLogger.create``.

    Raises:
        LogDirectoryError: the log directory cannot be created.
        LogFileOpenError: the day's log file cannot be opened.
    """
    global _default_logger, _atexit_registered

    with _init_lock:
        existing = _default_logger
        if existing is None:
            _default_logger = StructuredLogger.create(module_name, base_path, **options)
            if not _atexit_registered:
                atexit.register(_close_default)
                _atexit_registered = True
            return _default_logger

    existing.warn(
        "Logger already initialized; ignoring init request.",
        requested_module=module_name,
        requested_base_path=base_path,
    )
    return existing


def get_logger(name: str | None = None) -> StructuredLogger:
    """Return the default logger, or a child of it named ``<module>.<name>``.

    Raises:
        LoggerNotInitializedError: init_logger() has not been called.
    """
    logger = _default_logger
    if logger is None:
        raise LoggerNotInitializedError("init_logger() must be called before logging")
    return logger.named(name) if name else logger


def debug(message: str, /, **fields: Any) -> None:
    get_logger().debug(message, **fields)


def info(message: str, /, **fields: Any) -> None:
    get_logger().info(message, **fields)


def warn(message: str, /, **fields: Any) -> None:
    get_logger().warn(message, **fields)


warning = warn


def error(message: str, /, **fields: Any) -> None:
    get_logger().error(message, **fields)


def sync() -> None:
    """Flush the default logger's sinks. Raises LogSyncError on failure."""
    get_logger().sync()


def execute_and_log_error(
    fn: Callable[..., T], /, *args: Any, reraise: bool = False, **kwargs: Any
) -> T | None:
    return get_logger().execute_and_log_error(fn, *args, reraise=reraise, **kwargs)
