import contextlib
import io
import json
import logging
from datetime import datetime
from pathlib import Path

import pytest

from sinklog.config import LoggingSettings
from sinklog.errors import LogSyncError
from sinklog.logging import StructuredLogger, core
from sinklog.logging.interceptors import StdlibHandler


class FixedClock:
    """Mutable clock for daily file naming."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def read_json_lines(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 3, 5, 10, 30, 0))


@pytest.fixture
def log_settings() -> LoggingSettings:
    return LoggingSettings(console_color="never")


@pytest.fixture
def console() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    return tmp_path / "logs"


@pytest.fixture
def make_logger(log_settings, log_dir, console, clock):
    """
    Factory for StructuredLogger instances writing to an in-memory console
    and a per-test log directory. Every logger created is closed on teardown.
    """
    created: list[StructuredLogger] = []

    def _make(module_name: str = "orders", base_path: str = "orders", **overrides) -> StructuredLogger:
        settings = overrides.pop("settings", log_settings)
        logger = StructuredLogger.create(
            module_name,
            base_path,
            settings=settings,
            log_dir=overrides.pop("log_dir", log_dir),
            stream=overrides.pop("stream", console),
            clock=overrides.pop("clock", clock),
            **overrides,
        )
        created.append(logger)
        return logger

    yield _make

    for logger in created:
        with contextlib.suppress(LogSyncError):
            logger.close()


@pytest.fixture
def reset_default_logger(monkeypatch):
    """Start each test without a process-wide logger and close the one it creates."""
    monkeypatch.setattr(core, "_default_logger", None)
    monkeypatch.setattr(core, "_atexit_registered", True)
    yield
    logger = core._default_logger
    if logger is not None:
        with contextlib.suppress(LogSyncError):
            logger.close()


@pytest.fixture
def restore_root_logger():
    root_logger = logging.getLogger()
    level = root_logger.level
    yield root_logger
    for handler in list(root_logger.handlers):
        if isinstance(handler, StdlibHandler):
            root_logger.removeHandler(handler)
    root_logger.setLevel(level)
