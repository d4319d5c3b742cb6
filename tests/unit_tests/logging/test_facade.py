"""
Package-level functions backed by the process-wide default logger.
"""

from __future__ import annotations

import inspect
import threading
from pathlib import Path

import pytest
from conftest import read_json_lines

import sinklog
from sinklog.config import LoggingSettings
from sinklog.logging import core

pytestmark = pytest.mark.usefixtures("reset_default_logger")


@pytest.fixture
def init(log_dir: Path, clock):
    def _init(module_name: str = "inventory", base_path: str = "inventory"):
        return sinklog.init_logger(
            module_name,
            base_path,
            settings=LoggingSettings(console_color="never"),
            log_dir=log_dir,
            clock=clock,
        )

    return _init


def test_use_before_init_raises() -> None:
    with pytest.raises(sinklog.LoggerNotInitializedError):
        sinklog.info("too early")
    with pytest.raises(sinklog.LoggerNotInitializedError):
        sinklog.get_logger()


def test_records_reach_stdout_and_file(init, log_dir: Path, capsys) -> None:
    init()
    line = inspect.currentframe().f_lineno + 1
    sinklog.info("restocked", sku="B-2", qty=10)
    sinklog.debug("hidden")

    out_lines = capsys.readouterr().out.splitlines()
    records = read_json_lines(log_dir / "inventory_20240305.log")
    assert len(out_lines) == 1
    assert len(records) == 1
    assert out_lines[0].split("\t")[1:3] == ["INFO", "inventory"]

    record = records[0]
    assert record["sku"] == "B-2"
    assert record["qty"] == 10
    assert Path(record["file"]).resolve() == Path(__file__).resolve()
    assert record["line"] == line


def test_all_levels(init, log_dir: Path) -> None:
    init()
    sinklog.warn("w")
    sinklog.warning("w2")
    sinklog.error("e")

    records = read_json_lines(log_dir / "inventory_20240305.log")
    assert [(r["level"], r["message"]) for r in records] == [
        ("WARNING", "w"),
        ("WARNING", "w2"),
        ("ERROR", "e"),
    ]


def test_second_init_keeps_first_logger(init, log_dir: Path) -> None:
    first = init()
    second = init("other", "other")

    assert second is first
    assert not (log_dir / "other_20240305.log").exists()
    records = read_json_lines(log_dir / "inventory_20240305.log")
    assert records[0]["level"] == "WARNING"
    assert records[0]["requested_module"] == "other"


def test_concurrent_init_creates_one_logger(init) -> None:
    results = []
    barrier = threading.Barrier(6)

    def worker() -> None:
        barrier.wait()
        results.append(init())

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len({id(r) for r in results}) == 1
    assert core._default_logger is results[0]


def test_get_logger_named_child(init, log_dir: Path) -> None:
    init()
    child = sinklog.get_logger("stock")
    child.info("counted")

    assert child.name == "inventory.stock"
    assert read_json_lines(log_dir / "inventory_20240305.log")[0]["logger"] == "inventory.stock"


def test_execute_and_log_error(init, log_dir: Path) -> None:
    init()
    calls = []

    def failing() -> None:
        calls.append(1)
        raise OSError("disk gone")

    assert sinklog.execute_and_log_error(lambda: 3) == 3
    line = inspect.currentframe().f_lineno + 1
    sinklog.execute_and_log_error(failing)

    assert calls == [1]
    records = read_json_lines(log_dir / "inventory_20240305.log")
    assert len(records) == 1
    assert records[0]["error"] == "disk gone"
    assert records[0]["line"] == line


def test_sync(init, log_dir: Path) -> None:
    init()
    sinklog.info("flushed")
    sinklog.sync()

    assert read_json_lines(log_dir / "inventory_20240305.log")[0]["message"] == "flushed"


def test_init_failure_propagates(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("")

    with pytest.raises(sinklog.LogDirectoryError):
        sinklog.init_logger("inventory", "inventory", log_dir=blocker)
    assert core._default_logger is None
