"""Tests for utils/logging.py — root logger setup and the JSON line formatter."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest

from market_analyst.config import LoggingConfig
from market_analyst.utils.logging import JsonLineFormatter, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "market_analyst.scheduler", logging.INFO, __file__, 1, "[%s] Completed", ("weekly-review",), None
    )
    record.__dict__.update(extra)
    return record


def test_json_line_carries_extras_only() -> None:
    line = JsonLineFormatter().format(_record(job="weekly-review"))
    payload = json.loads(line)

    assert payload["level"] == "INFO"
    assert payload["logger"] == "market_analyst.scheduler"
    assert payload["msg"] == "[weekly-review] Completed"
    assert payload["job"] == "weekly-review"
    assert "lineno" not in payload and "args" not in payload
    assert payload["ts"].endswith("Z")


def test_json_line_includes_traceback() -> None:
    try:
        raise RuntimeError("collaborator down")
    except RuntimeError:
        record = logging.LogRecord(
            "market_analyst.jobs", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
        )
    payload = json.loads(JsonLineFormatter().format(record))
    assert "RuntimeError: collaborator down" in payload["exc"]


def test_configure_logging_writes_json_file(tmp_path: Path, restore_root_logger) -> None:
    log_file = tmp_path / "logs" / "analyst.log"
    configure_logging(LoggingConfig(level="debug", log_file=str(log_file), json_format=True))

    root = restore_root_logger
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 2
    assert logging.getLogger("httpx").level == logging.WARNING

    logging.getLogger("market_analyst.scheduler").info("tick", extra={"job": "eod-scan"})
    for handler in root.handlers:
        handler.flush()

    last = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
    assert last["msg"] == "tick" and last["job"] == "eod-scan"


def test_configure_logging_without_file(restore_root_logger) -> None:
    configure_logging(LoggingConfig(level="WARNING", log_file=""))
    root = restore_root_logger
    assert root.level == logging.WARNING
    assert [type(h) for h in root.handlers] == [logging.StreamHandler]
