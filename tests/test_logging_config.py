"""Tests for logging setup."""

import json
import logging
import sys

import pytest

from autojournal.config import Settings
from autojournal.logging_config import JsonFormatter, setup_logging


def _ours(root):
    return [h for h in root.handlers if getattr(h, "_autojournal_handler", False)]


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    level = root.level
    yield root
    for handler in _ours(root):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)


def _config(tmp_path, **overrides):
    values = {
        "log_dir": str(tmp_path),
        "log_file_enabled": True,
        "log_console_enabled": True,
        "log_level": "DEBUG",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_console_and_file_handlers(root_logger, tmp_path):
    setup_logging("worker", _config(tmp_path))

    handlers = _ours(root_logger)
    assert len(handlers) == 2
    assert root_logger.level == logging.DEBUG
    assert (tmp_path / "worker.log").exists()
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_repeated_setup_does_not_duplicate_handlers(root_logger, tmp_path):
    config = _config(tmp_path)

    setup_logging("cli", config)
    setup_logging("cli", config)

    assert len(_ours(root_logger)) == 2


def test_file_logging_disabled(root_logger, tmp_path):
    setup_logging("cli", _config(tmp_path / "unused", log_file_enabled=False))

    assert len(_ours(root_logger)) == 1
    assert not (tmp_path / "unused").exists()


def test_json_log_lines(root_logger, tmp_path):
    setup_logging(
        "worker",
        _config(tmp_path, log_format="json", log_console_enabled=False),
    )

    logging.getLogger("autojournal.test").info("Tick complete")
    for handler in _ours(root_logger):
        handler.flush()

    line = (tmp_path / "worker.log").read_text().strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["level"] == "INFO"
    assert payload["logger"] == "autojournal.test"
    assert payload["message"] == "Tick complete"


def test_json_formatter_includes_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.getLogger("x").makeRecord(
            "x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
        )

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "failed"
    assert "ValueError: boom" in payload["exception"]
