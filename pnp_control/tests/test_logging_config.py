"""Tests for logging setup: JSON lines, contextual fields, idempotency."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from pnp_control.utils import logging_config


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    logging_config.pop_context()


class TestSetupLogging:
    def test_json_file_with_context(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "pnp.log"
        logging_config.setup_logging(
            "INFO", str(log_file), json=True, to_stderr=False,
            context={"app": "pnp"},
        )
        logging.getLogger("pnp_control.test").warning("No tape for '%s'", "a@1")
        for handler in logging.getLogger().handlers:
            handler.flush()

        record = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert record["lvl"] == "WARNING"
        assert record["msg"] == "No tape for 'a@1'"
        assert record["app"] == "pnp"

    def test_repeated_setup_replaces_handlers(self) -> None:
        root = logging.getLogger()
        before = len(root.handlers)
        logging_config.setup_logging("INFO")
        logging_config.setup_logging("DEBUG")
        assert len(root.handlers) == before + 1
        assert root.level == logging.DEBUG


class TestContext:
    def test_push_and_pop(self) -> None:
        logging_config.push_context(app="pnp", board="main.pos")
        logging_config.pop_context(keys=["board"])
        assert logging_config.get_context() == {"app": "pnp"}
        logging_config.pop_context()
        assert logging_config.get_context() == {}

    def test_human_format(self) -> None:
        logging_config.push_context(app="pnp")
        fmt = logging_config.ContextFormatter("human", use_color=False)
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)
        line = fmt.format(record)
        assert line.endswith("| app=pnp | hello")
        assert "INFO" in line
