"""Tests for logging configuration."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

from jirabot.logging import ConsoleFormatter, JSONFormatter, configure_logging


def _record(msg: str, level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("jirabot.test", level, __file__, 10, msg, (), None)
    record.__dict__.update(extra)
    return record


class TestJSONFormatter:
    def test_basic_fields(self) -> None:
        data = json.loads(JSONFormatter().format(_record("hello")))
        assert data["level"] == "INFO"
        assert data["logger"] == "jirabot.test"
        assert data["message"] == "hello"
        assert "location" not in data

    def test_errors_carry_location(self) -> None:
        data = json.loads(JSONFormatter().format(_record("bad", logging.ERROR)))
        assert data["location"]["line"] == 10

    def test_extras_included(self) -> None:
        data = json.loads(
            JSONFormatter().format(_record("x", issue_key="ABC-1", obj=object()))
        )
        assert data["issue_key"] == "ABC-1"
        assert data["obj"].startswith("<object")

    def test_context_fields_are_top_level(self) -> None:
        data = json.loads(
            JSONFormatter().format(_record("x", route="show", user="alice"))
        )
        assert data["route"] == "show"
        assert data["user"] == "alice"

    def test_extras_can_be_disabled(self) -> None:
        formatter = JSONFormatter(include_extras=False)
        data = json.loads(formatter.format(_record("x", issue_key="ABC-1")))
        assert "issue_key" not in data

    def test_exception_text(self) -> None:
        try:
            raise RuntimeError("kaboom")
        except RuntimeError:
            record = _record("failed", logging.ERROR)
            record.exc_info = sys.exc_info()
        data = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: kaboom" in data["exception"]


class TestConsoleFormatter:
    def test_compact_line(self) -> None:
        line = ConsoleFormatter().format(_record("hello", logging.WARNING))
        assert "W" in line
        assert line.endswith("jirabot.test: hello")

    def test_context_fields_appended_in_order(self) -> None:
        line = ConsoleFormatter().format(
            _record("dispatching", status=404, route="show", user="alice", other=1)
        )
        assert line.endswith("dispatching route=show user=alice status=404")


class TestConfigureLogging:
    def test_sets_level_and_stderr_handler(self, restore_root_logger) -> None:
        configure_logging(level="debug")
        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, ConsoleFormatter)
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_json_file_output(self, restore_root_logger, tmp_path: Path) -> None:
        log_file = tmp_path / "jirabot.log"
        configure_logging(level="INFO", json_output=True, log_file=str(log_file))
        logging.getLogger("jirabot.test").info("to file")
        for handler in restore_root_logger.handlers:
            handler.flush()

        data = json.loads(log_file.read_text().splitlines()[-1])
        assert data["message"] == "to file"
        assert all(
            isinstance(h.formatter, JSONFormatter)
            for h in restore_root_logger.handlers
        )

    def test_file_keeps_debug_while_console_stays_quiet(
        self, restore_root_logger, tmp_path: Path
    ) -> None:
        log_file = tmp_path / "jirabot.log"
        configure_logging(level="WARNING", log_file=str(log_file))
        console_handler, file_handler = restore_root_logger.handlers
        assert console_handler.level == logging.WARNING
        assert file_handler.level == logging.DEBUG

        logging.getLogger("jirabot.classifier").debug(
            "tracker transport error: timed out", extra={"status": None}
        )
        file_handler.flush()
        data = json.loads(log_file.read_text().splitlines()[-1])
        assert data["logger"] == "jirabot.classifier"
        assert data["status"] is None
