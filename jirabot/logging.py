"""Structured logging configuration for jirabot.

Modules log through ``logging.getLogger(__name__)`` and attach invocation
context with ``extra=`` (see ``CONTEXT_FIELDS``). The JSON formatter writes
those fields as top-level keys; the console formatter appends them as
``key=value`` pairs.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Extra fields set by the router, handlers and classifier.
CONTEXT_FIELDS = ("route", "user", "issue_key", "project", "status")

_RECORD_FIELDS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Extra fields on a record, context fields first."""
    extras = {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_FIELDS and not key.startswith("_")
    }
    ordered = {key: extras.pop(key) for key in CONTEXT_FIELDS if key in extras}
    ordered.update(extras)
    return ordered


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shippers and ``--log-file``."""

    def __init__(self, include_extras: bool = True):
        """Initialize formatter.

        Args:
            include_extras: Include fields passed through ``extra=``.
        """
        super().__init__()
        self.include_extras = include_extras

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.levelno >= logging.ERROR:
            log_data["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if self.include_extras:
            for key, value in record_context(record).items():
                try:
                    json.dumps(value)
                    log_data[key] = value
                except (TypeError, ValueError):
                    log_data[key] = str(value)

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Compact colored lines for a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format as ``[HH:MM:SS] L logger: message key=value ...``."""
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.now().strftime("%H:%M:%S")
        msg = (
            f"{color}[{timestamp}] {record.levelname[0]}{self.RESET} "
            f"{record.name}: {record.getMessage()}"
        )
        context = " ".join(
            f"{key}={value}"
            for key, value in record_context(record).items()
            if key in CONTEXT_FIELDS
        )
        if context:
            msg += f" {context}"
        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)
        return msg


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Configure root logging for the CLI.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: Write JSON lines to stderr instead of console lines.
        log_file: Also append JSON lines to this file, at DEBUG and up.
    """
    root_logger = logging.getLogger()
    console_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(logging.DEBUG if log_file else console_level)
    root_logger.handlers.clear()

    # stderr, so command output on stdout stays clean
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(JSONFormatter() if json_output else ConsoleFormatter())
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
