"""Shared fixtures for jirabot tests."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from jirabot.models import CommandContext, TrackerResponse

BASE_URL = "https://jira.example.com"

SAMPLE_CONFIG_YAML = """\
base_url: https://jira.example.com/
user: bot
token: secret
timeout: 7
projects:
  - key: ABC
  - key: OPS
    default: true
max_results: 10
"""


def make_issue(key: str, summary: str = "Fix totals", status: str = "Open") -> dict:
    """Minimal issue payload in the tracker's shape."""
    return {
        "key": key,
        "fields": {
            "summary": summary,
            "status": {"name": status},
            "assignee": {"displayName": "Alice"},
        },
    }


def ok(body: Any = None, status: Any = 200) -> TrackerResponse:
    return TrackerResponse(status=status, body=body)


@pytest.fixture
def api() -> MagicMock:
    """A TrackerApi stand-in with two configured projects, ABC the default."""
    fake = MagicMock()
    fake.project_keys.return_value = ["ABC", "OPS"]
    fake.default_project_key.return_value = "ABC"
    fake.url_from_key.side_effect = lambda key: f"{BASE_URL}/browse/{key}"
    fake.format_issue_short.side_effect = (
        lambda issue: f"{issue['key']} {issue['fields']['summary']}"
    )
    fake.format_issue_long.side_effect = lambda issue: [
        issue["key"],
        issue["fields"]["summary"],
    ]
    fake.get_issue.side_effect = lambda key: ok(make_issue(key))
    return fake


def context(channel_projects: Optional[str] = None, user: str = "alice"):
    settings = {"jira-project": channel_projects} if channel_projects else {}
    return CommandContext(user=user, settings=settings)


@pytest.fixture
def ctx() -> CommandContext:
    return context()


@pytest.fixture
def make_context():
    """Factory for contexts bound to channel projects."""
    return context


@pytest.fixture
def make_response():
    """Factory for tracker responses."""
    return ok


@pytest.fixture
def issue_factory():
    return make_issue


@pytest.fixture
def sample_config_file(tmp_path: Path) -> Path:
    """Write sample config to a YAML file and return its path."""
    config_file = tmp_path / "config.yml"
    config_file.write_text(SAMPLE_CONFIG_YAML)
    return config_file


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Clear JIRA_* variables and run from an empty directory (no .env)."""
    for name in (
        "JIRA_BASE_URL",
        "JIRA_USER",
        "JIRA_TOKEN",
        "JIRA_TIMEOUT",
        "JIRA_PROJECTS",
        "JIRA_DEFAULT_PROJECT",
        "JIRA_MAX_RESULTS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def restore_root_logger():
    """Put the root logger's handlers and level back after configure_logging."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
