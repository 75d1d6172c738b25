"""Chat command layer for driving a JIRA issue tracker."""

from jirabot.client import JiraClient
from jirabot.config import JiraConfig, load_config
from jirabot.handlers import JiraCommands, build_router
from jirabot.models import CommandContext, Result, TrackerResponse

__version__ = "0.1.0"

__all__ = [
    "build_router",
    "JiraCommands",
    "JiraClient",
    "JiraConfig",
    "load_config",
    "CommandContext",
    "Result",
    "TrackerResponse",
]
