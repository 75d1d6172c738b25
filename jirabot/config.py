"""Configuration for jirabot.

Loads settings from (in order of precedence, highest first):
1. Environment variables (JIRA_*), including a .env file in cwd
2. YAML config (~/.jirabot/config.yml, or an explicit path)
3. Built-in defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = Path.home() / ".jirabot" / "config.yml"
DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_RESULTS = 15

# Channel setting holding the channel's project key(s), comma separated.
CHANNEL_PROJECT_SETTING = "jira-project"


@dataclass
class ProjectConfig:
    """A tracker project the bot may act on."""

    key: str
    default: bool = False


@dataclass
class JiraConfig:
    """Top-level jirabot configuration."""

    base_url: str = ""
    user: str = ""
    token: str = ""
    timeout: float = DEFAULT_TIMEOUT
    projects: list[ProjectConfig] = field(default_factory=list)
    default_project_key: Optional[str] = None
    max_results: int = DEFAULT_MAX_RESULTS
    strict_routes: bool = False

    @property
    def project_keys(self) -> list[str]:
        return [p.key for p in self.projects]

    @property
    def default_project(self) -> Optional[str]:
        """Explicit default, else the project flagged default, else the first."""
        if self.default_project_key:
            return self.default_project_key
        for project in self.projects:
            if project.default:
                return project.key
        return self.projects[0].key if self.projects else None


def load_yaml_config(path: Path) -> dict:
    """Load a YAML config file, returning empty dict if not found.

    Raises:
        ValueError: If the file exists but is not valid YAML.
    """
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    return data if isinstance(data, dict) else {}


def _parse_projects(raw: object) -> list[ProjectConfig]:
    """Accept a list of keys, a list of mappings, or a key->options mapping."""
    if raw is None:
        return []
    if isinstance(raw, str):
        return [ProjectConfig(key=k) for k in _split_keys(raw)]
    if isinstance(raw, dict):
        return [
            ProjectConfig(key=str(k), default=bool((v or {}).get("default", False)))
            for k, v in raw.items()
        ]
    if not isinstance(raw, list):
        raise ValueError("'projects' must be a list or a mapping of project keys")

    projects: list[ProjectConfig] = []
    for item in raw:
        if isinstance(item, str):
            projects.append(ProjectConfig(key=item))
        elif isinstance(item, dict) and "key" in item:
            projects.append(
                ProjectConfig(key=str(item["key"]), default=bool(item.get("default")))
            )
        else:
            raise ValueError(f"Invalid project entry: {item!r}")
    return projects


def _split_keys(value: str) -> list[str]:
    return [k.strip() for k in value.split(",") if k.strip()]


def _apply_env_overrides(config: JiraConfig) -> None:
    base_url = os.environ.get("JIRA_BASE_URL")
    if base_url:
        config.base_url = base_url

    user = os.environ.get("JIRA_USER")
    if user:
        config.user = user

    token = os.environ.get("JIRA_TOKEN")
    if token:
        config.token = token

    timeout = os.environ.get("JIRA_TIMEOUT")
    if timeout:
        config.timeout = float(timeout)

    projects = os.environ.get("JIRA_PROJECTS")
    if projects:
        config.projects = [ProjectConfig(key=k) for k in _split_keys(projects)]

    default_project = os.environ.get("JIRA_DEFAULT_PROJECT")
    if default_project:
        config.default_project_key = default_project

    max_results = os.environ.get("JIRA_MAX_RESULTS")
    if max_results:
        config.max_results = int(max_results)


def load_config(path: Optional[Path] = None, use_env: bool = True) -> JiraConfig:
    """Build a JiraConfig from YAML and the environment.

    Args:
        path: YAML config path. Defaults to ~/.jirabot/config.yml.
        use_env: Apply .env and JIRA_* environment overrides.

    Returns:
        Parsed JiraConfig.

    Raises:
        ValueError: If the YAML structure is invalid.
    """
    raw = load_yaml_config(path or DEFAULT_CONFIG_PATH)

    config = JiraConfig(
        base_url=str(raw.get("base_url", "")).rstrip("/"),
        user=str(raw.get("user", "")),
        token=str(raw.get("token", "")),
        timeout=float(raw.get("timeout", DEFAULT_TIMEOUT)),
        projects=_parse_projects(raw.get("projects")),
        default_project_key=raw.get("default_project"),
        max_results=int(raw.get("max_results", DEFAULT_MAX_RESULTS)),
        strict_routes=bool(raw.get("strict_routes", False)),
    )

    if use_env:
        load_dotenv(os.path.join(os.getcwd(), ".env"))
        _apply_env_overrides(config)
        config.base_url = config.base_url.rstrip("/")

    return config


def validate_config(config: JiraConfig) -> list[str]:
    """Validate a JiraConfig and return a list of errors.

    Returns:
        List of error strings. Empty means valid.
    """
    errors: list[str] = []

    if not config.base_url:
        errors.append("No base_url configured (set JIRA_BASE_URL)")
    elif not config.base_url.startswith(("http://", "https://")):
        errors.append(
            f"base_url '{config.base_url}' must start with http:// or https://"
        )

    if config.timeout <= 0:
        errors.append(f"timeout must be positive, got {config.timeout}")

    if config.max_results <= 0:
        errors.append(f"max_results must be positive, got {config.max_results}")

    keys = config.project_keys
    if len(set(keys)) != len(keys):
        errors.append("Duplicate project keys configured")

    defaults = [p.key for p in config.projects if p.default]
    if len(defaults) > 1:
        errors.append(f"More than one default project: {', '.join(defaults)}")

    default_key = config.default_project_key
    if keys and default_key and default_key not in keys:
        errors.append(f"Default project '{default_key}' is not a configured project")

    return errors
