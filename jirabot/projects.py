"""Project resolution: which tracker project(s) a command targets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence

from jirabot.config import CHANNEL_PROJECT_SETTING


@dataclass(frozen=True)
class ProjectSelection:
    """Ordered, de-duplicated project keys; may be empty."""

    keys: tuple[str, ...] = ()
    source: str = "none"

    @property
    def first(self) -> Optional[str]:
        return self.keys[0] if self.keys else None

    @property
    def empty(self) -> bool:
        return not self.keys

    def __iter__(self):
        return iter(self.keys)

    def __len__(self) -> int:
        return len(self.keys)


def _unique(keys: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for key in keys:
        key = key.strip()
        if key:
            seen.setdefault(key, None)
    return tuple(seen)


def channel_projects(settings: Mapping[str, str]) -> tuple[str, ...]:
    """Project keys bound to a channel through its settings."""
    raw = settings.get(CHANNEL_PROJECT_SETTING)
    if not raw:
        return ()
    return _unique(raw.split(","))


class ProjectResolver:
    """Resolves project keys from explicit input, channel and global config.

    Precedence, highest first: explicit key, channel keys, global default.
    """

    def __init__(
        self, project_keys: Sequence[str] = (), default_key: Optional[str] = None
    ):
        self.project_keys = _unique(project_keys)
        self.default_key = default_key

    def resolve(
        self, settings: Mapping[str, str], explicit: Optional[str] = None
    ) -> ProjectSelection:
        """Target project(s) for a command acting on one project.

        Returns an empty selection only when nothing at all is configured;
        the caller decides whether that is fatal.
        """
        if explicit and explicit.strip():
            return ProjectSelection(_unique([explicit]), "explicit")
        channel = channel_projects(settings)
        if channel:
            return ProjectSelection(channel, "channel")
        if self.default_key:
            return ProjectSelection((self.default_key,), "global")
        return ProjectSelection()

    def scope(
        self, settings: Mapping[str, str], explicit: Optional[str] = None
    ) -> ProjectSelection:
        """Projects a listing command spans.

        Like ``resolve`` but falls back to every configured project rather
        than only the global default.
        """
        if explicit and explicit.strip():
            return ProjectSelection(_unique([explicit]), "explicit")
        channel = channel_projects(settings)
        if channel:
            return ProjectSelection(channel, "channel")
        if self.project_keys:
            return ProjectSelection(self.project_keys, "configured")
        if self.default_key:
            return ProjectSelection((self.default_key,), "global")
        return ProjectSelection()
