"""Flag parser for the trailing free text of create/update commands.

``fix totals -c billing -a alice`` becomes arguments ``("fix totals",)`` and
options ``{"component": "billing", "assignee": "alice"}``. The text is split
around whitespace-led ``-x`` markers only, so a value runs until the next
flag. A value that itself contains `` -x`` will be cut there; that is a
known limitation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional

from jirabot.errors import OptionError


class Flag(NamedTuple):
    short: str
    long: str
    name: str
    help: str


ISSUE_FLAGS: tuple[Flag, ...] = (
    Flag("-j", "--project-key", "project_key", "Project key"),
    Flag("-c", "--component", "component", "Component"),
    Flag("-s", "--summary", "summary", "Summary"),
    Flag("-a", "--assignee", "assignee", "Assignee"),
    Flag("-f", "--fix-version", "fix_version", "Fix version"),
    Flag("-d", "--desc", "desc", "Description"),
    Flag("-t", "--time", "time", "Time estimated"),
    Flag("-r", "--remaining", "remaining", "Remaining time estimated"),
    Flag("-p", "--parent", "parent", "Parent issue key; creates a sub-task"),
)

_BY_SHORT = {f.short: f for f in ISSUE_FLAGS}
_BY_LONG = {f.long: f for f in ISSUE_FLAGS}

_SPLIT_RE = re.compile(r"(?=\s-\w)|(?<=\s-\w)|(?=\s--\w)")
_SHORT_RE = re.compile(r"^-[A-Za-z]")
_LONG_RE = re.compile(r"^(--[A-Za-z][\w-]*)(?:=|\s+|$)(.*)$", re.DOTALL)


@dataclass(frozen=True)
class ParsedOptions:
    """Recognized flag values plus leftover positional tokens."""

    options: Mapping[str, str] = field(default_factory=dict)
    arguments: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    @property
    def text(self) -> str:
        """Positional arguments joined back into free text."""
        return " ".join(self.arguments)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.options.get(name, default)


def tokenize(text: str) -> list[str]:
    """Split around flag markers and trim each piece."""
    tokens = (t.strip() for t in _SPLIT_RE.split(text))
    return [t for t in tokens if t]


def _unquote(value: str) -> str:
    value = value.strip()
    if (
        len(value) >= 2
        and value[0] == value[-1]
        and value[0] in "\"'"
        and value[0] not in value[1:-1]
    ):
        return value[1:-1].strip()
    return value


def _take_value(flag: str, inline: str, tokens: list[str], i: int) -> tuple[str, int]:
    if inline.strip():
        return inline, i + 1
    if i + 1 >= len(tokens):
        raise OptionError(f"Missing value for option {flag}")
    return tokens[i + 1], i + 2


def parse_options(text: str) -> ParsedOptions:
    """Parse ``text`` against the issue flag table.

    Raises:
        OptionError: On an unrecognized flag or a flag without a value.
    """
    tokens = tokenize(text or "")
    options: dict[str, str] = {}
    arguments: list[str] = []

    i = 0
    while i < len(tokens):
        token = tokens[i]
        long_match = _LONG_RE.match(token)
        if long_match:
            flag = _BY_LONG.get(long_match.group(1))
            if flag is None:
                raise OptionError(f"Unrecognized option: {long_match.group(1)}")
            value, i = _take_value(flag.long, long_match.group(2), tokens, i)
        elif _SHORT_RE.match(token):
            flag = _BY_SHORT.get(token[:2])
            if flag is None:
                raise OptionError(f"Unrecognized option: {token[:2]}")
            value, i = _take_value(flag.short, token[2:], tokens, i)
        else:
            arguments.append(_unquote(token))
            i += 1
            continue
        options[flag.name] = _unquote(value)

    return ParsedOptions(options=options, arguments=tuple(arguments))


def usage() -> str:
    """One line per flag, for help output."""
    return "\n".join(f"{f.short}, {f.long}  {f.help}" for f in ISSUE_FLAGS)
