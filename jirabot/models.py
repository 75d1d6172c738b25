"""Value types shared by the router, handlers and classifier."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence, Union

# A handler's display value: one line of text or an ordered list of lines.
Renderable = Union[str, Sequence[str]]


@dataclass(frozen=True)
class TrackerResponse:
    """A completed HTTP exchange with the tracker.

    ``status`` may be an int or an already-stringified code. ``body`` is the
    decoded JSON payload (mapping or list), or None for empty bodies.
    """

    status: Union[int, str, None]
    body: Any = None


@dataclass(frozen=True)
class CommandContext:
    """Per-invocation context threaded explicitly through every handler."""

    user: str
    settings: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze a private copy so callers can't mutate it mid-invocation.
        object.__setattr__(self, "settings", MappingProxyType(dict(self.settings)))


@dataclass(frozen=True)
class Result:
    """Normalized outcome of a handler.

    Exactly one of ``value`` or ``error`` is set. ``data`` carries the raw
    payload on success for downstream consumers.
    """

    value: Optional[Renderable] = None
    data: Any = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.value is None) == (self.error is None):
            raise ValueError("Result needs exactly one of value or error")
        if self.error is not None and self.data is not None:
            raise ValueError("Error results carry no data")

    @classmethod
    def ok(cls, value: Renderable, data: Any = None) -> Result:
        return cls(value=value, data=data)

    @classmethod
    def fail(cls, error: str) -> Result:
        return cls(error=error)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def lines(self) -> list[str]:
        """Flatten the value or error into display lines."""
        if self.error is not None:
            return [self.error]
        if isinstance(self.value, str):
            return [self.value]
        return [str(line) for line in self.value]

    def as_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"error": self.error}
        value = self.value if isinstance(self.value, str) else list(self.value)
        return {"value": value, "data": self.data}
