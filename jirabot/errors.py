"""Exceptions raised by the jirabot core."""

from typing import Any, Optional


class JiraBotError(Exception):
    """Base class for jirabot errors."""


class TransportError(JiraBotError):
    """A request to the tracker failed before a usable response existed.

    Carries whatever the transport managed to collect: the HTTP status (if a
    response arrived at all) and the raw, undecoded body.
    """

    def __init__(
        self,
        message: str,
        status: Optional[Any] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.body = body


class OptionError(JiraBotError):
    """Trailing option text could not be parsed."""


class RouteConflictError(JiraBotError):
    """A route is shadowed by one declared before it."""
