"""Command router: an ordered table of (pattern, handler) routes.

The first route whose pattern matches at the start of the command wins, so
more specific routes must be declared before more general ones. Each route
carries sample commands; building a table checks that no sample is claimed by
an earlier route, which is how a reordering mistake shows up at startup
instead of as a silently misrouted command.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, NamedTuple, Optional, Sequence

from jirabot.errors import RouteConflictError
from jirabot.models import CommandContext, Result

logger = logging.getLogger(__name__)

# Handlers take the context followed by the pattern's captures, in order.
Handler = Callable[..., Awaitable[Result]]


@dataclass(frozen=True)
class Route:
    name: str
    pattern: re.Pattern
    handler: Handler
    usage: str = ""
    samples: tuple[str, ...] = ()


def route(
    name: str,
    pattern: str,
    handler: Handler,
    usage: str = "",
    samples: Sequence[str] = (),
) -> Route:
    """Build a Route, compiling ``pattern`` with DOTALL for multi-line text."""
    return Route(
        name=name,
        pattern=re.compile(pattern, re.DOTALL),
        handler=handler,
        usage=usage,
        samples=tuple(samples),
    )


class RouteMatch(NamedTuple):
    route: Route
    captures: tuple[Optional[str], ...]


class RouteProblem(NamedTuple):
    """A finding from the overlap check.

    kind is one of ``unmatched`` (a sample misses its own pattern),
    ``shadowed`` (an earlier route claims the sample) or ``ambiguous``
    (a later route would also accept the sample).
    """

    kind: str
    route: str
    sample: str
    other: Optional[str] = None

    def __str__(self) -> str:
        if self.kind == "unmatched":
            return f"route '{self.route}' does not match its sample {self.sample!r}"
        if self.kind == "shadowed":
            return (
                f"route '{self.route}' is shadowed by earlier route "
                f"'{self.other}' for {self.sample!r}"
            )
        return (
            f"route '{self.route}' overlaps later route '{self.other}' "
            f"for {self.sample!r}"
        )


class RouteTable:
    """Ordered routes with first-match-wins lookup."""

    def __init__(self, routes: Sequence[Route], strict: bool = False):
        """Initialize the table and run the overlap check.

        Args:
            routes: Routes in priority order.
            strict: Raise instead of warning when a route is unreachable.

        Raises:
            RouteConflictError: In strict mode, on unmatched or shadowed samples.
        """
        self.routes: tuple[Route, ...] = tuple(routes)
        names = [r.name for r in self.routes]
        if len(set(names)) != len(names):
            raise RouteConflictError(f"Duplicate route names in {names}")

        problems = self.check_overlaps()
        fatal = [p for p in problems if p.kind != "ambiguous"]
        if strict and fatal:
            raise RouteConflictError("; ".join(str(p) for p in fatal))
        for problem in problems:
            level = logging.DEBUG if problem.kind == "ambiguous" else logging.WARNING
            logger.log(level, "route check: %s", problem)

    def match(self, text: str) -> Optional[RouteMatch]:
        for r in self.routes:
            m = r.pattern.match(text)
            if m:
                return RouteMatch(r, m.groups())
        return None

    def check_overlaps(self) -> list[RouteProblem]:
        """Check every route's samples against the whole table."""
        problems: list[RouteProblem] = []
        for index, r in enumerate(self.routes):
            for sample in r.samples:
                if not r.pattern.match(sample):
                    problems.append(RouteProblem("unmatched", r.name, sample))
                    continue
                for earlier in self.routes[:index]:
                    if earlier.pattern.match(sample):
                        problems.append(
                            RouteProblem("shadowed", r.name, sample, earlier.name)
                        )
                        break
                for later in self.routes[index + 1 :]:
                    if later.pattern.match(sample):
                        problems.append(
                            RouteProblem("ambiguous", r.name, sample, later.name)
                        )
        return problems

    def usage(self) -> list[str]:
        return [r.usage for r in self.routes if r.usage]


class CommandRouter:
    """Dispatches command text to the first matching route's handler."""

    def __init__(self, table: RouteTable):
        self.table = table

    async def dispatch(self, text: str, context: CommandContext) -> Result:
        """Run the handler for ``text``.

        Returns:
            The handler's Result, or an error Result when nothing matches or
            the handler raises.
        """
        text = text.strip()
        found = self.table.match(text)
        if found is None:
            logger.info(
                "unrecognized command: %r", text, extra={"user": context.user}
            )
            return Result.fail(f"Unrecognized command: {text}")

        log_context = {"route": found.route.name, "user": context.user}
        logger.info("dispatching %r", text, extra=log_context)
        try:
            result = await found.route.handler(context, *found.captures)
        except Exception as e:
            logger.exception("Error handling command: %s", text, extra=log_context)
            return Result.fail(f"Error processing command: {e}")
        if result.is_error:
            logger.info("command failed: %s", result.error, extra=log_context)
        return result
