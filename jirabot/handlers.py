"""Command handlers for the tracker and the route table that binds them.

Every handler takes the invocation context plus its pattern captures and
returns a Result. Tracker calls are blocking, so each handler step runs in a
worker thread via ``asyncio.to_thread``; listings that span several projects
fan out with ``asyncio.gather``, which keeps results in project-key order.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Callable, Optional, Sequence

from jirabot.api import TrackerApi
from jirabot.classifier import classify, classify_failure, report_if_error
from jirabot.config import DEFAULT_MAX_RESULTS
from jirabot.errors import OptionError, TransportError
from jirabot.formatting import format_component, format_version
from jirabot.models import CommandContext, Result, TrackerResponse
from jirabot.options import parse_options
from jirabot.options import usage as options_usage
from jirabot.projects import ProjectResolver, channel_projects
from jirabot.router import CommandRouter, Route, RouteTable, route

logger = logging.getLogger(__name__)

_RE_BROWSE = re.compile(r"browse/([^/\s?#]+)")

NO_PROJECT = "No project configured for this channel. Pass a project key."


class JiraCommands:
    """Handlers for every tracker command."""

    def __init__(
        self,
        api: TrackerApi,
        resolver: Optional[ProjectResolver] = None,
        max_results: int = DEFAULT_MAX_RESULTS,
    ):
        """Initialize handlers.

        Args:
            api: Tracker API collaborator.
            resolver: Project resolver. Built from the API's configured
                project keys and default key when omitted.
            max_results: Cap on issues shown by search-style listings.
        """
        self.api = api
        self.resolver = resolver or ProjectResolver(
            api.project_keys(), api.default_project_key()
        )
        self.max_results = max_results

    def routes(self) -> list[Route]:
        """Routes in priority order. Earlier routes win on overlap."""
        return [
            route(
                "projects",
                r"^projects\b",
                self.projects,
                "projects # list configured projects (⭐️ global default, ⚡️ channel)",
                ["projects"],
            ),
            route(
                "parse",
                r"^parse\s+(.+)",
                self.parse,
                "parse <text> # pull the issue key out of a browse URL",
                ["parse see https://jira.example.com/browse/ABC-1"],
            ),
            route(
                "show",
                r"^show\s+(\S+)",
                self.show,
                "show <issue> # full details of an issue",
                ["show ABC-1"],
            ),
            route(
                "delete",
                r"^delete\s+(\S+)",
                self.delete,
                "delete <issue> # delete an issue",
                ["delete ABC-1"],
            ),
            route(
                "components",
                r"^components\b",
                self.components,
                "components # list components and their leads by project",
                ["components"],
            ),
            route(
                "versions",
                r"^versions(?:\s+(\S+))?",
                self.versions,
                "versions [<project-key>] # list versions, all projects if none given",
                ["versions", "versions ABC"],
            ),
            route(
                "recent",
                r"^recent\b",
                self.recent,
                "recent # the most recently updated issues",
                ["recent"],
            ),
            route(
                "pri",
                r"^pri",
                self.priorities,
                "pri # list priorities",
                ["pri"],
            ),
            route(
                "users",
                r"^users(?:\s+(\S+))?",
                self.users,
                "users [<project-key>] # list users for a project",
                ["users", "users ABC"],
            ),
            route(
                "assign",
                r"^assign\s+(\S+)\s+(\S+)",
                self.assign,
                "assign <issue> <assignee> # assign an issue",
                ["assign ABC-1 alice"],
            ),
            route(
                "comment",
                r"^comment\s+(\S+)\s+(.+)",
                self.comment,
                "comment <issue> <comment> # comment on an issue",
                ["comment ABC-1 looks good"],
            ),
            route(
                "search",
                r"^search\s+(.+)",
                self.search,
                "search <query> # issues matching a text query",
                ["search broken totals"],
            ),
            route(
                "jql",
                r"^jql\s+(.+)",
                self.jql,
                "jql <jql> # issues matching a JQL query",
                ["jql status = Open"],
            ),
            route(
                "create",
                r"^create\s+(.+)",
                self.create,
                "create <summary> [-j key] [-c component] [-a assignee] "
                "[-f fix-version] [-d desc] [-t time] [-p parent]",
                ["create fix totals -c billing"],
            ),
            route(
                "update",
                r"^update\s+(\S+)\s+(.+)",
                self.update,
                "update <issue> [-s summary] [-c component] [-a assignee] "
                "[-f fix-version] [-d desc] [-t time] [-r remaining]",
                ["update ABC-1 -s new summary"],
            ),
            route(
                "resolve",
                r"^resolve\s+([\w\-]+)\s+(.+)",
                self.resolve,
                "resolve <issue> <comment> # resolve an issue as fixed",
                ["resolve ABC-1 shipped"],
            ),
            route(
                "help",
                r"^help\b",
                self.help,
                "help # this message",
                ["help"],
            ),
        ]

    # -- helpers -----------------------------------------------------------

    async def _report(
        self,
        request: Callable[[], TrackerResponse],
        on_success: Callable[[TrackerResponse], Result],
    ) -> Result:
        return await asyncio.to_thread(report_if_error, request, on_success)

    def _issue_short(self, issue_key: str) -> str:
        """Short rendering of an issue, or just its key if it can't be fetched."""
        try:
            response = self.api.get_issue(issue_key)
        except TransportError as e:
            logger.warning(
                "could not fetch issue for display: %s",
                e,
                extra={"issue_key": issue_key},
            )
            return issue_key
        if classify(response) is not None or not isinstance(response.body, dict):
            return issue_key
        return self.api.format_issue_short(response.body)

    def _short_list(self, body: Any) -> Result:
        issues = list((body or {}).get("issues") or [])
        if not issues:
            return Result.ok("No issues found.", issues)
        shown = issues[: self.max_results]
        return Result.ok([self.api.format_issue_short(i) for i in shown], issues)

    def _fetch_listing(
        self, fetch: Callable[[str], TrackerResponse], project_key: str
    ) -> tuple[Optional[str], list[dict]]:
        try:
            response = fetch(project_key)
        except TransportError as e:
            return f"[{project_key}] {classify_failure(e)}", []
        message = classify(response)
        if message is not None:
            return f"[{project_key}] {message}", []
        return None, [{**item, "project": project_key} for item in response.body or []]

    async def _per_project(
        self, fetch: Callable[[str], TrackerResponse], keys: Sequence[str]
    ) -> tuple[Optional[str], list[dict]]:
        """Fetch one listing per project; results keep the order of ``keys``."""
        outcomes = await asyncio.gather(
            *(asyncio.to_thread(self._fetch_listing, fetch, key) for key in keys)
        )
        items: list[dict] = []
        for error, chunk in outcomes:
            if error is not None:
                return error, []
            items.extend(chunk)
        return None, items

    def _component_ids(self, component: str, projects: Sequence[str]) -> Result:
        def found(response: TrackerResponse) -> Result:
            ids = [c["id"] for c in response.body or [] if "id" in c]
            if not ids:
                return Result.fail(f"No component matching `{component}`")
            return Result.ok(ids, response.body)

        return report_if_error(
            lambda: self.api.find_components_like(component, projects), found
        )

    def _submit(
        self,
        fields: dict[str, Any],
        component: Optional[str],
        projects: Sequence[str],
        send: Callable[[dict[str, Any]], TrackerResponse],
        on_success: Callable[[TrackerResponse], Result],
    ) -> Result:
        """Resolve the component (if any), drop unset fields and send."""
        extra: dict[str, Any] = {}
        if component:
            found = self._component_ids(component, projects)
            if found.is_error:
                return found
            extra["component_ids"] = list(found.value)
        request = {k: v for k, v in {**fields, **extra}.items() if v is not None}
        return report_if_error(lambda: send(request), on_success)

    # -- handlers ----------------------------------------------------------

    async def projects(self, ctx: CommandContext) -> Result:
        channel = channel_projects(ctx.settings)
        default = self.api.default_project_key()
        lines = [
            ("⭐️ " if key == default else "") + self.api.url_from_key(key)
            for key in self.api.project_keys()
            if key not in channel
        ]
        lines.extend("⚡️ " + self.api.url_from_key(key) for key in channel)
        if not lines:
            return Result.fail("No projects configured.")
        data = {"configured": self.api.project_keys(), "channel": list(channel)}
        return Result.ok(lines, data)

    async def parse(self, ctx: CommandContext, text: str) -> Result:
        m = _RE_BROWSE.search(text)
        if not m:
            return Result.fail("No issue URL found in that text.")
        return Result.ok(m.group(1), m.group(1))

    async def show(self, ctx: CommandContext, issue_key: str) -> Result:
        return await self._report(
            lambda: self.api.get_issue(issue_key),
            lambda res: Result.ok(self.api.format_issue_long(res.body), res.body),
        )

    async def delete(self, ctx: CommandContext, issue_key: str) -> Result:
        def deleted(res: TrackerResponse) -> Result:
            logger.info("deleted issue", extra={"issue_key": issue_key})
            return Result.ok(f"Deleted {issue_key}", res.body)

        return await self._report(lambda: self.api.delete_issue(issue_key), deleted)

    async def components(self, ctx: CommandContext) -> Result:
        keys = self.resolver.scope(ctx.settings).keys
        if not keys:
            return Result.fail(NO_PROJECT)
        error, data = await self._per_project(self.api.components, keys)
        if error is not None:
            return Result.fail(error)
        if not data:
            return Result.ok("No components found.", data)
        return Result.ok([format_component(c, c["project"]) for c in data], data)

    async def versions(
        self, ctx: CommandContext, project_key: Optional[str] = None
    ) -> Result:
        keys = self.resolver.scope(ctx.settings, project_key).keys
        if not keys:
            return Result.fail(NO_PROJECT)
        error, data = await self._per_project(self.api.versions, keys)
        if error is not None:
            return Result.fail(error)
        if not data:
            return Result.ok("No versions found.", data)
        return Result.ok(
            [f"[{v['project']}] {format_version(v)}" for v in data], data
        )

    async def recent(self, ctx: CommandContext) -> Result:
        keys = self.resolver.scope(ctx.settings).keys
        return await self._report(
            lambda: self.api.recent(keys), lambda res: self._short_list(res.body)
        )

    async def priorities(self, ctx: CommandContext) -> Result:
        def listed(res: TrackerResponse) -> Result:
            rows = sorted(res.body or [], key=lambda p: p.get("name", ""))
            lines = [
                f"{p.get('name', '')}: "
                f"{p.get('description', '')} {p.get('statusColor', '')}".rstrip()
                for p in rows
            ]
            return Result.ok(lines, res.body)

        return await self._report(self.api.priorities, listed)

    async def users(
        self, ctx: CommandContext, project_key: Optional[str] = None
    ) -> Result:
        project = self.resolver.resolve(ctx.settings, project_key).first
        if project is None:
            return Result.fail(NO_PROJECT)

        def listed(res: TrackerResponse) -> Result:
            names = [u.get("name") or u.get("displayName", "") for u in res.body or []]
            return Result.ok([f"Users for project `{project}`", *names], res.body)

        return await self._report(lambda: self.api.get_users(project), listed)

    async def assign(
        self, ctx: CommandContext, issue_key: str, assignee: str
    ) -> Result:
        return await self._report(
            lambda: self.api.assign_issue(issue_key, assignee),
            lambda res: Result.ok(self._issue_short(issue_key), res.body),
        )

    async def comment(self, ctx: CommandContext, issue_key: str, text: str) -> Result:
        body = f"{ctx.user}: {text.strip()}"
        return await self._report(
            lambda: self.api.post_comment(issue_key, body),
            lambda res: Result.ok(f"Successfully commented on {issue_key}", res.body),
        )

    async def search(self, ctx: CommandContext, query: str) -> Result:
        keys = self.resolver.scope(ctx.settings).keys
        return await self._report(
            lambda: self.api.search_by_query(query.strip(), keys),
            lambda res: self._short_list(res.body),
        )

    async def jql(self, ctx: CommandContext, jql: str) -> Result:
        keys = self.resolver.scope(ctx.settings).keys
        return await self._report(
            lambda: self.api.search(jql.strip(), keys),
            lambda res: self._short_list(res.body),
        )

    async def create(self, ctx: CommandContext, opts_text: str) -> Result:
        try:
            parsed = parse_options(opts_text)
        except OptionError as e:
            return Result.fail(str(e))

        summary = parsed.text
        if not summary:
            return Result.fail("A summary is required to create an issue.")
        project_key = (
            parsed.get("project_key") or self.resolver.resolve(ctx.settings).first
        )
        if project_key is None:
            return Result.fail(NO_PROJECT)

        estimate = parsed.get("time")
        fields = {
            "summary": summary,
            "project_key": project_key,
            "fix_version": parsed.get("fix_version"),
            "parent": parsed.get("parent"),
            "desc": parsed.get("desc"),
            "assignee": parsed.get("assignee"),
            "timetracking": (
                {"originalEstimate": estimate, "remainingEstimate": estimate}
                if estimate
                else None
            ),
        }

        def created(res: TrackerResponse) -> Result:
            new_key = (res.body or {}).get("key", "")
            logger.info(
                "created issue", extra={"issue_key": new_key, "project": project_key}
            )
            return Result.ok(
                self._issue_short(new_key), {"body": res.body, "status": res.status}
            )

        return await asyncio.to_thread(
            self._submit,
            fields,
            parsed.get("component"),
            [project_key],
            self.api.create_issue,
            created,
        )

    async def update(
        self, ctx: CommandContext, issue_key: str, opts_text: str
    ) -> Result:
        try:
            parsed = parse_options(opts_text)
        except OptionError as e:
            return Result.fail(str(e))

        tracking = {
            k: v
            for k, v in (
                ("remainingEstimate", parsed.get("remaining")),
                ("originalEstimate", parsed.get("time")),
            )
            if v
        }
        fields = {
            "summary": parsed.get("summary"),
            "fix_version": parsed.get("fix_version"),
            "desc": parsed.get("desc"),
            "assignee": parsed.get("assignee"),
            "timetracking": tracking or None,
        }
        # -j and -p parse but have no update field.
        if not parsed.get("component") and all(v is None for v in fields.values()):
            return Result.fail(
                f"Nothing to update on {issue_key}; pass at least one option."
            )

        return await asyncio.to_thread(
            self._submit,
            fields,
            parsed.get("component"),
            self.resolver.scope(ctx.settings).keys,
            lambda request: self.api.update_issue(issue_key, request),
            lambda res: Result.ok(f"Updated: {self._issue_short(issue_key)}", res.body),
        )

    async def resolve(self, ctx: CommandContext, issue_key: str, text: str) -> Result:
        comment = f"{ctx.user}: {text.strip()}"

        found = await self._report(
            lambda: self.api.get_issue(issue_key),
            lambda res: Result.ok(issue_key, res.body),
        )
        if found.is_error:
            return Result.fail(f"Unable to find any issue `{issue_key}`")

        def run() -> Result:
            try:
                response = self.api.resolve_issue(issue_key, comment)
            except TransportError as e:
                return Result.fail(classify_failure(e))
            if response is None:
                return Result.fail(f"Issue `{issue_key}` is already resolved")
            return report_if_error(
                lambda: response,
                lambda res: Result.ok(self._issue_short(issue_key), res.body),
            )

        return await asyncio.to_thread(run)

    async def help(self, ctx: CommandContext) -> Result:
        lines = [r.usage for r in self.routes()]
        lines.append("options:")
        lines.extend(options_usage().splitlines())
        return Result.ok(lines)


def build_router(
    api: TrackerApi,
    resolver: Optional[ProjectResolver] = None,
    max_results: int = DEFAULT_MAX_RESULTS,
    strict: bool = False,
) -> CommandRouter:
    """Wire handlers for ``api`` into a ready-to-dispatch CommandRouter."""
    commands = JiraCommands(api, resolver=resolver, max_results=max_results)
    return CommandRouter(RouteTable(commands.routes(), strict=strict))
