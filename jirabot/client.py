"""JIRA REST v2 client implementing the TrackerApi collaborator.

Every request returns a TrackerResponse regardless of status code; the
classifier decides what counts as failure. Only transport-level problems
(connection errors, timeouts, undecodable bodies) raise TransportError.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Optional, Sequence

import requests

from jirabot.classifier import is_success
from jirabot.config import JiraConfig
from jirabot.errors import TransportError
from jirabot.formatting import format_issue_long, format_issue_short, issue_url
from jirabot.models import TrackerResponse

logger = logging.getLogger(__name__)

API_PREFIX = "/rest/api/2"
RESOLVE_TRANSITIONS = ("resolve issue", "resolve", "done", "close issue")
ISSUE_FIELDS = "summary,status,assignee,issuetype,priority,updated"
_ORDER_BY_RE = re.compile(r"(?:^\s*|\s+)order\s+by\s+", re.IGNORECASE)


def _quote_jql(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _project_clause(projects: Sequence[str]) -> str:
    if not projects:
        return ""
    return f"project in ({', '.join(projects)})"


class JiraClient:
    """Blocking client for a JIRA server.

    Uses basic auth with a user and API token and the configured timeout on
    every request.
    """

    def __init__(
        self, config: JiraConfig, session: Optional[requests.Session] = None
    ):
        """Initialize the client.

        Args:
            config: Connection settings and configured projects.
            session: Optional pre-built session (tests inject a mock here).
        """
        self.config = config
        self.session = session or requests.Session()
        if config.user or config.token:
            self.session.auth = (config.user, config.token)
        self.session.headers.update(
            {"Accept": "application/json", "Content-Type": "application/json"}
        )

    # -- transport ---------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> TrackerResponse:
        url = f"{self.config.base_url}{API_PREFIX}{path}"
        try:
            response = self.session.request(
                method, url, timeout=self.config.timeout, **kwargs
            )
        except requests.exceptions.RequestException as e:
            logger.warning("JIRA request failed: %s %s: %s", method, path, e)
            raise TransportError(str(e)) from e

        if not response.content:
            return TrackerResponse(status=response.status_code, body=None)
        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(
                f"Undecodable response from {method} {path}",
                status=response.status_code,
                body=response.text,
            ) from e
        logger.debug("JIRA %s %s -> %s", method, path, response.status_code)
        return TrackerResponse(status=response.status_code, body=body)

    # -- configuration -----------------------------------------------------

    def project_keys(self) -> list[str]:
        return self.config.project_keys

    def default_project_key(self) -> Optional[str]:
        return self.config.default_project

    def url_from_key(self, key: str) -> str:
        return issue_url(self.config.base_url, key)

    # -- issues ------------------------------------------------------------

    def get_issue(self, issue_key: str) -> TrackerResponse:
        return self._request("GET", f"/issue/{issue_key}")

    def get_users(self, project_key: str) -> TrackerResponse:
        return self._request(
            "GET", "/user/assignable/search", params={"project": project_key}
        )

    def resolve_issue(
        self, issue_key: str, comment: str
    ) -> Optional[TrackerResponse]:
        """Apply the issue's resolve transition with a Fixed resolution.

        Returns None when the issue offers no resolve transition, which is
        what an already resolved issue looks like. A failed transitions
        lookup is returned as-is for the classifier.
        """
        listing = self._request("GET", f"/issue/{issue_key}/transitions")
        if not is_success(listing.status):
            return listing
        transitions = (listing.body or {}).get("transitions", [])
        transition = next(
            (
                t
                for t in transitions
                if str(t.get("name", "")).lower() in RESOLVE_TRANSITIONS
            ),
            None,
        )
        if transition is None:
            return None
        payload = {
            "transition": {"id": transition["id"]},
            "fields": {"resolution": {"name": "Fixed"}},
            "update": {"comment": [{"add": {"body": comment}}]},
        }
        return self._request(
            "POST", f"/issue/{issue_key}/transitions", json=payload
        )

    def assign_issue(self, issue_key: str, assignee: str) -> TrackerResponse:
        return self._request(
            "PUT", f"/issue/{issue_key}/assignee", json={"name": assignee}
        )

    def post_comment(self, issue_key: str, body: str) -> TrackerResponse:
        return self._request(
            "POST", f"/issue/{issue_key}/comment", json={"body": body}
        )

    def delete_issue(self, issue_key: str) -> TrackerResponse:
        return self._request("DELETE", f"/issue/{issue_key}")

    def _issue_fields(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Translate handler field names into the JIRA fields payload."""
        out: dict[str, Any] = {}
        if "summary" in fields:
            out["summary"] = fields["summary"]
        if "project_key" in fields:
            out["project"] = {"key": fields["project_key"]}
        if "desc" in fields:
            out["description"] = fields["desc"]
        if "assignee" in fields:
            out["assignee"] = {"name": fields["assignee"]}
        if "component_ids" in fields:
            out["components"] = [{"id": cid} for cid in fields["component_ids"]]
        if "fix_version" in fields:
            out["fixVersions"] = [{"name": fields["fix_version"]}]
        if "parent" in fields:
            out["parent"] = {"key": fields["parent"]}
        if "timetracking" in fields:
            out["timetracking"] = dict(fields["timetracking"])
        return out

    def create_issue(self, fields: Mapping[str, Any]) -> TrackerResponse:
        payload = self._issue_fields(fields)
        payload["issuetype"] = {"name": "Sub-task" if "parent" in fields else "Task"}
        return self._request("POST", "/issue", json={"fields": payload})

    def update_issue(
        self, issue_key: str, fields: Mapping[str, Any]
    ) -> TrackerResponse:
        return self._request(
            "PUT", f"/issue/{issue_key}", json={"fields": self._issue_fields(fields)}
        )

    # -- listings ----------------------------------------------------------

    def priorities(self) -> TrackerResponse:
        return self._request("GET", "/priority")

    def components(self, project_key: str) -> TrackerResponse:
        return self._request("GET", f"/project/{project_key}/components")

    def versions(self, project_key: str) -> TrackerResponse:
        return self._request("GET", f"/project/{project_key}/versions")

    def _post_search(self, jql: str) -> TrackerResponse:
        return self._request(
            "POST",
            "/search",
            json={
                "jql": jql,
                "maxResults": self.config.max_results,
                "fields": ISSUE_FIELDS.split(","),
            },
        )

    def search(self, jql: str, projects: Sequence[str]) -> TrackerResponse:
        clause = _project_clause(projects)
        if not clause:
            return self._post_search(jql)
        # Keep a trailing ORDER BY outside the parenthesized filter.
        where, *order = _ORDER_BY_RE.split(jql, maxsplit=1)
        query = f"{clause} AND ({where.strip()})" if where.strip() else clause
        if order:
            query += f" ORDER BY {order[0]}"
        return self._post_search(query)

    def search_by_query(self, query: str, projects: Sequence[str]) -> TrackerResponse:
        text = _quote_jql(query)
        return self.search(
            f"summary ~ {text} OR description ~ {text} OR comment ~ {text}", projects
        )

    def recent(self, projects: Sequence[str]) -> TrackerResponse:
        clause = _project_clause(projects)
        return self._post_search(f"{clause} ORDER BY updated DESC".strip())

    def find_components_like(
        self, partial: str, projects: Sequence[str]
    ) -> TrackerResponse:
        """Components in ``projects`` whose name contains ``partial``.

        Stops at the first failed listing and returns it unchanged.
        """
        needle = partial.lower()
        matches: list[dict] = []
        status: Any = 200
        for key in projects:
            response = self.components(key)
            if not is_success(response.status):
                return response
            status = response.status
            matches.extend(
                c
                for c in response.body or []
                if needle in str(c.get("name", "")).lower()
            )
        return TrackerResponse(status=status, body=matches)

    # -- rendering ---------------------------------------------------------

    def format_issue_short(self, issue: Mapping[str, Any]) -> str:
        return format_issue_short(issue, self.config.base_url)

    def format_issue_long(self, issue: Mapping[str, Any]) -> list[str]:
        return format_issue_long(issue, self.config.base_url)
