"""Interface of the tracker API collaborator consumed by the handlers."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from jirabot.models import TrackerResponse


class TrackerApi(Protocol):
    """Everything the handlers need from the issue tracker.

    Request methods return a ``TrackerResponse`` whatever the status code and
    raise ``jirabot.errors.TransportError`` when no usable response exists.
    Listing calls take the project scope explicitly.
    """

    def project_keys(self) -> list[str]: ...

    def default_project_key(self) -> Optional[str]: ...

    def url_from_key(self, key: str) -> str: ...

    def get_users(self, project_key: str) -> TrackerResponse: ...

    def get_issue(self, issue_key: str) -> TrackerResponse: ...

    def resolve_issue(
        self, issue_key: str, comment: str
    ) -> Optional[TrackerResponse]:
        """Resolve an issue; None when no resolve transition is available."""
        ...

    def assign_issue(self, issue_key: str, assignee: str) -> TrackerResponse: ...

    def post_comment(self, issue_key: str, body: str) -> TrackerResponse: ...

    def delete_issue(self, issue_key: str) -> TrackerResponse: ...

    def create_issue(self, fields: Mapping[str, Any]) -> TrackerResponse: ...

    def update_issue(
        self, issue_key: str, fields: Mapping[str, Any]
    ) -> TrackerResponse: ...

    def priorities(self) -> TrackerResponse: ...

    def components(self, project_key: str) -> TrackerResponse: ...

    def versions(self, project_key: str) -> TrackerResponse: ...

    def search(self, jql: str, projects: Sequence[str]) -> TrackerResponse: ...

    def search_by_query(
        self, query: str, projects: Sequence[str]
    ) -> TrackerResponse: ...

    def recent(self, projects: Sequence[str]) -> TrackerResponse: ...

    def find_components_like(
        self, partial: str, projects: Sequence[str]
    ) -> TrackerResponse: ...

    def format_issue_short(self, issue: Mapping[str, Any]) -> str: ...

    def format_issue_long(self, issue: Mapping[str, Any]) -> list[str]: ...
