"""Plain-text renderings of tracker payloads."""

from __future__ import annotations

from typing import Any, Mapping, Optional


def _name(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return value.get("displayName") or value.get("name")
    return None


def _names(items: Any) -> str:
    return ", ".join(i.get("name", "") for i in items or [])


def issue_url(base_url: str, key: str) -> str:
    return f"{base_url.rstrip('/')}/browse/{key}"


def format_issue_short(issue: Mapping[str, Any], base_url: str = "") -> str:
    """``[status] [assignee] KEY summary url`` on one line."""
    fields = issue.get("fields") or {}
    key = issue.get("key", "?")
    status = _name(fields.get("status")) or "unknown"
    assignee = _name(fields.get("assignee")) or "unassigned"
    line = f"[{status}] [{assignee}] {key} {fields.get('summary', '')}".rstrip()
    if base_url:
        line += f" {issue_url(base_url, key)}"
    return line


def format_issue_long(issue: Mapping[str, Any], base_url: str = "") -> list[str]:
    fields = issue.get("fields") or {}
    lines = [format_issue_short(issue, base_url)]

    description = (fields.get("description") or "").strip()
    if description:
        lines.append(description)

    details = [
        ("Type", _name(fields.get("issuetype"))),
        ("Priority", _name(fields.get("priority"))),
        ("Reporter", _name(fields.get("reporter"))),
        ("Components", _names(fields.get("components"))),
        ("Fix versions", _names(fields.get("fixVersions"))),
        ("Created", fields.get("created")),
        ("Updated", fields.get("updated")),
    ]
    lines.extend(f"{label}: {value}" for label, value in details if value)

    tracking = fields.get("timetracking") or {}
    if tracking.get("originalEstimate") or tracking.get("remainingEstimate"):
        lines.append(
            f"Estimate: {tracking.get('originalEstimate', '-')} "
            f"(remaining {tracking.get('remainingEstimate', '-')})"
        )

    comments = (fields.get("comment") or {}).get("comments") or []
    for comment in comments[-3:]:
        author = _name(comment.get("author")) or "someone"
        lines.append(f"> {author}: {comment.get('body', '').strip()}")

    return lines


def format_version(version: Mapping[str, Any]) -> str:
    """``name [release date D] [archived] [released]``; qualifiers only when set."""
    text = str(version.get("name", ""))
    if version.get("releaseDate"):
        text += f" [release date {version['releaseDate']}]"
    if version.get("archived"):
        text += " [archived]"
    if version.get("released"):
        text += " [released]"
    return text


def format_component(component: Mapping[str, Any], project: str) -> str:
    lead = _name(component.get("lead")) or "no lead"
    description = component.get("description") or ""
    text = f"[{project}] [{lead}] {component.get('name', '')}"
    return f"{text} - {description}" if description else text
