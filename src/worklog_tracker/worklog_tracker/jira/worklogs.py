"""Worklog extraction from Jira search results, including ADF comments."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional, Sequence

from ..common.datetime_utils import parse_jira_datetime, to_naive_utc

WORKLOG_FIELDS = ["summary", "status", "assignee", "worklog", "attachment"]
ISSUE_FIELDS = ["summary", "status", "assignee", "created", "updated"]
LOOKBACK_DAYS = 182


def default_since(today: date) -> date:
    return today - timedelta(days=LOOKBACK_DAYS)


def build_jql(project_keys: Optional[Sequence[str]], *, today: date) -> str:
    if project_keys:
        clauses = " OR ".join(f'project = "{key}"' for key in project_keys)
        return f"({clauses}) ORDER BY updated DESC"
    return f'updated >= "{default_since(today).isoformat()}" ORDER BY updated DESC'


def _walk(node: Any) -> Iterable[dict[str, Any]]:
    if isinstance(node, dict):
        yield node
        for child in node.get("content") or []:
            yield from _walk(child)
    elif isinstance(node, list):
        for child in node:
            yield from _walk(child)


def comment_text(comment: Any) -> str:
    """Plain text of a worklog comment (string or Atlassian Document Format)."""
    if not comment:
        return ""
    if isinstance(comment, str):
        return comment
    if not isinstance(comment, dict):
        return str(comment)
    if not comment.get("content"):
        return str(comment.get("text") or "")

    parts: list[str] = []
    for node in _walk(comment.get("content")):
        if node.get("text"):
            parts.append(str(node["text"]))
        attrs_text = (node.get("attrs") or {}).get("text")
        if attrs_text:
            parts.append(str(attrs_text))
    return " ".join(" ".join(parts).split())


def _jira_file(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": item.get("id"),
        "filename": item.get("filename") or item.get("name"),
        "mimeType": item.get("mimeType"),
        "size": item.get("size"),
        "content": item.get("content"),
        "thumbnail": item.get("thumbnail"),
        "type": "jira-file",
    }


def comment_attachments(worklog: dict[str, Any]) -> list[dict[str, Any]]:
    attachments = [_jira_file(a) for a in worklog.get("attachment") or [] if isinstance(a, dict)]

    comment = worklog.get("comment")
    if not isinstance(comment, dict):
        return attachments

    for node in _walk(comment.get("content") or []):
        attrs = node.get("attrs") or {}
        if isinstance(attrs.get("file"), dict):
            attachments.append(_jira_file(attrs["file"]))
        if isinstance(attrs.get("media"), dict):
            media = attrs["media"]
            attachments.append(
                {
                    "id": media.get("id"),
                    "filename": media.get("name") or media.get("filename"),
                    "mimeType": media.get("mimeType"),
                    "type": "jira-media",
                }
            )
        if node.get("type") in ("media", "mediaGroup") and attrs.get("id"):
            attachments.append(
                {
                    "id": attrs.get("id"),
                    "filename": attrs.get("alt") or f"file-{attrs.get('id')}",
                    "collection": attrs.get("collection"),
                    "mediaType": attrs.get("type"),
                    "type": "embedded-media",
                }
            )
    return attachments


def started_at(worklog: dict[str, Any]) -> Optional[datetime]:
    """``started`` as naive UTC, or None when missing."""
    value = worklog.get("started")
    if not value:
        return None
    return to_naive_utc(parse_jira_datetime(value))


def extract_worklogs(issues: Iterable[dict[str, Any]], *, start: date, end: date) -> list[dict[str, Any]]:
    """Flatten issue worklogs whose start date falls within [start, end]."""
    out: list[dict[str, Any]] = []
    for issue in issues:
        fields = issue.get("fields") or {}
        for worklog in (fields.get("worklog") or {}).get("worklogs") or []:
            started = started_at(worklog)
            if not started or not (start <= started.date() <= end):
                continue
            item = dict(worklog)
            item["issueKey"] = issue.get("key")
            item["summary"] = fields.get("summary")
            item["comment"] = comment_text(worklog.get("comment"))
            item["attachments"] = comment_attachments(worklog)
            out.append(item)
    return out
