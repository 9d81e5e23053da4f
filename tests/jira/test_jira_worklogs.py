from datetime import date, datetime

from src.worklog_tracker.worklog_tracker.jira.worklogs import (
    build_jql,
    comment_attachments,
    comment_text,
    extract_worklogs,
    started_at,
)

ADF_COMMENT = {
    "type": "doc",
    "content": [
        {"type": "paragraph", "content": [{"type": "text", "text": "Fixed"}, {"type": "text", "text": " the   login bug"}]},
        {"type": "mediaGroup", "content": [{"type": "media", "attrs": {"id": "m-1", "collection": "jira", "type": "file", "alt": "shot.png"}}]},
    ],
}


def _issue(key, *worklogs, summary="Task"):
    return {"key": key, "fields": {"summary": summary, "worklog": {"worklogs": list(worklogs)}}}


def test_build_jql_for_projects_and_default_window():
    assert build_jql(["WEB", "API"], today=date(2025, 3, 12)) == '(project = "WEB" OR project = "API") ORDER BY updated DESC'
    assert build_jql(None, today=date(2025, 3, 12)) == 'updated >= "2024-09-11" ORDER BY updated DESC'


def test_comment_text_flattens_adf():
    assert comment_text(ADF_COMMENT) == "Fixed the login bug"
    assert comment_text("plain") == "plain"
    assert comment_text(None) == ""


def test_comment_attachments_collects_embedded_media():
    attachments = comment_attachments({"comment": ADF_COMMENT, "attachment": [{"id": "10", "filename": "log.txt"}]})

    assert [a["type"] for a in attachments] == ["jira-file", "embedded-media"]
    assert attachments[1]["id"] == "m-1"
    assert attachments[1]["filename"] == "shot.png"


def test_started_at_is_naive_utc():
    assert started_at({"started": "2025-03-12T09:30:00.000+0300"}) == datetime(2025, 3, 12, 6, 30)
    assert started_at({}) is None


def test_extract_worklogs_filters_by_start_date():
    issues = [
        _issue(
            "WEB-1",
            {"id": "1", "started": "2025-03-10T10:00:00.000+0000", "timeSpentSeconds": 3600, "comment": ADF_COMMENT},
            {"id": "2", "started": "2025-03-01T10:00:00.000+0000", "timeSpentSeconds": 1800},
        ),
        _issue("WEB-2", {"id": "3", "started": "2025-03-12T23:00:00.000+0000", "timeSpentSeconds": 600}),
        {"key": "WEB-3", "fields": {}},
    ]

    worklogs = extract_worklogs(issues, start=date(2025, 3, 10), end=date(2025, 3, 12))

    assert [w["id"] for w in worklogs] == ["1", "3"]
    assert worklogs[0]["issueKey"] == "WEB-1"
    assert worklogs[0]["summary"] == "Task"
    assert worklogs[0]["comment"] == "Fixed the login bug"
    assert worklogs[0]["attachments"][0]["id"] == "m-1"
