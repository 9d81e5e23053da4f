from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Optional, Sequence

from ..common.datetime_utils import now_local, parse_iso_date
from ..common.time_format import round_half_up
from ..core.exceptions import AuthenticationError, ExternalServiceError, ValidationError
from ..users.model import JiraCredentials
from .client import AttachmentContent, JiraApiError, JiraClient
from .worklogs import ISSUE_FIELDS, WORKLOG_FIELDS, build_jql, default_since, extract_worklogs

logger = logging.getLogger(__name__)

ClientFactory = Callable[[JiraCredentials], JiraClient]


def translate_jira_error(err: JiraApiError) -> ExternalServiceError:
    if err.status == 401:
        return ExternalServiceError("Invalid credentials", status_code=401, upstream_status=401)
    if err.status == 400:
        return ExternalServiceError(
            "Bad Request - JQL query syntax error or invalid parameters.",
            status_code=400,
            upstream_status=400,
            details=err.details,
        )
    if err.status == 410:
        return ExternalServiceError(
            "JQL query not supported. The search API may have changed.",
            status_code=410,
            upstream_status=410,
            details=err.details,
        )
    return ExternalServiceError(str(err), status_code=500, upstream_status=err.status)


def credentials_from(data: Any) -> JiraCredentials:
    credentials = JiraCredentials.from_dict(data if isinstance(data, dict) else None)
    if credentials is None:
        raise ValidationError("Missing credentials")
    return credentials


def _project_keys(params: dict[str, Any]) -> Optional[list[str]]:
    keys = params.get("projectKeys")
    if not keys:
        return None
    if isinstance(keys, str):
        keys = [k.strip() for k in keys.split(",")]
    return [str(k) for k in keys if k]


def _max_results(params: dict[str, Any], default: int = 50) -> int:
    try:
        return max(1, min(int(params.get("maxResults", default)), 1000))
    except (TypeError, ValueError):
        return default


class JiraService:
    """Runs the Jira actions exposed to the browser and used by the dashboards."""

    def __init__(self, client_factory: ClientFactory = JiraClient):
        self._client_factory = client_factory

    def _call(self, fn: Callable[[], Any]) -> Any:
        try:
            return fn()
        except JiraApiError as e:
            raise translate_jira_error(e) from e

    def client(self, credentials: JiraCredentials) -> JiraClient:
        return self._client_factory(credentials)

    def worklogs(
        self,
        credentials: JiraCredentials,
        *,
        start: date,
        end: date,
        project_keys: Optional[Sequence[str]] = None,
        today: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        client = self.client(credentials)
        jql = build_jql(project_keys, today=today or now_local().date())
        data = self._call(lambda: client.search(jql, fields=WORKLOG_FIELDS, max_results=1000, expand="worklog"))
        worklogs = extract_worklogs(data.get("issues", []), start=start, end=end)
        logger.info("Fetched %d worklogs between %s and %s", len(worklogs), start, end)
        return worklogs

    def recent_issues(self, credentials: JiraCredentials, *, max_results: int = 50, today: Optional[date] = None) -> list[dict[str, Any]]:
        client = self.client(credentials)
        since = default_since(today or now_local().date())
        jql = f'updated >= "{since.isoformat()}" ORDER BY updated DESC'
        data = self._call(lambda: client.search(jql, fields=ISSUE_FIELDS + ["project"], max_results=max_results))
        return data.get("issues", [])

    def attachment(self, credentials: JiraCredentials, media_id: str) -> AttachmentContent:
        try:
            return self.client(credentials).fetch_attachment(media_id)
        except JiraApiError as e:
            raise ExternalServiceError(
                "Attachment not found",
                status_code=404,
                upstream_status=e.status,
                details={"mediaId": media_id, "details": e.details},
            ) from e

    def run(self, action: Any, credentials: Any, params: Any = None, *, now: datetime | None = None) -> dict[str, Any]:
        """Dispatch one ``/api/jira`` action."""
        creds = credentials_from(credentials)
        params = params if isinstance(params, dict) else {}
        today = (now or now_local()).date()
        client = self.client(creds)

        if action == "test-connection":
            user = self._call(client.get_myself)
            return {"success": True, "user": user}

        if action == "get-worklogs":
            try:
                start = parse_iso_date(params["startDate"])
                end = parse_iso_date(params["endDate"])
            except (KeyError, TypeError, ValueError):
                raise ValidationError("startDate and endDate (YYYY-MM-DD) are required")
            return {"worklogs": self.worklogs(creds, start=start, end=end, project_keys=_project_keys(params), today=today)}

        if action == "get-users":
            users = self._call(client.search_users)
            return {"users": [u for u in users if u.get("active") and u.get("accountType") == "atlassian"]}

        if action == "get-issues":
            jql = build_jql(_project_keys(params), today=today)
            data = self._call(lambda: client.search(jql, fields=ISSUE_FIELDS, max_results=_max_results(params)))
            return {"issues": data.get("issues", [])}

        if action == "get-recent-issues":
            return {"issues": self.recent_issues(creds, max_results=_max_results(params), today=today)}

        if action in ("get-project-issue-count", "get-project-done-issues-count", "get-project-stats"):
            project_key = params.get("projectKey")
            if not project_key:
                raise ValidationError("projectKey is required")
            total = self._call(lambda: client.count(f'project = "{project_key}"'))
            if action == "get-project-issue-count":
                return {"total": total}
            done = self._call(lambda: client.count(f'project = "{project_key}" AND statusCategory = Done'))
            if action == "get-project-done-issues-count":
                return {"total": done}
            return {
                "totalIssues": total,
                "doneIssues": done,
                "progressPercentage": int(round_half_up(done / total * 100)) if total else 0,
            }

        if action == "get-projects":
            return {"projects": self._call(client.get_projects)}

        raise ValidationError("Invalid action")


def credentials_for_attachment(cookies: dict[str, str], body: dict[str, Any], fallback: Optional[JiraCredentials]) -> JiraCredentials:
    """Cookies first, then the request body, then the caller's stored connection."""
    domain, email, token = cookies.get("jiraDomain"), cookies.get("jiraEmail"), cookies.get("jiraApiToken")
    if domain and email and token:
        return JiraCredentials(domain=domain, email=email, api_token=token)
    from_body = JiraCredentials.from_dict(body.get("credentials") if isinstance(body.get("credentials"), dict) else None)
    if from_body:
        return from_body
    if fallback:
        return fallback
    raise AuthenticationError("Missing Jira credentials")
