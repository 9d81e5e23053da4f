"""Jira Cloud REST v3 client authenticated with an email + API token."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from ..core.constants import DEFAULT_JIRA_TIMEOUT_SECONDS
from ..users.model import JiraCredentials

logger = logging.getLogger(__name__)


class JiraApiError(RuntimeError):
    """Raised for non-2xx Jira responses and transport failures (status None)."""

    def __init__(self, status: Optional[int], details: str):
        super().__init__(f"Jira API request failed ({status}): {details}")
        self.status = status
        self.details = details


@dataclass(frozen=True)
class AttachmentContent:
    content: bytes
    content_type: str
    filename: str


def clean_domain(domain: str) -> str:
    """"https://acme.atlassian.net/" -> "acme.atlassian.net"."""
    return re.sub(r"^https?://", "", domain.strip()).rstrip("/")


class JiraClient:
    """Thin wrapper around Jira REST API v3. One instance per set of credentials."""

    def __init__(
        self,
        credentials: JiraCredentials,
        *,
        timeout: int = DEFAULT_JIRA_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.credentials = credentials
        self.base_url = f"https://{clean_domain(credentials.domain)}/rest/api/3"
        self._timeout = timeout
        self._session = session or requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        accept: str = "application/json",
        url: Optional[str] = None,
    ) -> requests.Response:
        target = url or f"{self.base_url}{path}"
        try:
            response = self._session.request(
                method=method.upper(),
                url=target,
                auth=(self.credentials.email, self.credentials.api_token),
                params=params,
                timeout=self._timeout,
                headers={"Accept": accept},
            )
        except requests.RequestException as e:
            logger.warning("Jira request %s %s failed: %s", method, path or target, e)
            raise JiraApiError(None, str(e)) from e

        if response.status_code >= 400:
            logger.warning("Jira %s %s returned %s", method, path or target, response.status_code)
            raise JiraApiError(response.status_code, response.text)
        return response

    def get_myself(self) -> Dict[str, Any]:
        return self._request("GET", "/myself").json()

    def search(
        self,
        jql: str,
        *,
        fields: List[str],
        max_results: int = 50,
        expand: Optional[str] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "jql": jql,
            "fields": ",".join(fields),
            "maxResults": max_results,
        }
        if expand:
            params["expand"] = expand
        return self._request("GET", "/search/jql", params=params).json()

    def count(self, jql: str) -> int:
        """Issue count for ``jql`` (``total`` when Jira reports it, else the page size)."""
        payload = self.search(jql, fields=["id"], max_results=1000)
        if "total" in payload:
            return int(payload["total"])
        return len(payload.get("issues", []))

    def search_users(self, *, max_results: int = 1000) -> List[Dict[str, Any]]:
        return self._request("GET", "/users/search", params={"maxResults": max_results}).json()

    def get_projects(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/project").json()

    def _binary(self, path: str = "", *, url: Optional[str] = None) -> requests.Response:
        return self._request("GET", path, accept="*/*", url=url)

    def fetch_attachment(self, media_id: str) -> AttachmentContent:
        """Download a file by media or attachment id, trying each Jira endpoint in turn."""
        errors: list[str] = []
        fallback_name = f"file-{media_id}"

        for path in (f"/media/{media_id}/binary", f"/attachment/content/{media_id}"):
            try:
                resp = self._binary(path)
                return AttachmentContent(
                    content=resp.content,
                    content_type=resp.headers.get("Content-Type", "application/octet-stream"),
                    filename=fallback_name,
                )
            except JiraApiError as e:
                errors.append(f"{path}: {e.status}")

        try:
            meta = self._request("GET", f"/attachment/{media_id}").json()
            content_url = meta.get("content") or f"{self.base_url}/attachment/content/{media_id}"
            resp = self._binary(url=content_url)
            return AttachmentContent(
                content=resp.content,
                content_type=meta.get("mimeType") or resp.headers.get("Content-Type", "application/octet-stream"),
                filename=meta.get("filename") or fallback_name,
            )
        except JiraApiError as e:
            errors.append(f"/attachment/{media_id}: {e.status}")

        raise JiraApiError(404, "; ".join(errors))
