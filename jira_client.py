# jira_client.py
"""Jira REST (v2) client used by the help request adapter."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import requests  # type: ignore[import-untyped]

from settings import JiraSettings

logger = logging.getLogger(__name__)


class JiraApiError(Exception):
    """Jira answered with a non-2xx status."""

    def __init__(self, status_code: int, messages: list[str], method: str, path: str) -> None:
        self.status_code = status_code
        self.messages = messages
        self.method = method
        self.path = path
        detail = "; ".join(messages) if messages else "no error details"
        super().__init__(f"{method} {path} failed with {status_code}: {detail}")


# Everything a Jira call can raise on a bad response or a broken connection.
JIRA_ERRORS = (JiraApiError, requests.RequestException)


class JiraClient:
    def __init__(self, settings: JiraSettings) -> None:
        self.base_url = settings.api_url
        self.timeout = settings.timeout_seconds
        self.headers: dict[str, str] = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"Bearer {settings.api_token}",
        }

    def transition_issue(self, issue_key: str, transition_id: str) -> None:
        self._request(
            "POST",
            f"/issue/{issue_key}/transitions",
            json={"transition": {"id": transition_id}},
        )

    def issue_link(self, link_type: str, inward_key: str, outward_key: str) -> None:
        self._request(
            "POST",
            "/issueLink",
            json={
                "type": {"name": link_type},
                "inwardIssue": {"key": inward_key},
                "outwardIssue": {"key": outward_key},
            },
        )

    def get_issue(self, issue_key: str, fields: Sequence[str] = ()) -> dict[str, Any]:
        params = {"fields": ",".join(fields)} if fields else None
        return self._request("GET", f"/issue/{issue_key}", params=params) or {}

    def search_jira(
        self, jql: str, fields: Sequence[str] = (), max_results: int = 50
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"jql": jql, "startAt": 0, "maxResults": max_results}
        if fields:
            payload["fields"] = list(fields)
        return self._request("POST", "/search", json=payload) or {}

    def update_assignee(self, issue_key: str, username: str) -> None:
        self._request("PUT", f"/issue/{issue_key}/assignee", json={"name": username})

    def search_users(self, username: str, max_results: int = 50) -> list[dict[str, Any]]:
        params = {
            "username": username,
            "startAt": 0,
            "maxResults": max_results,
            "includeActive": "true",
            "includeInactive": "false",
        }
        return self._request("GET", "/user/search", params=params) or []

    def add_new_issue(self, fields: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/issue", json={"fields": fields}) or {}

    def update_issue(self, issue_key: str, update: dict[str, Any]) -> None:
        self._request("PUT", f"/issue/{issue_key}", json=update)

    def add_comment(self, issue_key: str, body: str) -> dict[str, Any]:
        return self._request("POST", f"/issue/{issue_key}/comment", json={"body": body}) or {}

    def get_project(self, project_key: str) -> dict[str, Any]:
        return self._request("GET", f"/project/{project_key}") or {}

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        response = requests.request(
            method,
            f"{self.base_url}{path}",
            json=json,
            params=params,
            headers=self.headers,
            timeout=self.timeout,
            verify=True,
        )
        logger.debug(
            "jira_response",
            extra={"method": method, "path": path, "status": response.status_code},
        )

        if response.status_code >= 400:
            raise JiraApiError(response.status_code, _error_messages(response), method, path)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()


def _error_messages(response: requests.Response) -> list[str]:
    try:
        payload_obj = response.json()
    except ValueError:
        return [response.text] if response.text else []

    if not isinstance(payload_obj, dict):
        return [str(payload_obj)]

    messages: list[str] = []
    error_messages_val = payload_obj.get("errorMessages", [])
    if isinstance(error_messages_val, list):
        messages.extend(str(msg) for msg in error_messages_val)

    field_errors_val = payload_obj.get("errors", {})
    if isinstance(field_errors_val, dict):
        for field, msg in field_errors_val.items():
            messages.append(f"{field}: {msg}")
    return messages
