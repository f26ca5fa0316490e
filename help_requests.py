# help_requests.py
"""Help request operations on top of the Jira client.

Every operation here logs and swallows Jira failures so a broken Jira call
never takes down the Slack handler that triggered it. Two exceptions:
``get_issue_description`` re-raises anything but a missing ticket, and
``extract_jira_id`` raises ``ValueError`` when the text holds no key.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Mapping, Optional, Sequence

from jira_client import JIRA_ERRORS, JiraApiError, JiraClient
from jira_messages import create_comment, create_resolve_comment, map_fields_to_description
from message_layout import reference_text_from_blocks
from settings import JiraSettings

logger = logging.getLogger(__name__)

# Returned by extract_jira_id_from_blocks when the layout holds no key;
# callers compare against this string.
NO_JIRA_ID = "undefined"

SEARCH_FIELDS = ("created", "description", "summary", "updated")
EXCLUDED_LABEL = "Heritage"
DUPLICATE_LINK = "Duplicate"


def resolution_label(category: str) -> str:
    return f"resolution-{category.lower().replace(' ', '-')}"


class JiraHelpRequests:
    def __init__(self, settings: JiraSettings, client: JiraClient) -> None:
        self.settings = settings
        self.client = client
        self._key_pattern = re.compile(rf"({re.escape(settings.project)}-\d+)")

    # Workflow transitions

    def resolve_help_request(self, issue_key: str) -> None:
        try:
            self.client.transition_issue(issue_key, self.settings.done_transition_id)
        except JIRA_ERRORS as exc:
            logger.error("help_request_resolve_failed", extra={"key": issue_key, "error": str(exc)})

    def start_help_request(self, issue_key: str) -> None:
        try:
            self.client.transition_issue(issue_key, self.settings.start_transition_id)
        except JIRA_ERRORS as exc:
            logger.error("help_request_start_failed", extra={"key": issue_key, "error": str(exc)})

    def mark_as_duplicate(self, issue_key: str, parent_key: str) -> None:
        """Link ``issue_key`` as a duplicate of ``parent_key`` and close it.

        A link that succeeds is left in place if the transition fails.
        """
        try:
            self.client.issue_link(DUPLICATE_LINK, issue_key, parent_key)
            self.client.transition_issue(issue_key, self.settings.done_transition_id)
        except JIRA_ERRORS as exc:
            logger.error(
                "help_request_duplicate_failed",
                extra={"key": issue_key, "parent_key": parent_key, "error": str(exc)},
            )

    # Reads

    def get_issue_description(self, issue_key: str) -> Optional[str]:
        try:
            issue = self.client.get_issue(issue_key, fields=["description"])
        except JiraApiError as exc:
            if exc.status_code == 404:
                return None
            raise
        return issue.get("fields", {}).get("description")

    def search_for_unassigned_open_issues(self) -> dict[str, Any]:
        jql = (
            f'project = {self.settings.project} AND type = "{self.settings.issue_type_name}" '
            f'AND status = Open and assignee is EMPTY AND labels not in ("{EXCLUDED_LABEL}") '
            "ORDER BY created ASC"
        )
        try:
            return self.client.search_jira(jql, fields=SEARCH_FIELDS)
        except JIRA_ERRORS as exc:
            logger.error("help_request_search_failed", extra={"jql": jql, "error": str(exc)})
            return {"issues": []}

    # Users

    def convert_email(self, email: Optional[str]) -> str:
        """Map a Slack user's email to a Jira username, or the system user."""
        if not email:
            return self.settings.username

        try:
            users = self.client.search_users(email, max_results=1)
            return str(users[0]["name"])
        except (*JIRA_ERRORS, LookupError, TypeError) as exc:
            logger.warning(
                "jira_user_lookup_failed",
                extra={"email": email, "error": str(exc) or type(exc).__name__},
            )
            return self.settings.username

    def assign_help_request(self, issue_key: str, email: Optional[str]) -> None:
        user = self.convert_email(email)
        try:
            self.client.update_assignee(issue_key, user)
        except JIRA_ERRORS as exc:
            logger.error(
                "help_request_assign_failed",
                extra={"key": issue_key, "user": user, "error": str(exc)},
            )

    # Creation

    def create_help_request(
        self, summary: str, user_email: Optional[str], labels: Iterable[str] = ()
    ) -> Optional[str]:
        """Create a ticket and return its key, or ``None`` if Jira would not."""
        labels = list(labels)
        user = self.convert_email(user_email)

        try:
            project = self.client.get_project(self.settings.project)
        except JIRA_ERRORS as exc:
            logger.error(
                "help_request_project_lookup_failed",
                extra={"project": self.settings.project, "error": str(exc)},
            )
            return None

        try:
            issue = self._create_help_request_in_jira(summary, project, user, labels)
        except JIRA_ERRORS as exc:
            # The reporter may not exist in Jira; the system user always does.
            logger.warning(
                "help_request_create_retrying_as_system_user",
                extra={"user": user, "error": str(exc)},
            )
            user = self.settings.username
            try:
                issue = self._create_help_request_in_jira(summary, project, user, labels)
            except JIRA_ERRORS as retry_exc:
                logger.error("help_request_create_failed", extra={"error": str(retry_exc)})
                return None

        key = issue.get("key")
        if not key:
            logger.error("help_request_create_failed", extra={"response": issue})
            return None
        logger.info("help_request_created", extra={"key": key, "user": user})
        return str(key)

    def _create_help_request_in_jira(
        self, summary: str, project: Mapping[str, Any], user: str, labels: Sequence[str]
    ) -> dict[str, Any]:
        logger.info("help_request_creating", extra={"user": user})
        issue = self.client.add_new_issue(
            {
                "summary": summary,
                "issuetype": {"id": self.settings.issue_type_id},
                "project": {"id": project["id"]},
                "labels": [*self.settings.platform_labels, *labels],
                # Our Jira version takes the reporter by username, not account id
                "reporter": {"name": user},
                "customfield_10008": self.settings.cost_centre,
                "fixVersions": [{"name": self.settings.fix_version}],
            }
        )

        try:
            self.client.transition_issue(issue["key"], self.settings.up_next_transition_id)
        except (*JIRA_ERRORS, KeyError) as exc:
            logger.warning(
                "help_request_up_next_transition_failed",
                extra={"key": issue.get("key"), "error": str(exc)},
            )
        return issue

    # Updates

    def update_help_request_description(self, issue_key: str, fields: Mapping[str, Any]) -> None:
        description = map_fields_to_description(fields)
        try:
            self.client.update_issue(
                issue_key, {"update": {"description": [{"set": description}]}}
            )
        except JIRA_ERRORS as exc:
            logger.error(
                "help_request_description_update_failed",
                extra={"key": issue_key, "error": str(exc)},
            )

    def add_comment_to_help_request(self, issue_key: str, fields: Mapping[str, Any]) -> None:
        try:
            self.client.add_comment(issue_key, create_comment(fields))
        except JIRA_ERRORS as exc:
            logger.error("help_request_comment_failed", extra={"key": issue_key, "error": str(exc)})

    def add_comment_to_help_request_resolve(
        self, issue_key: str, what: Optional[str], where: Optional[str], how: Optional[str]
    ) -> None:
        try:
            self.client.add_comment(issue_key, create_resolve_comment(what, where, how))
        except JIRA_ERRORS as exc:
            logger.error(
                "help_request_resolve_comment_failed",
                extra={"key": issue_key, "error": str(exc)},
            )

    def add_label(self, issue_key: str, category: str) -> None:
        label = resolution_label(category)
        try:
            self.client.update_issue(issue_key, {"update": {"labels": [{"add": label}]}})
        except JIRA_ERRORS as exc:
            logger.error(
                "help_request_label_failed",
                extra={"key": issue_key, "label": label, "error": str(exc)},
            )

    # Key extraction

    def extract_jira_id_from_blocks(self, blocks: Sequence[dict[str, Any]]) -> str:
        """Pull the ticket key out of a bot message's "View on Jira" block.

        Expected text: ``View on Jira: <https://host/browse/SBOX-61|SBOX-61>``
        """
        match = self._key_pattern.search(reference_text_from_blocks(blocks))
        return match.group(1) if match else NO_JIRA_ID

    def extract_jira_id(self, text: str) -> str:
        match = self._key_pattern.search(text)
        if match is None:
            raise ValueError(f"No {self.settings.project} ticket key in text")
        return match.group(1)

    def browse_url(self, issue_key: str) -> str:
        return f"{self.settings.browse_url}/{issue_key}"
