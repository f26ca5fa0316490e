# slack_handlers.py
"""Slack event and action handlers for help requests."""

from __future__ import annotations

import logging
from typing import Any, Optional

from slack_bolt import App

from help_requests import NO_JIRA_ID, JiraHelpRequests

logger = logging.getLogger(__name__)

START_ACTION_ID = "start_help_request"
RESOLVE_ACTION_ID = "resolve_help_request"
SUMMARY_MAX_LENGTH = 255
VIEW_ON_JIRA_PREFIX = "View on Jira:"
CREATE_FAILED_MESSAGE = (
    "Sorry, I couldn't raise a Jira ticket for this request. Please try again later."
)


def build_help_request_blocks(issue_key: str, issue_url: str) -> list[dict[str, Any]]:
    """Thread reply posted after a ticket is raised.

    The link must stay in the first field of the third block; button clicks
    read the ticket key back from there.
    """
    link_text = f"{VIEW_ON_JIRA_PREFIX} <{issue_url}|{issue_key}>"
    return [
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": "Thanks, your help request has been raised."},
        },
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "text": {"type": "plain_text", "text": "Start"},
                    "action_id": START_ACTION_ID,
                    "style": "primary",
                },
                {
                    "type": "button",
                    "text": {"type": "plain_text", "text": "Resolve"},
                    "action_id": RESOLVE_ACTION_ID,
                },
            ],
        },
        {
            "type": "section",
            "fields": [{"type": "mrkdwn", "text": link_text}],
        },
    ]


def _user_email(client, user_id: Optional[str]) -> Optional[str]:
    if not user_id:
        return None
    profile = client.users_info(user=user_id)["user"].get("profile", {})
    return profile.get("email")


def _display_name(client, user_id: Optional[str]) -> Optional[str]:
    if not user_id:
        return None
    profile = client.users_info(user=user_id)["user"].get("profile", {})
    return profile.get("display_name") or profile.get("real_name")


def _summary_from_text(text: str) -> str:
    first_line = text.strip().splitlines()[0] if text.strip() else "Help request from Slack"
    return first_line[:SUMMARY_MAX_LENGTH]


def should_ignore(event: dict[str, Any], channel: str) -> bool:
    if event.get("subtype") or event.get("bot_id"):
        logger.debug("ignore_bot_or_subtype", extra={"subtype": event.get("subtype")})
        return True
    if event.get("channel") != channel:
        logger.debug("ignore_channel", extra={"channel": event.get("channel")})
        return True
    return False


def handle_new_request(
    event: dict[str, Any], client, help_requests: JiraHelpRequests
) -> Optional[str]:
    """Raise a ticket for a top-level help channel message and reply in thread."""
    channel, ts = event["channel"], event["ts"]
    text = event.get("text", "")
    summary = _summary_from_text(text)

    issue_key = help_requests.create_help_request(summary, _user_email(client, event.get("user")))
    if issue_key is None:
        client.chat_postMessage(channel=channel, thread_ts=ts, text=CREATE_FAILED_MESSAGE)
        return None

    permalink = client.chat_getPermalink(channel=channel, message_ts=ts)["permalink"]
    help_requests.update_help_request_description(
        issue_key, {"summary": summary, "description": text, "slack_link": permalink}
    )

    issue_url = help_requests.browse_url(issue_key)
    client.chat_postMessage(
        channel=channel,
        thread_ts=ts,
        blocks=build_help_request_blocks(issue_key, issue_url),
        text=f"{VIEW_ON_JIRA_PREFIX} <{issue_url}|{issue_key}>",
    )
    return issue_key


def handle_thread_reply(
    event: dict[str, Any], client, help_requests: JiraHelpRequests
) -> Optional[str]:
    """Copy a thread reply onto the ticket the thread belongs to.

    The key is read from the bot's "View on Jira" reply only; the parent
    message and other replies may mention unrelated tickets.
    """
    channel, thread_ts = event["channel"], event["thread_ts"]
    replies = client.conversations_replies(channel=channel, ts=thread_ts)["messages"]

    for message in replies:
        text = message.get("text", "")
        if message.get("ts") == thread_ts or not message.get("bot_id"):
            continue
        if not text.startswith(VIEW_ON_JIRA_PREFIX):
            continue
        try:
            issue_key = help_requests.extract_jira_id(text)
            break
        except ValueError:
            continue
    else:
        logger.info("thread_without_help_request", extra={"thread_ts": thread_ts})
        return None

    permalink = client.chat_getPermalink(channel=channel, message_ts=event["ts"])["permalink"]
    help_requests.add_comment_to_help_request(
        issue_key,
        {
            "slack_link": permalink,
            "display_name": _display_name(client, event.get("user")),
            "message": event.get("text", ""),
        },
    )
    return issue_key


def handle_message(
    event: dict[str, Any], client, help_requests: JiraHelpRequests, channel: str
) -> Optional[str]:
    if should_ignore(event, channel):
        return None
    thread_ts = event.get("thread_ts")
    if thread_ts and thread_ts != event.get("ts"):
        return handle_thread_reply(event, client, help_requests)
    return handle_new_request(event, client, help_requests)


def _issue_key_from_action(body: dict[str, Any], help_requests: JiraHelpRequests) -> Optional[str]:
    blocks = body.get("message", {}).get("blocks", [])
    try:
        issue_key = help_requests.extract_jira_id_from_blocks(blocks)
    except (IndexError, KeyError):
        logger.warning("action_unexpected_layout", extra={"block_count": len(blocks)})
        return None
    if issue_key == NO_JIRA_ID:
        logger.warning("action_without_jira_id", extra={"block_count": len(blocks)})
        return None
    return issue_key


def handle_start_action(
    body: dict[str, Any], client, help_requests: JiraHelpRequests
) -> Optional[str]:
    issue_key = _issue_key_from_action(body, help_requests)
    if issue_key is None:
        return None
    user_id = body.get("user", {}).get("id")
    help_requests.start_help_request(issue_key)
    help_requests.assign_help_request(issue_key, _user_email(client, user_id))
    logger.info("help_request_started", extra={"key": issue_key, "slack_user": user_id})
    return issue_key


def handle_resolve_action(body: dict[str, Any], help_requests: JiraHelpRequests) -> Optional[str]:
    issue_key = _issue_key_from_action(body, help_requests)
    if issue_key is None:
        return None
    help_requests.resolve_help_request(issue_key)
    logger.info("help_request_resolved", extra={"key": issue_key})
    return issue_key


def register_handlers(app: App, help_requests: JiraHelpRequests, channel: str) -> None:
    @app.event("message")
    def _on_message(event, client):
        handle_message(event, client, help_requests, channel)

    @app.action(START_ACTION_ID)
    def _on_start(ack, body, client):
        ack()
        handle_start_action(body, client, help_requests)

    @app.action(RESOLVE_ACTION_ID)
    def _on_resolve(ack, body):
        ack()
        handle_resolve_action(body, help_requests)
