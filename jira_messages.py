# jira_messages.py
"""Jira wiki-markup bodies for help request descriptions and comments."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

_SLACK_LINK = re.compile(r"<(https?://[^|>]+)(?:\|([^>]+))?>")


def convert_slack_links(text: Optional[str]) -> str:
    """Rewrite Slack ``<url|label>`` links into Jira ``[label|url]`` links."""

    if text is None:
        return ""

    def _replace(match: re.Match[str]) -> str:
        url, label = match.group(1), match.group(2)
        return f"[{label}|{url}]" if label else f"[{url}]"

    return _SLACK_LINK.sub(_replace, text)


def _automated_header(kind: str, slack_link: Optional[str]) -> str:
    return (
        f"h6. _This is an automatically generated {kind} from Slack, "
        f"do not reply or update in here, [view in Slack|{slack_link}]_"
    )


def map_fields_to_description(fields: Mapping[str, Any]) -> str:
    sections = [
        ("Issue summary", fields.get("summary")),
        ("PR / build URLs", fields.get("pr_build_url")),
        ("Environment", fields.get("environment")),
        ("Issue description", fields.get("description")),
        ("Analysis done so far", fields.get("analysis")),
        ("Have you checked with your team?", fields.get("checked_with_team")),
    ]
    lines = [_automated_header("ticket", fields.get("slack_link")), ""]
    for title, value in sections:
        lines.append(f"*{title}*")
        lines.append(convert_slack_links(value) if isinstance(value, str) else str(value))
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def create_comment(fields: Mapping[str, Any]) -> str:
    return (
        f"{_automated_header('comment', fields.get('slack_link'))}\n\n"
        f"h6. {fields.get('display_name') or 'Unknown user'}:\n"
        f"{convert_slack_links(fields.get('message'))}"
    )


def create_resolve_comment(what: Optional[str], where: Optional[str], how: Optional[str]) -> str:
    return (
        "h2. Resolution\n\n"
        f"*What was the issue?*\n{convert_slack_links(what)}\n\n"
        f"*Where was the issue?*\n{convert_slack_links(where)}\n\n"
        f"*How was the issue resolved?*\n{convert_slack_links(how)}"
    )
