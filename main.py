# main.py
"""Slack help desk bot entry point."""

import logging

from slack_bolt import App
from slack_bolt.adapter.socket_mode import SocketModeHandler

from help_requests import JiraHelpRequests
from jira_client import JiraClient
from logging_utils import configure_logging
from settings import HelpDeskSettings, get_settings
from slack_handlers import register_handlers

logger = logging.getLogger(__name__)


def create_app(settings: HelpDeskSettings) -> App:
    help_requests = JiraHelpRequests(settings.jira, JiraClient(settings.jira))
    app = App(token=settings.slack.bot_token)
    register_handlers(app, help_requests, settings.slack.channel)
    return app


if __name__ == "__main__":
    settings = get_settings()
    configure_logging(settings.logging)
    logger.info(
        "help_desk_starting",
        extra={"project": settings.jira.project, "channel": settings.slack.channel},
    )
    handler = SocketModeHandler(create_app(settings), settings.slack.app_token)
    handler.start()
