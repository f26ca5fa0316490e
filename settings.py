# settings.py
"""Centralized configuration using Pydantic settings."""

from __future__ import annotations

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class JiraSettings(BaseSettings):
    model_config = SettingsConfigDict(frozen=True)

    host: str = Field(alias="JIRA_HOST", default="tools.hmcts.net/jira")
    api_token: str = Field(alias="JIRA_API_TOKEN")
    username: str = Field(alias="JIRA_USERNAME")
    project: str = Field(alias="JIRA_PROJECT")
    issue_type_id: str = Field(alias="JIRA_ISSUE_TYPE_ID")
    issue_type_name: str = Field(alias="JIRA_ISSUE_TYPE_NAME")
    start_transition_id: str = Field(alias="JIRA_START_TRANSITION_ID")
    done_transition_id: str = Field(alias="JIRA_DONE_TRANSITION_ID")
    # "Up Next" column on the team board
    up_next_transition_id: str = Field(alias="JIRA_UP_NEXT_TRANSITION_ID", default="361")
    cost_centre: str = Field(alias="JIRA_COST_CENTRE", default="PAY-6381")
    fix_version: str = Field(alias="JIRA_FIX_VERSION", default="F&P No Release Required")
    platform_labels: tuple[str, ...] = Field(
        alias="JIRA_PLATFORM_LABELS", default=("F&PPETTeam", "created-from-slack")
    )
    timeout_seconds: int = Field(alias="JIRA_TIMEOUT", default=10)

    @property
    def api_url(self) -> str:
        return f"https://{self.host}/rest/api/2"

    @property
    def browse_url(self) -> str:
        return f"https://{self.host}/browse"


class SlackSettings(BaseSettings):
    model_config = SettingsConfigDict(frozen=True)

    bot_token: str = Field(alias="SLACK_BOT_TOKEN")
    app_token: str = Field(alias="SLACK_APP_TOKEN")
    channel: str = Field(alias="SLACK_CHANNEL")


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(frozen=True)

    level: str = Field(alias="HELPDESK_LOG_LEVEL", default="INFO")
    json_enabled: bool = Field(alias="HELPDESK_LOG_JSON", default=False)


class HelpDeskSettings(BaseSettings):
    model_config = SettingsConfigDict(frozen=True)

    jira: JiraSettings
    slack: SlackSettings
    logging: LoggingSettings

    @classmethod
    def load(cls) -> HelpDeskSettings:
        try:
            return cls(
                jira=JiraSettings(),  # type: ignore[call-arg]
                slack=SlackSettings(),  # type: ignore[call-arg]
                logging=LoggingSettings(),  # type: ignore[call-arg]
            )
        except ValidationError as exc:  # pragma: no cover - surfaced on startup
            missing = [error["loc"][0] for error in exc.errors() if error.get("type") == "missing"]
            msg = "Missing required configuration values: " + ", ".join(
                sorted({str(loc) for loc in missing})
            )
            raise RuntimeError(msg) from exc


@lru_cache(maxsize=1)
def get_settings() -> HelpDeskSettings:
    return HelpDeskSettings.load()
