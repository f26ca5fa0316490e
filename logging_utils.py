# logging_utils.py
"""Logging setup for the help desk bot.

Log messages are snake_case event names; details travel in ``extra``. Tokens
for Jira and Slack are masked before any handler sees the record.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from typing import Any

from settings import LoggingSettings

PLAIN_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_SECRET_PATTERNS = [
    (re.compile(r"Bearer [A-Za-z0-9._\-+/=]+"), "Bearer [REDACTED]"),
    (re.compile(r"xox[abpr]-[A-Za-z0-9-]+"), "[SLACK_TOKEN]"),
    (re.compile(r"xapp-[A-Za-z0-9-]+"), "[SLACK_TOKEN]"),
]


def redact(text: str) -> str:
    """Mask bearer and Slack tokens in ``text``."""

    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


class RedactingFilter(logging.Filter):
    """Masks tokens in the message, string extras and traceback text.

    The traceback is rendered once into ``exc_text``, which formatters reuse
    instead of formatting ``exc_info`` again.
    """

    _traceback_formatter = logging.Formatter()

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact(record.getMessage())
        record.args = None
        for key, value in extra_fields(record).items():
            if isinstance(value, str):
                setattr(record, key, redact(value))
        if record.exc_info and not record.exc_text:
            record.exc_text = self._traceback_formatter.formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = redact(record.exc_text)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, ``extra`` fields as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "time": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
            **extra_fields(record),
        }
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            data["exc_info"] = record.exc_text
        return json.dumps(data, default=str)


def configure_logging(settings: LoggingSettings) -> None:
    """Replace the root handlers with one redacting stdout handler."""

    level = getattr(logging, settings.level.upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RedactingFilter())
    if settings.json_enabled:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # urllib3 logs full request lines at DEBUG
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))
