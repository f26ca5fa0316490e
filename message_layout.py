# message_layout.py
"""Where help request messages keep their "View on Jira" text."""

from __future__ import annotations

from typing import Any, Sequence

# Layouts posted by the bot:
#   3 blocks: header, section, section with fields -> link is the first field
#   5 blocks: ..., context -> link is the first context element
SHORT_LAYOUT_SIZE = 3


def reference_text_from_blocks(blocks: Sequence[dict[str, Any]]) -> str:
    """Return the text of the block element that carries the Jira link.

    Only understands the two layouts above; anything else raises
    ``IndexError`` or ``KeyError``.
    """

    if len(blocks) == SHORT_LAYOUT_SIZE:
        return str(blocks[2]["fields"][0]["text"])
    return str(blocks[4]["elements"][0]["text"])
