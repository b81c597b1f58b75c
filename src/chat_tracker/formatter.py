"""Render conversation exports as Markdown documents or JSON records.

Markdown layout (the same shape Cursor's own "export chat" produces)::

    # <first line of the first user message, max 80 chars>
    _Exported on 01/15/2024 at 10:00:00 from Cursor Chat Tracker_

    ---

    **User**

    <content>

    ---

    **Cursor**

    <content>

There is a rule between consecutive blocks, never after the last one.
"""
from __future__ import annotations

import json
from datetime import datetime
from typing import List, Sequence

from .models import ConversationExport, Message

TITLE_MAX_CHARS = 80
DEFAULT_TITLE = "Chat Export"
PRODUCT = "Cursor Chat Tracker"
FORMATS = ("md", "json")

ROLE_LABELS = {"user": "**User**", "assistant": "**Cursor**"}


def chat_title(messages: Sequence[Message]) -> str:
    for m in messages:
        if m.role == "user":
            return m.content.split("\n", 1)[0][:TITLE_MAX_CHARS]
    return DEFAULT_TITLE


def _export_time(exported_at: str) -> datetime:
    try:
        dt = datetime.fromisoformat(exported_at.replace("Z", "+00:00"))
    except ValueError:
        return datetime.now().astimezone()
    if dt.tzinfo is None:
        return dt
    return dt.astimezone()


def format_message_blocks(messages: Sequence[Message]) -> str:
    """Role label, blank line, verbatim content, blank line; rules in between."""
    lines: List[str] = []
    for index, message in enumerate(messages):
        lines.append(ROLE_LABELS[message.role])
        lines.append("")
        lines.append(message.content)
        lines.append("")
        if index < len(messages) - 1:
            lines.append("---")
            lines.append("")
    return "\n".join(lines)


def format_as_markdown(export: ConversationExport) -> str:
    when = _export_time(export.metadata.exported_at)
    header = [
        f"# {chat_title(export.messages)}",
        f"_Exported on {when.strftime('%m/%d/%Y')} at {when.strftime('%H:%M:%S')} from {PRODUCT}_",
        "",
        "---",
        "",
    ]
    return "\n".join(header) + "\n" + format_message_blocks(export.messages)


def render_append(existing: str, new_messages: Sequence[Message], has_prior: bool) -> str:
    """Existing document text followed by blocks for ``new_messages``.

    The existing text is kept byte for byte. When the record already held
    messages a rule separates them from the new blocks.
    """
    if not new_messages:
        return existing
    prefix = existing
    if prefix and not prefix.endswith("\n"):
        prefix += "\n"
    if has_prior:
        prefix += "\n---\n\n"
    return prefix + format_message_blocks(new_messages)


def format_as_json(export: ConversationExport) -> str:
    return json.dumps(export.to_record(), ensure_ascii=False, indent=2)


def render(export: ConversationExport, fmt: str) -> str:
    if fmt == "md":
        return format_as_markdown(export)
    if fmt == "json":
        return format_as_json(export)
    raise ValueError(f"Unsupported export format: {fmt!r} (expected one of {FORMATS})")
