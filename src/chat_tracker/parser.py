"""Turn copied transcript text into an ordered list of messages.

Supported shapes, tried in order:

1. JSON: an array of ``{role, content}`` objects, or an object with a
   ``messages`` array (the JSON record form written by this package).
2. Labeled blocks: ``**User**`` / ``**Cursor**`` / ``**Assistant**`` on their
   own line, blocks separated by ``---``. Markers inside code fences belong to
   the message content. This is also the Markdown record form.
3. ``Role:`` prefixed lines (``User:``, ``Assistant:``, ``Claude:`` ...).

Anything else, including empty or whitespace-only text, parses to ``[]``.
Parsing never raises. Message content is always trimmed of surrounding
whitespace, whatever the input shape.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from .models import Message, utc_now_iso

logger = logging.getLogger(__name__)

USER_ALIASES = {"user", "you", "human"}
ASSISTANT_ALIASES = {"assistant", "cursor", "ai", "claude", "gpt"}

_MARKER_RE = re.compile(r"^\*\*(User|Cursor|Assistant)\*\*[ \t]*$", re.IGNORECASE)
_FENCE_RE = re.compile(r"^[ \t]*(```|~~~)")
_RULE_RE = re.compile(r"^---[ \t]*$")

_COLON_RE = re.compile(
    r"^(You|User|Human|Assistant|AI|Cursor|Claude|GPT):[ \t]*",
    re.IGNORECASE | re.MULTILINE,
)


def normalize_role(raw: Any) -> Optional[str]:
    """Map a role label onto ``user`` / ``assistant``; None when unknown."""
    if not isinstance(raw, str):
        return None
    r = raw.strip().lower()
    if r in USER_ALIASES:
        return "user"
    if r in ASSISTANT_ALIASES:
        return "assistant"
    return None


def _message_from_obj(obj: Any, timestamp: str) -> Optional[Message]:
    if not isinstance(obj, dict):
        return None
    role = normalize_role(obj.get("role"))
    content = obj.get("content")
    if role is None or not isinstance(content, str):
        return None
    # same trimming as the text parsers
    content = content.strip()
    if not content:
        return None
    metadata = obj.get("metadata")
    try:
        return Message(
            role=role,
            content=content,
            timestamp=str(obj.get("timestamp") or timestamp),
            metadata=metadata if isinstance(metadata, dict) else None,
        )
    except ValidationError:
        return None


def _parse_json(text: str, timestamp: str) -> Optional[List[Message]]:
    """Messages from a JSON document, or None if ``text`` is not JSON."""
    stripped = text.lstrip()
    if not stripped.startswith(("[", "{")):
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None

    items: Any = data
    if isinstance(data, dict):
        items = data.get("messages")
    if not isinstance(items, list):
        return []
    return parse_messages(items, timestamp)


def _block_body(lines: List[str]) -> str:
    end = len(lines)
    while end and not lines[end - 1].strip():
        end -= 1
    # the separator before the next marker (or at the very end)
    if end and _RULE_RE.match(lines[end - 1]):
        end -= 1
    return "\n".join(lines[:end]).strip()


def _parse_labeled_blocks(text: str, timestamp: str) -> List[Message]:
    """Split on role marker lines, ignoring markers inside code fences."""
    blocks: List[tuple] = []
    in_fence = False
    for line in text.splitlines():
        if _FENCE_RE.match(line):
            in_fence = not in_fence
        elif not in_fence:
            marker = _MARKER_RE.match(line)
            if marker:
                blocks.append((marker.group(1), []))
                continue
        if blocks:
            blocks[-1][1].append(line)

    out: List[Message] = []
    for label, lines in blocks:
        role = normalize_role(label)
        body = _block_body(lines)
        if role and body:
            out.append(Message(role=role, content=body, timestamp=timestamp))
    return out


def _parse_colon_lines(text: str, timestamp: str) -> List[Message]:
    matches = list(_COLON_RE.finditer(text))
    out: List[Message] = []
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        body = text[match.end() : end].strip()
        role = normalize_role(match.group(1))
        if role and body:
            out.append(Message(role=role, content=body, timestamp=timestamp))
    return out


def parse_text_as_chat(text: Optional[str], timestamp: Optional[str] = None) -> List[Message]:
    """Parse raw transcript text. Unrecognized input gives an empty list."""
    if not text or not text.strip():
        return []
    ts = timestamp or utc_now_iso()

    messages = _parse_json(text, ts)
    if messages is not None:
        logger.debug("Parsed %d messages from JSON", len(messages))
        return messages

    messages = _parse_labeled_blocks(text, ts)
    if messages:
        logger.debug("Parsed %d messages from labeled blocks", len(messages))
        return messages

    messages = _parse_colon_lines(text, ts)
    if messages:
        logger.debug("Parsed %d messages from Role: lines", len(messages))
        return messages

    logger.debug("No chat format recognized (%d chars)", len(text))
    return []


def parse_messages(items: List[Dict[str, Any]], timestamp: Optional[str] = None) -> List[Message]:
    """Validate already-structured ``{role, content}`` dicts, dropping bad entries."""
    ts = timestamp or utc_now_iso()
    out: List[Message] = []
    for obj in items:
        m = _message_from_obj(obj, ts)
        if m is not None:
            out.append(m)
    return out


def normalize_messages(messages: Sequence[Message]) -> List[Message]:
    """Trim already-built messages the way parsing would, dropping empty ones."""
    out: List[Message] = []
    for m in messages:
        content = m.content.strip()
        if not content:
            continue
        out.append(m if content == m.content else m.model_copy(update={"content": content}))
    return out
