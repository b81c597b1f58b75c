"""Short labels for new chat records.

The ids are a naming convenience only. Two captures of the same content in the
same millisecond may collide; record identity for merging is structural and
never derived from these tokens.
"""
from __future__ import annotations

import hashlib
import time
from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from .models import Message

ID_LENGTH = 8


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _short_md5(data: str) -> str:
    return hashlib.md5(data.encode("utf-8")).hexdigest()[:ID_LENGTH]


def generate_chat_id(messages: Iterable["Message"], now_ms: Optional[int] = None) -> str:
    """8-char lowercase hex id from message contents, timestamps and the current time."""
    content = "|".join(f"{m.role}:{m.content}:{m.timestamp}" for m in messages)
    stamp = _now_ms() if now_ms is None else now_ms
    return _short_md5(f"{content}|{stamp}")


def generate_chat_id_from_content(content: str, now_ms: Optional[int] = None) -> str:
    """Same scheme as :func:`generate_chat_id` for raw, unstructured text."""
    stamp = _now_ms() if now_ms is None else now_ms
    return _short_md5(f"{content}|{stamp}")
