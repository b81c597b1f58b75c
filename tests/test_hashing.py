from __future__ import annotations

import re

from chat_tracker.hashing import generate_chat_id, generate_chat_id_from_content
from chat_tracker.models import Message

HEX8 = re.compile(r"^[0-9a-f]{8}$")

MESSAGES = [
    Message(role="user", content="Hello", timestamp="2024-01-01T00:00:00Z"),
    Message(role="assistant", content="Hi there!", timestamp="2024-01-01T00:00:05Z"),
]


def test_chat_id_format():
    assert HEX8.match(generate_chat_id(MESSAGES))
    assert HEX8.match(generate_chat_id([]))


def test_chat_id_is_deterministic_for_same_instant():
    assert generate_chat_id(MESSAGES, now_ms=1_700_000_000_000) == generate_chat_id(
        MESSAGES, now_ms=1_700_000_000_000
    )


def test_chat_id_changes_over_time():
    assert generate_chat_id(MESSAGES, now_ms=1) != generate_chat_id(MESSAGES, now_ms=2)


def test_chat_id_differs_for_different_messages():
    a = [Message(role="user", content="Message 1", timestamp="2024-01-01T00:00:00Z")]
    b = [Message(role="user", content="Message 2", timestamp="2024-01-01T00:00:00Z")]
    assert generate_chat_id(a, now_ms=42) != generate_chat_id(b, now_ms=42)


def test_chat_id_from_content():
    assert HEX8.match(generate_chat_id_from_content(""))
    assert HEX8.match(generate_chat_id_from_content("A" * 10000))
    assert generate_chat_id_from_content("Content 1", now_ms=5) != generate_chat_id_from_content(
        "Content 2", now_ms=5
    )
