"""Capture pipeline: parse → locate current record → plan merge → write."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from .formatter import FORMATS
from .hashing import generate_chat_id_from_content
from .models import ConversationExport, Message
from .parser import normalize_messages, parse_text_as_chat
from .reconcile import MergeAction, plan_merge
from .store import ChatStore

logger = logging.getLogger(__name__)

MAX_ID_ATTEMPTS = 5


@dataclass(frozen=True)
class CaptureResult:
    action: MergeAction
    path: Optional[Path] = None
    display_path: Optional[str] = None
    message_count: int = 0
    new_message_count: int = 0

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "path": str(self.path) if self.path else None,
            "display_path": self.display_path,
            "message_count": self.message_count,
            "new_message_count": self.new_message_count,
        }


class ChatRecorder:
    """Applies captures to a :class:`ChatStore`, one at a time.

    ``fmt`` is the format for newly created records; appends and replaces
    keep whatever format the current record already has.
    """

    def __init__(self, store: ChatStore, *, fmt: str = "md") -> None:
        if fmt not in FORMATS:
            raise ValueError(f"Unsupported export format: {fmt!r}")
        self.store = store
        self.fmt = fmt
        self._lock = threading.Lock()

    def capture_text(self, text: Optional[str], *, fmt: Optional[str] = None) -> CaptureResult:
        return self.capture(parse_text_as_chat(text), fmt=fmt)

    def capture(self, messages: Sequence[Message], *, fmt: Optional[str] = None) -> CaptureResult:
        messages = normalize_messages(messages)
        if not messages:
            logger.info("Nothing captured; skipping")
            return CaptureResult(MergeAction.NOOP)
        fmt = fmt or self.fmt
        if fmt not in FORMATS:
            raise ValueError(f"Unsupported export format: {fmt!r}")

        with self._lock:
            current = self.store.find_most_recent()
            existing = self._read_current(current)
            stored = list(existing.messages) if existing is not None else None
            plan = plan_merge(stored, messages)
            logger.info(
                "Capture of %d messages against %s: %s",
                len(messages),
                self.store.display_path(current) if current else "no record",
                plan.action.value,
            )

            if plan.action is MergeAction.DUPLICATE:
                return self._result(plan.action, current, len(messages), 0)
            if plan.action is MergeAction.APPEND:
                self.store.append(current, plan.new_messages, len(stored))
                return self._result(plan.action, current, len(messages), len(plan.new_messages))
            if plan.action is MergeAction.REPLACE:
                export = ConversationExport.from_messages(messages, chat_id=existing.metadata.chat_id)
                self.store.replace(current, export)
                return self._result(plan.action, current, len(messages), len(messages))

            path = self._create(ConversationExport.from_messages(messages), fmt)
            return self._result(MergeAction.CREATE, path, len(messages), len(messages))

    def _read_current(self, current: Optional[Path]) -> Optional[ConversationExport]:
        if current is None:
            return None
        try:
            return self.store.read(current)
        except ValueError as e:
            logger.warning("Ignoring unreadable record %s: %s", self.store.display_path(current), e)
            return None

    def _create(self, export: ConversationExport, fmt: str) -> Path:
        chat_id = export.metadata.chat_id
        for attempt in range(MAX_ID_ATTEMPTS):
            try:
                return self.store.create(export, fmt)
            except FileExistsError:
                logger.warning("Chat id %s already taken; minting another", chat_id)
                chat_id = generate_chat_id_from_content(f"{chat_id}:{attempt}")
                export = export.with_chat_id(chat_id)
        raise FileExistsError(f"Could not find a free chat id after {MAX_ID_ATTEMPTS} attempts")

    def _result(self, action: MergeAction, path: Path, total: int, new: int) -> CaptureResult:
        return CaptureResult(
            action=action,
            path=path,
            display_path=self.store.display_path(path),
            message_count=total,
            new_message_count=new,
        )

    def latest(self) -> Optional[ConversationExport]:
        current = self.store.find_most_recent()
        return self.store.read(current) if current is not None else None

