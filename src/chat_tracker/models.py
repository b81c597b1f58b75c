"""Shared data shapes: messages, export metadata and whole conversation exports."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["user", "assistant"]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Message(BaseModel):
    """A single chat message. Immutable once produced by the parser."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    timestamp: str = Field(default_factory=utc_now_iso)
    metadata: Optional[Dict[str, Any]] = None

    def same_as(self, other: "Message") -> bool:
        """Content-identity equality: role and content only."""
        return self.role == other.role and self.content == other.content


class ChatMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chat_id: str = Field(alias="chatId")
    exported_at: str = Field(alias="exportedAt")
    message_count: int = Field(alias="messageCount", ge=0)
    total_tokens: Optional[int] = Field(default=None, alias="totalTokens")
    model: Optional[str] = None


class ConversationExport(BaseModel):
    """One captured conversation: metadata plus the ordered messages."""

    metadata: ChatMetadata
    messages: List[Message] = Field(default_factory=list)

    @classmethod
    def from_messages(
        cls,
        messages: Iterable[Message],
        *,
        chat_id: Optional[str] = None,
        exported_at: Optional[str] = None,
    ) -> "ConversationExport":
        """Build an export, minting an id and deriving token/model metadata."""
        from .hashing import generate_chat_id

        msgs = list(messages)
        total_tokens = 0
        model: Optional[str] = None
        for m in msgs:
            meta = m.metadata or {}
            count = meta.get("tokenCount")
            if isinstance(count, int) and not isinstance(count, bool):
                total_tokens += count
            if model is None and meta.get("model"):
                model = str(meta["model"])

        return cls(
            metadata=ChatMetadata(
                chat_id=chat_id or generate_chat_id(msgs),
                exported_at=exported_at or utc_now_iso(),
                message_count=len(msgs),
                total_tokens=total_tokens or None,
                model=model,
            ),
            messages=msgs,
        )

    def with_messages(self, messages: Iterable[Message]) -> "ConversationExport":
        """Copy with a new message list; ``messageCount`` follows along."""
        msgs = list(messages)
        meta = self.metadata.model_copy(update={"message_count": len(msgs)})
        return ConversationExport(metadata=meta, messages=msgs)

    def with_chat_id(self, chat_id: str) -> "ConversationExport":
        meta = self.metadata.model_copy(update={"chat_id": chat_id})
        return ConversationExport(metadata=meta, messages=list(self.messages))

    def to_record(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase metadata keys and no null fields."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "ConversationExport":
        return cls.model_validate(data)
