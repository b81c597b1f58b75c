"""On-disk chat records: locating the current one and writing create/append/replace.

Layout:
    <workspace>/.cursor/chat/
      chat-<id>.md      # rendered Markdown document
      chat-<id>.json    # structured record (ConversationExport)

Every write goes through a temp file and an atomic rename.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydantic import ValidationError

from utils.io import atomic_write_text, ensure_dir, read_json, read_text

from .formatter import FORMATS, format_as_json, render, render_append
from .models import ConversationExport, Message
from .parser import parse_messages, parse_text_as_chat

logger = logging.getLogger(__name__)

DEFAULT_CHAT_DIR = Path(".cursor") / "chat"
RECORD_RE = re.compile(r"^chat-([A-Za-z0-9_\-]+)\.(md|json)$")


def record_format(path: Path) -> str:
    fmt = path.suffix.lstrip(".")
    if fmt not in FORMATS:
        raise ValueError(f"Not a chat record: {path}")
    return fmt


def record_id(path: Path) -> str:
    m = RECORD_RE.match(path.name)
    if not m:
        raise ValueError(f"Not a chat record: {path}")
    return m.group(1)


class ChatStore:
    """Chat records for one workspace.

    The store keeps no notion of a "current" record; callers get it from
    :meth:`find_most_recent` and pass it back into :meth:`append` /
    :meth:`replace`.
    """

    def __init__(
        self,
        workspace_root: Union[str, Path],
        *,
        chat_dir: Union[str, Path] = DEFAULT_CHAT_DIR,
    ) -> None:
        self.root = Path(workspace_root).resolve()
        chat_dir = Path(chat_dir)
        self.chat_dir = chat_dir if chat_dir.is_absolute() else self.root / chat_dir

    # --------- paths ----------
    def ensure_dir(self) -> Path:
        return ensure_dir(self.chat_dir)

    def path_for(self, chat_id: str, fmt: str = "md") -> Path:
        if fmt not in FORMATS:
            raise ValueError(f"Unsupported export format: {fmt!r}")
        return self.chat_dir / f"chat-{chat_id}.{fmt}"

    def display_path(self, path: Union[str, Path]) -> str:
        """Path relative to the workspace root when inside it, else unchanged."""
        p = Path(path)
        try:
            return str(p.relative_to(self.root))
        except ValueError:
            return str(path)

    # --------- locator ----------
    def list_records(self, fmt: Optional[str] = None) -> List[Path]:
        """All record files, newest first (ties: greater filename first)."""
        if not self.chat_dir.is_dir():
            return []
        found = []
        for p in self.chat_dir.iterdir():
            m = RECORD_RE.match(p.name)
            if not m or not p.is_file():
                continue
            if fmt is not None and m.group(2) != fmt:
                continue
            found.append((p.stat().st_mtime_ns, p.name, p))
        found.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [p for _, _, p in found]

    def find_most_recent(self, fmt: Optional[str] = None) -> Optional[Path]:
        records = self.list_records(fmt)
        return records[0] if records else None

    def read(self, path: Union[str, Path]) -> Optional[ConversationExport]:
        """Parse a record back into an export; None if the file is missing."""
        p = Path(path)
        if not p.exists():
            return None
        chat_id = record_id(p)
        if record_format(p) == "json":
            data = read_json(p)
            if isinstance(data, list):
                return ConversationExport.from_messages(parse_messages(data), chat_id=chat_id)
            try:
                return ConversationExport.from_record(data)
            except ValidationError as e:
                raise ValueError(f"Invalid chat record {p}: {e}") from e
        messages = parse_text_as_chat(read_text(p))
        return ConversationExport.from_messages(messages, chat_id=chat_id)

    # --------- writer ----------
    def create(self, export: ConversationExport, fmt: str = "md") -> Path:
        """Write a new record named after the export's chat id."""
        path = self.path_for(export.metadata.chat_id, fmt)
        text = render(export, fmt)
        self.ensure_dir()
        if path.exists():
            if read_text(path) == text:
                return path
            raise FileExistsError(f"Chat record already exists: {path}")
        atomic_write_text(path, text)
        logger.info("Created %s (%d messages)", self.display_path(path), len(export.messages))
        return path

    def append(self, path: Union[str, Path], new_messages: Sequence[Message], prior_count: int) -> Path:
        """Add ``new_messages`` after the ``prior_count`` messages already in the record."""
        p = Path(path)
        if not new_messages:
            return p
        if record_format(p) == "json":
            current = self.read(p)
            if current is None:
                raise FileNotFoundError(f"Chat record not found: {p}")
            updated = current.with_messages(list(current.messages) + list(new_messages))
            atomic_write_text(p, format_as_json(updated))
        else:
            existing = read_text(p)
            atomic_write_text(p, render_append(existing, new_messages, prior_count > 0))
        logger.info("Appended %d messages to %s", len(new_messages), self.display_path(p))
        return p

    def replace(self, path: Union[str, Path], export: ConversationExport) -> Path:
        """Re-render the whole record from ``export``, keeping its file name."""
        p = Path(path)
        export = export.with_chat_id(record_id(p))
        atomic_write_text(p, render(export, record_format(p)))
        logger.info("Replaced %s (%d messages)", self.display_path(p), len(export.messages))
        return p
