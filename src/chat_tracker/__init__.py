"""Chat tracker: persist copied AI chat transcripts as Markdown/JSON records.

Each capture is reconciled against the most recent record in
``<workspace>/.cursor/chat/``: continuations are appended, an edited first
prompt replaces the record, anything else starts a new record.

Typical usage
-------------
from chat_tracker import ChatRecorder, ChatStore
recorder = ChatRecorder(ChatStore("."))
recorder.capture_text(clipboard_text)

or, over HTTP:

python scripts/run_server.py --host 127.0.0.1 --port 8000
"""

from __future__ import annotations

from .capture import CaptureResult, ChatRecorder
from .models import ChatMetadata, ConversationExport, Message
from .parser import parse_text_as_chat
from .reconcile import MergeAction, MergePlan, is_continuation, is_edited_prompt, plan_merge
from .store import ChatStore

__all__ = [
    "CaptureResult",
    "ChatMetadata",
    "ChatRecorder",
    "ChatStore",
    "ConversationExport",
    "MergeAction",
    "MergePlan",
    "Message",
    "__version__",
    "create_app",
    "get_version",
    "is_continuation",
    "is_edited_prompt",
    "parse_text_as_chat",
    "plan_merge",
]

# ---------------------------------------------------------------------
# Version handling
# ---------------------------------------------------------------------
__version__ = "0.1.0"

def get_version() -> str:
    """Return the package version."""
    return __version__


def create_app(*args, **kwargs):
    """Return a configured FastAPI application.

    Imported lazily so the core package works without the web stack loaded.
    """
    from .server import create_app as _create_app

    return _create_app(*args, **kwargs)
