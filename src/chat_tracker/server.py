"""FastAPI application that accepts chat captures and persists them."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .capture import ChatRecorder
from .config import load_config
from .parser import parse_messages
from .store import ChatStore

logger = logging.getLogger(__name__)


# -----------------------------
# Pydantic request/response
# -----------------------------
class CaptureRequest(BaseModel):
    text: Optional[str] = Field(default=None, description="Raw transcript text as copied.")
    messages: Optional[List[Dict[str, Any]]] = Field(
        default=None, description="Already structured [{role, content}] messages."
    )
    format: Optional[Literal["md", "json"]] = Field(default=None, description="Format for a new record.")


class CaptureResponse(BaseModel):
    action: str
    path: Optional[str] = None
    display_path: Optional[str] = None
    message_count: int = 0
    new_message_count: int = 0


class RecordInfo(BaseModel):
    path: str
    display_path: str
    modified: str


# -----------------------------
# Utilities
# -----------------------------
def _make_recorder(cfg: Dict[str, Any]) -> ChatRecorder:
    ws_cfg = cfg.get("workspace", {})
    store = ChatStore(
        str(ws_cfg.get("root") or "."),
        chat_dir=str(ws_cfg.get("chat_dir") or ".cursor/chat"),
    )
    fmt = str(cfg.get("export", {}).get("format", "md"))
    return ChatRecorder(store, fmt=fmt)


# -----------------------------
# App factory
# -----------------------------
def create_app(
    config_path: Optional[str] = None,
    recorder: Optional[ChatRecorder] = None,
) -> FastAPI:
    cfg = load_config(config_path)

    cors_origins = cfg.get("server", {}).get("cors_origins", ["*"])
    recorder = recorder or _make_recorder(cfg)
    store = recorder.store

    app = FastAPI(title="Chat Tracker", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {
            "ok": True,
            "chat_dir": str(store.chat_dir),
            "format": recorder.fmt,
        }

    @app.get("/config")
    def get_config() -> JSONResponse:
        return JSONResponse(dict(cfg))

    # Sync handler: runs on the thread pool, the recorder lock serializes captures.
    @app.post("/capture", response_model=CaptureResponse)
    def capture(req: CaptureRequest):
        try:
            if req.messages is not None:
                result = recorder.capture(parse_messages(req.messages), fmt=req.format)
            else:
                result = recorder.capture_text(req.text, fmt=req.format)
        except OSError as e:
            logger.error("Capture failed: %s", e)
            raise HTTPException(status_code=500, detail=str(e)) from e
        return CaptureResponse(**result.to_dict())

    @app.get("/chats", response_model=List[RecordInfo])
    def list_chats():
        out: List[RecordInfo] = []
        for p in store.list_records():
            modified = datetime.fromtimestamp(p.stat().st_mtime, tz=timezone.utc)
            out.append(
                RecordInfo(
                    path=str(p),
                    display_path=store.display_path(p),
                    modified=modified.isoformat(timespec="seconds"),
                )
            )
        return out

    @app.get("/chats/latest")
    def latest_chat() -> Dict[str, Any]:
        export = recorder.latest()
        if export is None:
            raise HTTPException(status_code=404, detail="No chat records yet.")
        return export.to_record()

    return app
