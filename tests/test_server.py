from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from chat_tracker.capture import ChatRecorder
from chat_tracker.server import create_app
from chat_tracker.store import ChatStore


@pytest.fixture
def client(recorder: ChatRecorder, tmp_path: Path, clean_env) -> TestClient:
    app = create_app(config_path=str(tmp_path / "missing.yaml"), recorder=recorder)
    return TestClient(app)


TRANSCRIPT_1 = "**User**\n\nHello\n\n---\n\n**Cursor**\n\nHi there!\n"
TRANSCRIPT_2 = TRANSCRIPT_1 + "\n---\n\n**User**\n\nHow are you?\n\n---\n\n**Cursor**\n\nGood.\n"


def test_health(client: TestClient, store: ChatStore):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["chat_dir"] == str(store.chat_dir)
    assert body["format"] == "md"


def test_capture_create_then_append(client: TestClient, store: ChatStore):
    r1 = client.post("/capture", json={"text": TRANSCRIPT_1})
    assert r1.status_code == 200
    assert r1.json()["action"] == "create"
    assert r1.json()["message_count"] == 2

    r2 = client.post("/capture", json={"text": TRANSCRIPT_2})
    body = r2.json()
    assert body["action"] == "append"
    assert body["new_message_count"] == 2
    assert body["path"] == r1.json()["path"]
    assert body["display_path"].startswith(".cursor")

    content = Path(body["path"]).read_text(encoding="utf-8")
    assert "How are you?" in content and "Hi there!" in content


def test_capture_structured_messages_as_json(client: TestClient):
    r = client.post(
        "/capture",
        json={
            "messages": [{"role": "user", "content": "Q"}, {"role": "assistant", "content": "A"}],
            "format": "json",
        },
    )
    assert r.status_code == 200
    assert r.json()["action"] == "create"
    assert r.json()["path"].endswith(".json")


def test_empty_capture_is_noop(client: TestClient):
    r = client.post("/capture", json={"text": "   "})
    assert r.status_code == 200
    assert r.json() == {
        "action": "noop",
        "path": None,
        "display_path": None,
        "message_count": 0,
        "new_message_count": 0,
    }


def test_bad_format_is_rejected(client: TestClient):
    r = client.post("/capture", json={"text": TRANSCRIPT_1, "format": "html"})
    assert r.status_code == 422


def test_write_failure_is_a_500(client: TestClient, store: ChatStore, monkeypatch):
    def boom(*args, **kwargs):
        raise OSError("Failed to write file: disk full")

    monkeypatch.setattr(store, "create", boom)
    r = client.post("/capture", json={"text": TRANSCRIPT_1})
    assert r.status_code == 500
    assert "disk full" in r.json()["detail"]


def test_chats_listing_and_latest(client: TestClient):
    assert client.get("/chats").json() == []
    assert client.get("/chats/latest").status_code == 404

    client.post("/capture", json={"text": TRANSCRIPT_1})
    listing = client.get("/chats").json()
    assert len(listing) == 1
    assert listing[0]["display_path"].startswith(".cursor")

    latest = client.get("/chats/latest").json()
    assert [m["content"] for m in latest["messages"]] == ["Hello", "Hi there!"]
    assert latest["metadata"]["messageCount"] == 2


def test_app_from_config(tmp_path: Path, clean_env, monkeypatch):
    monkeypatch.setenv("CHAT_TRACKER__WORKSPACE__ROOT", str(tmp_path))
    monkeypatch.setenv("CHAT_TRACKER__EXPORT__FORMAT", "json")
    client = TestClient(create_app(config_path=str(tmp_path / "missing.yaml")))
    r = client.post("/capture", json={"text": "User: hi\nAssistant: hello"})
    assert r.json()["action"] == "create"
    assert r.json()["display_path"].startswith(".cursor")
    assert r.json()["path"].endswith(".json")
    assert (tmp_path / ".cursor" / "chat").is_dir()


def test_structured_recapture_with_whitespace_is_a_duplicate(client: TestClient, store: ChatStore):
    payload = {"messages": [{"role": "user", "content": "p1\n"}, {"role": "assistant", "content": "r1\n"}]}
    first = client.post("/capture", json=payload).json()
    second = client.post("/capture", json=payload).json()
    assert first["action"] == "create"
    assert second["action"] == "duplicate"
    assert len(client.get("/chats").json()) == 1


def test_numeric_workspace_root_from_env(tmp_path: Path, clean_env, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CHAT_TRACKER__WORKSPACE__ROOT", "2024")
    client = TestClient(create_app(config_path=str(tmp_path / "missing.yaml")))
    r = client.post("/capture", json={"text": "User: hi\nAssistant: hello"})
    assert r.status_code == 200
    assert (tmp_path / "2024" / ".cursor" / "chat").is_dir()
