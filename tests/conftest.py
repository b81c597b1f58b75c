"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import os
import sys
from pathlib import Path
import pytest

# Ensure src/ is on the import path (for local imports without installing as package)
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from chat_tracker.capture import ChatRecorder  # noqa: E402
from chat_tracker.store import ChatStore  # noqa: E402


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the root directory of the project."""
    return Path(__file__).resolve().parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """The shipped config/default.yaml."""
    return project_root / "config" / "default.yaml"


@pytest.fixture(scope="function")
def workspace(tmp_path: Path) -> Path:
    """An empty workspace root; records land in <workspace>/.cursor/chat."""
    d = tmp_path / "workspace"
    d.mkdir(parents=True, exist_ok=True)
    return d


@pytest.fixture(scope="function")
def store(workspace: Path) -> ChatStore:
    return ChatStore(workspace)


@pytest.fixture(scope="function")
def recorder(store: ChatStore) -> ChatRecorder:
    return ChatRecorder(store)


@pytest.fixture(scope="function")
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Ensure tests run with a clean environment (no leftover vars)."""
    for var in list(os.environ):
        if var == "CHAT_TRACKER_CONFIG" or var.startswith("CHAT_TRACKER__"):
            monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture(scope="function")
def age():
    """Push a file's mtime into the past so a later write is unambiguously newer."""

    def _age(path: Path, seconds: int = 60) -> None:
        st = path.stat()
        os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns - seconds * 1_000_000_000))

    return _age
