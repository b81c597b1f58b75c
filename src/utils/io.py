from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union

PathLike = Union[str, Path]


def ensure_dir(p: PathLike) -> Path:
    """Ensure that a directory exists, returning it as a Path."""
    p = Path(p)
    try:
        p.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OSError(f"Failed to create directory {p}: {e}") from e
    return p


def read_text(path: PathLike) -> str:
    """Read a UTF-8 text file."""
    p = Path(path)
    try:
        return p.read_text(encoding="utf-8")
    except OSError as e:
        raise OSError(f"Failed to read {p}: {e}") from e


def atomic_write_text(path: PathLike, text: str) -> None:
    """Write text to ``path`` via a temp file in the same directory and a rename.

    Readers either see the previous content or the new content, never a
    partially written document.
    """
    p = Path(path)
    ensure_dir(p.parent)
    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", newline="", delete=False, dir=str(p.parent), suffix=".tmp"
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, p)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise OSError(f"Failed to write file {p}: {e}") from e


def read_json(path: PathLike) -> Any:
    """Load a JSON document. Raises ValueError on malformed content."""
    text = read_text(path)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Malformed JSON in {path}: {e}") from e

