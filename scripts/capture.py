"""Capture a chat transcript from a file (or stdin) into the workspace's chat records.

Usage:
    python scripts/capture.py transcript.md
    pbpaste | python scripts/capture.py --workspace ~/projects/app --format json
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

SRC_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from chat_tracker.capture import ChatRecorder  # noqa: E402
from chat_tracker.config import load_config  # noqa: E402
from chat_tracker.store import ChatStore  # noqa: E402

logger = logging.getLogger("chat_tracker.cli")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Capture a chat transcript into .cursor/chat/.")
    parser.add_argument("file", nargs="?", help="Transcript file (default: read stdin)")
    parser.add_argument("--workspace", default=None, help="Workspace root (default: from config)")
    parser.add_argument("--format", choices=["md", "json"], default=None, help="Format for a new record")
    parser.add_argument("--config", default=None, help="Path to a YAML config file")
    args = parser.parse_args(argv)

    cfg = load_config(args.config)
    level = str(cfg.get("logging", {}).get("level", "INFO")).upper()
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    ws_cfg = cfg.get("workspace", {})
    store = ChatStore(
        args.workspace or ws_cfg.get("root") or ".",
        chat_dir=ws_cfg.get("chat_dir") or ".cursor/chat",
    )
    recorder = ChatRecorder(store, fmt=args.format or str(cfg.get("export", {}).get("format", "md")))

    try:
        text = Path(args.file).read_text(encoding="utf-8") if args.file else sys.stdin.read()
        result = recorder.capture_text(text)
    except OSError as e:
        logger.error("%s", e)
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
