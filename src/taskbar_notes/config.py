"""Load settings from environment (.env and env vars)."""

from __future__ import annotations

import os
from pathlib import Path

# Load .env from project root if present
_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
if _env_path.exists():
    from dotenv import load_dotenv
    load_dotenv(_env_path)


def _str(key: str, default: str = "") -> str:
    return (os.environ.get(key) or "").strip() or default


def _int(key: str, default: int) -> int:
    try:
        return int(_str(key) or default)
    except ValueError:
        return default


# Storage: "local" (notes.json in NOTES_DATA_DIR) or "remote" (HTTP notes service)
NOTES_BACKEND = _str("NOTES_BACKEND", "local").lower()
NOTES_DATA_DIR = _str("NOTES_DATA_DIR")
NOTES_REMOTE_URL = _str("NOTES_REMOTE_URL")
NOTES_API_TOKEN = _str("NOTES_API_TOKEN") or None

# Editor
NOTES_SAVE_DEBOUNCE_MS = _int("NOTES_SAVE_DEBOUNCE_MS", 350)
NOTES_DEFAULT_TITLE = _str("NOTES_DEFAULT_TITLE") or "Nova nota"

NOTES_LOG_LEVEL = _str("NOTES_LOG_LEVEL", "INFO").upper()
