"""Note storage: the collaborator contract and the local notes.json store.

Every note lives in one JSON array file. Writes go to `notes.json.tmp` first
and replace the real file, so a crash mid-write keeps the previous notes.
"""

from __future__ import annotations

import json
import logging
import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from ..config import NOTES_DATA_DIR, NOTES_DEFAULT_TITLE
from ..models import Note

logger = logging.getLogger(__name__)

_PROJECT_DIR = Path(__file__).resolve().parents[3]
_DEFAULT_DATA_DIR = _PROJECT_DIR / ".data"
NOTES_FILENAME = "notes.json"


class StorageError(RuntimeError):
    """A storage call failed; the message is meant for the user."""


class NoteNotFoundError(StorageError):
    pass


class NoteStorage(Protocol):
    """create/list/update/delete by id; ids and timestamps are assigned here."""

    def list_notes(self) -> list[Note]:
        pass

    def create_note(self, title: str | None = None) -> Note:
        pass

    def update_note(self, note_id: str, title: str, content: str) -> Note:
        pass

    def delete_note(self, note_id: str) -> None:
        pass


def now_rfc3339() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_note_id(existing: list[Note]) -> str:
    base = int(time.time() * 1000)
    taken = {n.id for n in existing}
    suffix = 0
    while True:
        note_id = f"note_{base}" if suffix == 0 else f"note_{base}_{suffix}"
        if note_id not in taken:
            return note_id
        suffix += 1


def sort_notes(notes: list[Note]) -> list[Note]:
    """Most recently updated first."""
    return sorted(notes, key=lambda n: n.updated_at or "", reverse=True)


class JsonNoteStore:
    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self.path = self.data_dir / NOTES_FILENAME

    def _load(self) -> list[Note]:
        if not self.path.exists():
            return []
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read notes: {e}") from e
        if not raw.strip():
            return []
        try:
            data = json.loads(raw)
            return [Note.model_validate(item) for item in data]
        except (ValueError, TypeError, ValidationError) as e:
            raise StorageError(f"Failed to parse notes: {e}") from e

    def _save(self, notes: list[Note]) -> None:
        tmp = self.path.with_suffix(".json.tmp")
        payload = json.dumps([n.model_dump() for n in notes], ensure_ascii=False, indent=2)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload, encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise StorageError(f"Failed to write notes: {e}") from e

    def list_notes(self) -> list[Note]:
        return sort_notes(self._load())

    def create_note(self, title: str | None = None) -> Note:
        notes = self._load()
        note = Note(
            id=generate_note_id(notes),
            title=title if title is not None else NOTES_DEFAULT_TITLE,
            content="",
            updated_at=now_rfc3339(),
        )
        notes.append(note)
        self._save(notes)
        logger.info("Created note %s", note.id)
        return note

    def update_note(self, note_id: str, title: str, content: str) -> Note:
        notes = self._load()
        for idx, existing in enumerate(notes):
            if existing.id == note_id:
                break
        else:
            raise NoteNotFoundError("Note not found")
        updated = Note(id=note_id, title=title, content=content, updated_at=now_rfc3339())
        notes[idx] = updated
        self._save(notes)
        return updated

    def delete_note(self, note_id: str) -> None:
        notes = self._load()
        remaining = [n for n in notes if n.id != note_id]
        self._save(remaining)
        logger.info("Deleted note %s", note_id)


def build_store() -> NoteStorage:
    """Storage selected by NOTES_BACKEND."""
    from ..config import NOTES_API_TOKEN, NOTES_BACKEND, NOTES_REMOTE_URL

    if NOTES_BACKEND == "remote":
        from .notes_client import RemoteNoteStore

        if not NOTES_REMOTE_URL:
            raise ValueError("NOTES_BACKEND=remote requires NOTES_REMOTE_URL")
        return RemoteNoteStore(NOTES_REMOTE_URL, token=NOTES_API_TOKEN)
    data_dir = os.environ.get("NOTES_DATA_DIR") or NOTES_DATA_DIR or _DEFAULT_DATA_DIR
    return JsonNoteStore(data_dir)
