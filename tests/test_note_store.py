import json
from types import SimpleNamespace

import pytest

from taskbar_notes.models import Note
from taskbar_notes.services import note_store
from taskbar_notes.services.note_store import (
    JsonNoteStore,
    NoteNotFoundError,
    StorageError,
    generate_note_id,
    sort_notes,
)


def test_create_assigns_id_title_and_timestamp(store, tmp_path):
    note = store.create_note()
    assert note.id.startswith("note_")
    assert note.title == "Nova nota"
    assert note.content == ""
    assert note.updated_at
    saved = json.loads((tmp_path / "notes.json").read_text(encoding="utf-8"))
    assert saved[0]["id"] == note.id


def test_list_is_most_recent_first(store):
    a = store.create_note("a")
    b = store.create_note("b")
    assert [n.id for n in store.list_notes()] == [b.id, a.id]
    store.update_note(a.id, "a", "changed")
    notes = store.list_notes()
    assert notes[0].id == a.id
    assert notes[0].content == "changed"


def test_update_refreshes_timestamp(store):
    note = store.create_note()
    updated = store.update_note(note.id, "New", "body")
    assert updated.title == "New"
    assert updated.updated_at >= note.updated_at


def test_update_missing_note(store):
    with pytest.raises(NoteNotFoundError):
        store.update_note("nope", "t", "c")


def test_delete(store):
    note = store.create_note()
    store.delete_note(note.id)
    assert store.list_notes() == []


def test_missing_or_empty_file_is_no_notes(tmp_path):
    assert JsonNoteStore(tmp_path / "fresh").list_notes() == []
    (tmp_path / "notes.json").write_text("  ", encoding="utf-8")
    assert JsonNoteStore(tmp_path).list_notes() == []


def test_corrupt_file_raises_storage_error(tmp_path):
    (tmp_path / "notes.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError):
        JsonNoteStore(tmp_path).list_notes()


def test_generated_ids_do_not_collide(monkeypatch):
    monkeypatch.setattr(note_store, "time", SimpleNamespace(time=lambda: 1.0))
    assert generate_note_id([]) == "note_1000"
    taken = [Note(id="note_1000"), Note(id="note_1000_1")]
    assert generate_note_id(taken) == "note_1000_2"


def test_sort_notes():
    notes = [
        Note(id="old", updated_at="2026-01-01T00:00:00+00:00"),
        Note(id="new", updated_at="2026-02-01T00:00:00+00:00"),
    ]
    assert [n.id for n in sort_notes(notes)] == ["new", "old"]


def test_build_store_remote_needs_url(monkeypatch):
    from taskbar_notes import config

    monkeypatch.setattr(config, "NOTES_BACKEND", "remote")
    monkeypatch.setattr(config, "NOTES_REMOTE_URL", "")
    with pytest.raises(ValueError):
        note_store.build_store()

    monkeypatch.setattr(config, "NOTES_REMOTE_URL", "http://notes.local/api")
    remote = note_store.build_store()
    assert remote.base_url == "http://notes.local/api"
