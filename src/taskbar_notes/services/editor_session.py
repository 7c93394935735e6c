"""Editor session: list/view/edit modes, rich vs raw ("dev") editing, debounced saves.

The local copy of each note is the source of truth. Every mutation updates it
immediately, marks the session dirty and restarts the debounce timer; when the
timer fires the latest local copy is sent to storage. Saves are chained so at
most one is in flight, and a failed save keeps the local copy so the next edit
retries it.

Runs on a single asyncio loop. Storage calls are blocking and go through
`asyncio.to_thread`.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Callable

from ..config import NOTES_DEFAULT_TITLE, NOTES_SAVE_DEBOUNCE_MS
from ..converter import (
    EditableTree,
    NodeKind,
    Selection,
    from_editable_tree,
    html_to_tree,
    to_editable_tree,
    tree_to_html,
)
from ..models import Note
from .note_store import NoteStorage, sort_notes

logger = logging.getLogger(__name__)


class ViewMode(str, Enum):
    LIST = "list"
    VIEW = "view"
    EDIT = "edit"


class SaveState(str, Enum):
    IDLE = "idle"
    DIRTY = "dirty"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


# Status line shown next to the editor.
SAVE_LABELS = {
    SaveState.SAVING: "Salvando...",
    SaveState.ERROR: "Falha ao salvar",
    SaveState.SAVED: "Salvo",
    SaveState.DIRTY: "Alterações pendentes",
}

# Save-state events kept for the stream; older ones are dropped.
MAX_EVENTS = 200

EventCallback = Callable[[str, dict[str, Any]], None]


def save_label(state: SaveState, last_saved_at: str | None) -> str:
    if state in SAVE_LABELS:
        return SAVE_LABELS[state]
    return "Salvo" if last_saved_at else ""


def wrap_text(value: str, start: int, end: int, before: str, after: str) -> tuple[str, int, int]:
    """Wrap value[start:end] in markers; returns (new value, caret start, caret end)."""
    start = max(0, min(start, len(value)))
    end = max(start, min(end, len(value)))
    selected = value[start:end]
    new_value = value[:start] + before + selected + after + value[end:]
    caret_start = start + len(before)
    return new_value, caret_start, caret_start + len(selected)


def bulletize(value: str, start: int, end: int) -> str:
    """Prefix every non-blank line of the selection with `- `."""
    start = max(0, min(start, len(value)))
    end = max(start, min(end, len(value)))
    lines = value[start:end].replace("\r\n", "\n").split("\n")
    middle = "\n".join(f"- {ln}" if ln.strip() else ln for ln in lines)
    return value[:start] + middle + value[end:]


class EditorSession:
    def __init__(
        self,
        storage: NoteStorage,
        *,
        debounce: float | None = None,
        default_title: str = NOTES_DEFAULT_TITLE,
        on_event: EventCallback | None = None,
        max_events: int = MAX_EVENTS,
    ) -> None:
        self.storage = storage
        self.debounce = NOTES_SAVE_DEBOUNCE_MS / 1000 if debounce is None else debounce
        self.default_title = default_title
        self.notes: list[Note] = []
        self.selected_id: str | None = None
        self.mode = ViewMode.LIST
        self.dev_mode = False
        self.save_state = SaveState.IDLE
        self.last_saved_at: str | None = None
        self.tree: EditableTree | None = None
        self.events: list[dict[str, Any]] = []
        self.events_offset = 0  # absolute index of events[0]
        self.max_events = max_events
        self._on_event = on_event or (lambda k, d: None)
        self._unsubscribe: Callable[[], None] | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._pending_id: str | None = None
        self._inflight: asyncio.Task | None = None

    # ----- state -----

    @property
    def selected(self) -> Note | None:
        return self._find(self.selected_id)

    @property
    def save_pending(self) -> bool:
        return self._timer is not None or (self._inflight is not None and not self._inflight.done())

    @property
    def editor_html(self) -> str | None:
        return tree_to_html(self.tree) if self.tree is not None else None

    def _find(self, note_id: str | None) -> Note | None:
        if note_id is None:
            return None
        return next((n for n in self.notes if n.id == note_id), None)

    def _replace(self, note: Note) -> None:
        self.notes = [note if n.id == note.id else n for n in self.notes]

    def _set_state(self, state: SaveState, **extra: Any) -> None:
        self.save_state = state
        data = {
            "state": state.value,
            "label": save_label(state, self.last_saved_at),
            "last_saved_at": self.last_saved_at,
            **extra,
        }
        self.events.append({"kind": "save_state", "data": data})
        overflow = len(self.events) - self.max_events
        if overflow > 0:
            del self.events[:overflow]
            self.events_offset += overflow
        self._on_event("save_state", data)

    def events_since(self, index: int) -> tuple[list[dict[str, Any]], int]:
        """Events from absolute `index` on (dropped ones are skipped), and the next index."""
        start = max(0, index - self.events_offset)
        return self.events[start:], self.events_offset + len(self.events)

    def snapshot(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "dev_mode": self.dev_mode,
            "selected_id": self.selected_id,
            "save_state": self.save_state.value,
            "save_label": save_label(self.save_state, self.last_saved_at),
            "last_saved_at": self.last_saved_at,
            "selected": self.selected,
            "editor_html": self.editor_html,
        }

    # ----- notes -----

    async def load(self) -> list[Note]:
        """Fetch the note list; a failure is logged and leaves the list empty."""
        try:
            notes = await asyncio.to_thread(self.storage.list_notes)
        except Exception as e:
            logger.warning("Failed to load notes: %s", e)
            return self.notes
        self.notes = sort_notes(notes)
        first = self.notes[0] if self.notes else None
        if self._find(self.selected_id) is None:
            self.selected_id = first.id if first else None
            if self.mode != ViewMode.LIST:
                self._leave_editor()
                self.mode = ViewMode.LIST
        self.last_saved_at = first.updated_at if first else None
        self._set_state(SaveState.IDLE)
        return self.notes

    async def create(self, title: str | None = None) -> Note:
        self.flush()
        try:
            note = await asyncio.to_thread(self.storage.create_note, title or self.default_title)
        except Exception as e:
            logger.warning("Failed to create note: %s", e)
            raise
        self._leave_editor()
        self.notes.insert(0, note)
        self.selected_id = note.id
        self.last_saved_at = note.updated_at
        if not self.save_pending:
            self._set_state(SaveState.IDLE)
        self.mode = ViewMode.LIST
        self.set_mode(ViewMode.EDIT)
        return note

    async def remove(self) -> None:
        """Delete the selected note and fall back to the list."""
        note = self.selected
        if note is None:
            return
        had_pending = self._pending_id == note.id and self._timer is not None
        if had_pending:
            self._timer.cancel()
            self._timer = None
            self._pending_id = None
        try:
            await asyncio.to_thread(self.storage.delete_note, note.id)
        except Exception as e:
            logger.warning("Failed to delete note: %s", e)
            if had_pending:
                self._schedule_save(note.id)
            raise
        self._leave_editor()
        self.notes = [n for n in self.notes if n.id != note.id]
        self.selected_id = self.notes[0].id if self.notes else None
        self.mode = ViewMode.LIST
        self.last_saved_at = None
        if not self.save_pending:
            self._set_state(SaveState.IDLE)

    def select(self, note_id: str) -> Note:
        if self._find(note_id) is None:
            raise ValueError(f"Unknown note: {note_id}")
        self.flush()
        self._leave_editor()
        self.selected_id = note_id
        self.mode = ViewMode.VIEW
        return self._find(note_id)  # type: ignore[return-value]

    def set_mode(self, mode: ViewMode) -> bool:
        """Switch mode; view and edit need a selected note."""
        if mode != ViewMode.LIST and self.selected is None:
            return False
        if mode == self.mode:
            return True
        if self.mode == ViewMode.EDIT:
            self.flush()
            self._leave_editor()
        self.mode = mode
        if mode == ViewMode.EDIT and not self.dev_mode:
            self._mount_tree()
        return True

    def toggle_dev_mode(self) -> bool:
        """Swap the rich surface for raw text (or back). Returns the new dev mode."""
        if not self.dev_mode:
            self.flush()
            self._leave_editor()
            self.dev_mode = True
        else:
            self.dev_mode = False
            if self.mode == ViewMode.EDIT:
                self._mount_tree()
        return self.dev_mode

    # ----- edits -----

    def update_selected(self, *, title: str | None = None, content: str | None = None) -> Note | None:
        note = self.selected
        if note is None:
            return None
        updates: dict[str, Any] = {}
        if title is not None:
            updates["title"] = title
        if content is not None:
            updates["content"] = content
        if not updates:
            return note
        updated = note.model_copy(update=updates)
        self._replace(updated)
        self._schedule_save(updated.id)
        return updated

    def edit_text(self, *, title: str | None = None, content: str | None = None) -> Note | None:
        """A title or raw-text edit from the host; a mounted rich surface is rebuilt."""
        note = self.update_selected(title=title, content=content)
        if content is not None and self.tree is not None:
            self._mount_tree()
        return note

    def flush(self) -> None:
        """Write the rich surface back into the note's text, synchronously."""
        if self.tree is None or self.dev_mode:
            return
        note = self.selected
        if note is None:
            return
        content = from_editable_tree(self.tree)
        if content != (note.content or ""):
            self.update_selected(content=content)

    def set_editor_html(self, markup: str) -> Note | None:
        """Take the host's current rich-surface markup as the edited tree."""
        if self.mode != ViewMode.EDIT or self.dev_mode:
            raise ValueError("The rich editor is not active")
        self._attach_tree(html_to_tree(markup))
        self.flush()
        return self.selected

    def apply_wrap(self, selection: Selection, kind: NodeKind) -> None:
        """Toolbar bold/italic/code on the rich surface."""
        if self.tree is None:
            raise ValueError("The rich editor is not active")
        self.tree.wrap_selection(selection, kind)

    def apply_bullets(self, block_id: int) -> None:
        if self.tree is None:
            raise ValueError("The rich editor is not active")
        self.tree.toggle_bullets(block_id)

    def apply_raw_wrap(self, start: int, end: int, before: str, after: str) -> tuple[int, int]:
        """Toolbar wrap in dev mode; returns the caret range to restore."""
        note = self.selected
        if note is None:
            return 0, 0
        value, caret_start, caret_end = wrap_text(note.content or "", start, end, before, after)
        self.update_selected(content=value)
        return caret_start, caret_end

    def apply_raw_bullets(self, start: int, end: int) -> None:
        note = self.selected
        if note is None:
            return
        self.update_selected(content=bulletize(note.content or "", start, end))

    # ----- rich surface -----

    def _mount_tree(self) -> None:
        note = self.selected
        if note is None:
            return
        self._attach_tree(to_editable_tree(note.content or ""))

    def _attach_tree(self, tree: EditableTree) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self.tree = tree
        self._unsubscribe = tree.subscribe(self._on_tree_edit)

    def _leave_editor(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None
        self.tree = None

    def _on_tree_edit(self, tree: EditableTree) -> None:
        if tree is self.tree:
            self.flush()

    # ----- persistence -----

    def _schedule_save(self, note_id: str) -> None:
        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            if self._pending_id is not None and self._pending_id != note_id:
                # A different note is still waiting: send it now rather than drop it.
                self._fire_save(self._pending_id)
        self._pending_id = note_id
        self._set_state(SaveState.DIRTY, note_id=note_id)
        self._timer = loop.call_later(self.debounce, self._fire_save, note_id)

    def _fire_save(self, note_id: str) -> None:
        self._timer = None
        if self._pending_id == note_id:
            self._pending_id = None
        previous = self._inflight
        self._inflight = asyncio.get_running_loop().create_task(self._save(note_id, previous))

    async def _save(self, note_id: str, previous: asyncio.Task | None) -> None:
        if previous is not None:
            await previous
        note = self._find(note_id)
        if note is None:
            return
        sent = (note.title, note.content)
        self._set_state(SaveState.SAVING, note_id=note_id)
        try:
            updated = await asyncio.to_thread(self.storage.update_note, note.id, note.title, note.content)
        except Exception as e:
            logger.warning("Failed to save note %s: %s", note_id, e)
            self._set_state(SaveState.ERROR, note_id=note_id, error=str(e))
            return

        local = self._find(note_id)
        changed_since = local is not None and (local.title, local.content) != sent
        if local is not None:
            if changed_since:
                self._replace(local.model_copy(update={"updated_at": updated.updated_at}))
            else:
                self._replace(updated)
            self.notes = sort_notes(self.notes)
        self.last_saved_at = updated.updated_at
        logger.debug("Saved note %s at %s", note_id, updated.updated_at)
        if changed_since or self._timer is not None:
            self._set_state(SaveState.DIRTY, note_id=note_id)
        else:
            self._set_state(SaveState.SAVED, note_id=note_id)

    async def flush_save(self) -> None:
        """Send any pending save now and wait for saves in flight."""
        if self._timer is not None and self._pending_id is not None:
            self._timer.cancel()
            self._fire_save(self._pending_id)
        if self._inflight is not None:
            await self._inflight

    async def close(self) -> None:
        """Popup closed: keep the surface's text, persist it, back to the list."""
        self.flush()
        self._leave_editor()
        await self.flush_save()
        self.mode = ViewMode.LIST
