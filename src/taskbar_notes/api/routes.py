"""API routes: converter functions, notes, and the editor session."""

from __future__ import annotations

import asyncio
import json
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException
from sse_starlette.sse import EventSourceResponse

from ..converter import (
    EditableTree,
    from_editable_tree,
    html_to_markdown,
    parse_blocks,
    render_preview,
    render_preview_html,
    snippet,
    to_editable_tree,
    tokenize,
    tree_to_html,
)
from ..converter.blocks import block_to_dict
from ..models import (
    BlocksResponse,
    ContentRequest,
    ContentResponse,
    CreateNoteRequest,
    HtmlRequest,
    ModeRequest,
    Note,
    NoteListItem,
    NoteListResponse,
    PreviewResponse,
    SelectRequest,
    SessionEditRequest,
    SessionResponse,
    SnippetResponse,
    TextRequest,
    TokensResponse,
    TreeRequest,
    TreeResponse,
)
from ..services.editor_session import EditorSession, ViewMode
from ..services.note_store import NoteNotFoundError, NoteStorage, StorageError, build_store

router = APIRouter(prefix="/api", tags=["api"])

_store: NoteStorage | None = None
_session: EditorSession | None = None
STREAM_POLL_SECONDS = 0.1


def get_store() -> NoteStorage:
    global _store
    if _store is None:
        _store = build_store()
    return _store


async def get_session() -> EditorSession:
    global _session
    if _session is None:
        _session = EditorSession(get_store())
        await _session.load()
    return _session


def _session_response(session: EditorSession) -> SessionResponse:
    return SessionResponse(**session.snapshot())


# ----- converter -----


@router.post("/markdown/tokens", response_model=TokensResponse)
async def api_tokens(body: TextRequest):
    """Inline spans of one line."""
    return TokensResponse(spans=[s.to_dict() for s in tokenize(body.text)])


@router.post("/markdown/blocks", response_model=BlocksResponse)
async def api_blocks(body: ContentRequest):
    return BlocksResponse(blocks=[block_to_dict(b) for b in parse_blocks(body.content)])


@router.post("/markdown/tree", response_model=TreeResponse)
async def api_tree(body: ContentRequest):
    """Editable tree for note text, plus the rich editor's initial markup."""
    tree = to_editable_tree(body.content)
    return TreeResponse(tree=tree.to_dict(), html=tree_to_html(tree))


@router.post("/markdown/from-tree", response_model=ContentResponse)
async def api_from_tree(body: TreeRequest):
    return ContentResponse(content=from_editable_tree(EditableTree.from_dict(body.tree)))


@router.post("/markdown/from-html", response_model=ContentResponse)
async def api_from_html(body: HtmlRequest):
    return ContentResponse(content=html_to_markdown(body.html))


@router.post("/markdown/preview", response_model=PreviewResponse)
async def api_preview(body: ContentRequest):
    nodes = render_preview(body.content)
    return PreviewResponse(nodes=[n.to_dict() for n in nodes], html=render_preview_html(body.content))


@router.post("/markdown/snippet", response_model=SnippetResponse)
async def api_snippet(body: ContentRequest):
    return SnippetResponse(snippet=snippet(body.content))


# ----- notes -----


@router.get("/notes", response_model=NoteListResponse)
async def api_notes_list(session: EditorSession = Depends(get_session)):
    """Notes, most recently updated first, each with its list snippet."""
    items = [NoteListItem(**n.model_dump(), snippet=snippet(n.content)) for n in session.notes]
    return NoteListResponse(notes=items, total=len(items))


@router.post("/notes", response_model=Note)
async def api_notes_create(body: CreateNoteRequest, session: EditorSession = Depends(get_session)):
    """Create a note and open it in the editor."""
    try:
        return await session.create(body.title)
    except StorageError as e:
        raise HTTPException(502, str(e))


@router.delete("/notes/{note_id}")
async def api_notes_delete(note_id: str, session: EditorSession = Depends(get_session)):
    try:
        session.select(note_id)
        await session.remove()
    except ValueError as e:
        raise HTTPException(404, str(e))
    except NoteNotFoundError as e:
        raise HTTPException(404, str(e))
    except StorageError as e:
        raise HTTPException(502, str(e))
    return {"deleted": note_id}


# ----- editor session -----


@router.get("/session", response_model=SessionResponse)
async def api_session(session: EditorSession = Depends(get_session)):
    return _session_response(session)


@router.post("/session/select", response_model=SessionResponse)
async def api_session_select(body: SelectRequest, session: EditorSession = Depends(get_session)):
    try:
        session.select(body.note_id)
    except ValueError as e:
        raise HTTPException(404, str(e))
    return _session_response(session)


@router.post("/session/mode", response_model=SessionResponse)
async def api_session_mode(body: ModeRequest, session: EditorSession = Depends(get_session)):
    if not session.set_mode(ViewMode(body.mode)):
        raise HTTPException(409, "Select a note first")
    return _session_response(session)


@router.post("/session/dev-mode", response_model=SessionResponse)
async def api_session_dev_mode(session: EditorSession = Depends(get_session)):
    """Toggle between the rich surface and raw text."""
    session.toggle_dev_mode()
    return _session_response(session)


@router.post("/session/content", response_model=SessionResponse)
async def api_session_content(body: SessionEditRequest, session: EditorSession = Depends(get_session)):
    """Apply one edit from the host. Saving is debounced."""
    if session.selected is None:
        raise HTTPException(409, "Select a note first")
    try:
        if body.html is not None:
            session.set_editor_html(body.html)
        if body.title is not None or body.content is not None:
            session.edit_text(title=body.title, content=body.content)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return _session_response(session)


@router.post("/session/close", response_model=SessionResponse)
async def api_session_close(session: EditorSession = Depends(get_session)):
    """Popup closed: persist pending edits now."""
    await session.close()
    return _session_response(session)


@router.get("/session/stream")
async def api_session_stream(after: int = 0, session: EditorSession = Depends(get_session)):
    """SSE of save-state events from index `after`; ends once no save is pending."""

    async def event_generator() -> AsyncGenerator[dict, None]:
        last_index = max(0, after)
        while True:
            events, next_index = session.events_since(last_index)
            for ev in events:
                yield {"event": ev["kind"], "data": json.dumps(ev["data"], ensure_ascii=False)}
            last_index = max(last_index, next_index)
            if not session.save_pending:
                yield {
                    "event": "settled",
                    "data": json.dumps({"state": session.save_state.value, "index": last_index}),
                }
                break
            await asyncio.sleep(STREAM_POLL_SECONDS)

    return EventSourceResponse(event_generator())
