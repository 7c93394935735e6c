"""Pydantic models for notes and API request/response."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class Note(BaseModel):
    id: str
    title: str = ""
    content: str = ""
    updated_at: str = ""


class NoteListItem(Note):
    snippet: str = ""


class NoteListResponse(BaseModel):
    notes: list[NoteListItem]
    total: int


class CreateNoteRequest(BaseModel):
    title: str | None = None


class TextRequest(BaseModel):
    text: str = ""


class ContentRequest(BaseModel):
    content: str = ""


class TreeRequest(BaseModel):
    tree: dict[str, Any] = Field(default_factory=dict)


class HtmlRequest(BaseModel):
    html: str = ""


class TokensResponse(BaseModel):
    spans: list[dict[str, str]]


class BlocksResponse(BaseModel):
    blocks: list[dict[str, Any]]


class TreeResponse(BaseModel):
    tree: dict[str, Any]
    html: str


class ContentResponse(BaseModel):
    content: str


class PreviewResponse(BaseModel):
    nodes: list[dict[str, Any]]
    html: str


class SnippetResponse(BaseModel):
    snippet: str


class SelectRequest(BaseModel):
    note_id: str


class ModeRequest(BaseModel):
    mode: Literal["list", "view", "edit"]


class SessionEditRequest(BaseModel):
    """One edit from the host: raw text, the rich surface's markup, or a title."""

    title: str | None = None
    content: str | None = None
    html: str | None = None


class SessionResponse(BaseModel):
    mode: Literal["list", "view", "edit"]
    dev_mode: bool
    selected_id: str | None = None
    save_state: Literal["idle", "dirty", "saving", "saved", "error"]
    save_label: str = ""
    last_saved_at: str | None = None
    selected: Note | None = None
    editor_html: str | None = None
