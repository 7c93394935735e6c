"""Remote notes service client: list, create, update and delete notes over HTTP."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..models import Note
from .note_store import NoteNotFoundError, StorageError, sort_notes

logger = logging.getLogger(__name__)


def _raise_http_error(resp: httpx.Response, *, hint: str = "") -> None:
    body = ""
    try:
        body = resp.text
    except Exception:
        body = "<unreadable body>"
    msg = f"HTTP {resp.status_code} for {resp.request.method} {resp.request.url}\nResponse body: {body}"
    if hint:
        msg = hint + "\n" + msg
    if resp.status_code == 404:
        raise NoteNotFoundError(msg)
    raise StorageError(msg)


def _unwrap(data: Any, url: str) -> Any:
    # Services may answer {code: 0, msg: "ok", data: {...}} or the bare payload.
    if isinstance(data, dict) and "code" in data and "data" in data:
        if data.get("code") not in (0, None):
            raise StorageError(f"Notes API error for {url}: {data.get('msg')} (code={data.get('code')})")
        return data.get("data")
    return data


class RemoteNoteStore:
    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport

    def _request(self, method: str, path: str, *, payload: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        headers: dict[str, str] = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.request(method, url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise StorageError(f"Notes service unreachable ({method} {url}): {e}") from e
        if resp.status_code >= 400:
            _raise_http_error(resp)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            data = resp.json()
        except ValueError as e:
            raise StorageError(f"Notes service returned invalid JSON for {method} {url}") from e
        return _unwrap(data, url)

    def _note(self, data: Any, url_hint: str) -> Note:
        if isinstance(data, dict) and isinstance(data.get("note"), dict):
            data = data["note"]
        try:
            return Note.model_validate(data)
        except ValidationError as e:
            raise StorageError(f"Unexpected note payload from {url_hint}: {data!r}") from e

    def list_notes(self) -> list[Note]:
        """GET /notes."""
        data = self._request("GET", "/notes")
        if isinstance(data, dict):
            data = data.get("notes") or data.get("items") or []
        return sort_notes([self._note(item, "/notes") for item in data or []])

    def create_note(self, title: str | None = None) -> Note:
        """POST /notes."""
        payload: dict[str, Any] = {}
        if title is not None:
            payload["title"] = title
        return self._note(self._request("POST", "/notes", payload=payload), "/notes")

    def update_note(self, note_id: str, title: str, content: str) -> Note:
        """PUT /notes/{id}; the service answers with a fresh updated_at."""
        path = f"/notes/{note_id}"
        data = self._request("PUT", path, payload={"title": title, "content": content})
        note = self._note(data, path)
        logger.debug("Remote note %s updated at %s", note.id, note.updated_at)
        return note

    def delete_note(self, note_id: str) -> None:
        """DELETE /notes/{id}."""
        self._request("DELETE", f"/notes/{note_id}")
