import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def client():
    from taskbar_notes.main import app

    # One portal for the whole test so debounce timers share the app's event loop.
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def store(tmp_path):
    from taskbar_notes.services.note_store import JsonNoteStore

    return JsonNoteStore(tmp_path)


@pytest.fixture(autouse=True)
def _fresh_storage(tmp_path, monkeypatch):
    # Ensure deterministic tests across runs.
    from taskbar_notes.api import routes
    from taskbar_notes.services.note_store import JsonNoteStore

    monkeypatch.setenv("NOTES_DATA_DIR", str(tmp_path))
    monkeypatch.setattr(routes, "_store", JsonNoteStore(tmp_path))
    monkeypatch.setattr(routes, "_session", None)
    yield


@pytest.fixture(autouse=True)
def _reset_sse_exit_event():
    from sse_starlette.sse import AppStatus

    # The exit event binds to the loop of the first stream; each TestClient has its own loop.
    if hasattr(AppStatus, "should_exit_event"):
        AppStatus.should_exit_event = None
    yield
