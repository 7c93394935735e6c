import json


def test_empty_list(client):
    data = client.get("/api/notes").json()
    assert data == {"notes": [], "total": 0}
    session = client.get("/api/session").json()
    assert session["mode"] == "list"
    assert session["selected_id"] is None


def test_create_edit_close_persists(client, store):
    note = client.post("/api/notes", json={}).json()
    assert note["title"] == "Nova nota"

    session = client.get("/api/session").json()
    assert session["mode"] == "edit"
    assert session["selected_id"] == note["id"]
    assert session["editor_html"] == "<div><br></div>"

    edited = client.post("/api/session/content", json={"content": "## Hi\nthere"}).json()
    assert edited["save_state"] == "dirty"
    assert edited["editor_html"] == '<div class="notes-popup__rich-h">Hi</div><div>there</div>'

    closed = client.post("/api/session/close").json()
    assert closed["save_state"] == "saved"
    assert closed["save_label"] == "Salvo"
    assert closed["mode"] == "list"

    listed = client.get("/api/notes").json()
    assert listed["total"] == 1
    assert listed["notes"][0]["snippet"] == "Hi"
    # Closing writes the rich surface back in canonical form.
    assert store.list_notes()[0].content == "# Hi\nthere"


def test_rich_markup_edit(client, store):
    client.post("/api/notes", json={"title": "Rich"})
    resp = client.post("/api/session/content", json={"html": "<div><b>hey</b></div>"})
    assert resp.status_code == 200
    assert resp.json()["selected"]["content"] == "**hey**"
    client.post("/api/session/close")
    assert store.list_notes()[0].content == "**hey**"


def test_dev_mode_rejects_markup(client):
    client.post("/api/notes", json={})
    assert client.post("/api/session/dev-mode").json()["dev_mode"] is True
    resp = client.post("/api/session/content", json={"html": "<div>x</div>"})
    assert resp.status_code == 400


def test_select_and_mode(client, store):
    a = store.create_note("A")
    resp = client.post("/api/session/select", json={"note_id": a.id})
    assert resp.json()["mode"] == "view"
    assert client.post("/api/session/select", json={"note_id": "missing"}).status_code == 404
    assert client.post("/api/session/mode", json={"mode": "edit"}).json()["mode"] == "edit"


def test_mode_and_edits_need_a_selection(client):
    assert client.post("/api/session/mode", json={"mode": "view"}).status_code == 409
    assert client.post("/api/session/content", json={"content": "x"}).status_code == 409
    assert client.post("/api/session/mode", json={"mode": "sideways"}).status_code == 422


def test_delete(client, store):
    note = client.post("/api/notes", json={}).json()
    resp = client.delete(f"/api/notes/{note['id']}")
    assert resp.json() == {"deleted": note["id"]}
    assert store.list_notes() == []
    assert client.get("/api/session").json()["mode"] == "list"
    assert client.delete("/api/notes/nope").status_code == 404


def test_stream_reports_save_states(client):
    client.post("/api/notes", json={})
    client.post("/api/session/content", json={"content": "streamed"})
    client.post("/api/session/close")

    with client.stream("GET", "/api/session/stream") as r:
        assert r.status_code == 200
        text = b"".join(list(r.iter_bytes())).decode("utf-8", errors="replace")
    assert "event: save_state" in text
    assert "event: settled" in text
    data_lines = [json.loads(line[len("data: ") :]) for line in text.splitlines() if line.startswith("data: ")]
    assert data_lines[-1]["state"] == "saved"
    assert "dirty" in [d["state"] for d in data_lines]


def test_stream_resumes_after_an_index(client):
    client.post("/api/notes", json={})
    client.post("/api/session/content", json={"content": "x"})
    client.post("/api/session/close")

    # idle (load), idle (create), dirty, saving, saved
    with client.stream("GET", "/api/session/stream?after=3") as r:
        text = b"".join(list(r.iter_bytes())).decode("utf-8", errors="replace")
    data_lines = [json.loads(line[len("data: ") :]) for line in text.splitlines() if line.startswith("data: ")]
    assert [d["state"] for d in data_lines] == ["saving", "saved", "saved"]
    assert data_lines[-1]["index"] == 5
