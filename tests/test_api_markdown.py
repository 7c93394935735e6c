def test_tokens(client):
    resp = client.post("/api/markdown/tokens", json={"text": "`**bold**` and *it*"})
    assert resp.status_code == 200
    assert resp.json()["spans"] == [
        {"type": "code", "value": "**bold**"},
        {"type": "text", "value": " and "},
        {"type": "italic", "value": "it"},
    ]


def test_blocks(client):
    resp = client.post("/api/markdown/blocks", json={"content": "- a\n- b\n\ntext"})
    assert resp.json()["blocks"] == [
        {"type": "bullet_list", "items": ["a", "b"]},
        {"type": "blank"},
        {"type": "paragraph", "text": "text"},
    ]


def test_tree_round_trip_through_api(client):
    data = client.post("/api/markdown/tree", json={"content": "## Title\n\n- a"}).json()
    assert data["html"] == '<div class="notes-popup__rich-h">Title</div><div><br></div><ul><li>a</li></ul>'
    assert data["tree"]["kind"] == "root"

    back = client.post("/api/markdown/from-tree", json={"tree": data["tree"]})
    assert back.status_code == 200
    assert back.json()["content"] == "# Title\n\n- a"


def test_from_html(client):
    resp = client.post("/api/markdown/from-html", json={"html": "<h1>Hi</h1><div>there <em>you</em></div>"})
    assert resp.json()["content"] == "# Hi\nthere *you*"


def test_preview_and_snippet(client):
    preview = client.post("/api/markdown/preview", json={"content": "# Hi\ntext"}).json()
    assert [n["kind"] for n in preview["nodes"]] == ["heading", "paragraph"]
    assert 'class="notes-popup__preview"' in preview["html"]

    resp = client.post("/api/markdown/snippet", json={"content": "\n# Title\ncontent"})
    assert resp.json() == {"snippet": "Title"}


def test_root(client):
    assert client.get("/").json()["service"] == "taskbar-notes"
