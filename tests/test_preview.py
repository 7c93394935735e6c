from taskbar_notes.converter.preview import (
    CLASS_INLINE_CODE,
    CLASS_PARAGRAPH,
    CLASS_PREVIEW,
    render_preview,
    render_preview_html,
    snippet,
)


def test_snippet_first_line_without_markers():
    assert snippet("# Title\ncontent") == "Title"
    assert snippet("\n\n  - item one\nrest") == "item one"
    assert snippet("") == ""
    assert snippet("   \n\n") == ""


def test_snippet_is_plain_text():
    assert snippet("**bold** start") == "**bold** start"


def test_render_preview_nodes():
    nodes = render_preview("# Hi\n\n- a\ntext *x* `y`")
    assert [n.kind for n in nodes] == ["heading", "spacer", "list", "paragraph"]
    para = nodes[-1]
    assert para.css_class == CLASS_PARAGRAPH
    assert [(c.kind, c.text) for c in para.children] == [
        ("text", "text "),
        ("em", "x"),
        ("text", " "),
        ("code", "y"),
    ]
    assert para.children[-1].css_class == CLASS_INLINE_CODE
    assert nodes[2].to_dict() == {
        "kind": "list",
        "class": "notes-popup__ul",
        "children": [{"kind": "item", "children": [{"kind": "text", "text": "a"}]}],
    }


def test_preview_html_escapes_text():
    html = render_preview_html("a < b & **<c>**")
    assert html.startswith(f'<div class="{CLASS_PREVIEW}">')
    assert "a &lt; b &amp; " in html
    assert "<strong>&lt;c&gt;</strong>" in html
    assert "<c>" not in html
