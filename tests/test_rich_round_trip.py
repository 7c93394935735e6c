import pytest

from taskbar_notes.converter import (
    EditableTree,
    NodeKind,
    Paragraph,
    from_editable_tree,
    html_to_markdown,
    parse_blocks,
    to_editable_tree,
)

WELL_FORMED = [
    "# Shopping\n\n- milk\n- **eggs**\n\nremember the `receipt`",
    "plain note",
    "first paragraph\n\nsecond *paragraph*",
    "- a\n- b\n\n- c",
    "# One\n# Two\ntext",
    "intro\n\n\n\nafter a gap",
    "- only a list",
    "-\ntext",
    "#\nh",
    "##\n*i*",
    "-\n-\nx",
    "",
]


@pytest.mark.parametrize("content", WELL_FORMED)
def test_round_trip_keeps_blocks(content):
    out = from_editable_tree(to_editable_tree(content))
    assert parse_blocks(out) == parse_blocks(content)


@pytest.mark.parametrize("content", WELL_FORMED)
def test_serializer_is_deterministic(content):
    a = to_editable_tree(content).to_dict(with_ids=False)
    b = to_editable_tree(content).to_dict(with_ids=False)
    assert a == b


def test_canonical_output():
    assert from_editable_tree(to_editable_tree("## Title")) == "# Title"
    assert from_editable_tree(to_editable_tree("line one\nline two")) == "line one line two"
    assert from_editable_tree(to_editable_tree("* x")) == "- x"


def test_list_followed_by_text_has_no_extra_blank():
    assert from_editable_tree(to_editable_tree("- a\ntext")) == "- a\ntext"
    assert from_editable_tree(to_editable_tree("- a\n- b\n\ntext")) == "- a\n- b\n\ntext"


def test_adjacent_lists_stay_separate():
    tree = EditableTree()
    for item in ("a", "b"):
        list_id = tree.append(tree.root, NodeKind.LIST)
        li = tree.append(list_id, NodeKind.LIST_ITEM)
        tree.append(li, NodeKind.TEXT, text=item)
    out = from_editable_tree(tree)
    assert out == "- a\n\n- b"
    assert len(parse_blocks(out)) == 3


def test_serialized_shape():
    tree = to_editable_tree("# **Hi** there\n\n- `x`")
    assert tree.to_dict(with_ids=False) == {
        "kind": "root",
        "children": [
            {
                "kind": "heading",
                "children": [
                    {"kind": "bold", "children": [{"kind": "text", "text": "Hi"}]},
                    {"kind": "text", "text": " there"},
                ],
            },
            {"kind": "blank", "children": [{"kind": "line_break"}]},
            {
                "kind": "list",
                "children": [
                    {
                        "kind": "list_item",
                        "children": [{"kind": "code", "children": [{"kind": "text", "text": "x"}]}],
                    }
                ],
            },
        ],
    }


def test_trailing_blank_lines_are_dropped():
    tree = to_editable_tree("x")
    for _ in range(3):
        blank = tree.append(tree.root, NodeKind.BLANK)
        tree.append(blank, NodeKind.LINE_BREAK)
    assert from_editable_tree(tree) == "x"
    assert from_editable_tree(to_editable_tree("x\n\n\n")) == "x"


def test_reshaped_tree_is_inferred():
    tree = EditableTree()
    tree.append(tree.root, NodeKind.TEXT, text="  stray  ")
    tree.append(tree.root, NodeKind.HEADING, level=2)
    h = tree.children()[-1].id
    tree.append(h, NodeKind.TEXT, text="Native")
    span = tree.append(tree.root, NodeKind.ELEMENT, tag="span")
    bold = tree.append(span, NodeKind.BOLD)
    tree.append(bold, NodeKind.TEXT, text="loose")
    para = tree.append(tree.root, NodeKind.PARAGRAPH)
    tree.append(para, NodeKind.TEXT, text="a")
    tree.append(para, NodeKind.LINE_BREAK)
    tree.append(para, NodeKind.TEXT, text="b")
    assert from_editable_tree(tree) == "stray\n# Native\nloose\na\nb"


def test_list_items_and_code_content():
    tree = EditableTree()
    list_id = tree.append(tree.root, NodeKind.LIST)
    tree.append(list_id, NodeKind.TEXT, text="not an item")
    empty = tree.append(list_id, NodeKind.LIST_ITEM)
    tree.append(empty, NodeKind.LINE_BREAK)
    item = tree.append(list_id, NodeKind.LIST_ITEM)
    code = tree.append(item, NodeKind.CODE)
    bold = tree.append(code, NodeKind.BOLD)
    tree.append(bold, NodeKind.TEXT, text="raw")
    assert from_editable_tree(tree) == "- \n- `raw`"


def test_paragraph_starting_with_a_marker_stays_a_paragraph():
    assert parse_blocks("-\nbuy milk") == [Paragraph("- buy milk")]
    out = from_editable_tree(to_editable_tree("-\nbuy milk"))
    assert out == "-\nbuy milk"
    assert parse_blocks(out) == [Paragraph("- buy milk")]


def test_markers_typed_into_a_paragraph_are_not_promoted():
    tree = EditableTree()
    para = tree.append(tree.root, NodeKind.PARAGRAPH)
    tree.append(para, NodeKind.TEXT, text="# not a heading")
    assert from_editable_tree(tree) == "#\nnot a heading"
    assert html_to_markdown("<div>- buy milk</div>") == "-\nbuy milk"
