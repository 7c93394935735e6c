"""Note text → editable tree.

One top-level node per parsed block:
- blank: `blank` holding a `line_break` placeholder, so runs of empty lines
  survive in the editor instead of collapsing
- heading: `heading` container (tagged, no native level)
- bullet list: `list` with one `list_item` per item
- paragraph: `paragraph` container
"""

from __future__ import annotations

from .blocks import Block, BulletList, Heading, Paragraph, parse_blocks
from .inline import SpanKind, tokenize
from .tree import EditableTree, NodeKind

_SPAN_NODES: dict[SpanKind, NodeKind] = {
    SpanKind.BOLD: NodeKind.BOLD,
    SpanKind.ITALIC: NodeKind.ITALIC,
    SpanKind.CODE: NodeKind.CODE,
}


def to_editable_tree(content: str) -> EditableTree:
    """Build a fresh tree for `content`. Pure: equal input, equal tree shape."""
    tree = EditableTree()
    for block in parse_blocks(content):
        _append_block(tree, block)
    return tree


def _append_block(tree: EditableTree, block: Block) -> None:
    if isinstance(block, Heading):
        _append_inline(tree, tree.append(tree.root, NodeKind.HEADING), block.text)
    elif isinstance(block, BulletList):
        list_id = tree.append(tree.root, NodeKind.LIST)
        for item in block.items:
            _append_inline(tree, tree.append(list_id, NodeKind.LIST_ITEM), item)
    elif isinstance(block, Paragraph):
        _append_inline(tree, tree.append(tree.root, NodeKind.PARAGRAPH), block.text)
    else:
        blank_id = tree.append(tree.root, NodeKind.BLANK)
        tree.append(blank_id, NodeKind.LINE_BREAK)


def _append_inline(tree: EditableTree, parent_id: int, text: str) -> None:
    for span in tokenize(text):
        kind = _SPAN_NODES.get(span.kind)
        if kind is None:
            tree.append(parent_id, NodeKind.TEXT, text=span.value)
            continue
        wrapper_id = tree.append(parent_id, kind)
        tree.append(wrapper_id, NodeKind.TEXT, text=span.value)
