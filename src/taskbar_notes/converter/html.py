"""HTML bridge for browser-hosted rich editors.

`tree_to_html` renders the markup a contentEditable surface starts from;
`html_to_tree` reads the surface's (user-edited) markup back into an
`EditableTree` so `from_editable_tree` can turn it into note text.

Recognized tags: div, p, h1-h6 (plus the heading class), ul, ol, li,
strong/b, em/i, code, br. Anything else is kept as an `element` node, whose
text still reaches the output through the deserializer's fallback.
"""

from __future__ import annotations

from html import escape
from html.parser import HTMLParser

from .deserializer import from_editable_tree
from .serializer import to_editable_tree
from .tree import EditableTree, NodeKind

HEADING_CLASS = "notes-popup__rich-h"

_INLINE_TAGS: dict[NodeKind, str] = {
    NodeKind.BOLD: "strong",
    NodeKind.ITALIC: "em",
    NodeKind.CODE: "code",
}
_TAG_KINDS: dict[str, NodeKind] = {
    "strong": NodeKind.BOLD,
    "b": NodeKind.BOLD,
    "em": NodeKind.ITALIC,
    "i": NodeKind.ITALIC,
    "code": NodeKind.CODE,
    "ul": NodeKind.LIST,
    "ol": NodeKind.LIST,
    "li": NodeKind.LIST_ITEM,
    "div": NodeKind.PARAGRAPH,
    "p": NodeKind.PARAGRAPH,
}
_HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
_VOID_TAGS = {"br", "img", "hr", "input", "meta", "link", "wbr"}


def markdown_to_html(content: str) -> str:
    return tree_to_html(to_editable_tree(content))


def html_to_markdown(markup: str) -> str:
    return from_editable_tree(html_to_tree(markup))


def tree_to_html(tree: EditableTree) -> str:
    return "".join(_node_html(tree, n.id) for n in tree.children(tree.root))


def _node_html(tree: EditableTree, node_id: int) -> str:
    n = tree.node(node_id)
    inner = "".join(_node_html(tree, c) for c in n.children)
    if n.kind == NodeKind.TEXT:
        return escape(n.text)
    if n.kind == NodeKind.LINE_BREAK:
        return "<br>"
    if n.kind in _INLINE_TAGS:
        tag = _INLINE_TAGS[n.kind]
        return f"<{tag}>{inner}</{tag}>"
    if n.kind == NodeKind.HEADING:
        if n.level:
            return f"<h{n.level}>{inner}</h{n.level}>"
        return f'<div class="{HEADING_CLASS}">{inner}</div>'
    if n.kind == NodeKind.LIST:
        return f"<ul>{inner}</ul>"
    if n.kind == NodeKind.LIST_ITEM:
        return f"<li>{inner}</li>"
    if n.kind == NodeKind.ELEMENT:
        tag = n.tag or "span"
        return f"<{tag}>{inner}</{tag}>"
    return f"<div>{inner}</div>"


def html_to_tree(markup: str) -> EditableTree:
    """Parse editor markup into a tree. Malformed markup never raises."""
    parser = _RichHTMLParser()
    parser.feed(markup or "")
    parser.close()
    return parser.tree


class _RichHTMLParser(HTMLParser):
    """Mirror the element structure into tree nodes, tag by tag."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.tree = EditableTree()
        self._stack: list[tuple[str, int]] = []  # (tag, node id)

    def _current(self) -> int:
        return self._stack[-1][1] if self._stack else self.tree.root

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        attrs_d = dict((k, v or "") for k, v in attrs)
        if tag == "br":
            self.tree.append(self._current(), NodeKind.LINE_BREAK)
            return
        if tag in _VOID_TAGS:
            return
        if tag in _HEADING_TAGS:
            node_id = self.tree.append(self._current(), NodeKind.HEADING, level=int(tag[1]))
        elif tag == "div" and HEADING_CLASS in attrs_d.get("class", "").split():
            node_id = self.tree.append(self._current(), NodeKind.HEADING)
        elif tag in _TAG_KINDS:
            node_id = self.tree.append(self._current(), _TAG_KINDS[tag])
        else:
            node_id = self.tree.append(self._current(), NodeKind.ELEMENT, tag=tag)
        self._stack.append((tag, node_id))

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self.handle_starttag(tag, attrs)
        if tag not in _VOID_TAGS and self._stack and self._stack[-1][0] == tag:
            self._stack.pop()

    def handle_endtag(self, tag: str) -> None:
        # Close the innermost matching element; stray end tags are ignored.
        for depth in range(len(self._stack) - 1, -1, -1):
            if self._stack[depth][0] == tag:
                del self._stack[depth:]
                return

    def handle_data(self, data: str) -> None:
        if not data:
            return
        parent = self._current()
        siblings = self.tree.children(parent)
        if siblings and siblings[-1].kind == NodeKind.TEXT:
            siblings[-1].text += data
            return
        self.tree.append(parent, NodeKind.TEXT, text=data)
