"""Read-only rendering of note text: display nodes, view-mode HTML, list snippets."""

from __future__ import annotations

from dataclasses import dataclass
from html import escape
from typing import Any

from .blocks import (
    BULLET_RE,
    HEADING_RE,
    Block,
    BulletList,
    Heading,
    Paragraph,
    parse_blocks,
    split_lines,
)
from .inline import SpanKind, tokenize

# CSS classes of the notes popup preview.
CLASS_PREVIEW = "notes-popup__preview"
CLASS_SPACER = "notes-popup__spacer"
CLASS_HEADING = "notes-popup__h"
CLASS_LIST = "notes-popup__ul"
CLASS_PARAGRAPH = "notes-popup__p"
CLASS_INLINE_CODE = "notes-popup__inline-code"

_INLINE_TAGS: dict[SpanKind, tuple[str, str]] = {
    # span kind -> (display kind, html tag)
    SpanKind.TEXT: ("text", "span"),
    SpanKind.BOLD: ("strong", "strong"),
    SpanKind.ITALIC: ("em", "em"),
    SpanKind.CODE: ("code", "code"),
}


@dataclass(frozen=True)
class DisplayNode:
    kind: str  # spacer | heading | list | item | paragraph | text | strong | em | code
    text: str = ""
    css_class: str = ""
    children: tuple[DisplayNode, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"kind": self.kind}
        if self.text:
            out["text"] = self.text
        if self.css_class:
            out["class"] = self.css_class
        if self.children:
            out["children"] = [c.to_dict() for c in self.children]
        return out


def render_preview(content: str) -> list[DisplayNode]:
    return [_display_block(b) for b in parse_blocks(content)]


def _display_block(block: Block) -> DisplayNode:
    if isinstance(block, Heading):
        return DisplayNode("heading", css_class=CLASS_HEADING, children=render_inline(block.text))
    if isinstance(block, BulletList):
        items = tuple(DisplayNode("item", children=render_inline(it)) for it in block.items)
        return DisplayNode("list", css_class=CLASS_LIST, children=items)
    if isinstance(block, Paragraph):
        return DisplayNode("paragraph", css_class=CLASS_PARAGRAPH, children=render_inline(block.text))
    return DisplayNode("spacer", css_class=CLASS_SPACER)


def render_inline(text: str) -> tuple[DisplayNode, ...]:
    nodes = []
    for span in tokenize(text):
        kind, _tag = _INLINE_TAGS[span.kind]
        css = CLASS_INLINE_CODE if span.kind == SpanKind.CODE else ""
        nodes.append(DisplayNode(kind, text=span.value, css_class=css))
    return tuple(nodes)


def render_preview_html(content: str) -> str:
    """View-mode markup for `content`; every text run is escaped."""
    parts = [f'<div class="{CLASS_PREVIEW}">']
    for node in render_preview(content):
        parts.append(_node_html(node))
    parts.append("</div>")
    return "".join(parts)


_BLOCK_TAGS = {"spacer": "div", "heading": "div", "paragraph": "div", "list": "ul", "item": "li"}
_INLINE_HTML = {kind: tag for kind, tag in _INLINE_TAGS.values()}


def _node_html(node: DisplayNode) -> str:
    tag = _BLOCK_TAGS.get(node.kind) or _INLINE_HTML.get(node.kind, "span")
    attrs = f' class="{node.css_class}"' if node.css_class else ""
    inner = escape(node.text) + "".join(_node_html(c) for c in node.children)
    return f"<{tag}{attrs}>{inner}</{tag}>"


def snippet(content: str) -> str:
    """First non-blank line as plain text, one heading or bullet marker removed."""
    line = next((ln.strip() for ln in split_lines(content) if ln.strip()), "")
    line = HEADING_RE.sub("", line, count=1)
    return BULLET_RE.sub("", line, count=1)
