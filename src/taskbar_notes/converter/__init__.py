"""Note text ⇄ editable tree converter, preview renderer and snippet helper."""

from .inline import InlineSpan, SpanKind, tokenize
from .blocks import Blank, Block, BulletList, Heading, Paragraph, parse_blocks
from .tree import EditableTree, Node, NodeKind, Position, Selection, TreeEditError
from .serializer import to_editable_tree
from .deserializer import from_editable_tree
from .preview import DisplayNode, render_preview, render_preview_html, snippet
from .html import html_to_markdown, html_to_tree, markdown_to_html, tree_to_html

__all__ = [
    "InlineSpan",
    "SpanKind",
    "tokenize",
    "Blank",
    "Block",
    "BulletList",
    "Heading",
    "Paragraph",
    "parse_blocks",
    "EditableTree",
    "Node",
    "NodeKind",
    "Position",
    "Selection",
    "TreeEditError",
    "to_editable_tree",
    "from_editable_tree",
    "DisplayNode",
    "render_preview",
    "render_preview_html",
    "snippet",
    "html_to_markdown",
    "html_to_tree",
    "markdown_to_html",
    "tree_to_html",
]
