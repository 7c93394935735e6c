"""Editable tree → note text.

The tree may have been reshaped freely by edit commands or by a host's own
markup, so block types are inferred from each top-level node rather than
assumed to match what `to_editable_tree` produced.
"""

from __future__ import annotations

from .blocks import BULLET_RE, HEADING_RE, is_bullet_line
from .tree import EditableTree, Node, NodeKind

_BLOCK_CONTAINERS = frozenset({NodeKind.PARAGRAPH, NodeKind.BLANK, NodeKind.HEADING})


def from_editable_tree(tree: EditableTree) -> str:
    """Reconstruct the canonical text. Trailing blank lines are never written."""
    writer = _LineWriter()
    for node in tree.children(tree.root):
        _write_block(tree, node, writer)
    return writer.text()


class _LineWriter:
    """Collects output lines; holds back the blank line that closes a list.

    The separator is only needed when the next line is another bullet, which
    would otherwise continue the list on re-parse. Everywhere else it would add
    a spacer the source never had.
    """

    def __init__(self) -> None:
        self.lines: list[str] = []
        self._separator_pending = False

    def push(self, line: str) -> None:
        if self._separator_pending:
            self._separator_pending = False
            if is_bullet_line(line.split("\n", 1)[0]):
                self.lines.append("")
        self.lines.append(line)

    def end_list(self) -> None:
        # Pending rather than written: push() emits it only before another bullet line.
        self._separator_pending = True

    def text(self) -> str:
        lines = list(self.lines)
        while lines and lines[-1] == "":
            lines.pop()
        return "\n".join(lines)


def _write_block(tree: EditableTree, node: Node, writer: _LineWriter) -> None:
    if node.kind == NodeKind.TEXT:
        text = node.text.strip()
        if text:
            writer.push(_plain_lines(text))
        return

    if node.kind == NodeKind.LIST:
        for item in tree.children(node.id):
            if item.kind != NodeKind.LIST_ITEM:
                continue
            text = flatten_inline(tree, item.id).strip()
            writer.push(f"- {text}" if text else "- ")
        writer.end_list()
        return

    if node.kind in _BLOCK_CONTAINERS or _is_block_element(node):
        text = flatten_inline(tree, node.id).rstrip()
        if not text.strip():
            writer.push("")
            return
        if node.kind == NodeKind.HEADING:
            writer.push(f"# {text.strip()}")
        else:
            writer.push(_plain_lines(text.strip()))
        return

    fallback = tree.text_content(node.id).strip()
    if fallback:
        writer.push(_plain_lines(fallback))


def _plain_lines(text: str) -> str:
    """Keep non-heading text from re-parsing as a heading or bullet.

    A leading marker is moved onto its own line: `- buy milk` becomes
    `-\nbuy milk`, which parses back to the same paragraph text.
    """
    return "\n".join(_split_markers(line) for line in text.split("\n"))


def _split_markers(line: str) -> str:
    parts = []
    rest = line.strip()
    while True:
        match = HEADING_RE.match(rest) or BULLET_RE.match(rest)
        if match is None or not rest[match.end() :]:
            break
        parts.append(match.group().strip())
        rest = rest[match.end() :]
    if not parts:
        return line
    return "\n".join(parts + [rest])


def _is_block_element(node: Node) -> bool:
    return node.kind == NodeKind.ELEMENT and (node.tag or "").lower() in ("div", "p", "section")


def flatten_inline(tree: EditableTree, node_id: int) -> str:
    """Markdown for the inline content under `node_id` (children only)."""
    return "".join(_inline_to_markdown(tree, child) for child in tree.children(node_id))


def _inline_to_markdown(tree: EditableTree, node: Node) -> str:
    if node.kind == NodeKind.TEXT:
        return node.text
    if node.kind == NodeKind.LINE_BREAK:
        return "\n"
    if node.kind == NodeKind.CODE:
        # Code spans hold raw text; styles inside them are not written.
        return f"`{tree.text_content(node.id)}`"
    inner = flatten_inline(tree, node.id)
    if node.kind == NodeKind.BOLD:
        return f"**{inner}**"
    if node.kind == NodeKind.ITALIC:
        return f"*{inner}*"
    return inner
