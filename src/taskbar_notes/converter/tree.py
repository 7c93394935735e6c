"""Editable rich-text tree: a mutable node arena driven by explicit edit commands.

Nodes live in a dict keyed by integer id and point at their parent and
children by id. Building a tree (`append`, `insert`, `remove`) is silent;
user edits go through the command methods, each of which notifies
subscribers exactly once after the tree has been updated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator


class NodeKind(str, Enum):
    ROOT = "root"
    BLANK = "blank"
    HEADING = "heading"
    LIST = "list"
    LIST_ITEM = "list_item"
    PARAGRAPH = "paragraph"
    BOLD = "bold"
    ITALIC = "italic"
    CODE = "code"
    TEXT = "text"
    LINE_BREAK = "line_break"
    ELEMENT = "element"  # markup the editor has no dedicated kind for


INLINE_WRAPPERS = frozenset({NodeKind.BOLD, NodeKind.ITALIC, NodeKind.CODE})
# Kinds that directly hold inline content.
TEXT_BLOCKS = frozenset(
    {NodeKind.BLANK, NodeKind.HEADING, NodeKind.PARAGRAPH, NodeKind.LIST_ITEM}
)

TreeListener = Callable[["EditableTree"], None]


class TreeEditError(ValueError):
    """An edit command that cannot be applied to the current tree."""


@dataclass
class Node:
    id: int
    kind: NodeKind
    text: str = ""
    level: int | None = None  # native heading level (h1-h6), None for tagged headings
    tag: str | None = None
    parent: int | None = None
    children: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class Position:
    """Caret: char offset inside a text node, or child index inside a container."""

    node_id: int
    offset: int


@dataclass(frozen=True)
class Selection:
    """A range inside a single text node."""

    node_id: int
    start: int
    end: int


class EditableTree:
    def __init__(self) -> None:
        self._nodes: dict[int, Node] = {}
        self._next_id = 1
        self._listeners: list[TreeListener] = []
        self.root = self._new(NodeKind.ROOT)

    # ----- reading -----

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def node(self, node_id: int) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise TreeEditError(f"Unknown node id: {node_id}") from None

    def children(self, node_id: int | None = None) -> list[Node]:
        n = self.node(self.root if node_id is None else node_id)
        return [self._nodes[c] for c in n.children]

    def parent(self, node_id: int) -> Node | None:
        p = self.node(node_id).parent
        return self._nodes[p] if p is not None else None

    def text_content(self, node_id: int) -> str:
        """Plain text of a subtree; line breaks contribute nothing."""
        n = self.node(node_id)
        if n.kind == NodeKind.TEXT:
            return n.text
        return "".join(self.text_content(c) for c in n.children)

    def walk(self, node_id: int | None = None) -> Iterator[Node]:
        """Depth-first, document order, starting node included."""
        n = self.node(self.root if node_id is None else node_id)
        yield n
        for c in list(n.children):
            yield from self.walk(c)

    def block_of(self, node_id: int) -> Node:
        """Nearest enclosing top-level block or list item."""
        n = self.node(node_id)
        while n.parent is not None:
            parent = self._nodes[n.parent]
            if parent.kind in (NodeKind.ROOT, NodeKind.LIST):
                return n
            n = parent
        raise TreeEditError("The root is not inside a block")

    def to_dict(self, node_id: int | None = None, *, with_ids: bool = True) -> dict[str, Any]:
        n = self.node(self.root if node_id is None else node_id)
        out: dict[str, Any] = {"kind": n.kind.value}
        if with_ids:
            out["id"] = n.id
        if n.kind == NodeKind.TEXT:
            out["text"] = n.text
        if n.level is not None:
            out["level"] = n.level
        if n.tag is not None:
            out["tag"] = n.tag
        if n.children:
            out["children"] = [self.to_dict(c, with_ids=with_ids) for c in n.children]
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EditableTree:
        """Rebuild a tree from `to_dict` output. Unknown kinds become elements."""
        tree = cls()
        for child in data.get("children") or []:
            tree._load(tree.root, child)
        return tree

    def _load(self, parent_id: int, data: dict[str, Any]) -> None:
        raw_kind = str(data.get("kind") or "")
        try:
            kind = NodeKind(raw_kind)
        except ValueError:
            kind = NodeKind.ELEMENT
        if kind == NodeKind.ROOT:
            kind = NodeKind.ELEMENT
        tag = data.get("tag")
        if kind == NodeKind.ELEMENT and not tag:
            tag = raw_kind or None
        level = data.get("level")
        node_id = self.append(
            parent_id,
            kind,
            text=str(data.get("text") or ""),
            level=int(level) if isinstance(level, int) else None,
            tag=tag,
        )
        for child in data.get("children") or []:
            self._load(node_id, child)

    # ----- building (no notifications) -----

    def append(
        self,
        parent_id: int,
        kind: NodeKind,
        *,
        text: str = "",
        level: int | None = None,
        tag: str | None = None,
    ) -> int:
        return self.insert(parent_id, len(self.node(parent_id).children), kind, text=text, level=level, tag=tag)

    def insert(
        self,
        parent_id: int,
        index: int,
        kind: NodeKind,
        *,
        text: str = "",
        level: int | None = None,
        tag: str | None = None,
    ) -> int:
        parent = self.node(parent_id)
        if parent.kind in (NodeKind.TEXT, NodeKind.LINE_BREAK):
            raise TreeEditError(f"{parent.kind.value} nodes cannot have children")
        node_id = self._new(kind, text=text, level=level, tag=tag)
        self._attach(node_id, parent_id, index)
        return node_id

    def remove(self, node_id: int) -> None:
        if node_id == self.root:
            raise TreeEditError("The root cannot be removed")
        self._detach(node_id)
        for n in list(self.walk(node_id)):
            del self._nodes[n.id]

    def _new(self, kind: NodeKind, *, text: str = "", level: int | None = None, tag: str | None = None) -> int:
        node_id = self._next_id
        self._next_id += 1
        self._nodes[node_id] = Node(id=node_id, kind=kind, text=text, level=level, tag=tag)
        return node_id

    def _attach(self, node_id: int, parent_id: int, index: int) -> None:
        parent = self._nodes[parent_id]
        index = max(0, min(index, len(parent.children)))
        parent.children.insert(index, node_id)
        self._nodes[node_id].parent = parent_id

    def _detach(self, node_id: int) -> int:
        n = self.node(node_id)
        if n.parent is None:
            return -1
        siblings = self._nodes[n.parent].children
        index = siblings.index(node_id)
        siblings.pop(index)
        n.parent = None
        return index

    def _parent_id(self, n: Node) -> int:
        if n.parent is None:
            raise TreeEditError("Detached node")
        return n.parent

    def _index_in_parent(self, node_id: int) -> int:
        n = self.node(node_id)
        if n.parent is None:
            raise TreeEditError("Detached node")
        return self._nodes[n.parent].children.index(node_id)

    # ----- observation -----

    def subscribe(self, listener: TreeListener) -> Callable[[], None]:
        """Call `listener(tree)` after every edit command. Returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ----- edit commands -----

    def insert_text(self, position: Position, text: str) -> Position:
        """Type `text` at the caret; returns the caret after the insertion."""
        if "\n" in text or "\r" in text:
            raise TreeEditError("Use split_block or insert_line_break for new lines")
        n = self.node(position.node_id)
        if n.kind == NodeKind.TEXT:
            offset = max(0, min(position.offset, len(n.text)))
            n.text = n.text[:offset] + text + n.text[offset:]
            self._changed()
            return Position(n.id, offset + len(text))
        if n.kind in (NodeKind.LINE_BREAK, NodeKind.ROOT, NodeKind.LIST):
            raise TreeEditError(f"Cannot type into a {n.kind.value} node")

        index = max(0, min(position.offset, len(n.children)))
        if n.kind == NodeKind.BLANK:
            # Typing into an empty line replaces its placeholder break.
            for c in list(n.children):
                if self._nodes[c].kind == NodeKind.LINE_BREAK:
                    self.remove(c)
            n.kind = NodeKind.PARAGRAPH
            index = len(n.children)
        if index > 0:
            prev = self._nodes[n.children[index - 1]]
            if prev.kind == NodeKind.TEXT:
                prev.text += text
                self._changed()
                return Position(prev.id, len(prev.text))
        text_id = self.insert(n.id, index, NodeKind.TEXT, text=text)
        self._changed()
        return Position(text_id, len(text))

    def delete_text(self, selection: Selection) -> None:
        n = self._text_node(selection.node_id)
        start, end = self._clamp(n, selection)
        if start == end:
            return
        n.text = n.text[:start] + n.text[end:]
        if not n.text:
            block = self.block_of(n.id)
            self._prune_upwards(n.id)
            if block.id in self._nodes and block.kind in TEXT_BLOCKS:
                self._settle_empty(block.id)
        self._changed()

    def wrap_selection(self, selection: Selection, kind: NodeKind) -> int:
        """Wrap a text range in bold/italic/code; wrapping again unwraps."""
        if kind not in INLINE_WRAPPERS:
            raise TreeEditError(f"Not an inline style: {kind}")
        n = self._text_node(selection.node_id)

        for ancestor in self._inline_ancestors(n.id):
            if ancestor.kind == kind:
                self._unwrap(ancestor.id)
                self._changed()
                return n.id
            raise TreeEditError("Nested inline styles are not supported")

        start, end = self._clamp(n, selection)
        if start == end:
            raise TreeEditError("Empty selection")
        parent_id = self._parent_id(n)
        index = self._detach(n.id)
        before, middle, after = n.text[:start], n.text[start:end], n.text[end:]
        del self._nodes[n.id]
        if before:
            self.insert(parent_id, index, NodeKind.TEXT, text=before)
            index += 1
        wrapper_id = self.insert(parent_id, index, kind)
        self.append(wrapper_id, NodeKind.TEXT, text=middle)
        if after:
            self.insert(parent_id, index + 1, NodeKind.TEXT, text=after)
        self._changed()
        return wrapper_id

    def insert_line_break(self, position: Position) -> int:
        """Soft break inside the current block (serialized as a newline)."""
        block = self._text_block_for(position.node_id)
        index = self._split_inline(block, position)
        br_id = self.insert(block.id, index, NodeKind.LINE_BREAK)
        self._changed()
        return br_id

    def split_block(self, position: Position) -> int:
        """Break the block at the caret (Enter). Returns the new block's id."""
        block = self._text_block_for(position.node_id)
        index = self._split_inline(block, position)

        if block.kind == NodeKind.LIST_ITEM:
            right_kind = NodeKind.LIST_ITEM
        elif block.kind == NodeKind.BLANK:
            right_kind = NodeKind.BLANK
        else:
            right_kind = NodeKind.PARAGRAPH
        right_id = self.insert(self._parent_id(block), self._index_in_parent(block.id) + 1, right_kind)
        for child_id in block.children[index:]:
            self._detach(child_id)
            self._attach(child_id, right_id, len(self._nodes[right_id].children))

        self._settle_empty(block.id)
        self._settle_empty(right_id)
        self._changed()
        return right_id

    def merge_with_previous(self, block_id: int) -> int | None:
        """Join a block onto the one before it (Backspace at block start)."""
        block = self.node(block_id)
        parent = self.parent(block_id)
        if parent is None or block.kind not in TEXT_BLOCKS:
            raise TreeEditError("Only text blocks can be merged")
        index = self._index_in_parent(block_id)

        if parent.kind == NodeKind.LIST and index == 0:
            # First bullet: lift it out of the list as a paragraph.
            grandparent_id = self._parent_id(parent)
            list_index = self._index_in_parent(parent.id)
            self._detach(block_id)
            block.kind = NodeKind.PARAGRAPH
            self._attach(block_id, grandparent_id, list_index)
            if not parent.children:
                self.remove(parent.id)
            self._settle_empty(block_id)
            self._changed()
            return block_id
        if index == 0:
            return None

        prev = self._nodes[parent.children[index - 1]]
        if prev.kind == NodeKind.LIST:
            if not prev.children:
                self.remove(prev.id)
                self._changed()
                return block_id
            prev = self._nodes[prev.children[-1]]
        elif prev.kind == NodeKind.BLANK:
            self.remove(prev.id)
            self._changed()
            return block_id
        elif prev.kind not in TEXT_BLOCKS:
            return None

        self._drop_placeholders(prev.id)
        self._drop_placeholders(block_id)
        for child_id in list(block.children):
            self._detach(child_id)
            self._attach(child_id, prev.id, len(prev.children))
        self.remove(block_id)
        self._settle_empty(prev.id)
        self._changed()
        return prev.id

    def toggle_bullets(self, block_id: int) -> int:
        """Turn a block into a bullet, or a whole list back into paragraphs."""
        block = self.node(block_id)
        if block.kind == NodeKind.LIST_ITEM:
            block = self.node(self._parent_id(block))
        if block.parent != self.root:
            raise TreeEditError("Only top-level blocks can be toggled")

        if block.kind == NodeKind.LIST:
            index = self._index_in_parent(block.id)
            first: int | None = None
            for item_id in list(block.children):
                item = self._nodes[item_id]
                self._detach(item_id)
                if item.kind == NodeKind.LIST_ITEM:
                    item.kind = NodeKind.PARAGRAPH
                    self._attach(item_id, self.root, index)
                    self._settle_empty(item_id)
                    index += 1
                    first = item_id if first is None else first
                else:
                    self.remove(item_id)
            self.remove(block.id)
            self._changed()
            return first if first is not None else self.root

        index = self._index_in_parent(block.id)
        siblings = self.node(self.root).children
        prev = self._nodes[siblings[index - 1]] if index > 0 else None
        nxt = self._nodes[siblings[index + 1]] if index + 1 < len(siblings) else None
        if prev is not None and prev.kind == NodeKind.LIST:
            list_id = prev.id
        else:
            list_id = self.insert(self.root, index, NodeKind.LIST)

        self._drop_placeholders(block.id)
        self._detach(block.id)
        block.kind = NodeKind.LIST_ITEM
        block.level = None
        self._attach(block.id, list_id, len(self._nodes[list_id].children))
        if not block.children:
            self.append(block.id, NodeKind.LINE_BREAK)
        if nxt is not None and nxt.kind == NodeKind.LIST:
            for item_id in list(nxt.children):
                self._detach(item_id)
                self._attach(item_id, list_id, len(self._nodes[list_id].children))
            self.remove(nxt.id)
        self._changed()
        return list_id

    def set_block_kind(self, block_id: int, kind: NodeKind) -> None:
        block = self.node(block_id)
        if block.parent != self.root or block.kind not in TEXT_BLOCKS:
            raise TreeEditError("Only top-level text blocks can change kind")
        if kind not in (NodeKind.HEADING, NodeKind.PARAGRAPH):
            raise TreeEditError(f"Unsupported block kind: {kind}")
        if block.kind == NodeKind.BLANK and kind == NodeKind.PARAGRAPH:
            return
        block.kind = kind
        block.level = None
        self._changed()

    # ----- helpers -----

    def _text_node(self, node_id: int) -> Node:
        n = self.node(node_id)
        if n.kind != NodeKind.TEXT:
            raise TreeEditError("Selections must be inside a text node")
        return n

    @staticmethod
    def _clamp(n: Node, selection: Selection) -> tuple[int, int]:
        start = max(0, min(selection.start, len(n.text)))
        end = max(0, min(selection.end, len(n.text)))
        return min(start, end), max(start, end)

    def _inline_ancestors(self, node_id: int) -> list[Node]:
        out = []
        n = self.node(node_id)
        while n.parent is not None:
            n = self._nodes[n.parent]
            if n.kind in INLINE_WRAPPERS:
                out.append(n)
            elif n.kind != NodeKind.ELEMENT:
                break
        return out

    def _text_block_for(self, node_id: int) -> Node:
        block = self.block_of(node_id)
        if block.kind not in TEXT_BLOCKS and block.kind != NodeKind.ELEMENT:
            raise TreeEditError(f"Cannot edit inside a {block.kind.value} node")
        return block

    def _split_inline(self, block: Node, position: Position) -> int:
        """Split the block's inline children at the caret; return the cut index."""
        n = self.node(position.node_id)
        if n.id == block.id:
            return max(0, min(position.offset, len(block.children)))
        if n.kind != NodeKind.TEXT:
            raise TreeEditError("Caret must be in a text node or on its block")

        top = n
        while top.parent != block.id:
            top = self._nodes[self._parent_id(top)]
        index = self._index_in_parent(top.id)
        following = block.children[index + 1 :]
        right_id = self._split_node(top.id, n.id, max(0, min(position.offset, len(n.text))))
        self._attach(right_id, block.id, index + 1)
        self._prune_empty(top.id)
        self._prune_empty(right_id)
        if right_id in self._nodes:
            return block.children.index(right_id)
        if following:
            return block.children.index(following[0])
        return len(block.children)

    def _split_node(self, node_id: int, text_id: int, offset: int) -> int:
        """Cut `node_id` at the caret; return a detached copy holding the right half."""
        n = self._nodes[node_id]
        if n.id == text_id:
            right = n.text[offset:]
            n.text = n.text[:offset]
            return self._new(NodeKind.TEXT, text=right)
        path_child = next(c for c in n.children if any(x.id == text_id for x in self.walk(c)))
        index = n.children.index(path_child)
        right_id = self._new(n.kind, level=n.level, tag=n.tag)
        right_child = self._split_node(path_child, text_id, offset)
        self._attach(right_child, right_id, 0)
        for c in n.children[index + 1 :]:
            self._detach(c)
            self._attach(c, right_id, len(self._nodes[right_id].children))
        return right_id

    def _prune_empty(self, node_id: int) -> None:
        """Drop empty text nodes and childless inline wrappers under `node_id`."""
        n = self._nodes.get(node_id)
        if n is None:
            return
        for c in list(n.children):
            self._prune_empty(c)
        if n.kind == NodeKind.TEXT and not n.text and n.parent is not None:
            self.remove(n.id)
        elif n.kind in INLINE_WRAPPERS and not n.children and n.parent is not None:
            self.remove(n.id)

    def _prune_upwards(self, node_id: int) -> None:
        n = self._nodes[node_id]
        parent_id = n.parent
        self.remove(node_id)
        while parent_id is not None:
            parent = self._nodes[parent_id]
            if parent.kind not in INLINE_WRAPPERS or parent.children:
                break
            parent_id = parent.parent
            self.remove(parent.id)

    def _unwrap(self, wrapper_id: int) -> None:
        wrapper = self._nodes[wrapper_id]
        parent_id = self._parent_id(wrapper)
        index = self._index_in_parent(wrapper_id)
        for offset, c in enumerate(list(wrapper.children)):
            self._detach(c)
            self._attach(c, parent_id, index + offset)
        self.remove(wrapper_id)

    def _drop_placeholders(self, block_id: int) -> None:
        """Remove the empty-line break; soft breaks next to content stay."""
        block = self._nodes[block_id]
        kinds = [self._nodes[c].kind for c in block.children]
        if block.kind == NodeKind.BLANK or kinds == [NodeKind.LINE_BREAK]:
            for c in list(block.children):
                if self._nodes[c].kind == NodeKind.LINE_BREAK:
                    self.remove(c)
        if block.kind == NodeKind.BLANK:
            block.kind = NodeKind.PARAGRAPH

    def _settle_empty(self, block_id: int) -> None:
        """An emptied paragraph becomes a blank line with its placeholder break."""
        block = self._nodes[block_id]
        if block.children:
            if block.kind == NodeKind.BLANK and any(
                self._nodes[c].kind != NodeKind.LINE_BREAK for c in block.children
            ):
                self._drop_placeholders(block_id)
            return
        if block.kind in (NodeKind.PARAGRAPH, NodeKind.BLANK, NodeKind.ELEMENT):
            block.kind = NodeKind.BLANK
            block.tag = None
        self.append(block_id, NodeKind.LINE_BREAK)
