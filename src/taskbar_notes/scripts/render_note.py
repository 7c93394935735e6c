"""Render a Markdown note file the way the notes popup sees it.

Prints the parsed blocks, the list snippet, and the text the rich editor
writes back after a round trip through the editable tree.

Usage:
  python -m taskbar_notes.scripts.render_note path/to/note.md
"""

from __future__ import annotations

import sys
from pathlib import Path

from ..converter import from_editable_tree, parse_blocks, snippet, to_editable_tree
from ..converter.blocks import block_to_dict


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    if not args:
        raise SystemExit("Usage: python -m taskbar_notes.scripts.render_note FILE")
    path = Path(args[0])
    if not path.exists():
        raise SystemExit(f"File not found: {path}")

    content = path.read_text(encoding="utf-8")
    print("snippet:", snippet(content))
    print("blocks:")
    for block in parse_blocks(content):
        print("  ", block_to_dict(block))
    round_trip = from_editable_tree(to_editable_tree(content))
    print("round trip:")
    print(round_trip)
    if parse_blocks(round_trip) != parse_blocks(content):
        print("warning: round trip changed the block structure", file=sys.stderr)


if __name__ == "__main__":
    main()
