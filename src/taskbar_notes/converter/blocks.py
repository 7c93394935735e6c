"""Note text → blocks (heading, bullet list, paragraph, blank spacer).

A small, line-based block parser. It is total: every string, including empty
or malformed input, parses to at least one block.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, ClassVar, Union

HEADING_RE = re.compile(r"^#{1,3}\s+")
BULLET_RE = re.compile(r"^[-*]\s+")


@dataclass(frozen=True)
class Blank:
    type: ClassVar[str] = "blank"


@dataclass(frozen=True)
class Heading:
    # Level 1-3 is accepted on input but every heading renders at one weight.
    text: str
    type: ClassVar[str] = "heading"


@dataclass(frozen=True)
class BulletList:
    items: tuple[str, ...] = ()
    type: ClassVar[str] = "bullet_list"


@dataclass(frozen=True)
class Paragraph:
    text: str
    type: ClassVar[str] = "paragraph"


Block = Union[Blank, Heading, BulletList, Paragraph]


def is_heading_line(line: str) -> bool:
    return HEADING_RE.match(line.strip()) is not None


def is_bullet_line(line: str) -> bool:
    return BULLET_RE.match(line.strip()) is not None


def strip_heading_marker(line: str) -> str:
    return HEADING_RE.sub("", line.strip(), count=1)


def strip_bullet_marker(line: str) -> str:
    return BULLET_RE.sub("", line.strip(), count=1)


def split_lines(content: str) -> list[str]:
    """Normalize CRLF and split; a final newline ends the last line."""
    text = (content or "").replace("\r\n", "\n")
    lines = text.split("\n")
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    return lines


def parse_blocks(content: str) -> list[Block]:
    """
    Parse note content into blocks, top to bottom.

    - blank line → Blank
    - `#`, `##`, `###` + whitespace → Heading (marker stripped)
    - run of `-`/`*` + whitespace lines → one BulletList
    - anything else starts a Paragraph that absorbs following plain lines,
      joined with a single space
    """
    lines = split_lines(content)
    blocks: list[Block] = []
    i = 0
    while i < len(lines):
        stripped = lines[i].strip()
        if not stripped:
            blocks.append(Blank())
            i += 1
            continue
        if HEADING_RE.match(stripped):
            blocks.append(Heading(text=strip_heading_marker(stripped)))
            i += 1
            continue
        if BULLET_RE.match(stripped):
            items = []
            while i < len(lines) and is_bullet_line(lines[i]):
                items.append(strip_bullet_marker(lines[i]))
                i += 1
            blocks.append(BulletList(items=tuple(items)))
            continue
        # Paragraph (collect until blank or another block start)
        parts = [stripped]
        i += 1
        while i < len(lines) and not _is_block_start(lines[i]):
            parts.append(lines[i].strip())
            i += 1
        blocks.append(Paragraph(text=" ".join(parts)))
    return blocks


def _is_block_start(line: str) -> bool:
    s = line.strip()
    if not s:
        return True
    if HEADING_RE.match(s):
        return True
    if BULLET_RE.match(s):
        return True
    return False


def block_to_dict(block: Block) -> dict[str, Any]:
    if isinstance(block, Heading):
        return {"type": block.type, "text": block.text}
    if isinstance(block, BulletList):
        return {"type": block.type, "items": list(block.items)}
    if isinstance(block, Paragraph):
        return {"type": block.type, "text": block.text}
    return {"type": Blank.type}
