"""Inline tokenizer: one line of note text → bold/italic/code/text spans.

Matching is greedy and never nested. Whatever sits between two delimiters is
taken verbatim, so `**a *b* c**` is a single bold span with literal stars.
Saved notes depend on this flattening; do not make it recursive.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SpanKind(str, Enum):
    TEXT = "text"
    BOLD = "bold"
    ITALIC = "italic"
    CODE = "code"


# Source delimiter written around each styled span.
SPAN_MARKERS: dict[SpanKind, str] = {
    SpanKind.BOLD: "**",
    SpanKind.ITALIC: "*",
    SpanKind.CODE: "`",
}


@dataclass(frozen=True)
class InlineSpan:
    kind: SpanKind
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.kind.value, "value": self.value}


def tokenize(line: str) -> list[InlineSpan]:
    """Split `line` into spans, first delimiter at the cursor wins.

    Order at each position: backtick, then `**`, then a lone `*`. A delimiter
    with no closing partner is plain text. Never raises.
    """
    spans: list[InlineSpan] = []
    text_buf: list[str] = []
    i = 0
    n = len(line or "")

    def flush_text() -> None:
        if text_buf:
            spans.append(InlineSpan(SpanKind.TEXT, "".join(text_buf)))
            text_buf.clear()

    while i < n:
        ch = line[i]
        if ch == "`":
            end = line.find("`", i + 1)
            if end != -1:
                flush_text()
                spans.append(InlineSpan(SpanKind.CODE, line[i + 1 : end]))
                i = end + 1
                continue
        if line.startswith("**", i):
            end = line.find("**", i + 2)
            if end != -1:
                flush_text()
                spans.append(InlineSpan(SpanKind.BOLD, line[i + 2 : end]))
                i = end + 2
                continue
        if ch == "*":
            end = line.find("*", i + 1)
            if end != -1:
                flush_text()
                spans.append(InlineSpan(SpanKind.ITALIC, line[i + 1 : end]))
                i = end + 1
                continue
        text_buf.append(ch)
        i += 1

    flush_text()
    return spans


def spans_to_markdown(spans: list[InlineSpan]) -> str:
    """Inverse of `tokenize`: write each span back with its delimiters."""
    out: list[str] = []
    for span in spans:
        marker = SPAN_MARKERS.get(span.kind, "")
        out.append(f"{marker}{span.value}{marker}")
    return "".join(out)


def plain_text(spans: list[InlineSpan]) -> str:
    return "".join(span.value for span in spans)
