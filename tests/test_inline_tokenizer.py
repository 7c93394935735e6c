from taskbar_notes.converter.inline import InlineSpan, SpanKind, plain_text, spans_to_markdown, tokenize


def T(v):
    return InlineSpan(SpanKind.TEXT, v)


def test_plain_line_is_one_text_span():
    assert tokenize("just words") == [T("just words")]
    assert tokenize("") == []


def test_mixed_styles_in_order():
    assert tokenize("a **b** *c* `d`") == [
        T("a "),
        InlineSpan(SpanKind.BOLD, "b"),
        T(" "),
        InlineSpan(SpanKind.ITALIC, "c"),
        T(" "),
        InlineSpan(SpanKind.CODE, "d"),
    ]


def test_code_wins_over_bold_at_same_position():
    assert tokenize("`**bold**`") == [InlineSpan(SpanKind.CODE, "**bold**")]


def test_spans_are_not_nested():
    # Inner markers stay literal inside the outer span.
    assert tokenize("**`x`**") == [InlineSpan(SpanKind.BOLD, "`x`")]
    assert tokenize("**a *b* c**") == [InlineSpan(SpanKind.BOLD, "a *b* c")]


def test_first_delimiter_at_cursor_wins():
    assert tokenize("*text**") == [InlineSpan(SpanKind.ITALIC, "text"), T("*")]


def test_unterminated_markers_are_text():
    assert tokenize("a `b") == [T("a `b")]
    assert tokenize("price * 2") == [T("price * 2")]


def test_unclosed_bold_falls_back_to_single_star():
    assert tokenize("**a") == [InlineSpan(SpanKind.ITALIC, ""), T("a")]


def test_adjacent_text_is_coalesced():
    spans = tokenize("a*b")
    assert spans == [T("a*b")]


def test_never_raises_on_odd_input():
    for line in ["*", "**", "***", "`", "``", "*`*`", "\x00**", "****"]:
        spans = tokenize(line)
        assert all(isinstance(s, InlineSpan) for s in spans)


def test_markdown_and_plain_text_helpers():
    line = "see **this** and `that`"
    spans = tokenize(line)
    assert spans_to_markdown(spans) == line
    assert plain_text(spans) == "see this and that"
    assert spans[1].to_dict() == {"type": "bold", "value": "this"}
