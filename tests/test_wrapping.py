import io

import pytest

from argforge import LineWrappingWriter

TEXT = "The quick brown fox jumps over the lazy dog."


def render(text, **kwargs) -> str:
    out = io.StringIO()
    with LineWrappingWriter(out, **kwargs) as writer:
        writer.write(text)
    return out.getvalue()


def test_wrap_at_whitespace():
    assert render(TEXT, max_width=20) == "The quick brown fox\njumps over the lazy\ndog.\n"


def test_wrap_with_indent():
    assert render(TEXT, max_width=20, indent=4) == "The quick brown fox\n    jumps over the\n    lazy dog.\n"


@pytest.mark.parametrize(
    "text, max_width, expected",
    [
        ("aaaa bbbbb ccc", 10, "aaaa bbbbb\nccc\n"),
        ("ab cd ef gh", 5, "ab cd\nef gh\n"),
        ("aaaa bbbbb ", 10, "aaaa bbbbb\n"),
    ],
)
def test_wrap_word_ending_at_width(text, max_width, expected):
    assert render(text, max_width=max_width) == expected


def test_wrap_hard_break():
    assert render("abcdefghijklmnop", max_width=10) == "abcdefghij\nklmnop\n"


def test_wrap_preserves_line_breaks():
    assert render("a\n\nb", max_width=79) == "a\n\nb\n"
    assert render("a\r\nb\rc", max_width=79) == "a\nb\nc\n"


def test_wrap_blank_lines_not_indented():
    assert render("a\n\nb\n", max_width=79, indent=2) == "a\n\n  b\n"


def test_wrap_across_writes():
    out = io.StringIO()
    writer = LineWrappingWriter(out, max_width=10)
    writer.write("aaa ")
    writer.write("bbb ")
    assert out.getvalue() == ""
    writer.write("ccc")
    writer.flush()
    assert out.getvalue() == "aaa bbb\nccc\n"


def test_wrap_reset_indent():
    out = io.StringIO()
    writer = LineWrappingWriter(out, max_width=79, indent=4)
    writer.write("aaa\nbbb\n")
    writer.reset_indent()
    writer.write_line("ccc")
    writer.flush()
    assert out.getvalue() == "aaa\n    bbb\nccc\n"


def test_wrap_reset_indent_flushes_partial_line():
    out = io.StringIO()
    writer = LineWrappingWriter(out, max_width=79, indent=4)
    writer.write("partial")
    writer.reset_indent()
    assert out.getvalue() == "partial\n"


def test_wrap_disabled():
    long_text = "word " * 40
    assert render(long_text, max_width=0, indent=4) == long_text
    assert render(long_text, max_width=None) == long_text


def test_wrap_invalid_indent():
    with pytest.raises(ValueError):
        LineWrappingWriter(io.StringIO(), max_width=10, indent=10)
    with pytest.raises(ValueError):
        LineWrappingWriter(io.StringIO(), max_width=10, indent=-1)


def test_wrap_sink_error_propagates():
    class ClosedSink:
        def write(self, s):
            raise OSError("sink closed")

    writer = LineWrappingWriter(ClosedSink(), max_width=10)
    with pytest.raises(OSError):
        writer.write("a b c d e f g h i j")
