import re
from typing import Protocol

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class TextSink(Protocol):
    def write(self, s: str, /) -> object: ...


class LineWrappingWriter:
    """Word-wrapping, indenting text writer in front of another text sink.

    Text is buffered one line at a time. Lines longer than :attr:`max_width` are broken at
    the last whitespace that fits; a word longer than the whole line is hard-broken.
    Explicit line breaks are preserved. Every line that follows a non-empty line is
    indented by :attr:`indent` spaces, until :meth:`reset_indent` is called.

    Errors raised by the underlying sink propagate to the caller.

    .. code-block:: python

        out = io.StringIO()
        with LineWrappingWriter(out, max_width=20, indent=4) as writer:
            writer.write("The quick brown fox jumps over the lazy dog.")
    """

    def __init__(self, sink: TextSink, max_width: int | None = 79, indent: int = 0):
        """
        Parameters
        ----------
        sink: TextSink
            Anything with a ``write(str)`` method; e.g. a :class:`~io.StringIO` or :data:`sys.stdout`.
        max_width: int | None
            Maximum line width. ``0`` or :obj:`None` disables wrapping and indentation.
        indent: int
            Indentation of every line after the first.
        """
        self.sink = sink
        self.max_width = 0 if max_width is None or max_width < 1 else max_width
        self._indent = 0
        self._line = ""
        self._is_line_empty = True
        self.indent = indent

    @property
    def indent(self) -> int:
        return self._indent

    @indent.setter
    def indent(self, value: int):
        if value < 0 or (self.max_width and value >= self.max_width):
            raise ValueError(f"indent must be non-negative and less than max_width ({self.max_width}); got {value}.")
        self._indent = value

    def write(self, text: str):
        if not self.max_width:
            self.sink.write(text)
            return

        segments = _LINE_BREAK.split(text)
        for i, segment in enumerate(segments):
            if segment:
                self._line += segment
                self._is_line_empty = False
                while len(self._line) > self.max_width:
                    self._break_line()
            if i < len(segments) - 1:
                self._emit(self._line)

    def write_line(self, text: str = ""):
        self.write(text + "\n")

    def reset_indent(self):
        """End the current line, if it has content, and start the next line at column 0."""
        if not self.max_width:
            return
        if not self._is_line_empty:
            self.sink.write(self._line + "\n")
        self._line = ""
        self._is_line_empty = True

    def flush(self):
        """Write out the buffered partial line, terminated by a line break."""
        if self.max_width and not self._is_line_empty:
            self._emit(self._line)
        flush = getattr(self.sink, "flush", None)
        if flush is not None:
            flush()

    def _emit(self, line: str):
        # A line holding nothing but indentation is written as a blank line.
        self.sink.write(("" if self._is_line_empty else line) + "\n")
        self._line = " " * self._indent if line and self._indent else ""
        self._is_line_empty = True

    def _break_line(self):
        line = self._line
        # line[max_width] exists since the line overflows; whitespace there means an exact fit.
        for index in range(self.max_width, self._indent - 1, -1):
            if line[index].isspace():
                head, tail = line[:index].rstrip(), line[index + 1 :]
                break
        else:
            # No whitespace to break at.
            head, tail = line[: self.max_width], line[self.max_width :]

        self._emit(head)
        self._line += tail
        self._is_line_empty = not tail

    def __enter__(self) -> "LineWrappingWriter":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.flush()
