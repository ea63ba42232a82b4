import re
from bisect import bisect_right

from lsprotocol.types import Position, Range
from pygls.workspace.text_document import TextDocument

# Line terminators as defined by LSP. str.splitlines() knows more of them
# (form feed, U+2028, ...) which editors do not treat as line breaks.
LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")


def split_lines(text: str) -> list[str]:
    """Split text into lines without terminators, LSP style."""
    return LINE_BREAK_PATTERN.split(text)


def line_start_offsets(text: str) -> list[int]:
    """Character offset at which every line of ``text`` starts."""
    return [0] + [m.end() for m in LINE_BREAK_PATTERN.finditer(text)]


class LineIndex:
    """
    Offset to position lookups for one snapshot of a document.

    The text is split once on construction, each lookup is a bisection over
    the line starts. Build a new index whenever the document changes.

    Usage:
        index = LineIndex(document)
        for match in pattern.finditer(document.source):
            diagnostic_range = index.range_at(match.start(), match.end())
    """

    def __init__(self, document: TextDocument) -> None:
        text = document.source

        self._codec = document.position_codec
        self._length = len(text)
        self._lines = split_lines(text)
        self._starts = line_start_offsets(text)

    def position_at(self, offset: int) -> Position:
        """
        Convert a character offset to an LSP position.

        The column is expressed in the position encoding negotiated with the
        client (UTF-16 code units unless the client asked otherwise). Offsets
        outside the text are clamped to its bounds.
        """
        offset = max(0, min(offset, self._length))

        line = bisect_right(self._starts, offset) - 1
        position = Position(line=line, character=offset - self._starts[line])

        return self._codec.position_to_client_units(self._lines, position)

    def range_at(self, start: int, end: int) -> Range:
        """Convert a character offset span to an LSP range."""
        return Range(start=self.position_at(start), end=self.position_at(end))

