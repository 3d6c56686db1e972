"""Delimiter-depth scanning over generated source text.

The scanner is structural, not lexical: delimiters inside string literals or
comments are counted like any other. That holds for compiler output, which
is the only input it is meant for.
"""

from __future__ import annotations

from dataclasses import dataclass

from elmbridge.errors import UnbalancedDelimiters


@dataclass(frozen=True)
class Span:
    """Half-open range [start, end) into a text buffer."""

    start: int
    end: int

    def text(self, buffer: str) -> str:
        """Return the slice of buffer covered by this span."""
        return buffer[self.start : self.end]

    def __len__(self) -> int:
        return self.end - self.start


def scan_block(text: str, cursor: int, *, open: str = "{", close: str = "}") -> int:  # noqa: A002
    """Find the end of a block whose opening delimiter was already consumed.

    Args:
        text: Buffer to scan
        cursor: Offset immediately after the opening delimiter
        open: Opening delimiter character
        close: Closing delimiter character

    Returns:
        The offset immediately after the matching closing delimiter.

    Raises:
        UnbalancedDelimiters: If the buffer ends before the block is closed

    """
    depth = 1
    position = cursor
    length = len(text)
    while position < length:
        char = text[position]
        position += 1
        if char == open:
            depth += 1
        elif char == close:
            depth -= 1
            if depth == 0:
                return position
    raise UnbalancedDelimiters(offset=cursor, depth=depth)


def find_block(text: str, start: int, *, open: str = "{", close: str = "}") -> Span:  # noqa: A002
    """Return the span from start to the end of the first block opened after it.

    Raises:
        UnbalancedDelimiters: If no block opens after start, or it never closes

    """
    opening = text.find(open, start)
    if opening == -1:
        msg = f"No {open!r} opens a block after offset {start}"
        raise UnbalancedDelimiters(offset=start, depth=0, message=msg)
    return Span(start, scan_block(text, opening + 1, open=open, close=close))
