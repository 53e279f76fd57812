"""Byte-level scanner with UTF-8 aware position reporting.

The scanner owns a cursor into the prepassed byte buffer. Every consuming
operation either fails without moving the cursor or succeeds and moves it
strictly forward.
"""

import re
from typing import Match, Optional, Pattern, Tuple, Type

from xml_subset_parser.character.utf8 import UTF8Codec, locate
from xml_subset_parser.shared.errors import (
    EncodingError,
    StructuralError,
    XMLParseError,
)

_WHITESPACE = re.compile(rb"[ \t\r\n]+")
# Runs up to the first delimiter of any construct that can follow a name.
_NAME = re.compile(rb"[^ \t\r\n=\"'<>/?&]+")


class Scanner:
    """Cursor over a UTF-8 byte buffer.

    Attributes:
        data: Buffer being scanned
        codec: Codec used to decode consumed slices
        pos: 0-based byte offset of the cursor
    """

    def __init__(self, data: bytes, codec: Optional[UTF8Codec] = None) -> None:
        self.data = data
        self.codec = codec or UTF8Codec()
        self.pos = 0

    @property
    def remaining(self) -> int:
        """Number of bytes left after the cursor."""
        return len(self.data) - self.pos

    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def seek(self, pos: int) -> None:
        """Move the cursor to an absolute offset.

        Raises:
            ValueError: If `pos` is outside 0..len(data)
        """
        if not 0 <= pos <= len(self.data):
            raise ValueError(f"seek position {pos} is out of bounds")
        self.pos = pos

    def peek(self, start: int = 0, end: Optional[int] = None) -> bytes:
        """Read `data[pos+start : pos+end+1]` without consuming.

        Offsets are inclusive and relative to the cursor; `end` defaults to
        `start`. Out-of-range reads return fewer bytes, possibly none.
        """
        end = start if end is None else end
        if start < 0 or end < start:
            return b""
        return self.data[self.pos + start:self.pos + end + 1]

    def line_and_column(self, pos: Optional[int] = None) -> Tuple[int, int]:
        return locate(self.data, self.pos if pos is None else pos)

    def error(
        self,
        exc_type: Type[XMLParseError],
        message: str,
        pos: Optional[int] = None
    ) -> XMLParseError:
        """Build an error tagged with the line and column of `pos`.

        Defaults to the cursor position. The error is returned, not raised.
        """
        pos = self.pos if pos is None else pos
        line, column = self.line_and_column(pos)
        return exc_type(message, line=line, column=column, position=pos)

    def literal(self, chunk: bytes) -> bool:
        """Consume `chunk` if the buffer continues with it."""
        if chunk and self.data.startswith(chunk, self.pos):
            self.pos += len(chunk)
            return True
        return False

    def literal_required(
        self,
        chunk: bytes,
        reason: str,
        exc_type: Type[XMLParseError] = StructuralError
    ) -> None:
        if not self.literal(chunk):
            raise self.error(exc_type, reason)

    def pattern(self, regex: Pattern[bytes]) -> Optional[Match[bytes]]:
        """Consume an anchored, non-empty match of `regex`."""
        match = regex.match(self.data, self.pos)
        if match is None or match.end() == self.pos:
            return None
        self.pos = match.end()
        return match

    def pattern_required(
        self,
        regex: Pattern[bytes],
        reason: str,
        exc_type: Type[XMLParseError] = StructuralError
    ) -> Match[bytes]:
        match = self.pattern(regex)
        if match is None:
            raise self.error(exc_type, reason)
        return match

    def read_name(self) -> Optional[bytes]:
        """Consume a run of bytes that can form a name.

        Only delimiters are excluded here; the XML Name grammar is checked
        separately so that it can be switched off.
        """
        match = self.pattern(_NAME)
        return match.group() if match else None

    def read_quoted(self) -> Optional[bytes]:
        """Consume a `'` or `"` delimited value and return its content."""
        quote = self.peek()
        if quote not in (b'"', b"'"):
            return None
        close = self.data.find(quote, self.pos + 1)
        if close == -1:
            return None
        content = self.data[self.pos + 1:close]
        self.pos = close + 1
        return content

    def read_until(self, marker: bytes) -> Optional[bytes]:
        """Consume through the next `marker` and return what preceded it.

        Returns:
            The content before the marker, or None if the marker is absent
        """
        index = self.data.find(marker, self.pos)
        if index == -1:
            return None
        content = self.data[self.pos:index]
        self.pos = index + len(marker)
        return content

    def read_until_or_end(self, marker: bytes) -> bytes:
        """Consume up to (not including) `marker`, or to end of input."""
        index = self.data.find(marker, self.pos)
        if index == -1:
            index = len(self.data)
        content = self.data[self.pos:index]
        self.pos = index
        return content

    def skip_whitespace(self) -> bool:
        """Consume optional whitespace. Returns whether the cursor moved."""
        return self.pattern(_WHITESPACE) is not None

    def require_whitespace(
        self,
        reason: str,
        exc_type: Type[XMLParseError] = StructuralError
    ) -> None:
        if not self.skip_whitespace():
            raise self.error(exc_type, reason)

    def read_char(self) -> str:
        """Consume one complete UTF-8 code unit and return it decoded.

        Raises:
            EncodingError: If no well-formed code unit starts at the cursor
        """
        unit = self.codec.read_code_unit(self.data, self.pos)
        if not unit.ok or unit.value is None:
            raise self.error(EncodingError, f"malformed UTF-8: {unit.error}")
        self.pos += len(unit.value)
        return unit.value.decode("utf-8", "surrogatepass")

    def decode(self, raw: bytes, start: int) -> str:
        """Decode a consumed slice that began at buffer offset `start`.

        Raises:
            EncodingError: Tagged with the line and column of the bad byte
        """
        try:
            return self.codec.decode(raw)
        except EncodingError as e:
            raise self.error(
                EncodingError, e.message, start + (e.position or 0)
            ) from None
