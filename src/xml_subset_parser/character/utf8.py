"""UTF-8 codec with overlong, surrogate and forbidden-byte detection.

The codec converts between code units (the 1-4 byte UTF-8 encoding of one
code point) and code points. Every operation reports defects instead of
discarding them: results carry the decoded value together with an optional
diagnostic string, and the caller decides whether the defect is fatal.

References:
    RFC 3629 (UTF-8): https://tools.ietf.org/html/rfc3629
"""

from dataclasses import dataclass
from typing import Generic, Optional, Tuple, TypeVar

from xml_subset_parser.shared.errors import EncodingError

T = TypeVar("T")

# UTF-8 byte constants
ASCII_MAX = 0x7F
CONTINUATION_MIN = 0x80
CONTINUATION_MAX = 0xBF
LEAD_2BYTE_MIN = 0xC0
LEAD_3BYTE_MIN = 0xE0
LEAD_4BYTE_MIN = 0xF0
LEAD_4BYTE_MAX = 0xF7

# Lead bytes that can never start a valid code unit: 0xC0 and 0xC1 only
# produce overlong forms, 0xF5 and above encode values past U+10FFFF.
FORBIDDEN_LEAD_BYTES = frozenset([0xC0, 0xC1, *range(0xF5, 0x100)])

# Smallest and largest code point for each code unit length.
UNIT_LENGTH_RANGES = {
    1: (0x0000, 0x007F),
    2: (0x0080, 0x07FF),
    3: (0x0800, 0xFFFF),
    4: (0x10000, 0x10FFFF),
}

SURROGATE_RANGE_START = 0xD800
SURROGATE_RANGE_END = 0xDFFF
MAX_CODE_POINT = 0x10FFFF

REPLACEMENT_UNIT = b"\xef\xbf\xbd"  # U+FFFD


@dataclass(frozen=True)
class CodecResult(Generic[T]):
    """A codec value plus the diagnostic for any defect found producing it."""

    value: T
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        """Whether the value is free of defects."""
        return self.error is None


def code_unit_length(lead_byte: int) -> Optional[int]:
    """Get the code unit length announced by a lead byte's high bits.

    Returns:
        1-4, or None for continuation bytes and bytes that announce no length
    """
    if lead_byte <= ASCII_MAX:
        return 1
    if LEAD_2BYTE_MIN <= lead_byte < LEAD_3BYTE_MIN:
        return 2
    if LEAD_3BYTE_MIN <= lead_byte < LEAD_4BYTE_MIN:
        return 3
    if LEAD_4BYTE_MIN <= lead_byte <= LEAD_4BYTE_MAX:
        return 4
    return None


def is_continuation_byte(byte: int) -> bool:
    """Check whether a byte is a 10xxxxxx continuation byte."""
    return CONTINUATION_MIN <= byte <= CONTINUATION_MAX


def locate(data: bytes, pos: int) -> Tuple[int, int]:
    """Convert a byte offset to a 1-based (line, column) pair.

    Lines are split on LF. Columns count code units, so a multi-byte character
    occupies one column. The end-of-input offset is a valid argument.
    """
    pos = max(0, min(pos, len(data)))
    line = data.count(b"\n", 0, pos) + 1
    line_start = data.rfind(b"\n", 0, pos) + 1
    segment = data[line_start:pos]
    continuation_count = sum(1 for byte in segment if is_continuation_byte(byte))
    return line, len(segment) - continuation_count + 1


class UTF8Codec:
    """Converts UTF-8 code units to code points and back.

    Attributes:
        check_surrogates: Reject code points in the surrogate range
            (U+D800-U+DFFF). Some decoders let these through.
    """

    def __init__(self, check_surrogates: bool = True) -> None:
        self.check_surrogates = check_surrogates
        self._decode_errors = "strict" if check_surrogates else "surrogatepass"

    def _check_structure(self, data: bytes, pos: int) -> Tuple[int, Optional[str]]:
        """Check lead byte, length and continuation bytes of the unit at `pos`.

        Returns:
            (length, None) when well formed, otherwise (0, diagnosis)
        """
        lead = data[pos]
        if lead in FORBIDDEN_LEAD_BYTES:
            return 0, f"invalid byte 0x{lead:02X} can never appear in UTF-8"

        length = code_unit_length(lead)
        if length is None:
            return 0, (
                f"continuation byte 0x{lead:02X} received as the first byte "
                "of a code unit"
            )

        available = len(data) - pos
        if available < length:
            return 0, (
                f"truncated {length}-byte code unit: only {available} "
                "byte(s) available"
            )

        for offset in range(1, length):
            byte = data[pos + offset]
            if not is_continuation_byte(byte):
                return 0, (
                    f"byte #{offset + 1} (0x{byte:02X}) of a {length}-byte code "
                    "unit is not a continuation byte (0x80-0xBF)"
                )

        return length, None

    def _check_code_point(self, code_point: int, unit_length: Optional[int]) -> Optional[str]:
        if unit_length is not None:
            minimum, _ = UNIT_LENGTH_RANGES[unit_length]
            if code_point < minimum:
                return (
                    f"overlong {unit_length}-byte encoding of U+{code_point:04X} "
                    f"(minimum for this length is U+{minimum:04X})"
                )
        if (
            self.check_surrogates
            and SURROGATE_RANGE_START <= code_point <= SURROGATE_RANGE_END
        ):
            return (
                f"code point U+{code_point:04X} is in the surrogate range "
                "(U+D800-U+DFFF), which is invalid in UTF-8"
            )
        if code_point > MAX_CODE_POINT:
            return f"code point U+{code_point:X} is beyond U+10FFFF"
        return None

    def read_code_unit(self, data: bytes, pos: int) -> CodecResult[Optional[bytes]]:
        """Get the UTF-8 code unit starting at byte offset `pos`.

        Returns:
            The unit's bytes, or None plus a diagnosis when no well-formed unit
            starts there. A unit that is well formed but encodes a bad code
            point (overlong, surrogate) is returned along with its diagnosis.
        """
        if not 0 <= pos < len(data):
            return CodecResult(None, f"byte offset {pos} is out of bounds")

        length, error = self._check_structure(data, pos)
        if error:
            return CodecResult(None, error)

        unit = data[pos:pos + length]
        return CodecResult(unit, self.decode_unit(unit).error)

    def decode_unit(self, unit: bytes) -> CodecResult[Optional[int]]:
        """Convert one code unit to its code point.

        Raises:
            ValueError: If `unit` is not 1-4 bytes long
        """
        if not 1 <= len(unit) <= 4:
            raise ValueError("code unit must be 1-4 bytes long")

        length, error = self._check_structure(unit, 0)
        if error:
            return CodecResult(None, error)
        if length != len(unit):
            return CodecResult(None, (
                f"lead byte announces {length} byte(s) but the unit has {len(unit)}"
            ))

        lead = unit[0]
        if length == 1:
            code_point = lead
        elif length == 2:
            code_point = (lead & 0x1F) << 6 | (unit[1] & 0x3F)
        elif length == 3:
            code_point = (lead & 0x0F) << 12 | (unit[1] & 0x3F) << 6 | (unit[2] & 0x3F)
        else:
            code_point = (
                (lead & 0x07) << 18
                | (unit[1] & 0x3F) << 12
                | (unit[2] & 0x3F) << 6
                | (unit[3] & 0x3F)
            )

        return CodecResult(code_point, self._check_code_point(code_point, length))

    def encode_code_point(self, code_point: int) -> CodecResult[bytes]:
        """Convert a code point to its UTF-8 code unit.

        Raises:
            ValueError: If `code_point` is not an integer >= 0
        """
        if isinstance(code_point, bool) or not isinstance(code_point, int) or code_point < 0:
            raise ValueError("code point must be an integer >= 0")

        if code_point > MAX_CODE_POINT:
            return CodecResult(
                REPLACEMENT_UNIT, self._check_code_point(code_point, None)
            )

        if code_point < 0x80:
            unit = bytes([code_point])
        elif code_point < 0x800:
            unit = bytes([0xC0 | code_point >> 6, 0x80 | code_point & 0x3F])
        elif code_point < 0x10000:
            unit = bytes([
                0xE0 | code_point >> 12,
                0x80 | (code_point >> 6) & 0x3F,
                0x80 | code_point & 0x3F,
            ])
        else:
            unit = bytes([
                0xF0 | code_point >> 18,
                0x80 | (code_point >> 12) & 0x3F,
                0x80 | (code_point >> 6) & 0x3F,
                0x80 | code_point & 0x3F,
            ])

        return CodecResult(unit, self._check_code_point(code_point, None))

    def decode(self, data: bytes, start: int = 0, end: Optional[int] = None) -> str:
        """Decode `data[start:end]` to text.

        Raises:
            EncodingError: On the first defective code unit, with `position`
                set to its offset in `data`
        """
        end = len(data) if end is None else end
        try:
            return data[start:end].decode("utf-8", self._decode_errors)
        except UnicodeDecodeError as e:
            bad_pos = start + e.start
            found = self.find_malformed_unit(data[:end], bad_pos)
            message = found[1] if found else e.reason
            raise EncodingError(
                f"malformed UTF-8: {message}", position=bad_pos
            ) from None

    def find_malformed_unit(self, data: bytes, start: int = 0) -> Optional[Tuple[int, str]]:
        """Scan for the first malformed code unit at or after `start`.

        Returns:
            (offset, diagnosis), or None if the data is well formed
        """
        pos = start
        while pos < len(data):
            result = self.read_code_unit(data, pos)
            if not result.ok or result.value is None:
                return pos, result.error or "unreadable code unit"
            pos += len(result.value)
        return None


def find_invalid_byte(data: bytes) -> Optional[Tuple[int, int]]:
    """Find the first byte that can never appear in UTF-8.

    Returns:
        (offset, byte value), or None if no forbidden byte is present
    """
    for pos, byte in enumerate(data):
        if byte in FORBIDDEN_LEAD_BYTES:
            return pos, byte
    return None


def step(data: bytes, pos: int) -> Optional[int]:
    """Find the next byte at or after `pos` that looks like a lead byte.

    Following bytes are not validated.

    Raises:
        IndexError: If `pos` is out of bounds
    """
    if not 0 <= pos < len(data):
        raise IndexError("byte offset is out of bounds")

    for index in range(pos, len(data)):
        byte = data[index]
        if code_unit_length(byte) is not None and byte not in FORBIDDEN_LEAD_BYTES:
            return index
    return None
