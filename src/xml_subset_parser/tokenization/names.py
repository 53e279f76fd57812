"""XML Name grammar and reference (escape) resolution.

Names are checked per code point against the NameStartChar / NameChar
productions of XML 1.0 (fifth edition). References cover the five predefined
entities plus decimal and hexadecimal character references.
"""

import re
from typing import Dict, List, Optional, Tuple

from xml_subset_parser.character.utf8 import UTF8Codec
from xml_subset_parser.shared.errors import EscapeError

Range = Tuple[int, int]

# https://www.w3.org/TR/xml/#charsets
XML_CHAR_RANGES: List[Range] = [
    (0x0009, 0x000A),
    (0x000D, 0x000D),
    (0x0020, 0xD7FF),
    (0xE000, 0xFFFD),
    (0x10000, 0x10FFFF),
]

# https://www.w3.org/TR/xml/#NT-NameStartChar
NAME_START_RANGES: List[Range] = [
    (ord(":"), ord(":")),
    (ord("A"), ord("Z")),
    (ord("_"), ord("_")),
    (ord("a"), ord("z")),
    (0xC0, 0xD6),
    (0xD8, 0xF6),
    (0xF8, 0x2FF),
    (0x370, 0x37D),
    (0x37F, 0x1FFF),
    (0x200C, 0x200D),
    (0x2070, 0x218F),
    (0x2C00, 0x2FEF),
    (0x3001, 0xD7FF),
    (0xF900, 0xFDCF),
    (0xFDF0, 0xFFFD),
    (0x10000, 0xEFFFF),
]

# Allowed after the first code point, in addition to NAME_START_RANGES.
NAME_CHAR_RANGES: List[Range] = [
    (ord("-"), ord(".")),
    (ord("0"), ord("9")),
    (0xB7, 0xB7),
    (0x0300, 0x036F),
    (0x203F, 0x2040),
]

PREDEFINED_ENTITIES: Dict[str, str] = {
    "lt": "<",
    "gt": ">",
    "amp": "&",
    "quot": '"',
    "apos": "'",
}

# Whitespace replaced by a single space inside quoted values.
_ATTRIBUTE_WHITESPACE = re.compile("[ \t\r\n]")
_DECIMAL_REFERENCE = re.compile("#([0-9]+)")
_HEX_REFERENCE = re.compile("#x([0-9A-Fa-f]+)")


def in_ranges(table: List[Range], code_point: int) -> bool:
    """Check if a code point falls in one of a sorted list of inclusive ranges."""
    for start, end in table:
        if code_point < start:
            return False
        if code_point <= end:
            return True
    return False


def is_xml_char(code_point: int) -> bool:
    """Check whether a code point may appear in an XML document."""
    return in_ranges(XML_CHAR_RANGES, code_point)


def validate_name(name: str) -> Optional[str]:
    """Check a name against the XML Name grammar.

    Returns:
        A diagnosis naming the offending character, or None if valid
    """
    if not name:
        return "XML Name cannot be empty"

    for index, char in enumerate(name):
        code_point = ord(char)
        if in_ranges(NAME_START_RANGES, code_point):
            continue
        if index == 0:
            return f"invalid first character in XML Name: U+{code_point:04X}"
        if not in_ranges(NAME_CHAR_RANGES, code_point):
            return (
                f"invalid character #{index + 1} in XML Name: U+{code_point:04X}"
            )
    return None


def normalize_attribute_whitespace(text: str) -> str:
    """Replace each space, tab, CR and LF with a single space (0x20)."""
    return _ATTRIBUTE_WHITESPACE.sub(" ", text)


class EscapeResolver:
    """Resolves `&...;` references in character data and quoted values.

    Attributes:
        codec: Codec used to validate numeric references
        ignore_bad_escapes: Pass unresolved references through verbatim
            instead of failing. Forbidden by XML; useful when debugging.
    """

    def __init__(self, codec: UTF8Codec, ignore_bad_escapes: bool = False) -> None:
        self.codec = codec
        self.ignore_bad_escapes = ignore_bad_escapes

    def resolve_reference(self, body: str) -> Optional[str]:
        """Resolve the text between `&` and `;`.

        Returns:
            The replacement text, or None if the reference is not resolvable
        """
        if body in PREDEFINED_ENTITIES:
            return PREDEFINED_ENTITIES[body]

        match = _HEX_REFERENCE.fullmatch(body)
        if match:
            code_point = int(match.group(1), 16)
        else:
            match = _DECIMAL_REFERENCE.fullmatch(body)
            if not match:
                return None
            code_point = int(match.group(1))

        unit = self.codec.encode_code_point(code_point)
        if not unit.ok or not is_xml_char(code_point):
            return None
        return unit.value.decode("utf-8")

    def unescape(self, text: str) -> str:
        """Replace every reference in `text`.

        Raises:
            EscapeError: `&` without a closing `;`, or an unresolved
                reference while not lenient. `position` holds the character
                index of the `&` within `text`.
        """
        if "&" not in text:
            return text

        pieces = []
        last = 0
        while True:
            amp = text.find("&", last)
            if amp == -1:
                pieces.append(text[last:])
                break

            semicolon = text.find(";", amp + 1)
            if semicolon == -1:
                raise EscapeError(
                    "couldn't parse escape sequence: found '&' without closing ';'",
                    position=amp,
                )

            pieces.append(text[last:amp])
            body = text[amp + 1:semicolon]
            replacement = self.resolve_reference(body)
            if replacement is None:
                if not self.ignore_bad_escapes:
                    raise EscapeError(
                        f"unknown escape sequence '&{body};'", position=amp
                    )
                replacement = f"&{body};"
            pieces.append(replacement)
            last = semicolon + 1

        return "".join(pieces)
