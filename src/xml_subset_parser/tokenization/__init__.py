"""Tokenization layer for the XML subset parser.

This module provides the byte scanner that the tree builder drives, and the
XML Name grammar and reference resolution it consults.

Key Components:
    Scanner: Cursor over the prepassed byte buffer with line/column reporting
    EscapeResolver: Resolves predefined entity and character references
    validate_name: Checks a name against the XML Name grammar
"""

from .names import (
    NAME_CHAR_RANGES,
    NAME_START_RANGES,
    PREDEFINED_ENTITIES,
    XML_CHAR_RANGES,
    EscapeResolver,
    in_ranges,
    is_xml_char,
    normalize_attribute_whitespace,
    validate_name,
)
from .scanner import Scanner

__all__ = [
    "NAME_CHAR_RANGES",
    "NAME_START_RANGES",
    "PREDEFINED_ENTITIES",
    "XML_CHAR_RANGES",
    "EscapeResolver",
    "Scanner",
    "in_ranges",
    "is_xml_char",
    "normalize_attribute_whitespace",
    "validate_name",
]
