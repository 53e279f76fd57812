"""Tests for XML Name validation and reference resolution."""

import pytest

from xml_subset_parser.character.utf8 import UTF8Codec
from xml_subset_parser.shared.errors import EscapeError
from xml_subset_parser.tokenization.names import (
    NAME_CHAR_RANGES,
    NAME_START_RANGES,
    EscapeResolver,
    in_ranges,
    is_xml_char,
    normalize_attribute_whitespace,
    validate_name,
)


class TestRanges:
    """Test range table lookups."""

    def test_name_start_ranges(self):
        assert in_ranges(NAME_START_RANGES, ord("A"))
        assert in_ranges(NAME_START_RANGES, ord(":"))
        assert not in_ranges(NAME_START_RANGES, ord("-"))
        assert not in_ranges(NAME_START_RANGES, 0xD7)

    def test_name_char_ranges(self):
        assert in_ranges(NAME_CHAR_RANGES, ord("-"))
        assert in_ranges(NAME_CHAR_RANGES, ord("7"))
        assert in_ranges(NAME_CHAR_RANGES, 0xB7)

    @pytest.mark.parametrize("code_point,expected", [
        (0x09, True),
        (0x0A, True),
        (0x0D, True),
        (0x01, False),
        (0x20, True),
        (0xD800, False),
        (0xFFFE, False),
        (0x10000, True),
        (0x10FFFF, True),
    ])
    def test_is_xml_char(self, code_point, expected):
        assert is_xml_char(code_point) is expected


class TestValidateName:
    """Test the XML Name grammar."""

    @pytest.mark.parametrize("name", ["abc", "_x:y-1.2", "é", "a·", "Layers", "中"])
    def test_valid_names(self, name):
        assert validate_name(name) is None

    def test_empty_name(self):
        assert "cannot be empty" in validate_name("")

    @pytest.mark.parametrize("name", ["1abc", "-a", ".a", "·a"])
    def test_invalid_first_character(self, name):
        assert "invalid first character" in validate_name(name)

    def test_invalid_later_character(self):
        problem = validate_name("a$b")
        assert "invalid character #2" in problem
        assert "U+0024" in problem


class TestNormalizeAttributeWhitespace:
    """Test quoted value whitespace normalization."""

    def test_each_whitespace_becomes_space(self):
        assert normalize_attribute_whitespace("a\tb\nc\rd e") == "a b c d e"

    def test_runs_are_not_collapsed(self):
        assert normalize_attribute_whitespace("a\r\n b") == "a   b"


class TestEscapeResolver:
    """Test reference resolution."""

    @pytest.fixture
    def resolver(self):
        return EscapeResolver(UTF8Codec())

    def test_predefined_entities(self, resolver):
        assert resolver.unescape("&lt;&gt;&amp;&quot;&apos;") == "<>&\"'"

    def test_mixed_references(self, resolver):
        assert resolver.unescape("123&lt;123&gt;xxx&#33;&#x21;") == "123<123>xxx!!"

    def test_numeric_references(self, resolver):
        assert resolver.unescape("&#65;") == "A"
        assert resolver.unescape("&#x41;") == "A"
        assert resolver.unescape("&#x1F600;") == "\U0001F600"

    def test_text_without_references(self, resolver):
        assert resolver.unescape("plain text") == "plain text"

    @pytest.mark.parametrize("text", ["&#X41;", "&#xD800;", "&#0;", "&#x110000;", "&#;"])
    def test_unresolvable_numeric_references(self, resolver, text):
        with pytest.raises(EscapeError, match="unknown escape sequence"):
            resolver.unescape(text)

    def test_unknown_entity(self, resolver):
        with pytest.raises(EscapeError, match="unknown escape sequence '&bad;'") as exc_info:
            resolver.unescape("xy&bad;")
        assert exc_info.value.position == 2

    def test_missing_semicolon(self, resolver):
        with pytest.raises(EscapeError, match="without closing ';'") as exc_info:
            resolver.unescape("a & b")
        assert exc_info.value.position == 2

    def test_lenient_passes_unknown_references_through(self):
        resolver = EscapeResolver(UTF8Codec(), ignore_bad_escapes=True)
        assert resolver.unescape("a&bad;b&lt;") == "a&bad;b<"

    def test_lenient_still_requires_semicolon(self):
        resolver = EscapeResolver(UTF8Codec(), ignore_bad_escapes=True)
        with pytest.raises(EscapeError):
            resolver.unescape("a & b")

    def test_resolve_reference(self, resolver):
        assert resolver.resolve_reference("amp") == "&"
        assert resolver.resolve_reference("#x41") == "A"
        assert resolver.resolve_reference("nope") is None
