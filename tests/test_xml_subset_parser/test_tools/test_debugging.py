"""Tests for the debugging tools."""

import logging

import pytest

from xml_subset_parser.api.parser import parse
from xml_subset_parser.tools.debugging import (
    STACK_ROOT_LABEL,
    LabelStack,
    dump_tree,
)
from xml_subset_parser.tree.nodes import (
    Attribute,
    CharacterData,
    Element,
)


class TestLabelStack:
    """Test the label stack."""

    def test_starts_with_root_label(self):
        stack = LabelStack()
        assert stack.top == STACK_ROOT_LABEL
        assert stack.depth == 0
        assert stack.labels == [STACK_ROOT_LABEL]

    def test_push_and_pop(self):
        stack = LabelStack()
        stack.push("element")
        stack.push("character_data")
        assert stack.top == "character_data"
        assert stack.depth == 2
        assert stack.pop() == "character_data"
        assert stack.top == "element"

    def test_cannot_pop_root(self):
        with pytest.raises(IndexError):
            LabelStack().pop()

    def test_overflow(self):
        stack = LabelStack(max_labels=2)
        stack.push("element")
        with pytest.raises(OverflowError):
            stack.push("element")

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            LabelStack(max_labels=0)

    def test_trace_callback(self):
        events = []
        stack = LabelStack(trace=lambda *event: events.append(event))
        stack.push("element")
        stack.push("pi")
        stack.pop()
        stack.pop()
        assert events == [
            ("push", "element", 1),
            ("push", "pi", 2),
            ("pop", "pi", 1),
            ("pop", "element", 0),
        ]

    def test_format_stack(self):
        stack = LabelStack()
        stack.push("element")
        assert stack.format_stack() == "> (1) <stack_root>\n> (2) element"

    def test_debug_logging(self, caplog):
        stack = LabelStack()
        with caplog.at_level(logging.DEBUG, logger="xml_subset_parser.tools.debugging"):
            stack.push("comment")
            stack.pop()

        messages = [record.getMessage() for record in caplog.records]
        assert messages == [" +comment", "-comment"]
        assert caplog.records[0].depth == 1


class TestDumpTree:
    """Test tree re-serialization."""

    def test_document(self):
        document = parse(
            '<?xml version="1.0"?><root a="x" b=\'say "hi"\'>'
            '<?pi data?><c>t &amp; u</c><e/></root>'
        )
        assert dump_tree(document) == (
            '<?xml version="1.0"?>\n'
            '<root a="x" b=\'say "hi"\'>\n'
            ' <?pi data?>\n'
            ' <c>\n'
            '  t &amp; u\n'
            ' </c>\n'
            ' <e/>\n'
            '</root>\n'
        )

    def test_full_declaration(self):
        document = parse('<?xml version="1.0" encoding="UTF-8" standalone="no"?><a/>')
        assert dump_tree(document).splitlines()[0] == (
            '<?xml version="1.0" encoding="UTF-8" standalone="no"?>'
        )

    def test_element(self):
        element = Element("a", (Attribute("k", "<'\">"),), (CharacterData("x"),))
        assert dump_tree(element) == "<a k='&lt;&apos;\"&gt;'>\n x\n</a>\n"

    def test_processing_instruction_without_text(self):
        assert dump_tree(parse("<a><?go?></a>")) == "<a>\n <?go?>\n</a>\n"

    def test_rejects_other_types(self):
        with pytest.raises(TypeError):
            dump_tree("<a/>")
