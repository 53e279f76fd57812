"""Tree builder: turns a UTF-8 byte buffer into an immutable Document.

The builder runs the prepass, then drives a scanner through a single
fail-fast pass. Constructs are recognized by lookahead in a fixed priority
order and an explicit stack of open-element frames replaces recursion. The
first defect raises an `XMLParseError` subclass; no partial tree escapes.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Union

from xml_subset_parser.character.prepass import run_prepass
from xml_subset_parser.character.utf8 import UTF8Codec
from xml_subset_parser.shared.config import ParserConfig
from xml_subset_parser.shared.errors import (
    EscapeError,
    GrammarError,
    StructuralError,
)
from xml_subset_parser.shared.logging import CorrelationLogger, get_logger
from xml_subset_parser.tokenization.names import (
    EscapeResolver,
    normalize_attribute_whitespace,
    validate_name,
)
from xml_subset_parser.tokenization.scanner import Scanner
from xml_subset_parser.tools.debugging import LabelStack, TraceCallback

from .nodes import (
    Attribute,
    CharacterData,
    Declaration,
    Document,
    Element,
    Node,
    ProcessingInstruction,
)

DECLARATION_MARKER = re.compile(rb"<\?xml[ \t\r\n]")
DOCTYPE_MARKER = b"<!DOCTYPE"
COMMENT_MARKER = b"<!--"
PI_MARKER = b"<?"
CDATA_MARKER = b"<![CDATA["
CLOSING_TAG_MARKER = b"</"

_VERSION_NUMBER = re.compile(rb"(['\"])(1\.[0-9]+)\1")
_DECL_ENCODING = re.compile(rb"[ \t\r\n]+encoding(?=[ \t\r\n=])")
_DECL_STANDALONE = re.compile(rb"[ \t\r\n]+standalone(?=[ \t\r\n=])")
_ENCODING_NAME = re.compile(r"[A-Za-z][A-Za-z0-9._\-]*")
_STANDALONE_VALUES = ("yes", "no")
_WHITESPACE_CHARS = " \t\r\n"

# Text runs are collected in lists so that adjacent runs can be merged before
# the owning element is frozen.
TextRun = List[str]


@dataclass
class _Frame:
    """Mutable element under construction. The document frame has no name."""

    name: Optional[str]
    position: int
    attributes: List[Attribute] = field(default_factory=list)
    children: List[Union[Node, TextRun]] = field(default_factory=list)

    def add_text(self, text: str) -> None:
        if self.children and isinstance(self.children[-1], list):
            self.children[-1].append(text)
        else:
            self.children.append([text])

    def frozen_children(self) -> tuple:
        return tuple(
            CharacterData("".join(child)) if isinstance(child, list) else child
            for child in self.children
        )

    def freeze(self) -> Element:
        return Element(
            name=self.name or "",
            attributes=tuple(self.attributes),
            children=self.frozen_children(),
        )


class _BuildRun:
    """State of a single `XMLTreeBuilder.build()` call."""

    def __init__(
        self,
        data: bytes,
        config: ParserConfig,
        codec: UTF8Codec,
        labels: LabelStack,
        logger: CorrelationLogger
    ) -> None:
        self.config = config
        self.scanner = Scanner(data, codec)
        self.resolver = EscapeResolver(codec, config.ignore_bad_escapes)
        self.labels = labels
        self.logger = logger

        self.document_frame = _Frame(name=None, position=0)
        self.stack: List[_Frame] = [self.document_frame]
        self.declaration: Optional[Declaration] = None
        self.root_opened = False
        self.root_closed = False
        self.elements_built = 0

    @property
    def top(self) -> _Frame:
        return self.stack[-1]

    def run(self) -> Document:
        scanner = self.scanner
        while True:
            if scanner.at_end():
                self._handle_end_of_input()
                break

            if DECLARATION_MARKER.match(scanner.data, scanner.pos):
                self._traced("xml_decl", self._read_declaration)
            elif scanner.peek(0, len(DOCTYPE_MARKER) - 1) == DOCTYPE_MARKER:
                self._traced("doctype", self._reject_doctype)
            elif scanner.literal(COMMENT_MARKER):
                self._traced("comment", self._skip_comment)
            elif scanner.literal(PI_MARKER):
                self._traced("pi", self._read_processing_instruction)
            elif scanner.literal(CDATA_MARKER):
                self._traced("cdata", self._read_cdata)
            elif scanner.literal(CLOSING_TAG_MARKER):
                self._traced("closing_tag", self._read_closing_tag)
            elif scanner.peek() == b"<" and scanner.peek(1) != b"!":
                self._traced("element", self._read_element)
            elif scanner.peek() != b"<":
                self._traced("character_data", self._read_character_data)
            else:
                raise scanner.error(
                    StructuralError,
                    "unable to read XML declaration, PI, comment, character "
                    "data, CDATA section or element open/close",
                )

        return Document(
            declaration=self.declaration,
            children=self.document_frame.frozen_children(),
        )

    def _traced(self, label: str, handler) -> None:
        self.labels.push(label)
        handler()
        self.labels.pop()

    def _handle_end_of_input(self) -> None:
        if not self.root_opened:
            raise self.scanner.error(
                StructuralError,
                "reached end of input without finding the root element",
            )
        if not self.root_closed:
            raise self.scanner.error(
                StructuralError,
                f"reached end of input without closing element '{self.top.name}'",
            )

    def _read_name(self, reason: str) -> str:
        scanner = self.scanner
        start = scanner.pos
        raw = scanner.read_name()
        if raw is None:
            raise scanner.error(StructuralError, reason)
        name = scanner.decode(raw, start)
        if self.config.validate_names:
            problem = validate_name(name)
            if problem:
                raise scanner.error(GrammarError, problem, start)
        return name

    def _unescape(self, text: str, start: int) -> str:
        """Resolve references in `text`, which began at buffer offset `start`."""
        try:
            return self.resolver.unescape(text)
        except EscapeError as e:
            prefix = text[:e.position or 0]
            offset = len(prefix.encode("utf-8", "surrogatepass"))
            raise self.scanner.error(EscapeError, e.message, start + offset) from None

    def _step_eq(self) -> None:
        scanner = self.scanner
        scanner.skip_whitespace()
        scanner.literal_required(
            b"=", "failed to parse eq (=) separating key-value pair"
        )
        scanner.skip_whitespace()

    def _read_declaration(self) -> None:
        scanner = self.scanner
        if scanner.pos != 0:
            raise scanner.error(
                StructuralError,
                "XML declaration can only appear at the start of the document",
            )
        scanner.literal(b"<?xml")
        scanner.require_whitespace("missing whitespace after '<?xml'")
        scanner.literal_required(
            b"version", "couldn't read XML declaration mandatory version identifier"
        )
        self._step_eq()
        version = scanner.pattern_required(
            _VERSION_NUMBER, "couldn't read XML declaration version value"
        ).group(2).decode("ascii")

        encoding = None
        if scanner.pattern(_DECL_ENCODING):
            self._step_eq()
            encoding = self._read_declaration_value(
                "couldn't read XML declaration encoding value"
            )
            if not _ENCODING_NAME.fullmatch(encoding):
                raise scanner.error(
                    StructuralError, f"invalid encoding name '{encoding}'"
                )

        standalone = None
        if scanner.pattern(_DECL_STANDALONE):
            self._step_eq()
            standalone = self._read_declaration_value(
                "couldn't read XML declaration standalone value"
            )
            if standalone not in _STANDALONE_VALUES:
                raise scanner.error(
                    StructuralError,
                    f"standalone must be 'yes' or 'no', not '{standalone}'",
                )

        scanner.skip_whitespace()
        scanner.literal_required(b"?>", "couldn't find XML declaration closing '?>'")
        self.declaration = Declaration(version, encoding, standalone)

    def _read_declaration_value(self, reason: str) -> str:
        scanner = self.scanner
        start = scanner.pos
        raw = scanner.read_quoted()
        if raw is None:
            raise scanner.error(StructuralError, reason)
        return self._unescape(scanner.decode(raw, start + 1), start + 1)

    def _reject_doctype(self) -> None:
        # Nothing is recorded: the first DOCTYPE already ends the parse.
        if self.root_opened:
            raise self.scanner.error(
                StructuralError,
                "Document Type Declaration cannot appear once the document "
                "root is declared",
            )
        raise self.scanner.error(
            StructuralError, "Document Type Declarations are not supported"
        )

    def _skip_comment(self) -> None:
        scanner = self.scanner
        start = scanner.pos - len(COMMENT_MARKER)
        if scanner.read_until(b"--") is None:
            raise scanner.error(StructuralError, "couldn't find closing '--'", start)
        scanner.literal_required(
            b">", "couldn't find '>' to go with closing '--'"
        )

    def _read_processing_instruction(self) -> None:
        scanner = self.scanner
        start = scanner.pos - len(PI_MARKER)
        name = self._read_name("failed to read PI name")
        if self.config.validate_names and name.lower() == "xml":
            raise scanner.error(
                GrammarError, f"PI target '{name}' is reserved", start + 2
            )

        separated = scanner.skip_whitespace()
        text_start = scanner.pos
        raw = scanner.read_until(b"?>")
        if raw is None:
            raise scanner.error(
                StructuralError, "failed to locate PI tag close ('?>')", start
            )
        if raw and not separated:
            raise scanner.error(
                StructuralError, "missing whitespace after PI name", text_start
            )
        self.top.children.append(
            ProcessingInstruction(name, scanner.decode(raw, text_start))
        )

    def _read_cdata(self) -> None:
        scanner = self.scanner
        start = scanner.pos - len(CDATA_MARKER)
        text_start = scanner.pos
        raw = scanner.read_until(b"]]>")
        if raw is None:
            raise scanner.error(
                StructuralError, "couldn't find closing CDATA tag", start
            )
        self._add_character_data(scanner.decode(raw, text_start), start)

    def _read_character_data(self) -> None:
        scanner = self.scanner
        start = scanner.pos
        raw = scanner.read_until_or_end(b"<")
        forbidden = raw.find(b"]]>")
        if forbidden != -1:
            raise scanner.error(
                StructuralError,
                "']]>' can't appear in plain character data",
                start + forbidden,
            )
        text = self._unescape(scanner.decode(raw, start), start)
        self._add_character_data(text, start)

    def _add_character_data(self, text: str, start: int) -> None:
        whitespace_only = not text.strip(_WHITESPACE_CHARS)
        if not whitespace_only:
            if not self.root_opened:
                raise self.scanner.error(
                    StructuralError,
                    "character data appears before the root element is declared",
                    start,
                )
            if self.root_closed:
                raise self.scanner.error(
                    StructuralError,
                    "character data appears after the root element close",
                    start,
                )
        elif not self.config.keep_insignificant_whitespace:
            return
        self.top.add_text(text)

    def _read_closing_tag(self) -> None:
        scanner = self.scanner
        start = scanner.pos - len(CLOSING_TAG_MARKER)
        name = self._read_name("couldn't read closing tag name")
        scanner.skip_whitespace()
        scanner.literal_required(b">", "couldn't read '>' for closing tag")

        top = self.top
        if top.name is None or top.name != name:
            expected = f"'{top.name}'" if top.name else "no open element"
            raise scanner.error(
                StructuralError,
                f"opening/closing tag name mismatch: found '{name}', "
                f"expected {expected}",
                start,
            )
        self.stack.pop()
        self._attach(top.freeze())

    def _read_element(self) -> None:
        scanner = self.scanner
        start = scanner.pos
        if self.root_closed:
            raise scanner.error(
                StructuralError, "element appears after the root element close"
            )
        scanner.literal(b"<")

        depth = len(self.stack)
        if self.config.max_depth and depth > self.config.max_depth:
            raise scanner.error(
                StructuralError,
                f"element nesting exceeds the maximum depth of {self.config.max_depth}",
                start,
            )

        frame = _Frame(name=self._read_name("failed to read element name"), position=start)
        self.root_opened = True

        if scanner.literal(b">"):
            self.stack.append(frame)
            return
        if scanner.literal(b"/>"):
            self._attach(frame.freeze())
            return

        scanner.require_whitespace("missing required whitespace after element name")
        while True:
            if scanner.at_end():
                raise scanner.error(
                    StructuralError,
                    "reached end of input while reading element attributes",
                )
            if scanner.literal(b">"):
                self.stack.append(frame)
                return
            if scanner.literal(b"/>"):
                self._attach(frame.freeze())
                return

            self._read_attribute(frame)

            if not scanner.skip_whitespace():
                if scanner.literal(b">"):
                    self.stack.append(frame)
                    return
                if scanner.literal(b"/>"):
                    self._attach(frame.freeze())
                    return
                raise scanner.error(
                    StructuralError, "missing whitespace between attributes"
                )

    def _read_attribute(self, frame: _Frame) -> None:
        scanner = self.scanner
        name_start = scanner.pos
        name = self._read_name("fetching element attribute key failed")
        if self.config.check_duplicate_attributes and any(
            attribute.name == name for attribute in frame.attributes
        ):
            raise scanner.error(
                StructuralError, f"duplicate element attribute key '{name}'", name_start
            )

        self._step_eq()
        value_start = scanner.pos
        raw = scanner.read_quoted()
        if raw is None:
            raise scanner.error(
                StructuralError, "fetching element quoted attribute value failed"
            )
        less_than = raw.find(b"<")
        if less_than != -1:
            raise scanner.error(
                StructuralError,
                "'<' is not allowed in quoted attribute values",
                value_start + 1 + less_than,
            )

        text = normalize_attribute_whitespace(scanner.decode(raw, value_start + 1))
        frame.attributes.append(Attribute(name, self._unescape(text, value_start + 1)))

    def _attach(self, element: Element) -> None:
        self.elements_built += 1
        self.top.children.append(element)
        if self.top is self.document_frame:
            self.root_closed = True


class XMLTreeBuilder:
    """Builds immutable documents from UTF-8 byte buffers.

    The builder only holds configuration; all per-parse state lives in the
    `build()` call, so one instance can serve several threads.
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        trace: Optional[TraceCallback] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize tree builder.

        Args:
            config: Parser configuration (defaults to `ParserConfig()`)
            trace: Optional callable receiving `(event, label, depth)` for
                every construct the builder enters and leaves
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or ParserConfig()
        self.trace = trace
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "xml_tree_builder")

    def build(self, data: bytes) -> Document:
        """Parse a byte buffer into a Document.

        Raises:
            XMLParseError: The first defect found, tagged with its position
        """
        codec = UTF8Codec(check_surrogates=self.config.check_surrogates)
        prepared = run_prepass(data, self.config.prepass, codec, self.correlation_id)

        labels = LabelStack(trace=self.trace, logger=self.logger)
        build_run = _BuildRun(prepared.data, self.config, codec, labels, self.logger)
        document = build_run.run()

        self.logger.debug(
            "Document built",
            extra={
                "byte_count": len(prepared.data),
                "elements_built": build_run.elements_built,
                "has_declaration": document.declaration is not None,
            }
        )
        return document
