"""Error taxonomy for the XML subset parser.

All parse errors are fail-fast: the first defect aborts the parse and no
partial tree is returned. Every error carries the 0-based byte position in
the (prepassed) buffer and the 1-based line and column derived from it.
"""

from typing import Any, Dict, Optional


class XMLParseError(Exception):
    """Base class for every failure raised while parsing a document."""

    category = "parse"

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        position: Optional[int] = None
    ) -> None:
        self.message = message
        self.line = line
        self.column = column
        self.position = position
        super().__init__(self._format())

    def _format(self) -> str:
        if self.line is None:
            return self.message
        return f"Line {self.line}, Column {self.column}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "type": type(self).__name__,
            "category": self.category,
            "message": self.message,
            "line": self.line,
            "column": self.column,
            "position": self.position,
        }


class EncodingError(XMLParseError):
    """Malformed or forbidden byte sequences, overlong forms, surrogates."""

    category = "encoding"


class StructuralError(XMLParseError):
    """Unbalanced tags, misplaced constructs, premature end of input."""

    category = "structure"


class GrammarError(XMLParseError):
    """A name that does not follow the XML Name grammar."""

    category = "grammar"


class EscapeError(XMLParseError):
    """An entity or character reference that could not be resolved."""

    category = "escape"


class ConfigRejection(XMLParseError):
    """Buffer rejected by one of the prepass checks."""

    category = "prepass"
