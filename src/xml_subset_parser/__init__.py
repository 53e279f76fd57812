"""XML Subset Parser.

A fail-fast parser that turns a restricted subset of XML, held in a single
UTF-8 byte buffer, into an immutable document tree. The first defect aborts
the parse with an error carrying its line and column.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_file(), try_parse()
- Level 2: Configured parser - XMLSubsetParser class
"""

__version__ = "0.1.0"
__author__ = "XML Subset Parser Team"

from .api import XMLSubsetParser, parse, parse_file, try_parse

# Configuration classes for advanced usage
from .shared.config import ParserConfig, PrepassConfig

# Error taxonomy
from .shared.errors import (
    ConfigRejection,
    EncodingError,
    EscapeError,
    GrammarError,
    StructuralError,
    XMLParseError,
)

# Core result objects for all API levels
from .shared.result import ParseResult
from .tree.nodes import (
    Attribute,
    CharacterData,
    Declaration,
    Document,
    Element,
    NodeKind,
    ProcessingInstruction,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple parsing functions
    "parse",
    "parse_file",
    "try_parse",

    # Level 2: Configured parser class
    "XMLSubsetParser",

    # Result objects and data structures
    "ParseResult",
    "Document",
    "Declaration",
    "Element",
    "Attribute",
    "CharacterData",
    "ProcessingInstruction",
    "NodeKind",

    # Configuration classes for advanced usage
    "ParserConfig",
    "PrepassConfig",

    # Errors
    "XMLParseError",
    "EncodingError",
    "StructuralError",
    "GrammarError",
    "EscapeError",
    "ConfigRejection",
]
