"""Shared utilities for the XML subset parser.

This module provides the configuration objects, the error taxonomy, result
types and logging helpers used by every processing layer.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    ParserConfig,
    PrepassConfig,
)
from .errors import (
    ConfigRejection,
    EncodingError,
    EscapeError,
    GrammarError,
    StructuralError,
    XMLParseError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    ParseResult,
    PerformanceMetrics,
)

__all__ = [
    "ConfigError",
    "ConfigRejection",
    "ConfigValidationError",
    "CorrelationLogger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "EncodingError",
    "EscapeError",
    "GrammarError",
    "ParseResult",
    "ParserConfig",
    "PerformanceMetrics",
    "PrepassConfig",
    "StructuralError",
    "XMLParseError",
    "get_logger",
]
