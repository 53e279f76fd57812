"""Result objects and diagnostic types for the XML subset parser.

`parse()` raises on the first defect. `try_parse()` wraps the same call and
reports the outcome through a `ParseResult` instead, which is what the CLI
and batch callers use.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .errors import XMLParseError

if TYPE_CHECKING:
    from xml_subset_parser.tree.nodes import Document


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")


@dataclass
class PerformanceMetrics:
    """Performance metrics for one parse."""

    processing_time_ms: float = 0.0
    bytes_processed: int = 0
    elements_built: int = 0

    @property
    def bytes_per_second(self) -> float:
        """Calculate bytes processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.bytes_processed * 1000.0) / self.processing_time_ms


@dataclass
class ParseResult:
    """Outcome of a non-raising parse.

    Exactly one of `document` and `error` is set.
    """

    document: Optional["Document"] = None
    error: Optional[XMLParseError] = None
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate result consistency."""
        if (self.document is None) == (self.error is None):
            raise ValueError("ParseResult needs exactly one of document or error")

    @property
    def success(self) -> bool:
        """Whether the parse produced a document."""
        return self.document is not None

    @property
    def element_count(self) -> int:
        """Get total number of elements in the document."""
        return self.performance.elements_built

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                position=position,
                details=details,
                correlation_id=self.correlation_id,
            )
        )

    def get_diagnostics_by_severity(
        self,
        severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(
            diag.severity == DiagnosticSeverity.ERROR for diag in self.diagnostics
        )
