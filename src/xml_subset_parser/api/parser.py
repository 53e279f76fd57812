"""Parser API for the XML subset parser.

Progressive disclosure, from module-level functions to a configured parser
class:

- `parse()` / `parse_file()` return a Document and raise `XMLParseError`
  subclasses on the first defect.
- `try_parse()` never raises for malformed input; it returns a
  `ParseResult` carrying either the document or the error, plus timing.
- `XMLSubsetParser` holds a configuration for reuse and keeps statistics.
"""

import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from xml_subset_parser.shared import (
    DiagnosticSeverity,
    ParseResult,
    ParserConfig,
    PerformanceMetrics,
    XMLParseError,
    get_logger,
)
from xml_subset_parser.tools.debugging import TraceCallback
from xml_subset_parser.tree import Document, XMLTreeBuilder

# Type definitions for input data
InputType = Union[str, bytes, bytearray]
PathType = Union[str, Path]

MS_PER_SECOND = 1000  # Milliseconds per second conversion


def _to_bytes(input_data: InputType) -> bytes:
    """Normalize accepted input types to a byte buffer.

    Text is encoded as UTF-8. Lone surrogates are carried through so that
    the codec reports them with a position.
    """
    if isinstance(input_data, bytes):
        return input_data
    if isinstance(input_data, bytearray):
        return bytes(input_data)
    if isinstance(input_data, str):
        return input_data.encode("utf-8", "surrogatepass")
    raise TypeError(
        f"Expected str, bytes or bytearray, got {type(input_data).__name__}"
    )


def _read_file(file_path: PathType) -> bytes:
    path_obj = Path(file_path) if isinstance(file_path, str) else file_path
    with path_obj.open("rb") as file:
        return file.read()


def parse(
    input_data: InputType,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> Document:
    """Parse a document held in memory.

    Args:
        input_data: UTF-8 bytes, or text (encoded as UTF-8 before parsing)
        config: Parser configuration (defaults to `ParserConfig()`)
        correlation_id: Optional correlation ID for request tracking

    Returns:
        The parsed Document

    Raises:
        XMLParseError: The first defect found, with line and column
        TypeError: If `input_data` is not text or bytes

    Examples:
        >>> document = parse('<root><item>value</item></root>')
        >>> document.get_root_element().name
        'root'
    """
    return XMLSubsetParser(config=config, correlation_id=correlation_id).parse(
        input_data
    )


def parse_file(
    file_path: PathType,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> Document:
    """Parse a document from a file, read in binary mode.

    Raises:
        XMLParseError: The first defect found, with line and column
        OSError: If the file cannot be read
    """
    return XMLSubsetParser(config=config, correlation_id=correlation_id).parse_file(
        file_path
    )


def try_parse(
    input_data: InputType,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse a document and report the outcome instead of raising.

    Examples:
        >>> result = try_parse('<root>')
        >>> result.success
        False
        >>> result.error.line
        1
    """
    return XMLSubsetParser(config=config, correlation_id=correlation_id).try_parse(
        input_data
    )


class XMLSubsetParser:
    """Configured parser for reuse across many documents.

    The parser holds immutable configuration plus lock-guarded usage
    counters, and every parse runs with its own scanner and element stack,
    so one instance can be shared between threads.

    Attributes:
        config: Parser configuration
        trace: Optional label trace callback passed to the tree builder
        correlation_id: Correlation ID for request tracking

    Examples:
        >>> parser = XMLSubsetParser(ParserConfig.lenient())
        >>> results = [parser.try_parse(xml) for xml in ['<a/>', '<b>']]
        >>> [r.success for r in results]
        [True, False]
        >>> parser.statistics["total_parses"]
        2
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        trace: Optional[TraceCallback] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or ParserConfig()
        self.trace = trace
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "xml_subset_parser")
        self._tree_builder = XMLTreeBuilder(
            self.config, trace=trace, correlation_id=self.correlation_id
        )

        self._lock = threading.RLock()
        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0

    def parse(self, input_data: InputType) -> Document:
        """Parse a document, raising on the first defect.

        Raises:
            XMLParseError: The first defect found, with line and column
        """
        result = self.try_parse(input_data)
        if result.error is not None:
            raise result.error
        return result.document

    def parse_file(self, file_path: PathType) -> Document:
        """Parse a document from a file.

        Raises:
            XMLParseError: The first defect found, with line and column
            OSError: If the file cannot be read
        """
        self.logger.info("Reading input file", extra={"file_path": str(file_path)})
        return self.parse(_read_file(file_path))

    def try_parse(self, input_data: InputType) -> ParseResult:
        """Parse a document and wrap the outcome in a ParseResult.

        Only `XMLParseError` is captured; anything else is a bug and
        propagates.
        """
        data = _to_bytes(input_data)
        start_time = time.time()

        self.logger.info(
            "Starting parse",
            extra={
                "input_type": type(input_data).__name__,
                "byte_count": len(data),
                "config_name": self.config.name,
            }
        )

        document: Optional[Document] = None
        error: Optional[XMLParseError] = None
        try:
            document = self._tree_builder.build(data)
        except XMLParseError as e:
            error = e

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        with self._lock:
            self._parse_count += 1
            self._total_processing_time += processing_time
            if error is None:
                self._successful_parses += 1

        result = ParseResult(
            document=document,
            error=error,
            performance=PerformanceMetrics(
                processing_time_ms=processing_time,
                bytes_processed=len(data),
                elements_built=document.element_count if document else 0,
            ),
            correlation_id=self.correlation_id,
        )

        if error is None:
            self.logger.info(
                "Parse completed",
                extra={
                    "element_count": result.element_count,
                    "processing_time_ms": processing_time,
                }
            )
        else:
            position = (
                {"line": error.line, "column": error.column}
                if error.line is not None else None
            )
            result.add_diagnostic(
                DiagnosticSeverity.ERROR,
                error.message,
                error.category,
                position=position,
                details={"error_type": type(error).__name__, "offset": error.position},
            )
            self.logger.warning(
                "Parse failed",
                extra={
                    "error_type": type(error).__name__,
                    "error_message": error.message,
                    "line": error.line,
                    "column": error.column,
                    "processing_time_ms": processing_time,
                }
            )

        return result

    def reconfigure(self, config: ParserConfig) -> None:
        """Replace the configuration used for subsequent parses."""
        self.config = config
        self._tree_builder = XMLTreeBuilder(
            config, trace=self.trace, correlation_id=self.correlation_id
        )
        self.logger.info("Parser reconfigured", extra={"config_name": config.name})

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get parser usage statistics."""
        with self._lock:
            parse_count = self._parse_count
            successful_parses = self._successful_parses
            total_time = self._total_processing_time
        return {
            "total_parses": parse_count,
            "successful_parses": successful_parses,
            "success_rate": (
                successful_parses / parse_count if parse_count > 0 else 0.0
            ),
            "total_processing_time_ms": total_time,
            "average_processing_time_ms": (
                total_time / parse_count if parse_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset parser usage statistics."""
        with self._lock:
            self._parse_count = 0
            self._total_processing_time = 0.0
            self._successful_parses = 0

        self.logger.info("Parser statistics reset")
