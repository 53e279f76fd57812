"""Whole-buffer prepass run before scanning.

The prepass rejects byte order marks for unsupported encodings, strips a UTF-8
BOM, normalizes line endings, and (when enabled) walks the buffer once to
reject NUL bytes, malformed UTF-8 and code points outside the XML Char
production.
"""

import re
from dataclasses import dataclass
from typing import ClassVar, Dict, Optional

from xml_subset_parser.shared.config import PrepassConfig
from xml_subset_parser.shared.errors import ConfigRejection, EncodingError
from xml_subset_parser.shared.logging import get_logger

from .utf8 import UTF8Codec, locate

UTF8_BOM = b"\xef\xbb\xbf"

# Characters outside https://www.w3.org/TR/xml/#charsets
_UNSUPPORTED_CHAR = re.compile(
    "[^\t\n\r\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)


@dataclass
class PrepassResult:
    """Buffer ready for scanning, plus what the prepass did to it."""

    data: bytes
    bom_stripped: bool = False
    line_endings_normalized: int = 0
    validated: bool = False


class BOMDetector:
    """Byte Order Mark (BOM) detection for encodings this parser rejects."""

    # Longest patterns first so UTF-32-LE is not mistaken for UTF-16-LE.
    UNSUPPORTED_BOMS: ClassVar[Dict[bytes, str]] = {
        b"\xff\xfe\x00\x00": "utf-32-le",
        b"\x00\x00\xfe\xff": "utf-32-be",
        b"\xff\xfe": "utf-16-le",
        b"\xfe\xff": "utf-16-be",
    }

    def detect_unsupported(self, data: bytes) -> Optional[str]:
        """Get the name of an unsupported encoding announced by a BOM."""
        for bom_bytes, encoding in self.UNSUPPORTED_BOMS.items():
            if data.startswith(bom_bytes):
                return encoding
        return None


def normalize_line_endings(data: bytes) -> bytes:
    """Collapse CRLF pairs and lone CRs to LF."""
    return data.replace(b"\r\n", b"\n").replace(b"\r", b"\n")


def _rejection(data: bytes, message: str, pos: int, error_type: type = ConfigRejection):
    line, column = locate(data, pos)
    return error_type(
        f"XML prepass failure: {message}", line=line, column=column, position=pos
    )


def run_prepass(
    data: bytes,
    config: PrepassConfig,
    codec: UTF8Codec,
    correlation_id: Optional[str] = None
) -> PrepassResult:
    """Prepare a raw buffer for scanning.

    Raises:
        EncodingError: UTF-16/UTF-32 BOM or malformed UTF-8
        ConfigRejection: NUL byte or unsupported code point
    """
    logger = get_logger(__name__, correlation_id, "prepass")
    result = PrepassResult(data=data)

    unsupported = BOMDetector().detect_unsupported(data)
    if unsupported:
        raise EncodingError(
            f"{unsupported} input is not supported (UTF-8 only)",
            line=1, column=1, position=0,
        )

    if config.strip_bom and data.startswith(UTF8_BOM):
        data = data[len(UTF8_BOM):]
        result.bom_stripped = True

    if config.normalize_line_endings and b"\r" in data:
        result.line_endings_normalized = data.count(b"\r")
        data = normalize_line_endings(data)

    if config.enabled:
        if config.check_nul:
            nul_pos = data.find(b"\x00")
            if nul_pos != -1:
                raise _rejection(
                    data, "document cannot contain NUL (0x00) bytes", nul_pos
                )

        try:
            text = codec.decode(data)
        except EncodingError as e:
            raise _rejection(data, e.message, e.position or 0, EncodingError) from None

        if config.check_unsupported_chars:
            match = _UNSUPPORTED_CHAR.search(text)
            if match:
                char_pos = len(
                    text[:match.start()].encode("utf-8", "surrogatepass")
                )
                raise _rejection(
                    data,
                    f"unsupported character U+{ord(match.group()):04X}",
                    char_pos,
                )
        result.validated = True

    result.data = data
    logger.debug(
        "Prepass completed",
        extra={
            "byte_count": len(data),
            "bom_stripped": result.bom_stripped,
            "line_endings_normalized": result.line_endings_normalized,
            "validated": result.validated,
        }
    )
    return result
