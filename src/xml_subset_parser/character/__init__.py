"""Character processing layer for the XML subset parser.

This module provides the UTF-8 codec and the whole-buffer prepass.
"""

from .prepass import (
    BOMDetector,
    PrepassResult,
    normalize_line_endings,
    run_prepass,
)
from .utf8 import (
    CodecResult,
    UTF8Codec,
    code_unit_length,
    find_invalid_byte,
    locate,
    step,
)

__all__ = [
    "BOMDetector",
    "CodecResult",
    "PrepassResult",
    "UTF8Codec",
    "code_unit_length",
    "find_invalid_byte",
    "locate",
    "normalize_line_endings",
    "run_prepass",
    "step",
]
