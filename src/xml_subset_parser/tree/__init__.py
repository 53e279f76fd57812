"""Tree layer for the XML subset parser.

This module provides the immutable document model and the builder that
assembles it from a byte buffer.
"""

from .nodes import (
    Attribute,
    CharacterData,
    Declaration,
    Document,
    Element,
    Node,
    NodeKind,
    ProcessingInstruction,
)
from .builder import XMLTreeBuilder

__all__ = [
    "Attribute",
    "CharacterData",
    "Declaration",
    "Document",
    "Element",
    "Node",
    "NodeKind",
    "ProcessingInstruction",
    "XMLTreeBuilder",
]
