"""Public parsing API for the XML subset parser."""

from .parser import XMLSubsetParser, parse, parse_file, try_parse

__all__ = ["XMLSubsetParser", "parse", "parse_file", "try_parse"]
