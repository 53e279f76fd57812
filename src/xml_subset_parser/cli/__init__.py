"""Command-line interface module for the XML subset parser.

This module provides the xml-subset tool for parsing, validating and
dumping documents.
"""

from .main import main

__all__ = ["main"]
