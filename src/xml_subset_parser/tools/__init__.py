"""Developer tools for the XML subset parser."""

from .debugging import LabelStack, dump_tree

__all__ = ["LabelStack", "dump_tree"]
