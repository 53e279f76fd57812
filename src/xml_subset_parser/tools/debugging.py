"""Debugging helpers for the XML subset parser.

Provides a label stack that traces the builder's progress through nested
constructs, and a tree dump that re-serializes a parsed document.
"""

from typing import TYPE_CHECKING, Callable, List, Optional, Tuple, Union

from xml_subset_parser.shared.logging import CorrelationLogger, get_logger

if TYPE_CHECKING:
    from xml_subset_parser.tree.nodes import Document, Element, Node

TraceCallback = Callable[[str, str, int], None]

STACK_ROOT_LABEL = "<stack_root>"
DEFAULT_MAX_LABELS = 65536

_TEXT_ESCAPES = {"&": "&amp;", "<": "&lt;", ">": "&gt;"}


class LabelStack:
    """Stack of labels naming the construct currently being parsed.

    Each push and pop is forwarded to an optional trace callback as
    `(event, label, depth)`, where event is "push" or "pop", and logged at
    DEBUG level.
    """

    def __init__(
        self,
        trace: Optional[TraceCallback] = None,
        logger: Optional[CorrelationLogger] = None,
        max_labels: int = DEFAULT_MAX_LABELS
    ) -> None:
        if max_labels < 1:
            raise ValueError("max_labels must be at least 1")
        self.trace = trace
        self.logger = logger or get_logger(__name__, component="label_stack")
        self.max_labels = max_labels
        self._labels: List[str] = [STACK_ROOT_LABEL]

    @property
    def top(self) -> str:
        return self._labels[-1]

    @property
    def depth(self) -> int:
        """Number of labels pushed above the root label."""
        return len(self._labels) - 1

    @property
    def labels(self) -> List[str]:
        return list(self._labels)

    def push(self, label: str) -> None:
        """Push a label.

        Raises:
            OverflowError: If the stack already holds `max_labels` labels
        """
        if len(self._labels) >= self.max_labels:
            raise OverflowError(f"label stack overflow ({self.max_labels} labels)")
        self._labels.append(label)
        self._emit("push", label)

    def pop(self) -> str:
        """Pop the top label.

        Raises:
            IndexError: If only the root label remains
        """
        if len(self._labels) == 1:
            raise IndexError("cannot pop the root label")
        label = self._labels.pop()
        self._emit("pop", label)
        return label

    def format_stack(self) -> str:
        """Render the stack, root first, one numbered label per line."""
        return "\n".join(
            f"> ({index}) {label}" for index, label in enumerate(self._labels, 1)
        )

    def _emit(self, event: str, label: str) -> None:
        depth = self.depth
        if self.trace is not None:
            self.trace(event, label, depth)
        if self.logger.is_debug_enabled():
            marker = "+" if event == "push" else "-"
            self.logger.debug(
                f"{' ' * depth}{marker}{label}",
                extra={"event": event, "label": label, "depth": depth}
            )


def _escape_text(text: str) -> str:
    return "".join(_TEXT_ESCAPES.get(char, char) for char in text)


def _format_attribute(name: str, value: str) -> str:
    # Values containing a double quote are wrapped in single quotes.
    quote = "'" if '"' in value else '"'
    escaped = _escape_text(value)
    if quote == "'":
        escaped = escaped.replace("'", "&apos;")
    return f"{name}={quote}{escaped}{quote}"


def _dump_nodes(nodes: List["Node"], lines: List[str], depth: int) -> None:
    from xml_subset_parser.tree.nodes import (
        CharacterData,
        Element,
        ProcessingInstruction,
    )

    # Entries are nodes still to render or closing-tag lines already rendered.
    pending: List[Tuple[Union["Node", str], int]] = [
        (node, depth) for node in reversed(nodes)
    ]
    while pending:
        node, level = pending.pop()
        indent = " " * level
        if isinstance(node, str):
            lines.append(f"{indent}{node}")
        elif isinstance(node, Element):
            opening = node.name
            if node.attributes:
                opening += " " + " ".join(
                    _format_attribute(a.name, a.value) for a in node.attributes
                )
            if not node.children:
                lines.append(f"{indent}<{opening}/>")
            else:
                lines.append(f"{indent}<{opening}>")
                pending.append((f"</{node.name}>", level))
                pending.extend((child, level + 1) for child in reversed(node.children))
        elif isinstance(node, ProcessingInstruction):
            text = f" {node.text}" if node.text else ""
            lines.append(f"{indent}<?{node.name}{text}?>")
        elif isinstance(node, CharacterData):
            lines.append(f"{indent}{_escape_text(node.text)}")
        else:
            raise TypeError(f"Unknown node type: {type(node).__name__}")


def dump_tree(entity: Union["Document", "Element"]) -> str:
    """Re-serialize a document or element, one construct per line.

    Nested constructs are indented by one space per level. The output is a
    readable overview of the tree, not a byte-exact copy of the source.
    """
    from xml_subset_parser.tree.nodes import Document, Element

    lines: List[str] = []
    if isinstance(entity, Document):
        declaration = entity.declaration
        if declaration is not None:
            parts = [f'version="{declaration.version}"']
            if declaration.encoding is not None:
                parts.append(f'encoding="{declaration.encoding}"')
            if declaration.standalone is not None:
                parts.append(f'standalone="{declaration.standalone}"')
            lines.append(f"<?xml {' '.join(parts)}?>")
        _dump_nodes(list(entity.children), lines, 0)
    elif isinstance(entity, Element):
        _dump_nodes([entity], lines, 0)
    else:
        raise TypeError("dump_tree expects a Document or an Element")
    return "\n".join(lines) + "\n" if lines else ""
