"""Immutable document tree produced by the builder.

Nodes form a tagged union of frozen dataclasses. Every node also exposes a
`kind` value from `NodeKind` for consumers that prefer switching on a value
over `isinstance` checks.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import (
    Any,
    ClassVar,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
    Union,
)


class NodeKind(Enum):
    """Kinds of node in the document tree."""

    DOCUMENT = auto()
    ELEMENT = auto()
    PROCESSING_INSTRUCTION = auto()
    CHARACTER_DATA = auto()


@dataclass(frozen=True)
class Declaration:
    """The `<?xml ...?>` declaration at the start of a document."""

    version: str
    encoding: Optional[str] = None
    standalone: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "encoding": self.encoding,
            "standalone": self.standalone,
        }


@dataclass(frozen=True)
class Attribute:
    """A name/value pair; the value is escape-resolved and normalized."""

    name: str
    value: str


@dataclass(frozen=True)
class CharacterData:
    """Text content, from plain character data or CDATA sections."""

    text: str

    kind: ClassVar[NodeKind] = NodeKind.CHARACTER_DATA

    def get_text(self) -> str:
        return self.text

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True)
class ProcessingInstruction:
    """A `<?name text?>` instruction. The text is never escape-processed."""

    name: str
    text: str = ""

    kind: ClassVar[NodeKind] = NodeKind.PROCESSING_INSTRUCTION

    def get_text(self) -> str:
        return self.text

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "pi", "name": self.name, "text": self.text}


class _ChildQueries:
    """Queries shared by nodes that own an ordered tuple of children."""

    children: Tuple["Node", ...]

    def find_child(
        self, name: str, start: int = 0
    ) -> Optional[Tuple["Element", int]]:
        """Find the first child element named `name` at index >= `start`.

        Returns:
            (child, index) or None if no such child exists

        Raises:
            TypeError: If `name` is not a string
            ValueError: If `start` is negative
        """
        if not isinstance(name, str):
            raise TypeError("Child name must be a string")
        if start < 0:
            raise ValueError("Start index cannot be negative")

        for index in range(start, len(self.children)):
            child = self.children[index]
            if isinstance(child, Element) and child.name == name:
                return child, index
        return None

    def find_children(self, name: str) -> List["Element"]:
        """Find all direct child elements named `name`."""
        return [
            child for child in self.children
            if isinstance(child, Element) and child.name == name
        ]

    def iter_elements(self) -> Iterator["Element"]:
        """Iterate over descendant elements in document order."""
        pending = [
            child for child in reversed(self.children) if isinstance(child, Element)
        ]
        while pending:
            element = pending.pop()
            yield element
            pending.extend(
                child for child in reversed(element.children)
                if isinstance(child, Element)
            )


@dataclass(frozen=True, eq=False, repr=False)
class Element(_ChildQueries):
    """An element with its attributes and children in document order.

    `attribute_index` maps each attribute name to the index of its first
    occurrence in `attributes`. It is derived, not passed in, and read-only.

    Equality, `repr()` and `to_dict()` walk the subtree with an explicit
    stack, so trees nested past the interpreter's recursion limit are safe.
    """

    name: str
    attributes: Tuple[Attribute, ...] = ()
    children: Tuple["Node", ...] = ()
    attribute_index: Mapping[str, int] = field(init=False)

    kind: ClassVar[NodeKind] = NodeKind.ELEMENT

    def __post_init__(self) -> None:
        index: Dict[str, int] = {}
        for position, attribute in enumerate(self.attributes):
            index.setdefault(attribute.name, position)
        object.__setattr__(self, "attribute_index", MappingProxyType(index))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Element):
            return NotImplemented
        pending = [(self, other)]
        while pending:
            left, right = pending.pop()
            if left is right:
                continue
            if (
                left.name != right.name
                or left.attributes != right.attributes
                or len(left.children) != len(right.children)
            ):
                return False
            for left_child, right_child in zip(left.children, right.children):
                if isinstance(left_child, Element) and isinstance(right_child, Element):
                    pending.append((left_child, right_child))
                elif left_child != right_child:
                    return False
        return True

    def __hash__(self) -> int:
        # Shallow: equal elements share name, attributes and child count.
        return hash((self.name, self.attributes, len(self.children)))

    def __repr__(self) -> str:
        return (
            f"Element(name={self.name!r}, attributes={self.attributes!r}, "
            f"children=<{len(self.children)} nodes>)"
        )

    def get_attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get the value of the first attribute called `name`."""
        index = self.attribute_index.get(name)
        if index is None:
            return default
        return self.attributes[index].value

    def has_attribute(self, name: str) -> bool:
        return name in self.attribute_index

    @property
    def text(self) -> str:
        """Concatenated text of the direct character data children."""
        return "".join(
            child.text for child in self.children if isinstance(child, CharacterData)
        )

    def iter_elements(self) -> Iterator["Element"]:
        """Iterate over this element and its descendants in document order."""
        yield self
        yield from super().iter_elements()

    def _shallow_dict(self) -> Dict[str, Any]:
        return {
            "type": "element",
            "name": self.name,
            "attributes": [
                {"name": attribute.name, "value": attribute.value}
                for attribute in self.attributes
            ],
            "children": [],
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation."""
        result = self._shallow_dict()
        pending = [(self, result)]
        while pending:
            element, data = pending.pop()
            for child in element.children:
                if isinstance(child, Element):
                    child_data = child._shallow_dict()
                    pending.append((child, child_data))
                else:
                    child_data = child.to_dict()
                data["children"].append(child_data)
        return result


Node = Union[Element, ProcessingInstruction, CharacterData]


@dataclass(frozen=True)
class Document(_ChildQueries):
    """A parsed document: optional declaration plus top-level nodes.

    The top level holds exactly one element (the root), along with any
    processing instructions and, when kept, whitespace character data.
    """

    declaration: Optional[Declaration] = None
    children: Tuple[Node, ...] = ()

    kind: ClassVar[NodeKind] = NodeKind.DOCUMENT

    def get_root_element(self) -> Optional[Element]:
        for child in self.children:
            if isinstance(child, Element):
                return child
        return None

    @property
    def element_count(self) -> int:
        """Number of elements in the whole tree."""
        return sum(1 for _ in self.iter_elements())

    def to_dict(self) -> Dict[str, Any]:
        """Convert document to dictionary representation."""
        return {
            "declaration": self.declaration.to_dict() if self.declaration else None,
            "children": [child.to_dict() for child in self.children],
        }
