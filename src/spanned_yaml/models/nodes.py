"""Immutable YAML node tree. Every node owns the span it was parsed from."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum

from spanned_yaml.models.span import Span

_TRUE_LITERALS = frozenset({"true", "True", "TRUE"})
_FALSE_LITERALS = frozenset({"false", "False", "FALSE"})


class NodeKind(StrEnum):
    SCALAR = "scalar"
    MAPPING = "mapping"
    SEQUENCE = "sequence"


# Spans are metadata: two nodes with the same content compare equal wherever
# they came from.


@dataclass(frozen=True)
class ScalarNode:
    """A scalar, always kept as the text it was written as."""

    value: str
    span: Span = field(default_factory=Span.blank, compare=False)

    @property
    def kind(self) -> NodeKind:
        return NodeKind.SCALAR

    def as_str(self) -> str:
        return self.value

    def as_bool(self) -> bool | None:
        """Coerce YAML 1.2 core-schema booleans; anything else is ``None``."""
        if self.value in _TRUE_LITERALS:
            return True
        if self.value in _FALSE_LITERALS:
            return False
        return None

    def as_scalar(self) -> ScalarNode | None:
        return self

    def as_mapping(self) -> MappingNode | None:
        return None

    def as_sequence(self) -> SequenceNode | None:
        return None


@dataclass(frozen=True)
class MappingNode:
    """Ordered ``(key, value)`` pairs; insertion order is iteration order."""

    entries: tuple[tuple[ScalarNode, Node], ...] = ()
    span: Span = field(default_factory=Span.blank, compare=False)

    @property
    def kind(self) -> NodeKind:
        return NodeKind.MAPPING

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[tuple[ScalarNode, Node]]:
        return iter(self.entries)

    def __contains__(self, key: object) -> bool:
        return self.get_entry(key) is not None

    def get_entry(self, key: object) -> tuple[ScalarNode, Node] | None:
        """Return the first ``(key node, value node)`` whose key text matches."""
        for entry in self.entries:
            if entry[0].value == key:
                return entry
        return None

    def get(self, key: str) -> Node | None:
        entry = self.get_entry(key)
        return entry[1] if entry is not None else None

    def keys(self) -> list[str]:
        return [k.value for k, _ in self.entries]

    def as_scalar(self) -> ScalarNode | None:
        return None

    def as_mapping(self) -> MappingNode | None:
        return self

    def as_sequence(self) -> SequenceNode | None:
        return None


@dataclass(frozen=True)
class SequenceNode:
    """An ordered list of nodes."""

    items: tuple[Node, ...] = ()
    span: Span = field(default_factory=Span.blank, compare=False)

    @property
    def kind(self) -> NodeKind:
        return NodeKind.SEQUENCE

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.items)

    def __getitem__(self, index: int) -> Node:
        return self.items[index]

    def get(self, index: int) -> Node | None:
        if 0 <= index < len(self.items):
            return self.items[index]
        return None

    def as_scalar(self) -> ScalarNode | None:
        return None

    def as_mapping(self) -> MappingNode | None:
        return None

    def as_sequence(self) -> SequenceNode | None:
        return self


Node = ScalarNode | MappingNode | SequenceNode
