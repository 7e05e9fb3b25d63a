"""Recover a source span for errors raised by location-unaware code."""

from __future__ import annotations

from spanned_yaml.de.path import MapSegment, Path, SeqSegment
from spanned_yaml.errors import DecodeError, UnknownFieldError
from spanned_yaml.models.nodes import Node
from spanned_yaml.models.span import Span


def resolve(root: Node, path: Path) -> tuple[Node, Node]:
    """Follow *path* from *root* as far as it goes.

    Returns ``(parent, node)`` for the deepest node reached; both are *root*
    when not even the first segment resolves.
    """
    parent = node = root
    for segment in path:
        match segment:
            case SeqSegment(index=index):
                sequence = node.as_sequence()
                child = sequence.get(index) if sequence is not None else None
            case MapSegment(key=key):
                mapping = node.as_mapping()
                child = mapping.get(key) if mapping is not None else None
            case _:
                break
        if child is None:
            break
        parent, node = node, child
    return parent, node


def best_span(root: Node, path: Path, error: DecodeError) -> Span:
    parent, node = resolve(root, path)
    span = node.span
    if isinstance(error, UnknownFieldError):
        # The diagnostic is about the key, not its value.
        mapping = parent.as_mapping()
        entry = mapping.get_entry(error.field) if mapping is not None else None
        if entry is not None:
            span = entry[0].span
    return span


def backfill(root: Node, path: Path, error: DecodeError) -> None:
    """Attach the best span reachable along *path* to a location-less *error*."""
    error.set_span(best_span(root, path, error))
