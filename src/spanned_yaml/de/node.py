"""Node-aware decoders: one per node kind, plus the bridge dispatching to them."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, assert_never

from spanned_yaml.de.numeral import ParseFloatError, ParseIntError, parse_float, parse_int
from spanned_yaml.de.protocol import (
    END,
    Decoder,
    FloatWidth,
    ForwardToAny,
    IntWidth,
    MapAccess,
    SeqAccess,
    Seed,
    Visitor,
)
from spanned_yaml.de.reserved import is_spanned_request
from spanned_yaml.de.spanned_access import SpannedAccess
from spanned_yaml.errors import FloatParseFailure, IntegerParseFailure, NotBoolean
from spanned_yaml.models.nodes import MappingNode, Node, ScalarNode, SequenceNode


def kind_decoder(node: Node) -> Decoder:
    """Pick the decoder for *node*'s kind."""
    match node:
        case ScalarNode():
            return ScalarDecoder(node)
        case MappingNode():
            return MappingDecoder(node)
        case SequenceNode():
            return SequenceDecoder(node)
        case _:
            assert_never(node)


def _forward(request: str) -> Callable[..., Any]:
    def forward(self: NodeDecoder, *args: Any) -> Any:
        return getattr(kind_decoder(self.node), request)(*args)

    forward.__name__ = request
    return forward


class NodeDecoder(Decoder):
    """Decoder for any node: forwards every request, unchanged, to the kind decoder."""

    def __init__(self, node: Node) -> None:
        self.node = node

    decode_any = _forward("decode_any")
    decode_bool = _forward("decode_bool")
    decode_int = _forward("decode_int")
    decode_float = _forward("decode_float")
    decode_char = _forward("decode_char")
    decode_str = _forward("decode_str")
    decode_bytes = _forward("decode_bytes")
    decode_option = _forward("decode_option")
    decode_unit = _forward("decode_unit")
    decode_newtype = _forward("decode_newtype")
    decode_seq = _forward("decode_seq")
    decode_tuple = _forward("decode_tuple")
    decode_map = _forward("decode_map")
    decode_struct = _forward("decode_struct")
    decode_enum = _forward("decode_enum")
    decode_identifier = _forward("decode_identifier")
    decode_ignored_any = _forward("decode_ignored_any")


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------


class ScalarDecoder(ForwardToAny):
    """Renders a scalar's text as whatever primitive was asked for."""

    def __init__(self, node: ScalarNode) -> None:
        self.node = node

    def decode_any(self, visitor: Visitor) -> Any:
        return visitor.visit_str(self.node.value)

    def decode_bool(self, visitor: Visitor) -> Any:
        value = self.node.as_bool()
        if value is None:
            raise NotBoolean(self.node.span)
        return visitor.visit_bool(value)

    def decode_int(self, width: IntWidth, visitor: Visitor) -> Any:
        try:
            value = parse_int(self.node.value, width)
        except ParseIntError as exc:
            raise IntegerParseFailure(exc, self.node.span) from exc
        return visitor.visit_int(value)

    def decode_float(self, width: FloatWidth, visitor: Visitor) -> Any:
        try:
            value = parse_float(self.node.value, width)
        except ParseFloatError as exc:
            raise FloatParseFailure(exc, self.node.span) from exc
        return visitor.visit_float(value)

    def decode_option(self, visitor: Visitor) -> Any:
        # A scalar is never absence; missing fields are.
        return visitor.visit_some(self)

    def decode_struct(self, name: str, fields: Sequence[str], visitor: Visitor) -> Any:
        if is_spanned_request(name, fields):
            return visitor.visit_map(SpannedAccess(self.node.span, self))
        return self.decode_any(visitor)


# ---------------------------------------------------------------------------
# Mappings
# ---------------------------------------------------------------------------


class MappingCursor(MapAccess):
    """Yields a mapping's entries in insertion order, decoding values lazily."""

    def __init__(self, node: MappingNode) -> None:
        self._entries = node.entries
        self._pos = 0
        self._key_taken = False

    def next_key(self, seed: Seed) -> Any:
        if self._pos >= len(self._entries):
            return END
        key = seed.decode(ScalarDecoder(self._entries[self._pos][0]))
        self._key_taken = True
        return key

    def next_value(self, seed: Seed) -> Any:
        if not self._key_taken:
            raise RuntimeError("next_value called before next_key")
        _, value = self._entries[self._pos]
        self._pos += 1
        self._key_taken = False
        return seed.decode(NodeDecoder(value))

    def size_hint(self) -> int | None:
        return len(self._entries) - self._pos


class MappingDecoder(ForwardToAny):
    def __init__(self, node: MappingNode) -> None:
        self.node = node

    def decode_any(self, visitor: Visitor) -> Any:
        return visitor.visit_map(MappingCursor(self.node))

    def decode_option(self, visitor: Visitor) -> Any:
        return visitor.visit_some(self)

    def decode_struct(self, name: str, fields: Sequence[str], visitor: Visitor) -> Any:
        if is_spanned_request(name, fields):
            return visitor.visit_map(SpannedAccess(self.node.span, self))
        return self.decode_any(visitor)


# ---------------------------------------------------------------------------
# Sequences
# ---------------------------------------------------------------------------


class SequenceCursor(SeqAccess):
    def __init__(self, node: SequenceNode) -> None:
        self._items = node.items
        self._pos = 0

    def next_element(self, seed: Seed) -> Any:
        if self._pos >= len(self._items):
            return END
        item = self._items[self._pos]
        self._pos += 1
        return seed.decode(NodeDecoder(item))

    def size_hint(self) -> int | None:
        return len(self._items) - self._pos


class SequenceDecoder(ForwardToAny):
    def __init__(self, node: SequenceNode) -> None:
        self.node = node

    def decode_any(self, visitor: Visitor) -> Any:
        return visitor.visit_seq(SequenceCursor(self.node))

    def decode_option(self, visitor: Visitor) -> Any:
        return visitor.visit_some(self)

    def decode_struct(self, name: str, fields: Sequence[str], visitor: Visitor) -> Any:
        if is_spanned_request(name, fields):
            return visitor.visit_map(SpannedAccess(self.node.span, self))
        return self.decode_any(visitor)
