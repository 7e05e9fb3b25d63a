"""Tests for from_node: plain decoding, path tracking and span backfill."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pytest

import spanned_yaml
from spanned_yaml import U8, U16, deny_unknown_fields, from_node
from spanned_yaml.de.backfill import backfill, best_span, resolve
from spanned_yaml.de.path import EnumSegment, MapSegment, Path, SeqSegment, UnknownSegment
from spanned_yaml.errors import (
    DecodeError,
    IntegerParseFailure,
    NotBoolean,
    OtherError,
    PathDecodeError,
    UnknownFieldError,
)
from spanned_yaml.models.nodes import MappingNode, Node, ScalarNode
from spanned_yaml.models.span import Marker, Span
from spanned_yaml.parser import parse_yaml


@dataclass
class Numbers:
    numbers: list[U8]


@dataclass
class WideNumbers:
    numbers: list[U16]


@deny_unknown_fields
@dataclass
class OnlySuccess:
    success: bool


@dataclass
class Flags:
    success: bool
    failure: bool
    shouting: bool


@dataclass
class Says:
    grow: str
    die: str


@dataclass
class Outer:
    says: Says


@dataclass
class HelloList:
    hello: list[str]


@dataclass
class HelloBool:
    hello: bool


@dataclass
class Required:
    name: str


@dataclass
class Server:
    port: int

    def __post_init__(self) -> None:
        if self.port <= 0:
            raise ValueError("port must be positive")


@dataclass
class Cluster:
    servers: list[Server]


class TestPlainDecode:
    def test_decode_success(self, test_doc: Node) -> None:
        assert from_node(test_doc, WideNumbers) == WideNumbers([1, 2, 3, 500])

    def test_booleans(self, test_doc: Node) -> None:
        assert from_node(test_doc, Flags) == Flags(success=True, failure=False, shouting=True)

    def test_integer_failure_keeps_node_span(self, test_doc: Node) -> None:
        with pytest.raises(IntegerParseFailure) as exc_info:
            from_node(test_doc, Numbers)
        assert str(exc_info.value) == "number too large to fit in target type"
        assert exc_info.value.start_mark == Marker(source=0, line=4, column=21)

    def test_not_boolean(self, test_doc: Node) -> None:
        with pytest.raises(NotBoolean) as exc_info:
            from_node(test_doc, HelloBool)
        assert exc_info.value.start_mark == Marker(source=0, line=1, column=8)

    def test_unknown_field_has_no_span_without_tracking(self, test_doc: Node) -> None:
        with pytest.raises(UnknownFieldError) as exc_info:
            from_node(test_doc, OnlySuccess)
        assert exc_info.value.start_mark is None
        assert exc_info.value.field == "hello"

    def test_decoding_is_deterministic(self, test_doc: Node) -> None:
        assert from_node(test_doc, WideNumbers) == from_node(test_doc, WideNumbers)


class TestPathTracking:
    def test_success_is_unchanged(self, test_doc: Node) -> None:
        assert from_node(test_doc, WideNumbers, track_path=True) == WideNumbers([1, 2, 3, 500])

    def test_sequence_index_in_path(self, test_doc: Node) -> None:
        with pytest.raises(PathDecodeError) as exc_info:
            from_node(test_doc, Numbers, track_path=True)
        err = exc_info.value
        assert str(err.path) == "numbers[3]"
        assert isinstance(err.into_inner(), IntegerParseFailure)
        assert err.start_mark == Marker(source=0, line=4, column=21)
        assert str(err) == "numbers[3]: number too large to fit in target type"

    def test_unknown_field_is_backfilled_with_key_span(self, test_doc: Node) -> None:
        with pytest.raises(PathDecodeError) as exc_info:
            from_node(test_doc, OnlySuccess, track_path=True)
        err = exc_info.value
        assert str(err.path) == "hello"
        assert isinstance(err.inner, UnknownFieldError)
        assert str(err.inner) == "Unknown field `hello`, expected `success`"
        assert str(err.start_mark) == "0:1:1"

    def test_invalid_type_is_backfilled_with_value_span(self, test_doc: Node) -> None:
        with pytest.raises(PathDecodeError) as exc_info:
            from_node(test_doc, HelloList, track_path=True)
        err = exc_info.value
        assert str(err.path) == "hello"
        assert isinstance(err.inner, OtherError)
        assert str(err.inner) == "invalid type: string 'world', expected a sequence"
        assert err.start_mark == Marker(source=0, line=1, column=8)

    def test_missing_field_points_at_mapping(self, test_doc: Node) -> None:
        with pytest.raises(PathDecodeError) as exc_info:
            from_node(test_doc, Outer, track_path=True)
        err = exc_info.value
        assert str(err.path) == "says"
        assert str(err.inner) == "missing field `die`"
        assert err.start_mark == Marker(source=0, line=3, column=7)

    def test_root_failure_on_blank_tree(self) -> None:
        with pytest.raises(PathDecodeError) as exc_info:
            from_node(MappingNode(), Required, track_path=True)
        err = exc_info.value
        assert str(err.path) == "."
        assert err.start_mark is None

    def test_located_errors_are_not_backfilled(self, test_doc: Node) -> None:
        with pytest.raises(PathDecodeError) as exc_info:
            from_node(test_doc, HelloBool, track_path=True)
        inner = exc_info.value.inner
        assert isinstance(inner, NotBoolean)
        # Still settable once: the driver left the original span alone.
        inner.set_span(Span.blank())

    def test_constructor_failure_is_located(self) -> None:
        root = parse_yaml(0, "servers:\n  - port: 1\n  - port: 0\n")
        with pytest.raises(PathDecodeError) as exc_info:
            from_node(root, Cluster, track_path=True)
        err = exc_info.value
        assert str(err.path) == "servers[1]"
        assert isinstance(err.inner, OtherError)
        assert str(err.inner) == "port must be positive"
        assert err.start_mark == Marker(source=0, line=3, column=5)

    def test_constructor_failure_without_tracking(self) -> None:
        with pytest.raises(OtherError, match="port must be positive"):
            from_node(parse_yaml(0, "servers: [{port: -1}]\n"), Cluster)

    def test_backfill_is_logged(self, test_doc: Node, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="spanned_yaml.decode")
        with pytest.raises(PathDecodeError):
            from_node(test_doc, HelloList, track_path=True)
        assert "backfilled" in caplog.text


class TestPath:
    def test_display(self) -> None:
        assert str(Path()) == "."
        assert str(Path((MapSegment("a"), MapSegment("b")))) == "a.b"
        assert str(Path((MapSegment("numbers"), SeqSegment(3)))) == "numbers[3]"
        assert str(Path((SeqSegment(0), MapSegment("x")))) == "[0].x"
        assert str(Path((SeqSegment(0), SeqSegment(1)))) == "[0][1]"
        assert str(Path((MapSegment("a"), UnknownSegment()))) == "a.?"
        assert str(Path((EnumSegment("Variant"),))) == "Variant"

    def test_enum_segment_is_not_public(self) -> None:
        assert "EnumSegment" not in spanned_yaml.__all__
        assert not hasattr(spanned_yaml, "EnumSegment")

    def test_iteration(self) -> None:
        path = Path((MapSegment("a"), SeqSegment(1)))
        assert list(path) == [MapSegment("a"), SeqSegment(1)]
        assert len(path) == 2


class TestBackfill:
    def test_resolve_follows_path(self, test_doc: MappingNode) -> None:
        parent, node = resolve(test_doc, Path((MapSegment("numbers"), SeqSegment(3))))
        assert node == ScalarNode("500")
        assert parent is test_doc.get("numbers")

    def test_resolve_stops_at_last_reachable_node(self, test_doc: MappingNode) -> None:
        _, node = resolve(test_doc, Path((MapSegment("says"), MapSegment("missing"))))
        assert node is test_doc.get("says")
        _, node = resolve(test_doc, Path((MapSegment("numbers"), SeqSegment(10))))
        assert node is test_doc.get("numbers")

    def test_resolve_terminates_on_scalars(self, test_doc: MappingNode) -> None:
        _, node = resolve(test_doc, Path((MapSegment("hello"), MapSegment("x"), SeqSegment(0))))
        assert node is test_doc.get("hello")

    def test_resolve_empty_path(self, test_doc: MappingNode) -> None:
        parent, node = resolve(test_doc, Path())
        assert parent is test_doc
        assert node is test_doc

    def test_best_span_for_unknown_field_uses_key(self, test_doc: MappingNode) -> None:
        error = DecodeError.unknown_field("says", ["success"])
        span = best_span(test_doc, Path((MapSegment("says"),)), error)
        assert span.start == Marker(source=0, line=3, column=1)

    def test_backfill_only_once(self, test_doc: MappingNode) -> None:
        error = DecodeError.custom("boom")
        backfill(test_doc, Path((MapSegment("hello"),)), error)
        assert error.start_mark == Marker(source=0, line=1, column=8)
        with pytest.raises(RuntimeError):
            backfill(test_doc, Path(), error)
