"""Tests for type-driven decoding of annotations, dataclasses and models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, StrEnum
from typing import Annotated, Any, Literal, NewType, Optional

import pytest
from pydantic import BaseModel, ConfigDict, Field

from spanned_yaml import F32, I8, U128, from_node
from spanned_yaml.de.node import NodeDecoder
from spanned_yaml.de.protocol import Decoder
from spanned_yaml.de.typed import (
    ANY,
    BoolPlan,
    IntPlan,
    OptionPlan,
    SeqPlan,
    StrPlan,
    TuplePlan,
    plan_for,
)
from spanned_yaml.errors import DecodeError, FloatParseFailure, IntegerParseFailure, UnknownFieldError
from spanned_yaml.models.nodes import MappingNode, Node, ScalarNode, SequenceNode
from spanned_yaml.parser import parse_yaml
from spanned_yaml.parser.loader import TrackedLoader

UserId = NewType("UserId", int)


class Color(StrEnum):
    RED = "red"
    GREEN = "green"
    BLUE = "blue"


class Level(Enum):
    LOW = 1
    HIGH = 2


@dataclass
class Palette:
    primary: Color
    level: Level


@dataclass
class Options:
    name: str
    nickname: Optional[str]
    retries: int = 3
    tags: list[str] = field(default_factory=list)


@dataclass
class Aliased:
    max_size: int = field(metadata={"alias": "max-size"})


@dataclass
class Pair:
    pair: tuple[int, str]


@dataclass
class Inner:
    value: str


@dataclass
class Nested:
    inner: Inner
    items: list[Inner]


class Server(BaseModel):
    host: str
    port: Annotated[int, Field(gt=0)]
    debug: bool = False
    user_id: UserId = Field(default=UserId(0), alias="user-id")


class StrictServer(BaseModel):
    model_config = ConfigDict(extra="forbid")

    host: str


class Upper:
    """Decodes itself from text, upper-cased."""

    def __init__(self, text: str) -> None:
        self.text = text

    @classmethod
    def __decode__(cls, decoder: Decoder) -> Upper:
        return cls(StrPlan().decode(decoder).upper())


@dataclass
class Shout:
    hello: Upper


def _doc(text: str) -> Node:
    return parse_yaml(0, text)


class TestPrimitives:
    def test_int_defaults_to_64_bit(self) -> None:
        assert from_node(ScalarNode("9223372036854775807"), int) == 2**63 - 1
        with pytest.raises(IntegerParseFailure):
            from_node(ScalarNode("9223372036854775808"), int)

    def test_sized_ints(self) -> None:
        assert from_node(ScalarNode("-128"), I8) == -128
        assert from_node(ScalarNode(str(2**128 - 1)), U128) == 2**128 - 1
        with pytest.raises(IntegerParseFailure, match="too small"):
            from_node(ScalarNode("-129"), I8)

    def test_floats(self) -> None:
        assert from_node(ScalarNode("1.5"), float) == 1.5
        assert from_node(ScalarNode("0.1"), F32) == pytest.approx(0.1, rel=1e-7)
        with pytest.raises(FloatParseFailure):
            from_node(ScalarNode("one"), float)

    def test_str_and_bytes(self) -> None:
        assert from_node(ScalarNode("abc"), str) == "abc"
        assert from_node(ScalarNode("abc"), bytes) == b"abc"

    def test_bool(self) -> None:
        assert from_node(ScalarNode("True"), bool) is True

    def test_str_rejects_containers(self) -> None:
        with pytest.raises(DecodeError, match="invalid type: sequence, expected a string"):
            from_node(SequenceNode(), str)

    def test_new_type(self) -> None:
        assert from_node(ScalarNode("7"), UserId) == 7

    def test_any_keeps_plain_data(self, test_doc: Node) -> None:
        data = from_node(test_doc, Any)
        assert data["hello"] == "world"
        assert data["numbers"] == ["1", "2", "3", "500"]
        assert data["says"] == {"grow": "nothing", "or": "die"}
        assert data["success"] == "true"


class TestContainers:
    def test_list_set_frozenset(self) -> None:
        node = _doc("[b, a, b]")
        assert from_node(node, list[str]) == ["b", "a", "b"]
        assert from_node(node, set[str]) == {"a", "b"}
        assert from_node(node, frozenset[str]) == frozenset({"a", "b"})

    def test_variadic_tuple(self) -> None:
        assert from_node(_doc("[1, 2, 3]"), tuple[int, ...]) == (1, 2, 3)

    def test_fixed_tuple(self) -> None:
        assert from_node(_doc("pair: [1, one]"), Pair) == Pair((1, "one"))

    def test_fixed_tuple_too_long(self) -> None:
        with pytest.raises(DecodeError, match="invalid length 3, expected a tuple of size 2"):
            from_node(_doc("pair: [1, one, extra]"), Pair)

    def test_fixed_tuple_too_short(self) -> None:
        with pytest.raises(DecodeError, match="invalid length 1, expected a tuple of size 2"):
            from_node(_doc("pair: [1]"), Pair)

    def test_dict(self) -> None:
        assert from_node(_doc("a: 1\nb: 2\n"), dict[str, int]) == {"a": 1, "b": 2}

    def test_dict_preserves_order(self) -> None:
        assert list(from_node(_doc("z: 1\na: 2\n"), dict[str, int])) == ["z", "a"]

    def test_integer_keys(self) -> None:
        assert from_node(_doc("1: a\n2: b\n"), dict[int, str]) == {1: "a", 2: "b"}


class TestEnumsAndLiterals:
    def test_enum_by_value_and_name(self) -> None:
        assert from_node(_doc("primary: red\nlevel: 2\n"), Palette) == Palette(Color.RED, Level.HIGH)
        assert from_node(_doc("primary: BLUE\nlevel: LOW\n"), Palette) == Palette(Color.BLUE, Level.LOW)

    def test_unknown_variant(self) -> None:
        with pytest.raises(DecodeError, match="unknown variant `purple`, expected one of `red`, `green`, or `blue`"):
            from_node(_doc("primary: purple\nlevel: 1\n"), Palette)

    def test_literal(self) -> None:
        assert from_node(ScalarNode("b"), Literal["a", "b"]) == "b"
        assert from_node(ScalarNode("2"), Literal[1, 2]) == 2
        assert from_node(ScalarNode("True"), Literal[True]) is True
        with pytest.raises(DecodeError, match="invalid value"):
            from_node(ScalarNode("c"), Literal["a", "b"])


class TestDataclasses:
    def test_defaults_and_optional(self) -> None:
        options = from_node(_doc("name: svc\n"), Options)
        assert options == Options(name="svc", nickname=None, retries=3, tags=[])

    def test_all_fields(self) -> None:
        options = from_node(_doc("name: svc\nnickname: s\nretries: 5\ntags: [a]\n"), Options)
        assert options == Options(name="svc", nickname="s", retries=5, tags=["a"])

    def test_missing_required_field(self) -> None:
        with pytest.raises(DecodeError, match="missing field `name`"):
            from_node(_doc("retries: 1\n"), Options)

    def test_unknown_fields_ignored_by_default(self) -> None:
        assert from_node(_doc("name: svc\nextra: [1, 2]\n"), Options).name == "svc"

    def test_alias(self) -> None:
        assert from_node(_doc("max-size: 10\n"), Aliased) == Aliased(max_size=10)

    def test_duplicate_field(self) -> None:
        root = TrackedLoader(error_on_duplicate_keys=False).load_string("name: a\nname: b\n")
        with pytest.raises(DecodeError, match="duplicate field `name`"):
            from_node(root, Options)

    def test_nested(self) -> None:
        nested = from_node(_doc("inner: {value: x}\nitems:\n  - value: y\n"), Nested)
        assert nested == Nested(Inner("x"), [Inner("y")])

    def test_struct_from_scalar(self) -> None:
        with pytest.raises(DecodeError, match="expected struct Inner"):
            from_node(ScalarNode("x"), Inner)


class TestPydanticModels:
    def test_decode_model(self) -> None:
        server = from_node(_doc("host: example.org\nport: 8080\ndebug: TRUE\nuser-id: 12\n"), Server)
        assert server == Server(host="example.org", port=8080, debug=True, **{"user-id": 12})
        assert server.user_id == 12

    def test_validation_failure_becomes_decode_error(self) -> None:
        with pytest.raises(DecodeError, match="port: Input should be greater than 0"):
            from_node(_doc("host: example.org\nport: 0\n"), Server)

    def test_extra_forbid_rejects_unknown_keys(self) -> None:
        with pytest.raises(UnknownFieldError, match="Unknown field `port`, expected `host`"):
            from_node(_doc("host: a\nport: 1\n"), StrictServer)


class TestHooks:
    def test_decode_hook(self) -> None:
        shout = from_node(_doc("hello: world\n"), Shout)
        assert shout.hello.text == "WORLD"


class TestPlans:
    def test_plans_are_cached(self) -> None:
        assert plan_for(list[int]) is plan_for(list[int])

    def test_plan_shapes(self) -> None:
        assert isinstance(plan_for(bool), BoolPlan)
        assert isinstance(plan_for(I8), IntPlan)
        assert isinstance(plan_for(Optional[str]), OptionPlan)
        assert isinstance(plan_for(str | None), OptionPlan)
        assert isinstance(plan_for(list), SeqPlan)
        assert isinstance(plan_for(tuple[int, str]), TuplePlan)
        assert plan_for(Any) is ANY

    def test_untagged_union_rejected(self) -> None:
        with pytest.raises(TypeError, match="untagged union"):
            plan_for(int | str)

    def test_unsupported_type_rejected(self) -> None:
        with pytest.raises(TypeError):
            plan_for(complex)

    def test_plans_are_decoder_agnostic(self) -> None:
        root = MappingNode(((ScalarNode("value"), ScalarNode("x")),))
        assert plan_for(Inner).decode(NodeDecoder(root)) == Inner("x")
