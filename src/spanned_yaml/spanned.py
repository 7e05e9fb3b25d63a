"""``Spanned[T]``: a decoded value together with the span it came from."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, Generic, TypeVar, get_args

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

from spanned_yaml.de.protocol import END, Decoder, MapAccess, Seed, Visitor
from spanned_yaml.de.reserved import (
    SPANNED_FIELDS,
    SPANNED_INNER,
    SPANNED_SPAN_END_COLUMN,
    SPANNED_SPAN_END_LINE,
    SPANNED_SPAN_END_SOURCE,
    SPANNED_SPAN_START_COLUMN,
    SPANNED_SPAN_START_LINE,
    SPANNED_SPAN_START_SOURCE,
    SPANNED_TYPE,
)
from spanned_yaml.de.typed import ANY, U64, IdentifierPlan, plan_for
from spanned_yaml.errors import DecodeError
from spanned_yaml.models.span import Marker, Span

T = TypeVar("T")


class Spanned(Generic[T]):
    """Wrap a value with the span of the node it was decoded from.

    Reading through the wrapper is transparent: attributes, items, iteration,
    ``len``, ``str`` and truthiness all go to the inner value, and equality and
    hashing only consider the inner value. When serialized (``to_plain`` or
    as a pydantic field) only the inner value is emitted; the span is lost.

    Spans are only filled in when decoding through ``from_node``; decoding
    with any other decoder fails.
    """

    __slots__ = ("_span", "_inner")

    def __init__(self, span: Span, inner: T) -> None:
        self._span = span
        self._inner = inner

    @property
    def span(self) -> Span:
        return self._span

    @property
    def inner(self) -> T:
        return self._inner

    def __getattr__(self, name: str) -> Any:
        if name in Spanned.__slots__ or name.startswith("__"):
            raise AttributeError(name)
        return getattr(self._inner, name)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Spanned):
            other = other._inner
        return bool(self._inner == other)

    def __hash__(self) -> int:
        return hash(self._inner)

    def __repr__(self) -> str:
        return f"Spanned({self._inner!r}, start={self._span.start!r})"

    def __str__(self) -> str:
        return str(self._inner)

    def __bool__(self) -> bool:
        return bool(self._inner)

    def __len__(self) -> int:
        return len(self._inner)  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._inner)  # type: ignore[call-overload]

    def __getitem__(self, key: Any) -> Any:
        return self._inner[key]  # type: ignore[index]

    def __contains__(self, item: object) -> bool:
        return item in self._inner  # type: ignore[operator]

    # -- decoding ------------------------------------------------------------

    @classmethod
    def __decode__(cls, decoder: Decoder, inner: Seed = ANY) -> Spanned[Any]:
        return decoder.decode_struct(SPANNED_TYPE, SPANNED_FIELDS, _SpannedVisitor(inner))

    # -- pydantic ------------------------------------------------------------

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        args = get_args(source_type)
        inner_schema = handler.generate_schema(args[0]) if args else core_schema.any_schema()

        def validate(value: Any, validate_inner: core_schema.ValidatorFunctionWrapHandler) -> Spanned[Any]:
            if isinstance(value, Spanned):
                return cls(value.span, validate_inner(value.inner))
            return cls(Span.blank(), validate_inner(value))

        return core_schema.no_info_wrap_validator_function(
            validate,
            inner_schema,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda value: value.inner, return_schema=inner_schema
            ),
        )


_KEY = IdentifierPlan()
_COORDINATE = plan_for(U64)


class _SpannedVisitor(Visitor):
    expecting = "a spanned node"

    def __init__(self, inner: Seed) -> None:
        self.inner = inner

    @staticmethod
    def _marker(access: MapAccess, which: str, line_key: str, column_key: str) -> Marker:
        source = access.next_value(_COORDINATE)
        if access.next_key(_KEY) != line_key:
            raise DecodeError.custom(f"spanned value {which} line missing")
        line = access.next_value(_COORDINATE)
        if access.next_key(_KEY) != column_key:
            raise DecodeError.custom(f"spanned value {which} column missing")
        column = access.next_value(_COORDINATE)
        return Marker(source=source, line=line, column=column)

    def visit_map(self, access: MapAccess) -> Spanned[Any]:
        key = access.next_key(_KEY)

        start = None
        if key == SPANNED_SPAN_START_SOURCE:
            start = self._marker(access, "start", SPANNED_SPAN_START_LINE, SPANNED_SPAN_START_COLUMN)
            key = access.next_key(_KEY)

        end = None
        if key == SPANNED_SPAN_END_SOURCE:
            end = self._marker(access, "end", SPANNED_SPAN_END_LINE, SPANNED_SPAN_END_COLUMN)
            key = access.next_key(_KEY)

        if key is END or key != SPANNED_INNER:
            raise DecodeError.custom("spanned value inner value not found")
        inner = access.next_value(self.inner)
        return Spanned(Span(start=start, end=end), inner)
