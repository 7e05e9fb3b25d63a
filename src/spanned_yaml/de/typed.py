"""Type-driven decoding: turns Python annotations into protocol requests.

``plan_for(tp)`` builds (and caches) a *plan* for a type. A plan is a seed:
``plan.decode(decoder)`` asks the decoder for the shape the type expects and
builds the value from what comes back. Plans know nothing about nodes or
spans, so every error they raise starts with a blank span.

Supported annotations: ``bool``, ``int`` (64-bit signed), the sized aliases
``I8`` .. ``U128`` and ``F32``/``F64``, ``float``, ``str``, ``bytes``,
``None``, ``Optional``/``X | None``, ``list``, ``set``, ``frozenset``,
``tuple`` (fixed or variadic), ``dict``, ``Any``, ``Literal``, ``Enum``
subclasses, dataclasses, pydantic models, ``NewType`` and any class with a
``__decode__(decoder, *type_arg_plans)`` classmethod.
"""

from __future__ import annotations

import dataclasses
import enum
import types
import typing
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from functools import cached_property
from typing import Annotated, Any, Literal, TypeVar, Union, get_args, get_origin, get_type_hints

import pydantic
from pydantic import BaseModel

from spanned_yaml.de.protocol import (
    END,
    Decoder,
    FloatWidth,
    IntWidth,
    MapAccess,
    SeqAccess,
    Visitor,
)
from spanned_yaml.errors import DecodeError

I8 = Annotated[int, IntWidth.I8]
I16 = Annotated[int, IntWidth.I16]
I32 = Annotated[int, IntWidth.I32]
I64 = Annotated[int, IntWidth.I64]
I128 = Annotated[int, IntWidth.I128]
U8 = Annotated[int, IntWidth.U8]
U16 = Annotated[int, IntWidth.U16]
U32 = Annotated[int, IntWidth.U32]
U64 = Annotated[int, IntWidth.U64]
U128 = Annotated[int, IntWidth.U128]
F32 = Annotated[float, FloatWidth.F32]
F64 = Annotated[float, FloatWidth.F64]

_DENY_UNKNOWN_ATTR = "__spanned_yaml_deny_unknown_fields__"

C = TypeVar("C", bound=type)


def deny_unknown_fields(cls: C) -> C:
    """Class decorator: reject mapping keys that are not fields of *cls*."""
    setattr(cls, _DENY_UNKNOWN_ATTR, True)
    return cls


class TypePlan(ABC):
    """Decodes one Python type from any ``Decoder``."""

    @abstractmethod
    def decode(self, decoder: Decoder) -> Any: ...


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


class _BoolVisitor(Visitor):
    expecting = "a boolean"

    def visit_bool(self, value: bool) -> bool:
        return value


class BoolPlan(TypePlan):
    def decode(self, decoder: Decoder) -> bool:
        return decoder.decode_bool(_BoolVisitor())


class _IntVisitor(Visitor):
    def __init__(self, width: IntWidth) -> None:
        self.width = width
        self.expecting = f"{width.value} integer"

    def visit_int(self, value: int) -> int:
        if not self.width.min_value <= value <= self.width.max_value:
            raise DecodeError.invalid_value(f"integer `{value}`", self.expecting)
        return value


class IntPlan(TypePlan):
    def __init__(self, width: IntWidth) -> None:
        self.width = width

    def decode(self, decoder: Decoder) -> int:
        return decoder.decode_int(self.width, _IntVisitor(self.width))


class _FloatVisitor(Visitor):
    expecting = "a float"

    def visit_float(self, value: float) -> float:
        return value

    def visit_int(self, value: int) -> float:
        return float(value)


class FloatPlan(TypePlan):
    def __init__(self, width: FloatWidth) -> None:
        self.width = width

    def decode(self, decoder: Decoder) -> float:
        return decoder.decode_float(self.width, _FloatVisitor())


class _StrVisitor(Visitor):
    expecting = "a string"

    def visit_str(self, value: str) -> str:
        return value


class StrPlan(TypePlan):
    def decode(self, decoder: Decoder) -> str:
        return decoder.decode_str(_StrVisitor())


class IdentifierPlan(TypePlan):
    """Field names and other keys that name something."""

    def decode(self, decoder: Decoder) -> str:
        return decoder.decode_identifier(_StrVisitor())


class _BytesVisitor(Visitor):
    expecting = "a byte array"

    def visit_bytes(self, value: bytes) -> bytes:
        return value

    def visit_str(self, value: str) -> bytes:
        return value.encode("utf-8")


class BytesPlan(TypePlan):
    def decode(self, decoder: Decoder) -> bytes:
        return decoder.decode_bytes(_BytesVisitor())


class _UnitVisitor(Visitor):
    expecting = "unit"

    def visit_unit(self) -> None:
        return None

    def visit_none(self) -> None:
        return None


class UnitPlan(TypePlan):
    def decode(self, decoder: Decoder) -> None:
        return decoder.decode_unit(_UnitVisitor())


class _AnyVisitor(Visitor):
    expecting = "any value"

    def visit_bool(self, value: bool) -> bool:
        return value

    def visit_int(self, value: int) -> int:
        return value

    def visit_float(self, value: float) -> float:
        return value

    def visit_str(self, value: str) -> str:
        return value

    def visit_bytes(self, value: bytes) -> bytes:
        return value

    def visit_none(self) -> None:
        return None

    def visit_unit(self) -> None:
        return None

    def visit_some(self, decoder: Decoder) -> Any:
        return ANY.decode(decoder)

    def visit_newtype(self, decoder: Decoder) -> Any:
        return ANY.decode(decoder)

    def visit_seq(self, access: SeqAccess) -> list[Any]:
        items = []
        while (item := access.next_element(ANY)) is not END:
            items.append(item)
        return items

    def visit_map(self, access: MapAccess) -> dict[Any, Any]:
        result = {}
        while (key := access.next_key(ANY)) is not END:
            result[key] = access.next_value(ANY)
        return result


class AnyPlan(TypePlan):
    """Plain Python data: scalars stay strings, containers become list/dict."""

    def decode(self, decoder: Decoder) -> Any:
        return decoder.decode_any(_AnyVisitor())


class _IgnoreVisitor(_AnyVisitor):
    def visit_some(self, decoder: Decoder) -> None:
        IGNORED.decode(decoder)

    def visit_seq(self, access: SeqAccess) -> None:
        while access.next_element(IGNORED) is not END:
            pass

    def visit_map(self, access: MapAccess) -> None:
        while access.next_key(IGNORED) is not END:
            access.next_value(IGNORED)


class IgnoredAnyPlan(TypePlan):
    def decode(self, decoder: Decoder) -> None:
        decoder.decode_ignored_any(_IgnoreVisitor())


ANY = AnyPlan()
IGNORED = IgnoredAnyPlan()


# ---------------------------------------------------------------------------
# Options, containers
# ---------------------------------------------------------------------------


class _OptionVisitor(Visitor):
    expecting = "option"

    def __init__(self, inner: TypePlan) -> None:
        self.inner = inner

    def visit_none(self) -> None:
        return None

    def visit_unit(self) -> None:
        return None

    def visit_some(self, decoder: Decoder) -> Any:
        return self.inner.decode(decoder)


class OptionPlan(TypePlan):
    def __init__(self, inner: TypePlan) -> None:
        self.inner = inner

    def decode(self, decoder: Decoder) -> Any:
        return decoder.decode_option(_OptionVisitor(self.inner))


class _SeqVisitor(Visitor):
    expecting = "a sequence"

    def __init__(self, element: TypePlan, build: Callable[[list[Any]], Any]) -> None:
        self.element = element
        self.build = build

    def visit_seq(self, access: SeqAccess) -> Any:
        items = []
        while (item := access.next_element(self.element)) is not END:
            items.append(item)
        return self.build(items)


class SeqPlan(TypePlan):
    def __init__(self, element: TypePlan, build: Callable[[list[Any]], Any] = list) -> None:
        self.element = element
        self.build = build

    def decode(self, decoder: Decoder) -> Any:
        return decoder.decode_seq(_SeqVisitor(self.element, self.build))


class _TupleVisitor(Visitor):
    def __init__(self, elements: Sequence[TypePlan]) -> None:
        self.elements = elements
        self.expecting = f"a tuple of size {len(elements)}"

    def visit_seq(self, access: SeqAccess) -> tuple[Any, ...]:
        items = []
        for index, plan in enumerate(self.elements):
            item = access.next_element(plan)
            if item is END:
                raise DecodeError.invalid_length(index, self.expecting)
            items.append(item)
        if access.next_element(IGNORED) is not END:
            raise DecodeError.invalid_length(len(self.elements) + 1, self.expecting)
        return tuple(items)


class TuplePlan(TypePlan):
    def __init__(self, elements: Sequence[TypePlan]) -> None:
        self.elements = tuple(elements)

    def decode(self, decoder: Decoder) -> tuple[Any, ...]:
        return decoder.decode_tuple(len(self.elements), _TupleVisitor(self.elements))


class _MapVisitor(Visitor):
    expecting = "a map"

    def __init__(self, key: TypePlan, value: TypePlan) -> None:
        self.key = key
        self.value = value

    def visit_map(self, access: MapAccess) -> dict[Any, Any]:
        result = {}
        while (key := access.next_key(self.key)) is not END:
            result[key] = access.next_value(self.value)
        return result


class MapPlan(TypePlan):
    def __init__(self, key: TypePlan, value: TypePlan) -> None:
        self.key = key
        self.value = value

    def decode(self, decoder: Decoder) -> dict[Any, Any]:
        return decoder.decode_map(_MapVisitor(self.key, self.value))


# ---------------------------------------------------------------------------
# Enums and literals
# ---------------------------------------------------------------------------


class _EnumVisitor(Visitor):
    def __init__(self, enum_cls: type[enum.Enum]) -> None:
        self.enum_cls = enum_cls
        self.expecting = f"enum {enum_cls.__name__}"

    def _lookup(self, text: str) -> enum.Enum:
        for member in self.enum_cls:
            if str(member.value) == text or member.name == text:
                return member
        raise DecodeError.unknown_variant(text, [str(m.value) for m in self.enum_cls])

    def visit_str(self, value: str) -> enum.Enum:
        return self._lookup(value)

    def visit_int(self, value: int) -> enum.Enum:
        return self._lookup(str(value))


class EnumPlan(TypePlan):
    def __init__(self, enum_cls: type[enum.Enum]) -> None:
        self.enum_cls = enum_cls
        self.variants = tuple(str(m.value) for m in enum_cls)

    def decode(self, decoder: Decoder) -> enum.Enum:
        return decoder.decode_enum(self.enum_cls.__name__, self.variants, _EnumVisitor(self.enum_cls))


def _literal_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class _LiteralVisitor(Visitor):
    def __init__(self, values: Sequence[Any]) -> None:
        self.values = values
        self.expecting = "one of " + ", ".join(repr(v) for v in values)

    def visit_str(self, value: str) -> Any:
        for candidate in self.values:
            if _literal_text(candidate) == value or (
                isinstance(candidate, bool) and _literal_text(candidate) == value.lower()
            ):
                return candidate
        raise DecodeError.invalid_value(f"string {value!r}", self.expecting)


class LiteralPlan(TypePlan):
    def __init__(self, values: Sequence[Any]) -> None:
        self.values = tuple(values)

    def decode(self, decoder: Decoder) -> Any:
        return decoder.decode_any(_LiteralVisitor(self.values))


# ---------------------------------------------------------------------------
# Structs: dataclasses and pydantic models
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class StructField:
    name: str
    key: str
    annotation: Any
    required: bool

    @cached_property
    def plan(self) -> TypePlan:
        return plan_for(self.annotation)


def _is_optional(annotation: Any) -> bool:
    if get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
    return get_origin(annotation) in (Union, types.UnionType) and type(None) in get_args(annotation)


class _FieldKeyVisitor(_StrVisitor):
    def __init__(self, plan: StructPlan) -> None:
        self.plan = plan
        self.expecting = "a field identifier"

    def visit_str(self, value: str) -> str:
        if self.plan.deny_unknown and value not in self.plan.fields_by_key:
            raise DecodeError.unknown_field(value, self.plan.keys)
        return value


class _FieldKeyPlan(TypePlan):
    """Decodes a struct key, rejecting unknown ones while the key is read."""

    def __init__(self, plan: StructPlan) -> None:
        self.plan = plan

    def decode(self, decoder: Decoder) -> str:
        return decoder.decode_identifier(_FieldKeyVisitor(self.plan))


class _StructVisitor(Visitor):
    def __init__(self, plan: StructPlan) -> None:
        self.plan = plan
        self.expecting = f"struct {plan.cls.__name__}"

    def visit_map(self, access: MapAccess) -> Any:
        plan = self.plan
        by_key = plan.fields_by_key
        key_plan = _FieldKeyPlan(plan)
        values: dict[str, Any] = {}
        while (key := access.next_key(key_plan)) is not END:
            field = by_key.get(key)
            if field is None:
                access.next_value(IGNORED)
                continue
            if field.key in values:
                raise DecodeError.duplicate_field(field.key)
            values[field.key] = access.next_value(field.plan)
        for field in plan.fields:
            if field.key in values or not field.required:
                continue
            if _is_optional(field.annotation):
                values[field.key] = None
            else:
                raise DecodeError.missing_field(field.key)
        return plan.build(values)


class StructPlan(TypePlan):
    """A class whose fields are looked up by mapping key."""

    def __init__(self, cls: type) -> None:
        self.cls = cls

    @cached_property
    def fields(self) -> tuple[StructField, ...]:
        if issubclass(self.cls, BaseModel):
            return tuple(_model_fields(self.cls))
        return tuple(_dataclass_fields(self.cls))

    @cached_property
    def fields_by_key(self) -> dict[str, StructField]:
        return {f.key: f for f in self.fields}

    @cached_property
    def keys(self) -> tuple[str, ...]:
        return tuple(f.key for f in self.fields)

    @cached_property
    def deny_unknown(self) -> bool:
        if issubclass(self.cls, BaseModel):
            return self.cls.model_config.get("extra") == "forbid"
        return bool(getattr(self.cls, _DENY_UNKNOWN_ATTR, False))

    def build(self, values: dict[str, Any]) -> Any:
        if issubclass(self.cls, BaseModel):
            try:
                return self.cls.model_validate(values)
            except pydantic.ValidationError as exc:
                first = exc.errors()[0]
                where = ".".join(str(part) for part in first["loc"])
                prefix = f"{where}: " if where else ""
                raise DecodeError.custom(f"{prefix}{first['msg']}") from exc
        by_key = self.fields_by_key
        try:
            return self.cls(**{by_key[key].name: value for key, value in values.items()})
        except (ValueError, TypeError) as exc:
            raise DecodeError.custom(exc) from exc

    def decode(self, decoder: Decoder) -> Any:
        return decoder.decode_struct(self.cls.__name__, self.keys, _StructVisitor(self))


def _dataclass_fields(cls: type) -> list[StructField]:
    hints = get_type_hints(cls, include_extras=True)
    fields = []
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        required = f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
        key = f.metadata.get("alias", f.name)
        fields.append(StructField(name=f.name, key=key, annotation=hints[f.name], required=required))
    return fields


def _model_fields(cls: type[BaseModel]) -> list[StructField]:
    fields = []
    for name, info in cls.model_fields.items():
        annotation = info.annotation
        if info.metadata:
            annotation = Annotated[(annotation, *info.metadata)]
        key = info.validation_alias if isinstance(info.validation_alias, str) else info.alias
        fields.append(
            StructField(name=name, key=key or name, annotation=annotation, required=info.is_required())
        )
    return fields


# ---------------------------------------------------------------------------
# User hooks
# ---------------------------------------------------------------------------


class HookPlan(TypePlan):
    """Delegates to ``cls.__decode__(decoder, *plans_for_type_args)``."""

    def __init__(self, cls: type, args: Sequence[Any]) -> None:
        self.cls = cls
        self.args = tuple(args)

    @cached_property
    def arg_plans(self) -> tuple[TypePlan, ...]:
        return tuple(plan_for(arg) for arg in self.args)

    def decode(self, decoder: Decoder) -> Any:
        return self.cls.__decode__(decoder, *self.arg_plans)  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# Plan construction
# ---------------------------------------------------------------------------

_PLANS: dict[Any, TypePlan] = {}


def plan_for(tp: Any) -> TypePlan:
    """Return the (cached) plan decoding values of type *tp*."""
    try:
        return _PLANS[tp]
    except KeyError:
        pass
    except TypeError:
        # Unhashable annotation (e.g. carrying unhashable metadata).
        return _build_plan(tp)
    plan = _build_plan(tp)
    _PLANS[tp] = plan
    return plan


def _build_plan(tp: Any) -> TypePlan:
    if tp is Any or tp is object:
        return ANY
    if tp is None or tp is type(None):
        return UnitPlan()
    if isinstance(tp, typing.NewType):
        return plan_for(tp.__supertype__)
    if isinstance(tp, TypeVar):
        return ANY

    origin = get_origin(tp)
    args = get_args(tp)

    if origin is Annotated:
        base, *metadata = args
        for meta in metadata:
            if isinstance(meta, IntWidth) and base is int:
                return IntPlan(meta)
            if isinstance(meta, FloatWidth) and base is float:
                return FloatPlan(meta)
        return plan_for(base)

    if origin in (Union, types.UnionType):
        present = [arg for arg in args if arg is not type(None)]
        if len(present) == 1 and len(present) < len(args):
            return OptionPlan(plan_for(present[0]))
        raise TypeError(f"cannot decode into untagged union {tp!r}")

    if origin is Literal:
        return LiteralPlan(args)

    if origin is not None and hasattr(origin, "__decode__"):
        return HookPlan(origin, args)

    if origin in (list, Sequence):
        return SeqPlan(plan_for(args[0]) if args else ANY)
    if origin in (set, frozenset):
        return SeqPlan(plan_for(args[0]) if args else ANY, origin)
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return SeqPlan(plan_for(args[0]), tuple)
        return TuplePlan([plan_for(arg) for arg in args])
    if origin in (dict, Mapping):
        key, value = args if args else (Any, Any)
        return MapPlan(plan_for(key), plan_for(value))

    if not isinstance(tp, type):
        raise TypeError(f"cannot decode into {tp!r}")
    if hasattr(tp, "__decode__"):
        return HookPlan(tp, ())
    if issubclass(tp, bool):
        return BoolPlan()
    if issubclass(tp, enum.Enum):
        return EnumPlan(tp)
    if tp is int:
        return IntPlan(IntWidth.I64)
    if tp is float:
        return FloatPlan(FloatWidth.F64)
    if tp is str:
        return StrPlan()
    if tp is bytes:
        return BytesPlan()
    if tp in (list, tuple, set, frozenset):
        return SeqPlan(ANY, tp)
    if tp is dict:
        return MapPlan(ANY, ANY)
    if issubclass(tp, BaseModel) or dataclasses.is_dataclass(tp):
        return StructPlan(tp)
    raise TypeError(f"cannot decode into {tp!r}")
