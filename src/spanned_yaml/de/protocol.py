"""The structural decoding protocol.

A ``Decoder`` knows how to produce data; a ``Visitor`` knows what shape of
data a target type wants. Types ask a decoder for what they expect
(``decode_bool``, ``decode_struct`` ...) and the decoder answers by calling
back exactly one ``visit_*`` method on the visitor it was handed. Containers
are exposed through ``MapAccess`` and ``SeqAccess`` cursors, and child values
are produced by *seeds*: any object with a ``decode(decoder)`` method.

Nothing in here knows about YAML nodes or source positions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final, Protocol

from spanned_yaml.errors import DecodeError

if TYPE_CHECKING:
    from typing import NoReturn


class _End:
    _instance: _End | None = None

    def __new__(cls) -> _End:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "END"

    def __bool__(self) -> bool:
        return False


END: Final = _End()
"""Returned by ``next_key`` / ``next_element`` once a cursor is exhausted."""


class IntWidth(StrEnum):
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    I128 = "i128"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    U128 = "u128"

    @property
    def signed(self) -> bool:
        return self.value.startswith("i")

    @property
    def bits(self) -> int:
        return int(self.value[1:])

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1


class FloatWidth(StrEnum):
    F32 = "f32"
    F64 = "f64"


class Seed(Protocol):
    def decode(self, decoder: Decoder) -> Any: ...


class MapAccess(ABC):
    """Key/value cursor handed to ``Visitor.visit_map``."""

    @abstractmethod
    def next_key(self, seed: Seed) -> Any:
        """Decode the next key with *seed*, or return ``END``."""

    @abstractmethod
    def next_value(self, seed: Seed) -> Any:
        """Decode the value belonging to the key last returned."""

    def size_hint(self) -> int | None:
        return None


class SeqAccess(ABC):
    """Element cursor handed to ``Visitor.visit_seq``."""

    @abstractmethod
    def next_element(self, seed: Seed) -> Any:
        """Decode the next element with *seed*, or return ``END``."""

    def size_hint(self) -> int | None:
        return None


class Visitor:
    """Receives whatever a decoder produced.

    Subclasses override the ``visit_*`` methods for the shapes they accept;
    everything else is reported as an invalid type.
    """

    expecting: str = "a value"

    def _invalid(self, unexpected: str) -> NoReturn:
        raise DecodeError.invalid_type(unexpected, self.expecting)

    def visit_bool(self, value: bool) -> Any:
        self._invalid(f"boolean `{str(value).lower()}`")

    def visit_int(self, value: int) -> Any:
        self._invalid(f"integer `{value}`")

    def visit_float(self, value: float) -> Any:
        self._invalid(f"floating point `{value}`")

    def visit_str(self, value: str) -> Any:
        self._invalid(f"string {value!r}")

    def visit_bytes(self, value: bytes) -> Any:
        self._invalid("byte array")

    def visit_none(self) -> Any:
        self._invalid("Option value")

    def visit_some(self, decoder: Decoder) -> Any:
        self._invalid("Option value")

    def visit_unit(self) -> Any:
        self._invalid("unit value")

    def visit_newtype(self, decoder: Decoder) -> Any:
        self._invalid("newtype struct")

    def visit_seq(self, access: SeqAccess) -> Any:
        self._invalid("sequence")

    def visit_map(self, access: MapAccess) -> Any:
        self._invalid("map")


class Decoder(ABC):
    """One request method per primitive or structural shape a type can ask for."""

    @abstractmethod
    def decode_any(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def decode_bool(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def decode_int(self, width: IntWidth, visitor: Visitor) -> Any: ...

    @abstractmethod
    def decode_float(self, width: FloatWidth, visitor: Visitor) -> Any: ...

    @abstractmethod
    def decode_char(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def decode_str(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def decode_bytes(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def decode_option(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def decode_unit(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def decode_newtype(self, name: str, visitor: Visitor) -> Any: ...

    @abstractmethod
    def decode_seq(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def decode_tuple(self, length: int, visitor: Visitor) -> Any: ...

    @abstractmethod
    def decode_map(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def decode_struct(self, name: str, fields: Sequence[str], visitor: Visitor) -> Any: ...

    @abstractmethod
    def decode_enum(self, name: str, variants: Sequence[str], visitor: Visitor) -> Any: ...

    @abstractmethod
    def decode_identifier(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def decode_ignored_any(self, visitor: Visitor) -> Any: ...


# Every request a bridge must forward untouched, with its extra arguments.
REQUESTS: Final[tuple[str, ...]] = (
    "decode_any",
    "decode_bool",
    "decode_int",
    "decode_float",
    "decode_char",
    "decode_str",
    "decode_bytes",
    "decode_option",
    "decode_unit",
    "decode_newtype",
    "decode_seq",
    "decode_tuple",
    "decode_map",
    "decode_struct",
    "decode_enum",
    "decode_identifier",
    "decode_ignored_any",
)


class ForwardToAny(Decoder):
    """Mixin answering every request through ``decode_any``.

    Concrete decoders override only the requests they interpret.
    """

    def decode_bool(self, visitor: Visitor) -> Any:
        return self.decode_any(visitor)

    def decode_int(self, width: IntWidth, visitor: Visitor) -> Any:
        return self.decode_any(visitor)

    def decode_float(self, width: FloatWidth, visitor: Visitor) -> Any:
        return self.decode_any(visitor)

    def decode_char(self, visitor: Visitor) -> Any:
        return self.decode_any(visitor)

    def decode_str(self, visitor: Visitor) -> Any:
        return self.decode_any(visitor)

    def decode_bytes(self, visitor: Visitor) -> Any:
        return self.decode_any(visitor)

    def decode_option(self, visitor: Visitor) -> Any:
        return self.decode_any(visitor)

    def decode_unit(self, visitor: Visitor) -> Any:
        return self.decode_any(visitor)

    def decode_newtype(self, name: str, visitor: Visitor) -> Any:
        return self.decode_any(visitor)

    def decode_seq(self, visitor: Visitor) -> Any:
        return self.decode_any(visitor)

    def decode_tuple(self, length: int, visitor: Visitor) -> Any:
        return self.decode_any(visitor)

    def decode_map(self, visitor: Visitor) -> Any:
        return self.decode_any(visitor)

    def decode_struct(self, name: str, fields: Sequence[str], visitor: Visitor) -> Any:
        return self.decode_any(visitor)

    def decode_enum(self, name: str, variants: Sequence[str], visitor: Visitor) -> Any:
        return self.decode_any(visitor)

    def decode_identifier(self, visitor: Visitor) -> Any:
        return self.decode_any(visitor)

    def decode_ignored_any(self, visitor: Visitor) -> Any:
        return self.decode_any(visitor)
