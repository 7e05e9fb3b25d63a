"""Decoder over a plain Python primitive (synthetic keys, span coordinates)."""

from __future__ import annotations

from typing import Any

from spanned_yaml.de.protocol import ForwardToAny, Visitor
from spanned_yaml.errors import DecodeError


class ValueDecoder(ForwardToAny):
    def __init__(self, value: str | int | float | bool | bytes | None) -> None:
        self.value = value

    def decode_any(self, visitor: Visitor) -> Any:
        match self.value:
            case None:
                return visitor.visit_unit()
            case bool() as value:
                return visitor.visit_bool(value)
            case int() as value:
                return visitor.visit_int(value)
            case float() as value:
                return visitor.visit_float(value)
            case str() as value:
                return visitor.visit_str(value)
            case bytes() as value:
                return visitor.visit_bytes(value)
        raise DecodeError.custom(f"cannot decode a {type(self.value).__name__} value")

    def decode_option(self, visitor: Visitor) -> Any:
        if self.value is None:
            return visitor.visit_none()
        return visitor.visit_some(self)
