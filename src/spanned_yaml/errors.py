"""Decode errors. Each kind carries the span of the node it concerns.

Errors raised by location-unaware code (the generic type layer, or user
``__decode__`` hooks) start out with a blank span. The path-tracking driver
may fill it in once, before the error reaches the caller.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from spanned_yaml.models.errors import Diagnostic, SourceSpan
from spanned_yaml.models.span import Marker, Span

if TYPE_CHECKING:
    from spanned_yaml.de.numeral import ParseFloatError, ParseIntError
    from spanned_yaml.de.path import Path


class DecodeError(Exception):
    """Base class of the closed set of decode error kinds."""

    code = "DECODE_ERROR"

    def __init__(self, span: Span | None = None) -> None:
        super().__init__()
        self._span = span if span is not None else Span.blank()
        self._backfilled = False

    @property
    def message(self) -> str:
        return "decode failed"

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, span={self._span!r})"

    @property
    def span(self) -> Span:
        return self._span

    def set_span(self, span: Span) -> None:
        """Attach a recovered span. Only the backfill step calls this, once."""
        if self._backfilled:
            raise RuntimeError("span of a decode error can only be backfilled once")
        self._span = span
        self._backfilled = True

    @property
    def start_mark(self) -> Marker | None:
        return self._span.start

    def to_diagnostic(self, file: str | None = None, path: str | None = None) -> Diagnostic:
        return Diagnostic(
            code=self.code,
            message=self.message,
            path=path,
            span=SourceSpan.from_span(self._span, file),
        )

    # -- constructors used by generic, location-unaware code -----------------

    @staticmethod
    def custom(message: object) -> OtherError:
        return OtherError(str(message))

    @staticmethod
    def unknown_field(field: str, expected: Sequence[str]) -> UnknownFieldError:
        return UnknownFieldError(field, expected)

    @staticmethod
    def invalid_type(unexpected: str, expected: str) -> OtherError:
        return OtherError(f"invalid type: {unexpected}, expected {expected}")

    @staticmethod
    def invalid_value(unexpected: str, expected: str) -> OtherError:
        return OtherError(f"invalid value: {unexpected}, expected {expected}")

    @staticmethod
    def invalid_length(length: int, expected: str) -> OtherError:
        return OtherError(f"invalid length {length}, expected {expected}")

    @staticmethod
    def missing_field(field: str) -> OtherError:
        return OtherError(f"missing field `{field}`")

    @staticmethod
    def duplicate_field(field: str) -> OtherError:
        return OtherError(f"duplicate field `{field}`")

    @staticmethod
    def unknown_variant(variant: str, expected: Sequence[str]) -> OtherError:
        return OtherError(f"unknown variant `{variant}`, {_one_of(expected, 'variants')}")


class NotBoolean(DecodeError):
    code = "NOT_BOOLEAN"

    @property
    def message(self) -> str:
        return "Value was not a boolean"


class IntegerParseFailure(DecodeError):
    code = "INTEGER_PARSE_FAILURE"

    def __init__(self, error: ParseIntError, span: Span | None = None) -> None:
        super().__init__(span)
        self.error = error

    @property
    def message(self) -> str:
        return str(self.error)


class FloatParseFailure(DecodeError):
    code = "FLOAT_PARSE_FAILURE"

    def __init__(self, error: ParseFloatError, span: Span | None = None) -> None:
        super().__init__(span)
        self.error = error

    @property
    def message(self) -> str:
        return str(self.error)


class UnknownFieldError(DecodeError):
    code = "UNKNOWN_FIELD"

    def __init__(self, field: str, expected: Sequence[str], span: Span | None = None) -> None:
        super().__init__(span)
        self.field = field
        self.expected = tuple(expected)

    @property
    def message(self) -> str:
        return f"Unknown field `{self.field}`, {_one_of(self.expected, 'fields')}"


class OtherError(DecodeError):
    code = "DECODE_ERROR"

    def __init__(self, text: str, span: Span | None = None) -> None:
        super().__init__(span)
        self.text = text

    @property
    def message(self) -> str:
        return self.text


class PathDecodeError(Exception):
    """A ``DecodeError`` together with the path at which it was raised."""

    def __init__(self, path: Path, inner: DecodeError) -> None:
        super().__init__(str(inner))
        self.path = path
        self.inner = inner

    def __str__(self) -> str:
        return f"{self.path}: {self.inner}"

    def into_inner(self) -> DecodeError:
        return self.inner

    @property
    def start_mark(self) -> Marker | None:
        return self.inner.start_mark

    def to_diagnostic(self, file: str | None = None) -> Diagnostic:
        return self.inner.to_diagnostic(file, path=str(self.path))


def _one_of(expected: Sequence[str], noun: str) -> str:
    match len(expected):
        case 0:
            return f"there are no {noun}"
        case 1:
            return f"expected `{expected[0]}`"
        case 2:
            return f"expected `{expected[0]}` or `{expected[1]}`"
        case _:
            head = ", ".join(f"`{name}`" for name in expected[:-1])
            return f"expected one of {head}, or `{expected[-1]}`"
