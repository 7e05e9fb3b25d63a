"""Textual numeral grammar for every integer and float width.

Integers are an optional sign followed by ASCII decimal digits. Floats are
decimal literals with an optional exponent, or ``inf``/``infinity``/``nan``
in any case. Whitespace, underscores and radix prefixes are never accepted.
"""

from __future__ import annotations

import math
import re
import struct
from enum import StrEnum

from spanned_yaml.de.protocol import FloatWidth, IntWidth

_INT_RE = re.compile(r"[+-]?[0-9]+", re.ASCII)
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.ASCII | re.IGNORECASE,
)


class IntErrorKind(StrEnum):
    EMPTY = "cannot parse integer from empty string"
    INVALID_DIGIT = "invalid digit found in string"
    POS_OVERFLOW = "number too large to fit in target type"
    NEG_OVERFLOW = "number too small to fit in target type"


class ParseIntError(ValueError):
    """Why a piece of text is not an integer of the requested width."""

    def __init__(self, kind: IntErrorKind, text: str, width: IntWidth) -> None:
        super().__init__(kind.value)
        self.kind = kind
        self.text = text
        self.width = width


class ParseFloatError(ValueError):
    """Why a piece of text is not a float."""

    def __init__(self, text: str, width: FloatWidth) -> None:
        message = "cannot parse float from empty string" if not text else "invalid float literal"
        super().__init__(message)
        self.text = text
        self.width = width


def parse_int(text: str, width: IntWidth) -> int:
    if not text or text in ("+", "-"):
        raise ParseIntError(IntErrorKind.EMPTY if not text else IntErrorKind.INVALID_DIGIT, text, width)
    if not _INT_RE.fullmatch(text) or (not width.signed and text.startswith("-")):
        raise ParseIntError(IntErrorKind.INVALID_DIGIT, text, width)
    value = int(text)
    if value > width.max_value:
        raise ParseIntError(IntErrorKind.POS_OVERFLOW, text, width)
    if value < width.min_value:
        raise ParseIntError(IntErrorKind.NEG_OVERFLOW, text, width)
    return value


def parse_float(text: str, width: FloatWidth) -> float:
    if not _FLOAT_RE.fullmatch(text):
        raise ParseFloatError(text, width)
    value = float(text)
    if width is FloatWidth.F32:
        return _round_to_f32(value)
    return value


def _round_to_f32(value: float) -> float:
    # Out-of-range literals saturate to infinity rather than failing.
    if math.isnan(value) or math.isinf(value):
        return value
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)
