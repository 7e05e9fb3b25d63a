"""Reserved struct name and field list of the span-smuggling convention.

A node-aware decoder that receives ``decode_struct(SPANNED_TYPE,
SPANNED_FIELDS, ...)`` answers with a synthetic map of span coordinates
followed by the real value, instead of decoding the node directly.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Final

SPANNED_TYPE: Final = "$___::spanned_yaml::Spanned"
SPANNED_SPAN_START_SOURCE: Final = "$___::spanned_yaml::Spanned::span_start_source"
SPANNED_SPAN_START_LINE: Final = "$___::spanned_yaml::Spanned::span_start_line"
SPANNED_SPAN_START_COLUMN: Final = "$___::spanned_yaml::Spanned::span_start_column"
SPANNED_SPAN_END_SOURCE: Final = "$___::spanned_yaml::Spanned::span_end_source"
SPANNED_SPAN_END_LINE: Final = "$___::spanned_yaml::Spanned::span_end_line"
SPANNED_SPAN_END_COLUMN: Final = "$___::spanned_yaml::Spanned::span_end_column"
SPANNED_INNER: Final = "$___::spanned_yaml::Spanned::inner"

SPANNED_FIELDS: Final[tuple[str, ...]] = (
    SPANNED_SPAN_START_SOURCE,
    SPANNED_SPAN_START_LINE,
    SPANNED_SPAN_START_COLUMN,
    SPANNED_SPAN_END_SOURCE,
    SPANNED_SPAN_END_LINE,
    SPANNED_SPAN_END_COLUMN,
    SPANNED_INNER,
)


def is_spanned_request(name: str, fields: Sequence[str]) -> bool:
    return name == SPANNED_TYPE and tuple(fields) == SPANNED_FIELDS
