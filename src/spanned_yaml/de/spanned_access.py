"""Synthetic map that smuggles a node's span through the decoding protocol.

The keys come out in a fixed order, each group skipped when its marker is
absent::

    start source, start line, start column   (only with a start marker)
    end source,   end line,   end column     (only with an end marker)
    inner value                              (always)

so a consumer sees 0, 3 or 6 coordinate fields before the value field.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Any

from spanned_yaml.de.protocol import END, Decoder, MapAccess, Seed
from spanned_yaml.de.reserved import (
    SPANNED_INNER,
    SPANNED_SPAN_END_COLUMN,
    SPANNED_SPAN_END_LINE,
    SPANNED_SPAN_END_SOURCE,
    SPANNED_SPAN_START_COLUMN,
    SPANNED_SPAN_START_LINE,
    SPANNED_SPAN_START_SOURCE,
)
from spanned_yaml.de.value import ValueDecoder
from spanned_yaml.models.span import Marker, Span


class SpannedState(Enum):
    START_SOURCE = auto()
    START_LINE = auto()
    START_COLUMN = auto()
    END_SOURCE = auto()
    END_LINE = auto()
    END_COLUMN = auto()
    VALUE = auto()
    DONE = auto()


_KEYS: dict[SpannedState, str] = {
    SpannedState.START_SOURCE: SPANNED_SPAN_START_SOURCE,
    SpannedState.START_LINE: SPANNED_SPAN_START_LINE,
    SpannedState.START_COLUMN: SPANNED_SPAN_START_COLUMN,
    SpannedState.END_SOURCE: SPANNED_SPAN_END_SOURCE,
    SpannedState.END_LINE: SPANNED_SPAN_END_LINE,
    SpannedState.END_COLUMN: SPANNED_SPAN_END_COLUMN,
    SpannedState.VALUE: SPANNED_INNER,
}


def initial_state(span: Span) -> SpannedState:
    if span.start is not None:
        return SpannedState.START_SOURCE
    if span.end is not None:
        return SpannedState.END_SOURCE
    return SpannedState.VALUE


def next_state(state: SpannedState, span: Span) -> SpannedState:
    """The state following *state*; never moves backwards."""
    match state:
        case SpannedState.START_SOURCE:
            return SpannedState.START_LINE
        case SpannedState.START_LINE:
            return SpannedState.START_COLUMN
        case SpannedState.START_COLUMN:
            return SpannedState.END_SOURCE if span.end is not None else SpannedState.VALUE
        case SpannedState.END_SOURCE:
            return SpannedState.END_LINE
        case SpannedState.END_LINE:
            return SpannedState.END_COLUMN
        case SpannedState.END_COLUMN:
            return SpannedState.VALUE
        case SpannedState.VALUE | SpannedState.DONE:
            return SpannedState.DONE


def _coordinate(state: SpannedState, span: Span) -> int:
    marker: Marker | None
    if state in (SpannedState.START_SOURCE, SpannedState.START_LINE, SpannedState.START_COLUMN):
        marker = span.start
    else:
        marker = span.end
    assert marker is not None, f"span has no marker for {state.name}"
    match state:
        case SpannedState.START_SOURCE | SpannedState.END_SOURCE:
            return marker.source
        case SpannedState.START_LINE | SpannedState.END_LINE:
            return marker.line
        case _:
            return marker.column


class SpannedAccess(MapAccess):
    """Walks the synthetic fields for one node, then hands over its decoder."""

    def __init__(self, span: Span, value: Decoder) -> None:
        self._span = span
        self._value = value
        self._state = initial_state(span)

    @property
    def state(self) -> SpannedState:
        return self._state

    def next_key(self, seed: Seed) -> Any:
        if self._state is SpannedState.DONE:
            return END
        return seed.decode(ValueDecoder(_KEYS[self._state]))

    def next_value(self, seed: Seed) -> Any:
        state = self._state
        if state is SpannedState.DONE:
            raise RuntimeError("next_value called before next_key")
        self._state = next_state(state, self._span)
        if state is SpannedState.VALUE:
            return seed.decode(self._value)
        return seed.decode(ValueDecoder(_coordinate(state, self._span)))

    def size_hint(self) -> int | None:
        count = 1
        if self._span.start is not None:
            count += 3
        if self._span.end is not None:
            count += 3
        return count
