"""Source positions attached to every parsed node."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Marker(BaseModel):
    """A single point in a YAML source: source id, 1-based line and column."""

    model_config = ConfigDict(frozen=True)

    source: int
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.source}:{self.line}:{self.column}"


class Span(BaseModel):
    """A possibly partial source range.

    Scalars usually only carry ``start``; mappings and sequences carry both.
    A span with neither marker is *blank* and is what errors raised outside
    of node-aware code start out with.
    """

    model_config = ConfigDict(frozen=True)

    start: Marker | None = None
    end: Marker | None = None

    @classmethod
    def blank(cls) -> Span:
        return cls()

    @property
    def is_blank(self) -> bool:
        return self.start is None and self.end is None
