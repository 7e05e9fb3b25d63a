"""Structured diagnostics with YAML source position tracking."""

from __future__ import annotations

from pydantic import BaseModel

from spanned_yaml.models.span import Span


class SourceSpan(BaseModel):
    """Points to exact location in YAML source for error reporting."""

    file: str
    line: int
    column: int
    end_line: int | None = None
    end_column: int | None = None

    @classmethod
    def from_span(cls, span: Span, file: str | None = None) -> SourceSpan | None:
        """Flatten a node span; ``None`` when it has no start marker."""
        if span.start is None:
            return None
        return cls(
            file=file if file is not None else f"<source {span.start.source}>",
            line=span.start.line,
            column=span.start.column,
            end_line=span.end.line if span.end is not None else None,
            end_column=span.end.column if span.end is not None else None,
        )


class Diagnostic(BaseModel):
    """A decode failure ready to be shown to whoever edits the YAML file."""

    code: str
    message: str
    path: str | None = None
    span: SourceSpan | None = None

    def format(self) -> str:
        """Render as ``file:line:column: message`` (location omitted if unknown)."""
        where = ""
        if self.span is not None:
            where = f"{self.span.file}:{self.span.line}:{self.span.column}: "
        suffix = f" (at {self.path})" if self.path else ""
        return f"{where}{self.message}{suffix}"
