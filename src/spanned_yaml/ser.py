"""Turn decoded values back into plain Python data. Spans do not survive."""

from __future__ import annotations

import dataclasses
import enum
from typing import Any

from pydantic import BaseModel

from spanned_yaml.spanned import Spanned


def to_plain(value: Any) -> Any:
    """Recursively unwrap ``Spanned`` values and flatten structs into dicts."""
    if isinstance(value, Spanned):
        return to_plain(value.inner)
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.metadata.get("alias", f.name): to_plain(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, dict):
        return {to_plain(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return [to_plain(item) for item in value]
    return value
