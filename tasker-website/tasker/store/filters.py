from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


EQUALS = "=="
ARRAY_CONTAINS = "array-contains"

_OPS = {EQUALS, ARRAY_CONTAINS}


@dataclass(frozen=True)
class Filter:
    """Single-field query predicate: ``field == value`` or ``value in field``."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in _OPS:
            raise ValueError(f"Unsupported filter operator: {self.op!r}")

    def matches(self, data: Dict[str, Any]) -> bool:
        current = data.get(self.field)
        if self.op == EQUALS:
            return current == self.value
        return isinstance(current, list) and self.value in current


def matches(flt: Optional[Filter], data: Dict[str, Any]) -> bool:
    return True if flt is None else flt.matches(data)
