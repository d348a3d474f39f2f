"""Exceptions raised by the domain layer when callers opt into strict checks."""
from __future__ import annotations

from typing import Sequence


class PeriodKeyFormatError(ValueError):
    """Raised in strict mode when period keys would not sort chronologically."""

    def __init__(self, keys: Sequence[str]) -> None:
        self.keys = list(keys)
        preview = ", ".join(repr(k) for k in self.keys[:5])
        super().__init__(f"Period keys must be 'YYYY' or 'YYYY-Qn'; got {preview}")
