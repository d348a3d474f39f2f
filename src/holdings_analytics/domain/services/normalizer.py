"""Validate and coerce raw fundamentals into canonical, chronologically sorted records.

Normalization is lenient: a garbled field becomes ``0.0`` and a record without a
period key is dropped, so partial data never blocks the rest of a series.

Chronological order is the lexicographic order of the period key. That holds
only for zero-padded ``YYYY`` / ``YYYY-Qn`` keys; other shapes are reported
through ``reporter`` (or rejected when ``strict=True``).
"""
from __future__ import annotations

import math
import re
from dataclasses import asdict
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from holdings_analytics.domain.errors import PeriodKeyFormatError
from holdings_analytics.domain.models.financials import (
    METRIC_ALIASES,
    METRIC_NAMES,
    FundamentalsRecord,
)

Reporter = Callable[[str], None]
RawRecord = Union[FundamentalsRecord, Mapping[str, Any]]

PERIOD_KEY_PATTERN = re.compile(r"^\d{4}(-Q[1-4])?$")


def normalize_records(
    records: Optional[Iterable[RawRecord]],
    *,
    strict: bool = False,
    reporter: Optional[Reporter] = None,
) -> List[FundamentalsRecord]:
    rows: List[FundamentalsRecord] = []
    for raw in records or []:
        fields = _fields_from_raw(raw)
        period = fields.pop("period", None)
        if not isinstance(period, str) or not period.strip():
            continue
        values = {name: _finite_or_zero(fields.get(name)) for name in METRIC_NAMES}
        rows.append(FundamentalsRecord(period=period, **values))

    irregular = sorted({r.period for r in rows if not is_canonical_period(r.period)})
    if irregular:
        if strict:
            raise PeriodKeyFormatError(irregular)
        if reporter is not None:
            reporter(f"Non-canonical period keys may sort out of order: {', '.join(irregular)}")

    return _dedup_by_period(rows)


def _dedup_by_period(rows: Iterable[FundamentalsRecord]) -> List[FundamentalsRecord]:
    """One record per period, the last occurrence wins, sorted by period."""
    latest: Dict[str, FundamentalsRecord] = {}
    for row in rows:
        latest[row.period] = row
    return sorted(latest.values(), key=lambda r: r.period)


def is_canonical_period(period: str) -> bool:
    return bool(PERIOD_KEY_PATTERN.match(period))


def _fields_from_raw(raw: RawRecord) -> Dict[str, Any]:
    if isinstance(raw, FundamentalsRecord):
        return asdict(raw)
    if not isinstance(raw, Mapping):
        return {}
    fields: Dict[str, Any] = {}
    for key, value in raw.items():
        name = METRIC_ALIASES.get(key, key)
        if name == "date":
            # ``period`` wins when both are present
            fields.setdefault("period", value)
            continue
        if name == "period":
            fields["period"] = value
            continue
        fields[name] = value
    return fields


def _finite_or_zero(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0
