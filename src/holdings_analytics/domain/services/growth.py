"""Compound annual growth rate (CAGR) over derived series.

Period keys drive the elapsed-time arithmetic: two quarter keys (``YYYY-Qn``)
are measured in whole quarters, anything else in whole years. Results never
carry NaN or infinity; an undefined rate is reported through ``GrowthStatus``.
"""
from __future__ import annotations

import math
import re
from typing import Any, Iterable, List, Optional, Tuple, Union

import pandas as pd

from holdings_analytics.domain.models.financials import (
    Cadence,
    GrowthResult,
    GrowthStatus,
    WindowGrowthResult,
)

QUARTER_KEY = re.compile(r"^(\d{4})-?Q([1-4])")
YEAR_PREFIX = re.compile(r"^(\d{4})")
DAYS_PER_YEAR = 365.25


def compute_cagr(series: Optional[Iterable[Any]]) -> GrowthResult:
    """CAGR between the first and last strictly positive points, in input order."""
    valid = _positive_points(series)
    if len(valid) < 2:
        return GrowthResult(years=0.0, start=0.0, end=0.0, status=GrowthStatus.INSUFFICIENT_DATA)

    (first_key, start), (last_key, end) = valid[0], valid[-1]
    if start <= 0 or end <= 0:
        return GrowthResult(years=0.0, start=start, end=end, status=GrowthStatus.NON_POSITIVE)

    years = elapsed_years(first_key, last_key)
    if years is None:
        return GrowthResult(years=0.0, start=start, end=end, status=GrowthStatus.UNPARSEABLE_PERIOD)
    if years <= 0:
        return GrowthResult(years=0.0, start=start, end=end, status=GrowthStatus.NON_POSITIVE_SPAN)

    rate = _annualized(start, end, years)
    if rate is None:
        return GrowthResult(years=_round_years(years), start=start, end=end, status=GrowthStatus.NON_FINITE)
    return GrowthResult(years=_round_years(years), start=start, end=end, status=GrowthStatus.OK, rate=rate)


def elapsed_years(first_key: str, last_key: str) -> Optional[float]:
    """Years between two period keys; ``None`` when a key cannot be read."""
    if "Q" in first_key and "Q" in last_key:
        first = QUARTER_KEY.match(first_key)
        last = QUARTER_KEY.match(last_key)
        if first is None or last is None:
            return None
        total_quarters = (int(last.group(1)) - int(first.group(1))) * 4 + (
            int(last.group(2)) - int(first.group(2))
        )
        return total_quarters / 4

    first_year = YEAR_PREFIX.match(first_key)
    last_year = YEAR_PREFIX.match(last_key)
    if first_year is None or last_year is None:
        return None
    return float(int(last_year.group(1)) - int(first_year.group(1)))


def compute_window_cagr(
    series: Optional[Iterable[Any]],
    window_years: int,
    cadence: Union[Cadence, str],
) -> WindowGrowthResult:
    """CAGR over the trailing ``window_years`` ending at the latest valid point.

    The start point is the latest point dated on or before the window start, and
    elapsed time is measured in calendar days so partial years count.
    """
    cadence = Cadence.parse(cadence)
    valid = sorted(_positive_points(series), key=lambda item: item[0])
    if len(valid) < 2:
        return WindowGrowthResult(status=GrowthStatus.INSUFFICIENT_DATA)

    try:
        dated = [(period_to_timestamp(key, cadence), key, value) for key, value in valid]
    except ValueError:
        return WindowGrowthResult(status=GrowthStatus.UNPARSEABLE_PERIOD)

    end_date, end_key, end_value = dated[-1]
    target = end_date - pd.DateOffset(years=int(window_years))
    start = next((item for item in reversed(dated) if item[0] <= target), None)
    if start is None:
        return WindowGrowthResult(status=GrowthStatus.SHORT_SPAN)

    start_date, start_key, start_value = start
    years = (end_date - start_date).total_seconds() / (DAYS_PER_YEAR * 86400)
    if years <= 0:
        return WindowGrowthResult(status=GrowthStatus.SHORT_SPAN)

    rate = _annualized(start_value, end_value, years)
    if rate is None:
        return WindowGrowthResult(status=GrowthStatus.NON_FINITE)
    return WindowGrowthResult(
        status=GrowthStatus.OK,
        rate=rate,
        start_label=format_window_label(start_key, cadence),
        end_label=format_window_label(end_key, cadence),
        start_value=start_value,
        end_value=end_value,
        elapsed_years=years,
    )


def period_to_timestamp(key: str, cadence: Cadence) -> pd.Timestamp:
    """Calendar anchor for a period key: Jan 1 for years, mid-month of a quarter's last month."""
    if cadence is Cadence.ANNUAL:
        year = YEAR_PREFIX.match(key)
        if year is None:
            raise ValueError(f"Unreadable annual period: {key!r}")
        return pd.Timestamp(year=int(year.group(1)), month=1, day=1)
    quarter = QUARTER_KEY.match(key)
    if quarter is not None:
        return pd.Timestamp(year=int(quarter.group(1)), month=int(quarter.group(2)) * 3, day=15)
    try:
        stamp = pd.Timestamp(key)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Unreadable period: {key!r}") from exc
    if pd.isna(stamp):
        raise ValueError(f"Unreadable period: {key!r}")
    return stamp


def format_window_label(key: str, cadence: Cadence) -> str:
    if cadence is Cadence.ANNUAL:
        return key
    if "Q" in key:
        label = key
    else:
        stamp = pd.Timestamp(key)
        label = f"{stamp.year}-Q{stamp.quarter}"
    return f"{label} (TTM)" if cadence is Cadence.TTM else label


def _round_years(years: float) -> float:
    # one decimal, halves round up (1.25 -> 1.3)
    return math.floor(years * 10 + 0.5) / 10


def _annualized(start: float, end: float, years: float) -> Optional[float]:
    try:
        rate = (end / start) ** (1.0 / years) - 1.0
    except (OverflowError, ZeroDivisionError):
        return None
    if isinstance(rate, complex) or not math.isfinite(rate):
        return None
    return rate


def _positive_points(series: Optional[Iterable[Any]]) -> List[Tuple[str, float]]:
    points: List[Tuple[str, float]] = []
    for item in series or []:
        key, value = _unpack(item)
        if key is None or value is None:
            continue
        if math.isfinite(value) and value > 0:
            points.append((key, value))
    return points


def _unpack(item: Any) -> Tuple[Optional[str], Optional[float]]:
    if isinstance(item, dict):
        key = item.get("date", item.get("period"))
        raw = item.get("value")
    elif isinstance(item, (tuple, list)) and len(item) == 2:
        key, raw = item
    else:
        key = getattr(item, "date", getattr(item, "period", None))
        raw = getattr(item, "value", None)
    if key is None or raw is None or isinstance(raw, bool):
        return None, None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None, None
    return str(key), value
