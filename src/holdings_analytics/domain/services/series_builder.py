"""Build metric series at quarterly, trailing-twelve-month and annual cadence.

Trailing windows aggregate by metric class: flow and per-share metrics are
summed over four quarters, while stock (balance-sheet) metrics take the latest
quarter in the window since balances are not additive across periods.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from holdings_analytics.domain.models.financials import (
    Cadence,
    FundamentalsRecord,
    MetricClass,
    SeriesPoint,
    classify_metric,
    resolve_metric,
)
from holdings_analytics.domain.services.normalizer import RawRecord, normalize_records

TTM_WINDOW = 4

DISPLAY_LIMITS: Dict[Cadence, int] = {
    Cadence.QUARTERLY: 24,
    Cadence.TTM: 24,
    Cadence.ANNUAL: 10,
}


def format_tick_label(period: str, cadence: Cadence) -> str:
    # YYYY and YYYY-Qn keys already carry the needed granularity
    return period


def build_series(
    quarterly: Optional[Iterable[RawRecord]],
    annual: Optional[Iterable[RawRecord]],
    metric: str,
    cadence: Union[Cadence, str],
) -> List[SeriesPoint]:
    cadence = Cadence.parse(cadence)
    canonical = resolve_metric(metric)
    metric_class = classify_metric(metric)
    if canonical is None or metric_class is None:
        return []

    normalized_quarterly = normalize_records(quarterly)
    normalized_annual = normalize_records(annual)

    if cadence is Cadence.QUARTERLY:
        return _point_series(normalized_quarterly, canonical, cadence)
    if cadence is Cadence.ANNUAL:
        return _point_series(normalized_annual, canonical, cadence)
    return _ttm_series(normalized_quarterly, canonical, metric_class)


def limit_series_points(
    series: Sequence[SeriesPoint],
    cadence: Union[Cadence, str],
    limits: Optional[Dict[Cadence, int]] = None,
) -> List[SeriesPoint]:
    """Keep only the most recent points for display."""
    cadence = Cadence.parse(cadence)
    max_points = (limits or DISPLAY_LIMITS).get(cadence, DISPLAY_LIMITS[cadence])
    if max_points <= 0:
        return []
    return list(series[-max_points:])


def get_metric_series(
    quarterly: Optional[Iterable[RawRecord]],
    annual: Optional[Iterable[RawRecord]],
    metric: str,
    cadence: Union[Cadence, str],
    limits: Optional[Dict[Cadence, int]] = None,
) -> List[SeriesPoint]:
    series = build_series(quarterly, annual, metric, cadence)
    return limit_series_points(series, cadence, limits)


def series_to_frame(series: Sequence[SeriesPoint]) -> pd.DataFrame:
    """Tabular view of a series for CSV/JSON export."""
    return pd.DataFrame(
        [{"period": p.period, "label": p.label, "value": p.value} for p in series],
        columns=["period", "label", "value"],
    )


def _point_series(records: List[FundamentalsRecord], metric: str, cadence: Cadence) -> List[SeriesPoint]:
    return [
        SeriesPoint(period=r.period, label=format_tick_label(r.period, cadence), value=r.value(metric))
        for r in records
    ]


def _ttm_series(records: List[FundamentalsRecord], metric: str, metric_class: MetricClass) -> List[SeriesPoint]:
    if len(records) < TTM_WINDOW:
        return []

    values = np.array([r.value(metric) for r in records], dtype=float)
    windows = np.lib.stride_tricks.sliding_window_view(values, TTM_WINDOW)
    if metric_class is MetricClass.STOCK:
        aggregated = windows[:, -1]
    else:
        aggregated = windows.sum(axis=1)

    return [
        SeriesPoint(
            period=records[idx].period,
            label=format_tick_label(records[idx].period, Cadence.TTM),
            value=float(total),
        )
        for idx, total in enumerate(aggregated, start=TTM_WINDOW - 1)
    ]
