"""Compact number formatting for terminal tables."""
from __future__ import annotations

import math
from typing import Optional

from holdings_analytics.domain.models.financials import MetricClass, classify_metric

_UNITS = ((1e12, "T"), (1e9, "B"), (1e6, "M"), (1e3, "K"))


def _missing(value: Optional[float]) -> bool:
    return value is None or not math.isfinite(value) or value == 0


def format_compact_currency(value: Optional[float]) -> str:
    if _missing(value):
        return "N/A"
    for scale, suffix in _UNITS:
        if abs(value) >= scale:
            return f"{'-' if value < 0 else ''}${abs(value) / scale:.2f}{suffix}"
    return f"{'-' if value < 0 else ''}${abs(value):.2f}"


def format_shares(value: Optional[float]) -> str:
    if _missing(value):
        return "N/A"
    if abs(value) >= 1e9:
        return f"{value / 1e9:.2f}B"
    if abs(value) >= 1e6:
        return f"{value / 1e6:.2f}M"
    return f"{value:.0f}"


def format_percent(value: Optional[float], *, scale: float = 100.0) -> str:
    if value is None or not math.isfinite(value):
        return "N/A"
    return f"{value * scale:.2f}%"


def format_metric_value(metric: str, value: Optional[float]) -> str:
    """Pick the formatter matching a metric's unit."""
    if classify_metric(metric) is MetricClass.PER_SHARE:
        return "N/A" if value is None or not math.isfinite(value) else f"${value:.2f}"
    if metric in {"shares_outstanding", "sharesOutstanding"}:
        return format_shares(value)
    return format_compact_currency(value)
