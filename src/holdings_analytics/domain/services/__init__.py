"""Convenience re-exports for the analytics services."""
from __future__ import annotations

from .benchmark import (
    ReturnWindow,
    align_benchmark,
    compare_to_benchmark,
    reanchor_returns,
    rebase_series,
    resolve_benchmark,
    window_start,
)
from .growth import compute_cagr, compute_window_cagr
from .normalizer import normalize_records
from .series_builder import (
    build_series,
    get_metric_series,
    limit_series_points,
    series_to_frame,
)

__all__ = [
    "ReturnWindow",
    "align_benchmark",
    "build_series",
    "compare_to_benchmark",
    "compute_cagr",
    "compute_window_cagr",
    "get_metric_series",
    "limit_series_points",
    "normalize_records",
    "reanchor_returns",
    "rebase_series",
    "resolve_benchmark",
    "series_to_frame",
    "window_start",
]
