"""Application-wide configuration defaults and helpers."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from holdings_analytics.domain.models.benchmark import GapFillPolicy
from holdings_analytics.domain.models.financials import Cadence


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse truthy environment values like '1' or 'true'."""
    if value is None:
        return default
    if not isinstance(value, str):
        value = str(value)
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: Optional[str]) -> Optional[int]:
    """Safely parse an integer env var, returning None on failure."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _to_symbols(value: Optional[str]) -> Optional[Tuple[str, ...]]:
    if value is None:
        return None
    return tuple(part.strip().upper() for part in value.split(",") if part.strip())


@dataclass
class Config:
    """Runtime configuration loaded from environment variables."""

    debug: bool = False
    benchmark_symbol: str = "SPY"
    benchmark_fallbacks: Tuple[str, ...] = field(default_factory=lambda: ("SPY.US",))
    gap_fill: GapFillPolicy = GapFillPolicy.NONE
    annual_display_points: int = 10
    quarterly_display_points: int = 24
    strict_period_keys: bool = False

    @classmethod
    def from_env(cls) -> "Config":
        """Build a configuration instance using environment overrides."""
        defaults = cls()
        gap_fill = defaults.gap_fill
        raw_gap_fill = os.getenv("BENCHMARK_GAP_FILL")
        if raw_gap_fill:
            try:
                gap_fill = GapFillPolicy.parse(raw_gap_fill)
            except ValueError:
                gap_fill = defaults.gap_fill

        fallbacks = _to_symbols(os.getenv("BENCHMARK_FALLBACKS"))
        annual_points = _to_int(os.getenv("DISPLAY_ANNUAL_POINTS"))
        quarterly_points = _to_int(os.getenv("DISPLAY_QUARTERLY_POINTS"))

        return cls(
            debug=_to_bool(os.getenv("APP_DEBUG")),
            benchmark_symbol=os.getenv("BENCHMARK_SYMBOL", defaults.benchmark_symbol).strip().upper()
            or defaults.benchmark_symbol,
            benchmark_fallbacks=fallbacks if fallbacks is not None else defaults.benchmark_fallbacks,
            gap_fill=gap_fill,
            annual_display_points=annual_points if annual_points and annual_points > 0 else defaults.annual_display_points,
            quarterly_display_points=quarterly_points
            if quarterly_points and quarterly_points > 0
            else defaults.quarterly_display_points,
            strict_period_keys=_to_bool(os.getenv("STRICT_PERIOD_KEYS")),
        )

    def display_limits(self) -> Dict[Cadence, int]:
        """Per-cadence display windows for ``limit_series_points``."""
        return {
            Cadence.QUARTERLY: self.quarterly_display_points,
            Cadence.TTM: self.quarterly_display_points,
            Cadence.ANNUAL: self.annual_display_points,
        }
