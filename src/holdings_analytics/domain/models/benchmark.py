"""Domain models exchanged by the benchmark resolver and rebaser."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class PricePoint:
    date: str
    close: float


@dataclass(frozen=True)
class ValuationPoint:
    date: str
    value: float


class GapFillPolicy(str, Enum):
    """How a portfolio date without an exact benchmark close is treated."""

    NONE = "none"
    FORWARD_FILL = "ffill"  # last close on or before the date
    BACK_FILL = "bfill"  # next close on or after the date

    @classmethod
    def parse(cls, value: Union["GapFillPolicy", str]) -> "GapFillPolicy":
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace("-", "_")
        aliases = {
            "none": cls.NONE,
            "ffill": cls.FORWARD_FILL,
            "forward_fill": cls.FORWARD_FILL,
            "bfill": cls.BACK_FILL,
            "back_fill": cls.BACK_FILL,
            "backfill": cls.BACK_FILL,
        }
        if text not in aliases:
            raise ValueError(f"Unknown gap fill policy: {value!r}")
        return aliases[text]


class BenchmarkStatus(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    NO_PORTFOLIO_DATA = "no_portfolio_data"
    MISSING_ANCHOR = "missing_anchor"


@dataclass(frozen=True)
class BenchmarkSelection:
    """First usable candidate in a primary-then-fallbacks chain."""

    status: BenchmarkStatus
    symbol: Optional[str]
    prices: Tuple[PricePoint, ...] = ()
    attempted: Tuple[str, ...] = ()

    @property
    def is_fallback(self) -> bool:
        return bool(self.symbol) and bool(self.attempted) and self.symbol != self.attempted[0]


@dataclass(frozen=True)
class BenchmarkAlignment:
    """Benchmark closes aligned one-to-one with portfolio dates."""

    dates: Tuple[str, ...]
    closes: Tuple[Optional[float], ...]
    filled_count: int = 0
    gap_count: int = 0


@dataclass(frozen=True)
class RebasedPoint:
    """Cumulative return in percent since the shared anchor date."""

    date: str
    portfolio_return: Optional[float]
    benchmark_return: Optional[float]


@dataclass(frozen=True)
class BenchmarkComparison:
    status: BenchmarkStatus
    message: str
    symbol: Optional[str] = None
    anchor_date: Optional[str] = None
    points: Tuple[RebasedPoint, ...] = ()
    filled_count: int = 0
    gap_count: int = 0
    attempted: Tuple[str, ...] = ()

    @property
    def available(self) -> bool:
        return self.status is BenchmarkStatus.AVAILABLE
