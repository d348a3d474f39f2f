"""Domain models describing fundamentals records and the series derived from them."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union


class MetricClass(str, Enum):
    """How a metric aggregates across a trailing window."""

    FLOW = "flow"  # summed over the window
    STOCK = "stock"  # latest value in the window
    PER_SHARE = "per_share"  # summed, earnings accrue over the window


FLOW_METRICS: Tuple[str, ...] = (
    "revenue",
    "gross_profit",
    "ebitda",
    "operating_income",
    "net_income",
    "free_cash_flow",
)
STOCK_METRICS: Tuple[str, ...] = (
    "total_assets",
    "total_equity",
    "total_debt",
    "total_cash",
    "shares_outstanding",
)
PER_SHARE_METRICS: Tuple[str, ...] = ("eps",)

METRIC_CLASSES: Dict[str, MetricClass] = {
    **{name: MetricClass.FLOW for name in FLOW_METRICS},
    **{name: MetricClass.STOCK for name in STOCK_METRICS},
    **{name: MetricClass.PER_SHARE for name in PER_SHARE_METRICS},
}

METRIC_NAMES: Tuple[str, ...] = FLOW_METRICS + STOCK_METRICS + PER_SHARE_METRICS

# Upstream feeds report camelCase keys.
METRIC_ALIASES: Dict[str, str] = {
    "grossProfit": "gross_profit",
    "operatingIncome": "operating_income",
    "netIncome": "net_income",
    "freeCashFlow": "free_cash_flow",
    "totalAssets": "total_assets",
    "totalEquity": "total_equity",
    "totalDebt": "total_debt",
    "totalCash": "total_cash",
    "sharesOutstanding": "shares_outstanding",
    "EPS": "eps",
    "EBITDA": "ebitda",
}


def resolve_metric(name: str) -> Optional[str]:
    """Map a metric name or alias onto its canonical snake_case name."""
    if not isinstance(name, str):
        return None
    canonical = METRIC_ALIASES.get(name, name)
    return canonical if canonical in METRIC_CLASSES else None


def classify_metric(name: str) -> Optional[MetricClass]:
    canonical = resolve_metric(name)
    return METRIC_CLASSES.get(canonical) if canonical is not None else None


class Cadence(str, Enum):
    """Reporting frequency of a derived series."""

    QUARTERLY = "quarterly"
    TTM = "ttm"
    ANNUAL = "annual"

    @classmethod
    def parse(cls, value: Union["Cadence", str]) -> "Cadence":
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if text in {member.value, member.name.lower()}:
                return member
        raise ValueError(f"Unknown cadence: {value!r}")


@dataclass(frozen=True)
class FundamentalsRecord:
    """One normalized reporting period (``YYYY`` or ``YYYY-Qn``)."""

    period: str
    revenue: float = 0.0
    gross_profit: float = 0.0
    ebitda: float = 0.0
    operating_income: float = 0.0
    net_income: float = 0.0
    free_cash_flow: float = 0.0
    total_assets: float = 0.0
    total_equity: float = 0.0
    total_debt: float = 0.0
    total_cash: float = 0.0
    shares_outstanding: float = 0.0
    eps: float = 0.0

    def value(self, metric: str) -> float:
        canonical = resolve_metric(metric)
        if canonical is None:
            return 0.0
        return getattr(self, canonical)


@dataclass(frozen=True)
class SeriesPoint:
    period: str
    label: str
    value: float


class GrowthStatus(str, Enum):
    """Outcome tag for growth calculations; only ``OK`` carries a rate."""

    OK = "ok"
    INSUFFICIENT_DATA = "insufficient_data"
    NON_POSITIVE = "non_positive"
    NON_POSITIVE_SPAN = "non_positive_span"
    SHORT_SPAN = "short_span"
    NON_FINITE = "non_finite"
    UNPARSEABLE_PERIOD = "unparseable_period"


@dataclass(frozen=True)
class GrowthResult:
    """Compound annual growth between the first and last valid points."""

    years: float
    start: float
    end: float
    status: GrowthStatus
    rate: Optional[float] = None

    @property
    def available(self) -> bool:
        return self.status is GrowthStatus.OK


@dataclass(frozen=True)
class WindowGrowthResult:
    """CAGR over a trailing window of calendar years ending at the latest point."""

    status: GrowthStatus
    rate: Optional[float] = None
    start_label: str = ""
    end_label: str = ""
    start_value: Optional[float] = None
    end_value: Optional[float] = None
    elapsed_years: Optional[float] = None

    @property
    def available(self) -> bool:
        return self.status is GrowthStatus.OK
