"""Benchmark selection, date alignment and return rebasing.

A benchmark is chosen from a primary symbol and an ordered list of fallbacks;
the first symbol with usable closes wins. Its closes are aligned to the
portfolio's valuation dates by exact date string, optionally filling gaps, and
both curves are rebased to cumulative percent return from one shared anchor.
"""
from __future__ import annotations

import math
from datetime import date
from enum import Enum
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from holdings_analytics.domain.models.benchmark import (
    BenchmarkAlignment,
    BenchmarkComparison,
    BenchmarkSelection,
    BenchmarkStatus,
    GapFillPolicy,
    PricePoint,
    RebasedPoint,
    ValuationPoint,
)

Reporter = Callable[[str], None]
PriceSource = Union[Mapping[str, Iterable[Any]], Callable[[str], Optional[Iterable[Any]]]]


class ReturnWindow(str, Enum):
    ONE_MONTH = "1M"
    THREE_MONTHS = "3M"
    SIX_MONTHS = "6M"
    ONE_YEAR = "1Y"
    TWO_YEARS = "2Y"
    FIVE_YEARS = "5Y"
    ALL = "ALL"

    @classmethod
    def parse(cls, value: Union["ReturnWindow", str]) -> "ReturnWindow":
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        for member in cls:
            if text == member.value:
                return member
        raise ValueError(f"Unknown return window: {value!r}")


_WINDOW_OFFSETS = {
    ReturnWindow.ONE_MONTH: pd.DateOffset(months=1),
    ReturnWindow.THREE_MONTHS: pd.DateOffset(months=3),
    ReturnWindow.SIX_MONTHS: pd.DateOffset(months=6),
    ReturnWindow.ONE_YEAR: pd.DateOffset(years=1),
    ReturnWindow.TWO_YEARS: pd.DateOffset(years=2),
    ReturnWindow.FIVE_YEARS: pd.DateOffset(years=5),
}


def window_start(window: Union[ReturnWindow, str], today: date, first_date: str) -> str:
    """ISO start date of a trailing window, never earlier than the first data date."""
    window = ReturnWindow.parse(window)
    if window is ReturnWindow.ALL:
        return first_date
    start = (pd.Timestamp(today) - _WINDOW_OFFSETS[window]).strftime("%Y-%m-%d")
    return max(start, first_date)


def coerce_prices(raw: Optional[Iterable[Any]]) -> Tuple[PricePoint, ...]:
    """Keep dated points with a finite, positive close."""
    prices: List[PricePoint] = []
    for item in raw or []:
        if isinstance(item, PricePoint):
            key, close = item.date, item.close
        elif isinstance(item, Mapping):
            key, close = item.get("date"), item.get("close")
        elif isinstance(item, (tuple, list)) and len(item) == 2:
            key, close = item
        else:
            continue
        value = _finite(close)
        if not key or value is None or value <= 0:
            continue
        prices.append(PricePoint(date=str(key), close=value))
    return tuple(prices)


def coerce_valuations(raw: Optional[Iterable[Any]]) -> List[ValuationPoint]:
    """Portfolio values sorted by date; unusable values become NaN but keep their date."""
    points: List[ValuationPoint] = []
    for item in raw or []:
        if isinstance(item, ValuationPoint):
            key, value = item.date, item.value
        elif isinstance(item, Mapping):
            key, value = item.get("date"), item.get("value")
        elif isinstance(item, (tuple, list)) and len(item) == 2:
            key, value = item
        else:
            continue
        if not key:
            continue
        number = _finite(value)
        points.append(ValuationPoint(date=str(key), value=number if number is not None else math.nan))
    return sorted(points, key=lambda p: p.date)


def resolve_benchmark(
    primary: str,
    fallbacks: Sequence[str],
    price_source: PriceSource,
    reporter: Optional[Reporter] = None,
) -> BenchmarkSelection:
    """Pick the first candidate, primary first, whose price series is non-empty."""
    attempted: List[str] = []
    for symbol in _candidates(primary, fallbacks):
        attempted.append(symbol)
        prices = coerce_prices(_lookup(price_source, symbol))
        if prices:
            if reporter is not None and len(attempted) > 1:
                reporter(f"Benchmark {attempted[0]} unavailable; using fallback {symbol}")
            return BenchmarkSelection(
                status=BenchmarkStatus.AVAILABLE,
                symbol=symbol,
                prices=prices,
                attempted=tuple(attempted),
            )
        if reporter is not None:
            reporter(f"No usable closes for benchmark candidate {symbol}")
    return BenchmarkSelection(status=BenchmarkStatus.UNAVAILABLE, symbol=None, attempted=tuple(attempted))


def align_benchmark(
    dates: Sequence[str],
    prices: Sequence[PricePoint],
    policy: Union[GapFillPolicy, str] = GapFillPolicy.NONE,
) -> BenchmarkAlignment:
    policy = GapFillPolicy.parse(policy)
    # later duplicates of a date win
    closes = pd.Series({p.date: p.close for p in prices}, dtype=float).sort_index()
    target = pd.Index(list(dates), dtype=object)
    exact = closes.reindex(target)

    if policy is GapFillPolicy.NONE:
        aligned = exact
    else:
        combined = closes.reindex(closes.index.union(target.unique())).sort_index()
        combined = combined.ffill() if policy is GapFillPolicy.FORWARD_FILL else combined.bfill()
        aligned = combined.reindex(target)

    filled_count = int((exact.isna().to_numpy() & aligned.notna().to_numpy()).sum())
    gap_count = int(aligned.isna().sum())
    return BenchmarkAlignment(
        dates=tuple(dates),
        closes=tuple(None if pd.isna(v) else float(v) for v in aligned),
        filled_count=filled_count,
        gap_count=gap_count,
    )


def find_shared_anchor(
    portfolio_values: Sequence[Optional[float]],
    benchmark_values: Sequence[Optional[float]],
) -> Optional[int]:
    """Index of the first date where both series hold a positive finite value."""
    for idx, (left, right) in enumerate(zip(portfolio_values, benchmark_values)):
        if _usable(left) and _usable(right):
            return idx
    return None


def rebase_series(values: Sequence[Optional[float]], anchor_index: int) -> List[Optional[float]]:
    """Cumulative percent return of every value relative to ``values[anchor_index]``."""
    base = values[anchor_index]
    if not _usable(base):
        raise ValueError(f"Anchor value at index {anchor_index} is not a positive number: {base!r}")
    return [None if _finite(v) is None else (float(v) / base - 1.0) * 100.0 for v in values]


def reanchor_returns(returns: Sequence[Optional[float]], anchor_index: int) -> List[Optional[float]]:
    """Re-express percent returns from a new anchor; unchanged when the anchor return is zero."""
    anchor = _finite(returns[anchor_index])
    if anchor is None or anchor <= -100.0:
        raise ValueError(f"Cannot re-anchor on return {returns[anchor_index]!r}")
    growth = 1.0 + anchor / 100.0
    return [None if _finite(r) is None else ((1.0 + float(r) / 100.0) / growth - 1.0) * 100.0 for r in returns]


def compare_to_benchmark(
    valuations: Optional[Iterable[Any]],
    primary: str,
    fallbacks: Sequence[str],
    price_source: PriceSource,
    *,
    gap_policy: Union[GapFillPolicy, str] = GapFillPolicy.NONE,
    start_date: Optional[str] = None,
    reporter: Optional[Reporter] = None,
) -> BenchmarkComparison:
    policy = GapFillPolicy.parse(gap_policy)
    portfolio = coerce_valuations(valuations)
    if start_date:
        portfolio = [p for p in portfolio if p.date >= start_date]
    if not portfolio:
        return _finish(
            BenchmarkComparison(
                status=BenchmarkStatus.NO_PORTFOLIO_DATA,
                message="No portfolio data available to build a benchmark comparison",
            ),
            reporter,
        )

    selection = resolve_benchmark(primary, fallbacks, price_source, reporter)
    if selection.status is not BenchmarkStatus.AVAILABLE:
        tried = ", ".join(selection.attempted) or "no symbols"
        return _finish(
            BenchmarkComparison(
                status=BenchmarkStatus.UNAVAILABLE,
                message=f"No benchmark available (tried {tried})",
                attempted=selection.attempted,
            ),
            reporter,
        )

    dates = [p.date for p in portfolio]
    values = [p.value for p in portfolio]
    alignment = align_benchmark(dates, selection.prices, policy)
    anchor = find_shared_anchor(values, alignment.closes)
    if anchor is None:
        return _finish(
            BenchmarkComparison(
                status=BenchmarkStatus.MISSING_ANCHOR,
                message=f"Benchmark {selection.symbol} has no close on any date with a portfolio value",
                symbol=selection.symbol,
                filled_count=alignment.filled_count,
                gap_count=alignment.gap_count,
                attempted=selection.attempted,
            ),
            reporter,
        )

    # both curves share the same anchor date
    portfolio_returns = rebase_series(values, anchor)
    benchmark_returns = rebase_series(alignment.closes, anchor)
    points = tuple(
        RebasedPoint(date=dates[idx], portfolio_return=portfolio_returns[idx], benchmark_return=benchmark_returns[idx])
        for idx in range(anchor, len(dates))
    )
    return _finish(
        BenchmarkComparison(
            status=BenchmarkStatus.AVAILABLE,
            message=_status_message(selection, alignment, policy),
            symbol=selection.symbol,
            anchor_date=dates[anchor],
            points=points,
            filled_count=alignment.filled_count,
            gap_count=alignment.gap_count,
            attempted=selection.attempted,
        ),
        reporter,
    )


def _status_message(selection: BenchmarkSelection, alignment: BenchmarkAlignment, policy: GapFillPolicy) -> str:
    parts = [f"Benchmark {selection.symbol}"]
    if selection.is_fallback:
        parts[0] += f" (fallback for {selection.attempted[0]})"
    if alignment.filled_count:
        parts.append(f"{alignment.filled_count} closes filled ({policy.value})")
    if alignment.gap_count:
        parts.append(f"{alignment.gap_count} dates without a close")
    return "; ".join(parts)


def _finish(comparison: BenchmarkComparison, reporter: Optional[Reporter]) -> BenchmarkComparison:
    if reporter is not None:
        reporter(comparison.message)
    return comparison


def _candidates(primary: str, fallbacks: Sequence[str]) -> List[str]:
    seen: List[str] = []
    for symbol in [primary, *(fallbacks or [])]:
        if symbol and symbol not in seen:
            seen.append(symbol)
    return seen


def _lookup(price_source: PriceSource, symbol: str) -> Optional[Iterable[Any]]:
    if callable(price_source):
        return price_source(symbol)
    return price_source.get(symbol)


def _finite(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _usable(value: Any) -> bool:
    number = _finite(value)
    return number is not None and number > 0
