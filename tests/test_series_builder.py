from __future__ import annotations

from typing import Dict, List

import pytest

from holdings_analytics.domain.models.financials import (
    FLOW_METRICS,
    METRIC_CLASSES,
    PER_SHARE_METRICS,
    STOCK_METRICS,
    Cadence,
    MetricClass,
    SeriesPoint,
)
from holdings_analytics.domain.services.series_builder import (
    build_series,
    get_metric_series,
    limit_series_points,
    series_to_frame,
)


def _mk_quarters(count: int, start_year: int = 2018) -> List[Dict[str, object]]:
    rows = []
    for idx in range(count):
        year = start_year + idx // 4
        quarter = idx % 4 + 1
        base = float(idx + 1)
        rows.append(
            {
                "period": f"{year}-Q{quarter}",
                "revenue": base * 100.0,
                "net_income": base * 10.0,
                "total_assets": 1_000.0 + base,
                "shares_outstanding": 50.0 + base,
                "eps": base * 0.25,
            }
        )
    return rows


def _mk_years(count: int, start_year: int = 2010) -> List[Dict[str, object]]:
    return [{"period": str(start_year + idx), "revenue": 100.0 * (idx + 1)} for idx in range(count)]


def test_metric_table_is_a_disjoint_partition():
    assert set(METRIC_CLASSES) == set(FLOW_METRICS) | set(STOCK_METRICS) | set(PER_SHARE_METRICS)
    assert len(METRIC_CLASSES) == len(FLOW_METRICS) + len(STOCK_METRICS) + len(PER_SHARE_METRICS)
    assert METRIC_CLASSES["eps"] is MetricClass.PER_SHARE
    assert METRIC_CLASSES["total_debt"] is MetricClass.STOCK
    assert METRIC_CLASSES["free_cash_flow"] is MetricClass.FLOW


def test_quarterly_and_annual_pass_through():
    quarters = _mk_quarters(5)
    years = _mk_years(3)

    quarterly = build_series(quarters, years, "revenue", Cadence.QUARTERLY)
    annual = build_series(quarters, years, "revenue", "annual")

    assert [p.period for p in quarterly] == ["2018-Q1", "2018-Q2", "2018-Q3", "2018-Q4", "2019-Q1"]
    assert [p.value for p in quarterly] == [100.0, 200.0, 300.0, 400.0, 500.0]
    assert [p.label for p in annual] == ["2010", "2011", "2012"]
    assert [p.value for p in annual] == [100.0, 200.0, 300.0]


def test_ttm_length_and_flow_sums():
    quarters = _mk_quarters(7)
    series = build_series(quarters, [], "revenue", Cadence.TTM)

    assert len(series) == len(quarters) - 3
    assert series[0].period == "2018-Q4"
    for offset, point in enumerate(series):
        expected = sum(q["revenue"] for q in quarters[offset : offset + 4])
        assert point.value == pytest.approx(expected)


def test_ttm_per_share_metric_is_summed():
    quarters = _mk_quarters(4)
    (point,) = build_series(quarters, [], "eps", Cadence.TTM)
    assert point.value == pytest.approx(0.25 + 0.5 + 0.75 + 1.0)


def test_ttm_stock_metric_takes_latest_quarter():
    quarters = _mk_quarters(6)
    for metric in ("total_assets", "shares_outstanding"):
        series = build_series(quarters, [], metric, Cadence.TTM)
        assert [p.value for p in series] == [q[metric] for q in quarters[3:]]


def test_ttm_needs_four_quarters_and_ignores_annual():
    assert build_series(_mk_quarters(3), _mk_years(10), "revenue", Cadence.TTM) == []
    assert build_series([], _mk_years(10), "revenue", Cadence.TTM) == []


def test_ttm_sorts_before_windowing():
    quarters = list(reversed(_mk_quarters(4)))
    (point,) = build_series(quarters, [], "revenue", Cadence.TTM)
    assert point.period == "2018-Q4"
    assert point.value == pytest.approx(1000.0)


def test_repeated_quarter_is_counted_once():
    quarters = [
        {"period": period, "revenue": 1.0}
        for period in ("2023-Q1", "2023-Q2", "2023-Q2", "2023-Q3", "2023-Q4")
    ]

    quarterly = build_series(quarters, [], "revenue", Cadence.QUARTERLY)
    ttm = build_series(quarters, [], "revenue", Cadence.TTM)

    assert [p.period for p in quarterly] == ["2023-Q1", "2023-Q2", "2023-Q3", "2023-Q4"]
    assert [(p.period, p.value) for p in ttm] == [("2023-Q4", 4.0)]


def test_unknown_metric_yields_empty_series():
    quarters = _mk_quarters(8)
    for cadence in Cadence:
        assert build_series(quarters, _mk_years(2), "market_cap", cadence) == []


def test_camel_case_metric_names_resolve():
    quarters = _mk_quarters(4)
    assert build_series(quarters, [], "netIncome", Cadence.TTM)[0].value == pytest.approx(100.0)


def test_limit_series_points_keeps_latest_points():
    series = [SeriesPoint(period=f"p{idx:02d}", label=f"p{idx:02d}", value=float(idx)) for idx in range(30)]

    quarterly = limit_series_points(series, Cadence.QUARTERLY)
    ttm = limit_series_points(series, Cadence.TTM)
    annual = limit_series_points(series, Cadence.ANNUAL)

    assert quarterly == series[-24:]
    assert ttm == series[-24:]
    assert annual == series[-10:]
    assert limit_series_points(series[:5], Cadence.ANNUAL) == series[:5]


def test_limit_series_points_custom_limits():
    series = [SeriesPoint(period=str(2000 + i), label=str(2000 + i), value=1.0) for i in range(12)]
    assert len(limit_series_points(series, Cadence.ANNUAL, {Cadence.ANNUAL: 5})) == 5


def test_get_metric_series_windows_after_ttm():
    quarters = _mk_quarters(30)
    series = get_metric_series(quarters, [], "revenue", Cadence.TTM)

    assert len(series) == 24
    assert series[-1].period == "2025-Q2"
    assert series[-1].value == pytest.approx(sum(q["revenue"] for q in quarters[-4:]))


def test_build_series_is_deterministic():
    quarters = _mk_quarters(9)
    assert build_series(quarters, [], "revenue", Cadence.TTM) == build_series(quarters, [], "revenue", Cadence.TTM)


def test_series_to_frame_columns():
    frame = series_to_frame(build_series(_mk_quarters(2), [], "revenue", Cadence.QUARTERLY))
    assert list(frame.columns) == ["period", "label", "value"]
    assert frame["value"].tolist() == [100.0, 200.0]
    assert series_to_frame([]).empty


def test_unknown_cadence_raises():
    with pytest.raises(ValueError):
        build_series(_mk_quarters(4), [], "revenue", "monthly")
