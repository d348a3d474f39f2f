"""Unit tests for CSV/JSON -> plain record loading."""
from __future__ import annotations

import json

import pytest

from holdings_analytics.domain.services.normalizer import normalize_records
from holdings_analytics.infrastructure.loaders import load_fundamentals, load_prices, load_valuations


def test_fundamentals_csv_keeps_period_keys_as_text(tmp_path):
    path = tmp_path / "annual.csv"
    path.write_text("period,revenue,netIncome\n2021,100,\n2020,90,9\n")

    records = normalize_records(load_fundamentals(path))

    assert [r.period for r in records] == ["2020", "2021"]
    assert records[0].net_income == 9.0
    # blank CSV cell arrives as NaN and is coerced to zero
    assert records[1].net_income == 0.0


def test_fundamentals_json_with_numeric_years(tmp_path):
    path = tmp_path / "annual.json"
    path.write_text(json.dumps([{"date": 2022, "revenue": 5}, {"date": 2021, "revenue": 4}]))

    records = normalize_records(load_fundamentals(path))

    assert [r.period for r in records] == ["2021", "2022"]


def test_prices_grouped_by_symbol(tmp_path):
    path = tmp_path / "prices.csv"
    path.write_text("ticker,date,close\nspy,2024-01-02,470\nSPY,2024-01-03,472\nSPY.US,2024-01-02,471\n")

    prices = load_prices(path)

    assert set(prices) == {"SPY", "SPY.US"}
    assert [p["date"] for p in prices["SPY"]] == ["2024-01-02", "2024-01-03"]
    assert prices["SPY.US"][0]["close"] == 471


def test_valuations_require_columns(tmp_path):
    path = tmp_path / "values.csv"
    path.write_text("day,amount\n2024-01-02,1\n")
    with pytest.raises(ValueError):
        load_valuations(path)


def test_unsupported_suffix(tmp_path):
    path = tmp_path / "values.xlsx"
    path.write_text("")
    with pytest.raises(ValueError):
        load_valuations(path)
