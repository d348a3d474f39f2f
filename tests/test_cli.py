from __future__ import annotations

import json

from typer.testing import CliRunner

from holdings_analytics.cli.commands import app

runner = CliRunner()


def _write_quarters(path, count=6):
    lines = ["period,revenue,total_assets"]
    for idx in range(count):
        lines.append(f"{2020 + idx // 4}-Q{idx % 4 + 1},{100 * (idx + 1)},{1000 + idx}")
    path.write_text("\n".join(lines) + "\n")


def test_series_ttm_with_json_export(tmp_path):
    quarterly = tmp_path / "quarterly.csv"
    _write_quarters(quarterly)
    out = tmp_path / "out" / "series.json"

    result = runner.invoke(app, ["series", str(quarterly), "--metric", "revenue", "--cadence", "ttm", "--cagr", "--json", str(out)])

    assert result.exit_code == 0, result.output
    rows = json.loads(out.read_text())
    assert [r["period"] for r in rows] == ["2020-Q4", "2021-Q1", "2021-Q2"]
    assert rows[0]["value"] == 1000.0
    assert "CAGR" in result.output


def test_series_unknown_metric_exits_non_zero(tmp_path):
    quarterly = tmp_path / "quarterly.csv"
    _write_quarters(quarterly)

    result = runner.invoke(app, ["series", str(quarterly), "--metric", "market_cap"])

    assert result.exit_code == 1


def test_benchmark_unavailable_is_reported(tmp_path):
    values = tmp_path / "values.csv"
    values.write_text("date,value\n2024-01-02,1000\n2024-01-03,1010\n")
    prices = tmp_path / "prices.csv"
    prices.write_text("symbol,date,close\nQQQ,2024-01-02,400\n")

    result = runner.invoke(app, ["benchmark", str(values), str(prices), "--symbol", "SPY", "--fallback", "SPY.US"])

    assert result.exit_code == 0, result.output
    assert "No benchmark available" in result.output


def test_benchmark_fallback_table(tmp_path):
    values = tmp_path / "values.csv"
    values.write_text("date,value\n2024-01-02,1000\n2024-01-03,1100\n")
    prices = tmp_path / "prices.csv"
    prices.write_text("symbol,date,close\nSPY.US,2024-01-02,400\nSPY.US,2024-01-03,420\n")

    result = runner.invoke(app, ["benchmark", str(values), str(prices), "--symbol", "SPY", "--fallback", "SPY.US"])

    assert result.exit_code == 0, result.output
    assert "fallback for SPY" in result.output
    assert "10.00%" in result.output
    assert "5.00%" in result.output


def test_benchmark_fallback_from_lowercase_env(tmp_path):
    values = tmp_path / "values.csv"
    values.write_text("date,value\n2024-01-02,1000\n2024-01-03,1100\n")
    prices = tmp_path / "prices.csv"
    prices.write_text("symbol,date,close\nspy.us,2024-01-02,400\nspy.us,2024-01-03,420\n")

    result = runner.invoke(
        app,
        ["benchmark", str(values), str(prices)],
        env={"BENCHMARK_SYMBOL": "spy", "BENCHMARK_FALLBACKS": "spy.us"},
    )

    assert result.exit_code == 0, result.output
    assert "fallback for SPY" in result.output
    assert "No benchmark available" not in result.output


def test_metrics_lists_classes():
    result = runner.invoke(app, ["metrics"])

    assert result.exit_code == 0
    assert "total_assets" in result.output
    assert "latest quarter" in result.output
