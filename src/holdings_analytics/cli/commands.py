"""CLI command definitions for deriving fundamentals series and benchmark comparisons."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence

import typer
from rich.console import Console
from rich.table import Table

from holdings_analytics.domain.models.benchmark import BenchmarkComparison, GapFillPolicy
from holdings_analytics.domain.models.financials import (
    METRIC_CLASSES,
    Cadence,
    MetricClass,
    SeriesPoint,
    resolve_metric,
)
from holdings_analytics.domain.services import (
    ReturnWindow,
    build_series,
    compare_to_benchmark,
    compute_cagr,
    compute_window_cagr,
    limit_series_points,
    normalize_records,
    series_to_frame,
    window_start,
)
from holdings_analytics.domain.services.benchmark import coerce_valuations
from holdings_analytics.infrastructure.loaders import load_fundamentals, load_prices, load_valuations
from holdings_analytics.settings.config import Config
from holdings_analytics.settings.loader import load_settings
from holdings_analytics.utils.formatting import format_metric_value, format_percent
from holdings_analytics.utils.logging import configure_logging, make_reporter

console = Console()
app = typer.Typer(help="Derive fundamentals series, growth rates and benchmark-relative returns.")


@dataclass
class AppContext:
    """Holds reusable process-wide objects for CLI commands."""

    config: Config


def _init_context(debug_override: Optional[bool] = None) -> AppContext:
    """Create a context with configuration and logging."""
    config = load_settings(debug_override)
    configure_logging(debug=config.debug)
    return AppContext(config=config)


@app.callback()
def main_callback(
    ctx: typer.Context,
    debug: Optional[bool] = typer.Option(
        None,
        "--debug/--no-debug",
        help="Temporarily toggle verbose logging without touching environment variables.",
    ),
) -> None:
    """Attach the lazily constructed application context to Typer."""
    ctx.obj = _init_context(debug_override=debug)


@app.command()
def series(
    ctx: typer.Context,
    quarterly_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Quarterly fundamentals (CSV/JSON)."),
    annual_file: Optional[Path] = typer.Option(
        None, "--annual", exists=True, dir_okay=False, help="Annual fundamentals (CSV/JSON)."
    ),
    metric: str = typer.Option("revenue", "--metric", "-m", help="Metric name, e.g. revenue or total_assets."),
    cadence: str = typer.Option("quarterly", "--cadence", "-c", help="quarterly, ttm or annual."),
    all_points: bool = typer.Option(False, "--all-points", help="Skip the display window."),
    cagr: bool = typer.Option(False, "--cagr", help="Also report CAGR over the displayed points."),
    window_years: Optional[int] = typer.Option(
        None, "--window-years", help="Report CAGR over a trailing window of N years instead."
    ),
    json_path: Optional[Path] = typer.Option(None, "--json", help="Write the series to a JSON file."),
) -> None:
    """Build one metric series at the requested cadence."""
    if ctx.obj is None:
        raise typer.Exit(code=1)
    context: AppContext = ctx.obj

    try:
        parsed_cadence = Cadence.parse(cadence)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--cadence") from exc
    if resolve_metric(metric) is None:
        console.print(f"[bold red]Unknown metric {metric!r}.[/bold red] Run `metrics` for the list.")
        raise typer.Exit(code=1)

    reporter = make_reporter("holdings_analytics.normalizer", logging.WARNING)
    try:
        quarterly = normalize_records(
            load_fundamentals(quarterly_file), strict=context.config.strict_period_keys, reporter=reporter
        )
        annual = (
            normalize_records(load_fundamentals(annual_file), strict=context.config.strict_period_keys, reporter=reporter)
            if annual_file
            else []
        )
    except ValueError as exc:  # includes PeriodKeyFormatError
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1) from exc

    points = build_series(quarterly, annual, metric, parsed_cadence)
    if not all_points:
        points = limit_series_points(points, parsed_cadence, context.config.display_limits())

    if not points:
        console.print(f"[yellow]No {parsed_cadence.value} data for {metric}.[/yellow]")
    else:
        _print_series(metric, parsed_cadence, points)

    if window_years is not None:
        result = compute_window_cagr([(p.period, p.value) for p in points], window_years, parsed_cadence)
        if result.available:
            console.print(
                f"{window_years}Y CAGR {result.start_label} → {result.end_label}: {format_percent(result.rate)}"
            )
        else:
            console.print(f"[yellow]{window_years}Y CAGR unavailable ({result.status.value})[/yellow]")
    elif cagr:
        result = compute_cagr([(p.period, p.value) for p in points])
        if result.available:
            console.print(f"CAGR over {result.years} years: {format_percent(result.rate)}")
        else:
            console.print(f"[yellow]CAGR unavailable ({result.status.value})[/yellow]")

    if json_path is not None:
        json_path.parent.mkdir(parents=True, exist_ok=True)
        series_to_frame(points).to_json(json_path, orient="records", indent=2)
        console.print(f"Series saved to {json_path}")


@app.command()
def benchmark(
    ctx: typer.Context,
    valuations_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Portfolio values (date,value)."),
    prices_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Benchmark closes (symbol,date,close)."),
    symbol: Optional[str] = typer.Option(None, "--symbol", "-s", help="Primary benchmark symbol."),
    fallbacks: Optional[List[str]] = typer.Option(
        None, "--fallback", "-f", help="Fallback symbol, repeatable; tried in order."
    ),
    gap_fill: Optional[str] = typer.Option(None, "--gap-fill", help="none, ffill or bfill."),
    window: str = typer.Option("ALL", "--window", "-w", help="1M, 3M, 6M, 1Y, 2Y, 5Y or ALL."),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="Reference date for the window (YYYY-MM-DD)."),
    rows: int = typer.Option(20, "--rows", help="How many of the latest points to print."),
) -> None:
    """Rebase the portfolio and a benchmark to cumulative return from a shared start."""
    if ctx.obj is None:
        raise typer.Exit(code=1)
    context: AppContext = ctx.obj
    config = context.config

    try:
        policy = GapFillPolicy.parse(gap_fill) if gap_fill else config.gap_fill
        return_window = ReturnWindow.parse(window)
        today = date.fromisoformat(as_of) if as_of else date.today()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        valuations = load_valuations(valuations_file)
        prices = load_prices(prices_file)
    except ValueError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1) from exc

    ordered = coerce_valuations(valuations)
    start = window_start(return_window, today, ordered[0].date) if ordered else None
    primary = (symbol or config.benchmark_symbol).upper()
    chain = [s.upper() for s in fallbacks] if fallbacks else list(config.benchmark_fallbacks)

    comparison = compare_to_benchmark(
        ordered,
        primary,
        chain,
        prices,
        gap_policy=policy,
        start_date=start,
        reporter=make_reporter("holdings_analytics.benchmark", logging.DEBUG),
    )
    _print_comparison(comparison, rows)


@app.command()
def metrics() -> None:
    """List the metric classification used for trailing-twelve-month aggregation."""
    table = Table(title="Metric Classes")
    table.add_column("Metric", style="cyan")
    table.add_column("Class")
    table.add_column("TTM aggregation")

    for name, metric_class in METRIC_CLASSES.items():
        aggregation = "latest quarter" if metric_class is MetricClass.STOCK else "sum of 4 quarters"
        table.add_row(name, metric_class.value, aggregation)

    console.print(table)


def _print_series(metric: str, cadence: Cadence, points: Sequence[SeriesPoint]) -> None:
    table = Table(title=f"{metric} ({cadence.value})", show_header=True, header_style="bold magenta")
    table.add_column("Period")
    table.add_column("Value", justify="right")
    for point in points:
        table.add_row(point.label, format_metric_value(metric, point.value))
    console.print(table)


def _print_comparison(comparison: BenchmarkComparison, rows: int) -> None:
    if not comparison.available:
        console.print(f"[yellow]{comparison.message}[/yellow]")
        return

    table = Table(
        title=f"Portfolio vs {comparison.symbol} (from {comparison.anchor_date})",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Date")
    table.add_column("Portfolio", justify="right")
    table.add_column(comparison.symbol or "Benchmark", justify="right")
    for point in comparison.points[-rows:] if rows > 0 else comparison.points:
        table.add_row(
            point.date,
            format_percent(point.portfolio_return, scale=1.0),
            format_percent(point.benchmark_return, scale=1.0),
        )
    console.print(table)
    console.print(comparison.message)
