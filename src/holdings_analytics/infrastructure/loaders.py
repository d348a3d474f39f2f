"""File loaders turning CSV/JSON exports into plain records for the domain services.

Period and date columns are always read as text so keys like ``2020`` or
``2023-Q1`` survive unchanged; numeric cleanup is left to the normalizer.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

import pandas as pd

PathLike = Union[str, Path]

_TEXT_COLUMNS = ("period", "date", "symbol", "ticker")


def read_table(path: PathLike) -> pd.DataFrame:
    """Read a CSV or JSON (records) file keeping key columns as strings."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        frame = pd.read_json(path, orient="records", dtype=False, convert_dates=False)
    elif suffix in {".csv", ".txt"}:
        frame = pd.read_csv(path, dtype={col: str for col in _TEXT_COLUMNS})
    else:
        raise ValueError(f"Unsupported file type {suffix!r} for {path}; expected .csv or .json")
    for col in _TEXT_COLUMNS:
        if col in frame.columns:
            frame[col] = frame[col].map(lambda v: v if pd.isna(v) else str(v).strip())
    return frame


def load_fundamentals(path: PathLike) -> List[Dict[str, Any]]:
    frame = read_table(path)
    _require_any(frame, ("period", "date"), path)
    return _records(frame)


def load_prices(path: PathLike) -> Dict[str, List[Dict[str, Any]]]:
    """Group ``symbol,date,close`` rows into one price series per symbol."""
    frame = read_table(path)
    if "symbol" not in frame.columns and "ticker" in frame.columns:
        frame = frame.rename(columns={"ticker": "symbol"})
    _require_all(frame, ("symbol", "date", "close"), path)
    frame = frame.dropna(subset=["symbol", "date"]).copy()
    frame["symbol"] = frame["symbol"].astype(str).str.upper()
    return {
        symbol: _records(group[["date", "close"]])
        for symbol, group in frame.groupby("symbol", sort=False)
    }


def load_valuations(path: PathLike) -> List[Dict[str, Any]]:
    frame = read_table(path)
    _require_all(frame, ("date", "value"), path)
    return _records(frame.dropna(subset=["date"])[["date", "value"]])


def _records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    return frame.to_dict(orient="records")


def _require_all(frame: pd.DataFrame, columns: Iterable[str], path: PathLike) -> None:
    missing = [col for col in columns if col not in frame.columns]
    if missing:
        raise ValueError(f"{path} is missing required columns: {', '.join(missing)}")


def _require_any(frame: pd.DataFrame, columns: Iterable[str], path: PathLike) -> None:
    columns = list(columns)
    if not any(col in frame.columns for col in columns):
        raise ValueError(f"{path} needs one of the columns: {', '.join(columns)}")
