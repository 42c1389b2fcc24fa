from __future__ import annotations

from pathlib import Path

import pytest

from arbiter.backtest.io import bars_from_rows, load_bars_csv
from arbiter.core.exceptions import DataError


def test_load_bars_full_schema(tmp_path: Path):
    p = tmp_path / "bars.csv"
    p.write_text(
        "timestamp,date,open,high,low,close,volume\n"
        "1700000000,2023-11-14,99,101,98,100,1000\n"
        "1700086400,2023-11-15,100,103,99,102,1500\n"
    )
    bars = load_bars_csv(p)
    assert len(bars) == 2
    assert bars[0].timestamp == 1700000000
    assert bars[0].date == "2023-11-14"
    assert (bars[1].high, bars[1].low, bars[1].close) == (103.0, 99.0, 102.0)
    assert bars[1].volume == 1500.0


def test_load_bars_close_only_fills_range_from_close(tmp_path: Path):
    p = tmp_path / "bars.csv"
    p.write_text("close\n10\n11\n")
    bars = load_bars_csv(p)
    assert [(b.high, b.low, b.timestamp) for b in bars] == [(10.0, 10.0, 0), (11.0, 11.0, 1)]


def test_load_bars_missing_close_column(tmp_path: Path):
    p = tmp_path / "bars.csv"
    p.write_text("open,high\n1,2\n")
    with pytest.raises(DataError):
        load_bars_csv(p)


def test_load_bars_non_numeric(tmp_path: Path):
    p = tmp_path / "bars.csv"
    p.write_text("close\nabc\n")
    with pytest.raises(DataError):
        load_bars_csv(p)


def test_load_bars_missing_file(tmp_path: Path):
    with pytest.raises(DataError):
        load_bars_csv(tmp_path / "nope.csv")


def test_load_bars_empty_file(tmp_path: Path):
    p = tmp_path / "bars.csv"
    p.write_text("")
    assert load_bars_csv(p) == []


def test_bars_from_rows_requires_close():
    with pytest.raises(DataError):
        bars_from_rows([{"close": None}])
