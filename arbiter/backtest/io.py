"""arbiter.backtest.io

Lightweight IO helpers for backtesting.

CSV schema:
- required: close
- optional: timestamp, date, open, high, low, volume

Numeric columns must be numeric. A missing high or low falls back to the
close so range-based indicators still see a (degenerate) bar.
"""

from __future__ import annotations

import csv
import math
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from arbiter.core.exceptions import DataError
from arbiter.core.types import Bar


def _num(row: Mapping[str, Any], name: str, line: int) -> float | None:
    v = row.get(name)
    if v is None or v == "":
        return None
    try:
        return float(v)
    except (TypeError, ValueError) as e:
        raise DataError(f"row {line}: column {name!r} is not numeric: {v!r}") from e


def bars_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[Bar]:
    out: list[Bar] = []
    for line, row in enumerate(rows, start=1):
        close = _num(row, "close", line)
        if close is None or math.isnan(close):
            raise DataError(f"row {line}: missing close")
        high = _num(row, "high", line)
        low = _num(row, "low", line)
        opn = _num(row, "open", line)
        ts = _num(row, "timestamp", line)
        out.append(
            Bar(
                close=close,
                open=close if opn is None else opn,
                high=close if high is None else high,
                low=close if low is None else low,
                volume=_num(row, "volume", line) or 0.0,
                timestamp=int(ts) if ts is not None else line - 1,
                date=str(row.get("date") or ""),
            )
        )
    return out


def load_bars_csv(path: str | Path) -> list[Bar]:
    p = Path(path)
    if not p.exists():
        raise DataError(f"CSV not found: {p}")

    rows: list[dict[str, str]] = []
    with p.open("r", encoding="utf-8") as f:
        r = csv.DictReader(f)
        if r.fieldnames is None:
            return []
        if "close" not in {name.strip() for name in r.fieldnames}:
            raise DataError("CSV missing required column: close")
        for row in r:
            rows.append({k.strip(): (v.strip() if isinstance(v, str) else "") for k, v in row.items() if k is not None})

    return bars_from_rows(rows)
