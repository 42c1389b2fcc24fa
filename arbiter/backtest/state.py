"""arbiter.backtest.state

Per-symbol selection memory.

Last write wins. Entries are overwritten on every completed selection and
never deleted by the engine. The store is injected into the selector so that
every test (and every engine) owns its own memory.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Any

NO_SELECTION_MESSAGE = "No strategy choice has been made for this symbol yet."


@dataclass(frozen=True, slots=True)
class SelectionRecord:
    strategy_id: str
    parameters: dict[str, Any]
    score: float | None = None
    metric: str | None = None
    pnl: float | None = None
    win_rate: float | None = None
    sharpe: float | None = None


@dataclass(frozen=True, slots=True)
class SelectionState:
    """Read-side view of one symbol's selection."""

    symbol: str
    chosen_strategy_id: str | None = None
    chosen_strategy_name: str | None = None
    parameters_used: dict[str, Any] | None = None
    score: float | None = None
    metric: str | None = None
    simulated_pnl: float | None = None
    simulated_win_rate: float | None = None
    simulated_sharpe: float | None = None
    message: str = NO_SELECTION_MESSAGE

    @property
    def has_selection(self) -> bool:
        return self.chosen_strategy_id is not None

    @classmethod
    def empty(cls, symbol: str) -> SelectionState:
        return cls(symbol=symbol)


class SelectionStore:
    def __init__(self) -> None:
        self._lock = Lock()
        self._records: dict[str, SelectionRecord] = {}

    def record(
        self,
        symbol: str,
        strategy_id: str,
        parameters: dict[str, Any],
        *,
        score: float | None = None,
        metric: str | None = None,
        pnl: float | None = None,
        win_rate: float | None = None,
        sharpe: float | None = None,
    ) -> SelectionRecord:
        rec = SelectionRecord(
            strategy_id=strategy_id,
            parameters=dict(parameters),
            score=score,
            metric=metric,
            pnl=pnl,
            win_rate=win_rate,
            sharpe=sharpe,
        )
        with self._lock:
            self._records[symbol] = rec
        return rec

    def get(self, symbol: str) -> SelectionRecord | None:
        with self._lock:
            return self._records.get(symbol)

    def symbols(self) -> list[str]:
        with self._lock:
            return sorted(self._records.keys())

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
