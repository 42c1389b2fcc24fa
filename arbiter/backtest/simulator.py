"""arbiter.backtest.simulator

Single-position replay of one strategy over one window.

Rules:
- at most one open position, long or short; no pyramiding, no hedging
- fills at the bar close
- an opposite signal closes the position and leaves the book flat; it does
  not reverse in the same bar
- a trade counts when it closes; whatever is still open after the last bar
  is marked to the final close and counted too

The strategy sees the window up to the bar being decided on and a synthetic
portfolio: fixed cash, the simulated position as +1/-1 shares.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal

import numpy as np

from arbiter.backtest.strategies.base import Strategy
from arbiter.backtest.validation import sharpe_score, win_rate
from arbiter.core.types import Bar, EvaluationMetric, PortfolioView, Signal, SignalAction, StrategyContext

SIMULATION_CASH = 100_000.0


@dataclass(frozen=True, slots=True)
class SimulatedPosition:
    entry_price: float
    side: Literal["long", "short"]

    def pnl_at(self, price: float) -> float:
        if self.side == "long":
            return price - self.entry_price
        return self.entry_price - price


@dataclass(frozen=True, slots=True)
class SimResult:
    pnl: float
    trade_count: int
    profitable_trades: int
    returns: np.ndarray  # (T,) per-bar position returns
    signals: tuple[Signal, ...]

    @property
    def win_rate(self) -> float:
        return win_rate(self.profitable_trades, self.trade_count)

    @property
    def sharpe(self) -> float:
        return sharpe_score(self.returns)


def _portfolio(position: SimulatedPosition | None, cash: float) -> PortfolioView:
    if position is None:
        return PortfolioView(cash=cash)
    shares = 1.0 if position.side == "long" else -1.0
    return PortfolioView(cash=cash, shares=shares, average_price=position.entry_price)


def simulate(
    strategy: Strategy,
    parameters: Mapping[str, Any],
    window: Sequence[Bar],
    *,
    symbol: str = "",
    cash: float = SIMULATION_CASH,
) -> SimResult:
    params = dict(parameters)
    t_len = len(window)

    pnl = 0.0
    trades = 0
    profitable = 0
    returns = np.zeros(t_len, dtype=np.float64)
    signals: list[Signal] = []
    position: SimulatedPosition | None = None

    for i in range(t_len):
        price = float(window[i].close)
        prev = float(window[i - 1].close) if i > 0 else price

        ctx = StrategyContext(
            symbol=symbol,
            historical_data=window[: i + 1],
            current_index=i,
            parameters=params,
            portfolio=_portfolio(position, cash),
            current_signal=signals[-1] if signals else None,
            signal_history=tuple(signals),
        )
        sig = strategy.execute(ctx)
        signals.append(sig)

        if sig.action is SignalAction.BUY:
            if position is None:
                position = SimulatedPosition(entry_price=price, side="long")
            elif position.side == "short":
                realized = position.pnl_at(price)
                pnl += realized
                trades += 1
                profitable += int(realized > 0)
                position = None
        elif sig.action is SignalAction.SELL:
            if position is None:
                position = SimulatedPosition(entry_price=price, side="short")
            elif position.side == "long":
                realized = position.pnl_at(price)
                pnl += realized
                trades += 1
                profitable += int(realized > 0)
                position = None

        if position is not None and prev > 0:
            r = (price - prev) / prev
            returns[i] = r if position.side == "long" else -r

    if position is not None and t_len > 0:
        marked = position.pnl_at(float(window[-1].close))
        pnl += marked
        trades += 1
        profitable += int(marked > 0)

    return SimResult(
        pnl=pnl,
        trade_count=trades,
        profitable_trades=profitable,
        returns=returns,
        signals=tuple(signals),
    )


def score(result: SimResult, metric: EvaluationMetric | str) -> float:
    if metric == EvaluationMetric.WIN_RATE:
        return result.win_rate
    if metric == EvaluationMetric.SHARPE:
        return result.sharpe
    # pnl, and anything unrecognized
    return result.pnl
