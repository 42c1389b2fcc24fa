"""arbiter.backtest.engine

Backtest entry point.

A cash/shares replay of one strategy over a bar series:
- the strategy sees bars up to and including the one being decided on
- orders fill at the bar close, long only, sized by the signal amount (1 by default)
- orders the book cannot cover are skipped, not clipped
- the equity curve starts at the initial cash and is marked after every bar

Meta-selection decisions are drained from the strategy after every bar and
returned with the result.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from arbiter.backtest.strategies.base import Strategy
from arbiter.backtest.validation import annualized_sharpe, max_drawdown, period_returns
from arbiter.core.config import BacktestConfig
from arbiter.core.types import Bar, Decision, PortfolioView, SignalAction, StrategyContext, Trade

_log = logging.getLogger("arbiter.engine")


@dataclass(frozen=True, slots=True)
class EquityPoint:
    timestamp: int
    value: float


@dataclass(frozen=True, slots=True)
class BacktestResult:
    symbol: str
    strategy_id: str
    parameters: dict[str, Any]
    initial_value: float
    final_value: float
    total_pnl: float
    pnl_pct: float
    trades: tuple[Trade, ...]
    equity_curve: tuple[EquityPoint, ...]
    sharpe: float
    max_drawdown: float
    bars_processed: int
    decisions: tuple[Decision, ...] = field(default_factory=tuple)

    @property
    def total_trades(self) -> int:
        return len(self.trades)

    @property
    def equity(self) -> np.ndarray:
        return np.fromiter((p.value for p in self.equity_curve), dtype=np.float64, count=len(self.equity_curve))


def _pnl_pct(pnl: float, initial: float) -> float:
    if initial == 0:
        return 0.0 if pnl == 0 else math.inf
    return pnl / initial * 100.0


def run_backtest(
    strategy: Strategy,
    bars: Sequence[Bar],
    *,
    symbol: str = "",
    initial_cash: float | None = None,
    parameters: Mapping[str, Any] | None = None,
    cfg: BacktestConfig | None = None,
    logger: logging.Logger | None = None,
) -> BacktestResult:
    cfg = cfg or BacktestConfig()
    log = logger or _log
    cash = float(cfg.initial_cash if initial_cash is None else initial_cash)
    initial = cash
    params = {**strategy.defaults(), **dict(parameters or {})}
    data = tuple(bars)

    if not data:
        log.warning("backtest_no_data", extra={"symbol": symbol, "strategy_id": strategy.id})
        return BacktestResult(
            symbol=symbol,
            strategy_id=strategy.id,
            parameters=params,
            initial_value=initial,
            final_value=initial,
            total_pnl=0.0,
            pnl_pct=0.0,
            trades=(),
            equity_curve=(),
            sharpe=0.0,
            max_drawdown=0.0,
            bars_processed=0,
        )

    log.info(
        "backtest_started",
        extra={
            "symbol": symbol,
            "strategy_id": strategy.id,
            "bars": len(data),
            "initial_cash": initial,
            "params": params,
        },
    )

    shares = 0.0
    avg_price = 0.0
    value = initial
    trades: list[Trade] = []
    decisions: list[Decision] = []
    curve: list[EquityPoint] = [EquityPoint(timestamp=data[0].timestamp, value=initial)]

    for i, bar in enumerate(data):
        ctx = StrategyContext(
            symbol=symbol,
            historical_data=data[: i + 1],
            current_index=i,
            parameters=params,
            portfolio=PortfolioView(cash=cash, shares=shares, average_price=avg_price),
            trade_history=tuple(trades),
        )
        sig = strategy.execute(ctx)
        size = float(sig.amount) if sig.amount is not None and sig.amount > 0 else 1.0
        price = float(bar.close)

        if sig.action is SignalAction.BUY:
            cost = price * size
            if cash >= cost:
                avg_price = (avg_price * shares + cost) / (shares + size)
                cash -= cost
                shares += size
                trades.append(Trade(bar.timestamp, bar.date, SignalAction.BUY, price, size, cash))
            else:
                log.debug("backtest_buy_skipped", extra={"symbol": symbol, "index": i, "cost": cost, "cash": cash})
        elif sig.action is SignalAction.SELL:
            if shares >= size:
                cash += price * size
                shares -= size
                if shares == 0:
                    avg_price = 0.0
                trades.append(Trade(bar.timestamp, bar.date, SignalAction.SELL, price, size, cash))
            else:
                log.debug("backtest_sell_skipped", extra={"symbol": symbol, "index": i, "size": size, "shares": shares})

        value = cash + shares * price
        curve.append(EquityPoint(timestamp=bar.timestamp, value=value))

        d = strategy.take_decision()
        if d is not None:
            decisions.append(d)

    equity = np.fromiter((p.value for p in curve), dtype=np.float64, count=len(curve))
    pnl = value - initial
    result = BacktestResult(
        symbol=symbol,
        strategy_id=strategy.id,
        parameters=params,
        initial_value=initial,
        final_value=value,
        total_pnl=pnl,
        pnl_pct=_pnl_pct(pnl, initial),
        trades=tuple(trades),
        equity_curve=tuple(curve),
        sharpe=annualized_sharpe(period_returns(equity), periods_per_year=cfg.periods_per_year),
        max_drawdown=max_drawdown(equity),
        bars_processed=len(data),
        decisions=tuple(decisions),
    )
    log.info(
        "backtest_completed",
        extra={
            "symbol": symbol,
            "strategy_id": strategy.id,
            "final_value": result.final_value,
            "pnl": result.total_pnl,
            "pnl_pct": result.pnl_pct,
            "trades": result.total_trades,
        },
    )
    return result
