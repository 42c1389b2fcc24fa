"""arbiter.backtest.validation

Performance metrics.

Two Sharpe flavours live here on purpose:
- ``sharpe_score`` ranks candidates inside the selector. It is per-bar,
  unannualised, and uses a +/-1000 sentinel when returns never vary.
- ``annualized_sharpe`` reports a full backtest. Zero variance scores 0.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

SHARPE_SENTINEL = 1000.0


def win_rate(profitable: int, trades: int) -> float:
    if trades <= 0:
        return 0.0
    return float(profitable) / float(trades)


def sharpe_score(returns: Sequence[float] | np.ndarray) -> float:
    """mean / sample std of per-bar returns.

    Constant returns have no spread to divide by: a positive mean scores
    ``+SHARPE_SENTINEL``, a negative mean ``-SHARPE_SENTINEL``, zero scores 0.
    """

    r = np.asarray(returns, dtype=np.float64)
    if r.size < 2:
        return 0.0
    mu = float(np.mean(r))
    # identical values: the float mean can miss them by an ulp, the spread is still 0
    sd = 0.0 if np.all(r == r[0]) else float(np.std(r, ddof=1))
    if sd == 0.0:
        if mu > 0:
            return SHARPE_SENTINEL
        if mu < 0:
            return -SHARPE_SENTINEL
        return 0.0
    return mu / sd


def annualized_sharpe(returns: np.ndarray, *, periods_per_year: int = 252) -> float:
    r = returns.astype(np.float64)
    if r.size < 2:
        return 0.0
    mu = float(np.mean(r))
    sd = 0.0 if np.all(r == r[0]) else float(np.std(r, ddof=1))
    if sd == 0.0:
        return 0.0
    return (mu / sd) * float(np.sqrt(periods_per_year))


def max_drawdown(equity: np.ndarray) -> float:
    """Largest peak-to-trough loss as a positive fraction of the peak."""

    if equity.size == 0:
        return 0.0
    peak = np.maximum.accumulate(equity)
    with np.errstate(divide="ignore", invalid="ignore"):
        dd = np.where(peak > 0, (peak - equity) / peak, 0.0)
    return float(dd.max())


def period_returns(equity: np.ndarray) -> np.ndarray:
    """Simple returns between consecutive equity points; 0 where the prior value is 0."""

    if equity.size < 2:
        return np.zeros(0, dtype=np.float64)
    prev = equity[:-1]
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(prev != 0, (equity[1:] - prev) / prev, 0.0)
