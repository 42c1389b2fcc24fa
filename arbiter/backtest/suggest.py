"""arbiter.backtest.suggest

Capital-aware suggestion across several symbols.

The meta-selector is run once per symbol on that symbol's latest bar. The
per-symbol winners are compared on an overall metric (simulated pnl, sharpe
or win rate of the winning combination) and the best one has its position
size rescaled to a share of the available capital.

Sizing:
- target units = capital x risk% / latest close
- symbols quoted in BTC-like units keep 5 decimals, with a floor of 0.0001
- anything else is rounded down to whole units, with a floor of 1
- when even the floor is unaffordable the strategy's own size is kept
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from arbiter.backtest.selector import StrategySelector
from arbiter.core.config import SelectorOptions, SuggestConfig
from arbiter.core.types import Bar, EvaluationMetric, PortfolioView, StrategyContext

_log = logging.getLogger("arbiter.suggest")

SIZING_PARAMETERS = ("tradeAmount", "sharesToTrade", "contracts")
FRACTIONAL_MARKERS = ("BTC",)
FRACTIONAL_DECIMALS = 5
MIN_FRACTIONAL_UNITS = 0.0001
MIN_WHOLE_UNITS = 1.0

NO_CHOICE_MESSAGE = "No suitable strategy could be determined for any symbol."


@dataclass(frozen=True, slots=True)
class SymbolChoice:
    """The selector's winner for one symbol, with its simulated stats."""

    symbol: str
    strategy_id: str
    strategy_name: str
    parameters: dict[str, Any]
    score: float | None
    metric: str | None
    pnl: float | None
    win_rate: float | None
    sharpe: float | None
    last_price: float

    def value(self, metric: EvaluationMetric) -> float | None:
        if metric is EvaluationMetric.SHARPE:
            return self.sharpe
        if metric is EvaluationMetric.WIN_RATE:
            return self.win_rate
        return self.pnl


@dataclass(frozen=True, slots=True)
class Suggestion:
    overall_metric: str
    message: str
    symbol: str | None = None
    strategy_id: str | None = None
    strategy_name: str | None = None
    parameters: dict[str, Any] | None = None
    evaluation_score: float | None = None
    evaluation_metric: str | None = None
    overall_score: float | None = None
    recent_price: float | None = None
    choices: tuple[SymbolChoice, ...] = field(default_factory=tuple)

    @property
    def has_suggestion(self) -> bool:
        return self.strategy_id is not None


def is_fractional(symbol: str) -> bool:
    s = symbol.upper()
    return any(m in s for m in FRACTIONAL_MARKERS)


def size_position(symbol: str, *, capital: float, risk_percentage: float, price: float) -> float | None:
    """Units worth ``risk_percentage`` of ``capital`` at ``price``, or None if unaffordable."""

    if not (math.isfinite(price) and price > 0):
        return None
    target = capital * risk_percentage / 100.0 / price
    if is_fractional(symbol):
        amount, minimum = round(target, FRACTIONAL_DECIMALS), MIN_FRACTIONAL_UNITS
    else:
        amount, minimum = float(math.floor(target)), MIN_WHOLE_UNITS
    if amount >= minimum:
        return amount
    if capital >= minimum * price:
        return minimum
    return None


def _fmt(v: float | None, fmt: str) -> str:
    return "N/A" if v is None else format(v, fmt)


def _fmt_pct(v: float | None) -> str:
    return "N/A" if v is None else f"{v * 100:.1f}%"


def _choose(
    selector: StrategySelector,
    symbol: str,
    bars: Sequence[Bar],
    opts: SelectorOptions,
    log: logging.Logger,
) -> SymbolChoice | None:
    if len(bars) <= opts.evaluation_lookback_period:
        log.warning(
            "suggest_symbol_skipped",
            extra={"symbol": symbol, "reason": "insufficient_data", "bars": len(bars)},
        )
        return None

    ctx = StrategyContext(
        symbol=symbol,
        historical_data=tuple(bars),
        current_index=len(bars) - 1,
        parameters={},
        portfolio=PortfolioView(cash=selector.cash),
    )
    try:
        selector.evaluate_and_execute(symbol, ctx, opts)
    except Exception:  # noqa: BLE001 - one symbol never sinks the whole run
        log.exception("suggest_symbol_failed", extra={"symbol": symbol})
        return None

    decision = selector.take_decision()
    if decision is None or decision.chosen_strategy_id is None:
        log.warning("suggest_symbol_skipped", extra={"symbol": symbol, "reason": "no_choice"})
        return None
    strategy = selector.registry.peek(decision.chosen_strategy_id)
    rec = selector.store.get(symbol)
    if strategy is None or rec is None:
        log.warning(
            "suggest_symbol_skipped",
            extra={"symbol": symbol, "reason": "unknown_strategy", "strategy_id": decision.chosen_strategy_id},
        )
        return None

    choice = SymbolChoice(
        symbol=symbol,
        strategy_id=strategy.id,
        strategy_name=strategy.name,
        parameters=dict(decision.parameters_used or {}),
        score=decision.evaluation_score,
        metric=decision.evaluation_metric,
        pnl=rec.pnl,
        win_rate=rec.win_rate,
        sharpe=rec.sharpe,
        last_price=float(bars[-1].close),
    )
    log.info(
        "suggest_symbol_chosen",
        extra={
            "symbol": symbol,
            "strategy_id": choice.strategy_id,
            "metric": choice.metric,
            "score": choice.score,
            "pnl": choice.pnl,
            "sharpe": choice.sharpe,
            "win_rate": choice.win_rate,
        },
    )
    return choice


def suggest(
    selector: StrategySelector,
    bars_by_symbol: Mapping[str, Sequence[Bar]],
    *,
    capital: float,
    options: SelectorOptions | None = None,
    settings: SuggestConfig | None = None,
    logger: logging.Logger | None = None,
) -> Suggestion:
    if not capital > 0:
        raise ValueError(f"capital must be positive, got {capital}")
    opts = options or selector.options
    cfg = settings or SuggestConfig()
    log = logger or _log
    overall = cfg.overall_metric

    log.info(
        "suggest_started",
        extra={
            "symbols": len(bars_by_symbol),
            "capital": capital,
            "risk_percentage": cfg.risk_percentage,
            "metric": str(opts.evaluation_metric),
            "overall_metric": str(overall),
            "lookback": opts.evaluation_lookback_period,
        },
    )

    choices: list[SymbolChoice] = []
    for symbol, bars in bars_by_symbol.items():
        c = _choose(selector, symbol, bars, opts, log)
        if c is not None:
            choices.append(c)

    if not choices:
        log.warning("suggest_completed", extra={"symbol": None, "reason": "no_choice"})
        return Suggestion(overall_metric=str(overall), message=NO_CHOICE_MESSAGE)

    best: SymbolChoice | None = None
    best_value = -math.inf
    for c in choices:
        v = c.value(overall)
        if v is None or not math.isfinite(v):
            continue
        if best is None or v > best_value:
            best, best_value = c, v

    if best is None:
        log.warning("suggest_completed", extra={"symbol": None, "reason": "no_finite_score"})
        return Suggestion(
            overall_metric=str(overall),
            message=f"Could not determine an overall best strategy by {overall}.",
            choices=tuple(choices),
        )

    params = dict(best.parameters)
    message = (
        f"Overall best for {best.symbol} (selected by {overall}): {best.strategy_name} "
        f"(P&L: {_fmt(best.pnl, '.2f')}, Sharpe: {_fmt(best.sharpe, '.2f')}, WinRate: {_fmt_pct(best.win_rate)}). "
        f"Score on {overall}: {best_value:.4f}."
    )
    message += " " + _resize(best, params, capital=capital, risk_percentage=cfg.risk_percentage, log=log)

    log.info(
        "suggest_completed",
        extra={
            "symbol": best.symbol,
            "strategy_id": best.strategy_id,
            "overall_metric": str(overall),
            "overall_score": best_value,
        },
    )
    return Suggestion(
        overall_metric=str(overall),
        message=message,
        symbol=best.symbol,
        strategy_id=best.strategy_id,
        strategy_name=best.strategy_name,
        parameters=params,
        evaluation_score=best.score,
        evaluation_metric=best.metric,
        overall_score=best_value,
        recent_price=best.last_price,
        choices=tuple(choices),
    )


def _resize(
    choice: SymbolChoice,
    params: dict[str, Any],
    *,
    capital: float,
    risk_percentage: float,
    log: logging.Logger,
) -> str:
    """Rewrite the sizing parameter in ``params`` in place; return a note for the message."""

    name = next((n for n in SIZING_PARAMETERS if n in params), None)
    if name is None:
        return "No standard trade sizing parameter found; size not adjusted."

    before = params[name]
    amount = size_position(choice.symbol, capital=capital, risk_percentage=risk_percentage, price=choice.last_price)
    if amount is None:
        log.warning(
            "suggest_position_unaffordable",
            extra={"symbol": choice.symbol, "parameter": name, "capital": capital, "price": choice.last_price},
        )
        return f"Capital too low for the minimum trade of {choice.symbol}; {name} not adjusted from {before}."

    params[name] = amount
    log.info(
        "suggest_position_sized",
        extra={
            "symbol": choice.symbol,
            "parameter": name,
            "before": before,
            "adjusted": amount,
            "price": choice.last_price,
        },
    )
    return f"{name} adjusted to {amount:g} for capital {capital:g}, risk {risk_percentage:g}%."
