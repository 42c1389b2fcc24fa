"""arbiter.core.types

Lightweight dataclasses for hot-path objects.

Pydantic models own IO boundaries (config, API); dataclasses keep the
simulation loop lean.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import numpy as np


@dataclass(frozen=True, slots=True)
class Bar:
    close: float
    open: float = float("nan")
    high: float = float("nan")
    low: float = float("nan")
    volume: float = 0.0
    timestamp: int = 0  # unix epoch seconds
    date: str = ""


def closes(bars: Sequence[Bar]) -> np.ndarray:
    return np.fromiter((b.close for b in bars), dtype=np.float64, count=len(bars))


def highs(bars: Sequence[Bar]) -> np.ndarray:
    return np.fromiter((b.high for b in bars), dtype=np.float64, count=len(bars))


def lows(bars: Sequence[Bar]) -> np.ndarray:
    return np.fromiter((b.low for b in bars), dtype=np.float64, count=len(bars))


class SignalAction(StrEnum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


@dataclass(frozen=True, slots=True)
class Signal:
    action: SignalAction
    amount: float | None = None

    @classmethod
    def buy(cls, amount: float | None = None) -> Signal:
        return cls(action=SignalAction.BUY, amount=amount)

    @classmethod
    def sell(cls, amount: float | None = None) -> Signal:
        return cls(action=SignalAction.SELL, amount=amount)

    @classmethod
    def hold(cls) -> Signal:
        return cls(action=SignalAction.HOLD)

    @property
    def is_hold(self) -> bool:
        return self.action is SignalAction.HOLD


class EvaluationMetric(StrEnum):
    PNL = "pnl"
    WIN_RATE = "winRate"
    SHARPE = "sharpe"


class ParameterType(StrEnum):
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"


@dataclass(frozen=True, slots=True)
class ParameterDefinition:
    """One entry of a strategy's parameter schema.

    ``min``/``max``/``step`` only matter for numeric parameters; together they
    define the grid searched when parameter optimization is requested.
    """

    name: str
    default: Any
    type: ParameterType = ParameterType.NUMBER
    label: str = ""
    description: str = ""
    min: float | None = None
    max: float | None = None
    step: float | None = None
    options: tuple[Any, ...] = ()

    @property
    def optimizable(self) -> bool:
        if self.type is not ParameterType.NUMBER:
            return False
        if self.min is None or self.max is None or self.step is None:
            return False
        if not all(math.isfinite(v) for v in (self.min, self.max, self.step)):
            return False
        return self.min <= self.max and self.step > 0


@dataclass(frozen=True, slots=True)
class PortfolioView:
    """What a strategy is allowed to know about the book.

    ``shares`` is signed: negative while short.
    """

    cash: float
    shares: float = 0.0
    average_price: float = 0.0


@dataclass(frozen=True, slots=True)
class Trade:
    timestamp: int
    date: str
    action: SignalAction
    price: float
    shares: float
    cash_after: float


@dataclass(frozen=True, slots=True)
class StrategyContext:
    """Everything a strategy sees when deciding on ``historical_data[current_index]``."""

    symbol: str
    historical_data: Sequence[Bar]
    current_index: int
    parameters: Mapping[str, Any]
    portfolio: PortfolioView
    trade_history: tuple[Trade, ...] = ()
    current_signal: Signal | None = None
    signal_history: tuple[Signal, ...] = ()

    @property
    def bar(self) -> Bar:
        return self.historical_data[self.current_index]


@dataclass(frozen=True, slots=True)
class Decision:
    """One meta-selection outcome, kept for backtest reports."""

    timestamp: int
    date: str
    chosen_strategy_id: str | None
    chosen_strategy_name: str | None
    parameters_used: dict[str, Any] | None
    evaluation_score: float | None
    evaluation_metric: str | None
    candidates: dict[str, float] = field(default_factory=dict)
