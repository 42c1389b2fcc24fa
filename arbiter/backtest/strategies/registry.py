"""arbiter.backtest.strategies.registry

All strategies report for duty.

Registry responsibilities:
- register / resolve / list helpers
- reset a strategy's private state whenever it is resolved

The registry is an owned object, not module state: tests build their own.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from arbiter.backtest.strategies.base import Strategy
from arbiter.core.exceptions import StrategyError, StrategyNotFoundError

if TYPE_CHECKING:
    from arbiter.core.config import SelectorOptions


class StrategyRegistry:
    def __init__(self, strategies: list[Strategy] | None = None, *, logger: logging.Logger | None = None) -> None:
        self._strategies: dict[str, Strategy] = {}
        self.logger = logger or logging.getLogger("arbiter.registry")
        for s in strategies or []:
            self.register(s)

    def register(self, strategy: Strategy) -> Strategy:
        sid = getattr(strategy, "id", None)
        if not sid:
            raise StrategyError(f"strategy has no id: {strategy!r}")

        existing = self._strategies.get(sid)
        if existing is not None and existing is not strategy:
            self.logger.warning("strategy_overwritten", extra={"strategy_id": sid})
        self._strategies[sid] = strategy
        self.logger.debug("strategy_registered", extra={"strategy_id": sid, "strategy_name": strategy.name})
        return strategy

    def resolve(self, strategy_id: str) -> Strategy | None:
        s = self._strategies.get(strategy_id)
        if s is not None:
            s.reset()
        return s

    def get(self, strategy_id: str) -> Strategy:
        s = self.resolve(strategy_id)
        if s is None:
            raise StrategyNotFoundError(f"unknown strategy: {strategy_id}")
        return s

    def peek(self, strategy_id: str) -> Strategy | None:
        """Lookup without the reset side effect (display-only callers)."""

        return self._strategies.get(strategy_id)

    def list_candidates(self) -> list[Strategy]:
        return list(self._strategies.values())

    def ids(self) -> list[str]:
        return list(self._strategies.keys())

    def __contains__(self, strategy_id: object) -> bool:
        return strategy_id in self._strategies

    def __len__(self) -> int:
        return len(self._strategies)


def default_registry(
    *,
    options: SelectorOptions | None = None,
    simulation_cash: float | None = None,
    logger: logging.Logger | None = None,
) -> StrategyRegistry:
    """Built-in strategies plus a meta-selector wired to a fresh selection store."""

    from arbiter.backtest.selector import StrategySelector
    from arbiter.backtest.state import SelectionStore
    from arbiter.backtest.strategies.ichimoku import IchimokuCloudStrategy
    from arbiter.backtest.strategies.macd import MACDCrossoverStrategy
    from arbiter.backtest.strategies.rsi_bollinger import RSIBollingerStrategy
    from arbiter.backtest.strategies.threshold import SimpleThresholdStrategy

    reg = StrategyRegistry(
        [
            SimpleThresholdStrategy(),
            IchimokuCloudStrategy(),
            MACDCrossoverStrategy(),
            RSIBollingerStrategy(),
        ],
        logger=logger,
    )
    selector = StrategySelector(registry=reg, store=SelectionStore(), options=options, logger=logger)
    if simulation_cash is not None:
        selector.cash = float(simulation_cash)
    reg.register(selector)
    return reg
