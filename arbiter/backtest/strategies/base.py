"""arbiter.backtest.strategies.base

Strategy contract.

A strategy maps one context (bars up to and including the bar being decided
on, a portfolio view, parameters) to one signal. The engine treats every
strategy uniformly; indicator logic stays private to the implementation.

Signal convention:
- BUY  = go long, or cover a short
- SELL = go short, or close a long
- HOLD = do nothing
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from arbiter.core.types import Decision, ParameterDefinition, Signal, StrategyContext


class Strategy(ABC):
    id: str = "strategy"
    name: str = "Strategy"
    description: str = ""
    parameters: tuple[ParameterDefinition, ...] = ()

    @abstractmethod
    def execute(self, context: StrategyContext) -> Signal:
        raise NotImplementedError

    def defaults(self) -> dict[str, Any]:
        return {p.name: p.default for p in self.parameters}

    def reset(self) -> None:
        """Drop per-run internal state. Called by the registry on every resolve."""

    def take_decision(self) -> Decision | None:
        """Return and clear the most recent meta-selection decision, if any."""

        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"
