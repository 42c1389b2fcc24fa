from __future__ import annotations

from collections.abc import Mapping, Sequence

from arbiter.backtest.strategies.base import Strategy
from arbiter.core.types import (
    Bar,
    ParameterDefinition,
    ParameterType,
    PortfolioView,
    Signal,
    SignalAction,
    StrategyContext,
)


def make_bars(closes: Sequence[float]) -> list[Bar]:
    return [
        Bar(close=float(c), high=float(c), low=float(c), timestamp=1_700_000_000 + i * 86_400)
        for i, c in enumerate(closes)
    ]


def make_context(
    bars: Sequence[Bar],
    index: int | None = None,
    *,
    symbol: str = "TEST",
    parameters: Mapping[str, object] | None = None,
) -> StrategyContext:
    return StrategyContext(
        symbol=symbol,
        historical_data=list(bars),
        current_index=len(bars) - 1 if index is None else index,
        parameters=dict(parameters or {}),
        portfolio=PortfolioView(cash=10_000.0),
    )


class ScriptedStrategy(Strategy):
    """Emits a fixed action per bar index; HOLD everywhere else."""

    def __init__(
        self,
        sid: str,
        script: Mapping[int, SignalAction],
        *,
        name: str | None = None,
        parameters: Sequence[ParameterDefinition] = (),
    ) -> None:
        self.id = sid
        self.name = name or sid
        self.parameters = tuple(parameters)
        self.script = dict(script)
        self.resets = 0
        self.seen_parameters: list[dict[str, object]] = []

    def execute(self, context: StrategyContext) -> Signal:
        self.seen_parameters.append(dict(context.parameters))
        action = self.script.get(context.current_index, SignalAction.HOLD)
        return Signal(action=action)

    def reset(self) -> None:
        self.resets += 1


class BuyAtStrategy(Strategy):
    """Goes long at bar ``buyAt`` and holds; the only optimizable knob is the entry bar."""

    id = "buy-at"
    name = "Buy At"
    parameters = (
        ParameterDefinition("buyAt", 2, min=0, max=3, step=1),
        ParameterDefinition("label", "x", type=ParameterType.STRING),
    )

    def execute(self, context: StrategyContext) -> Signal:
        if context.current_index == int(context.parameters["buyAt"]):
            return Signal.buy()
        return Signal.hold()


class ExplodingStrategy(Strategy):
    id = "exploding"
    name = "Exploding"

    def execute(self, context: StrategyContext) -> Signal:
        raise RuntimeError("boom")
