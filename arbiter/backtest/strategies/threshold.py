"""arbiter.backtest.strategies.threshold

Price threshold:
- BUY when close > upper (and cash covers the order)
- SELL when close < lower (and shares cover the order)

The oldest baseline in the registry. Useful mostly as a control.
"""

from __future__ import annotations

from arbiter.backtest.strategies.base import Strategy
from arbiter.core.types import ParameterDefinition, Signal, StrategyContext


class SimpleThresholdStrategy(Strategy):
    id = "simple-threshold"
    name = "Simple Threshold Strategy"
    description = "Buys if price > upperThreshold, sells if price < lowerThreshold."
    parameters = (
        ParameterDefinition("upperThreshold", 150, label="Upper Threshold", description="Price above which to buy."),
        ParameterDefinition("lowerThreshold", 140, label="Lower Threshold", description="Price below which to sell."),
        ParameterDefinition("tradeAmount", 1, label="Trade Amount", description="Number of shares to trade."),
    )

    def execute(self, context: StrategyContext) -> Signal:
        p = context.parameters
        price = context.bar.close
        upper = float(p["upperThreshold"])
        lower = float(p["lowerThreshold"])
        amount = float(p["tradeAmount"])

        if price > upper and context.portfolio.cash >= price * amount:
            return Signal.buy(amount)
        if price < lower and context.portfolio.shares >= amount:
            return Signal.sell(amount)
        return Signal.hold()
