"""arbiter.backtest.strategies.rsi_bollinger

RSI + Bollinger Bands reversion:
- BUY when RSI < oversold and close <= lower band
- SELL when RSI > overbought and close >= upper band
"""

from __future__ import annotations

import numpy as np

from arbiter.backtest.indicators import bollinger, rsi
from arbiter.backtest.strategies.base import Strategy
from arbiter.core.types import ParameterDefinition, Signal, StrategyContext, closes


class RSIBollingerStrategy(Strategy):
    id = "rsi-bollinger"
    name = "RSI + Bollinger Bands Strategy"
    description = (
        "BUY when RSI is oversold and price is at/below the lower Bollinger Band; "
        "SELL when RSI is overbought and price is at/above the upper band."
    )
    parameters = (
        ParameterDefinition("rsiPeriod", 14, label="RSI Period", min=7, max=21, step=7),
        ParameterDefinition("rsiOverbought", 70, label="RSI Overbought Threshold", min=65, max=80, step=5),
        ParameterDefinition("rsiOversold", 30, label="RSI Oversold Threshold", min=20, max=35, step=5),
        ParameterDefinition("bollingerPeriod", 20, label="Bollinger Bands Period", min=10, max=30, step=10),
        ParameterDefinition(
            "bollingerStdDev",
            2.0,
            label="Bollinger Bands StdDev Multiplier",
            min=1.5,
            max=2.5,
            step=0.5,
        ),
        ParameterDefinition("tradeAmount", 1, label="Trade Amount", min=0.001, step=0.001),
    )

    def execute(self, context: StrategyContext) -> Signal:
        p = context.parameters
        rsi_period = int(p["rsiPeriod"])
        bb_period = int(p["bollingerPeriod"])
        amount = float(p["tradeAmount"])

        i = context.current_index
        if i < max(rsi_period, bb_period):
            return Signal.hold()

        close = closes(context.historical_data[: i + 1])
        r = rsi(close, rsi_period)[i]
        bands = bollinger(close, bb_period, float(p["bollingerStdDev"]))
        upper, lower = bands.upper[i], bands.lower[i]
        price = close[i]
        if not np.all(np.isfinite([r, upper, lower, price])):
            return Signal.hold()

        if r < float(p["rsiOversold"]) and price <= lower:
            if context.portfolio.cash >= price * amount:
                return Signal.buy(amount)
            return Signal.hold()

        if r > float(p["rsiOverbought"]) and price >= upper:
            if context.portfolio.shares >= amount:
                return Signal.sell(amount)
            return Signal.hold()

        return Signal.hold()
