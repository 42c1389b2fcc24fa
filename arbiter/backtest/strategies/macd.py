"""arbiter.backtest.strategies.macd

MACD crossover:
- BUY when the MACD line crosses above its signal line
- SELL when it crosses below

Crossovers need the previous bar, so index 0 always holds.
"""

from __future__ import annotations

import numpy as np

from arbiter.backtest.indicators import macd
from arbiter.backtest.strategies.base import Strategy
from arbiter.core.types import ParameterDefinition, Signal, StrategyContext, closes


class MACDCrossoverStrategy(Strategy):
    id = "macd-crossover"
    name = "MACD Crossover Strategy"
    description = "BUY when the MACD line crosses above the signal line, SELL when it crosses below."
    parameters = (
        ParameterDefinition("shortPeriod", 12, label="Short EMA Period", min=8, max=16, step=4),
        ParameterDefinition("longPeriod", 26, label="Long EMA Period", min=20, max=32, step=6),
        ParameterDefinition("signalPeriod", 9, label="Signal Line EMA Period", min=6, max=12, step=3),
        ParameterDefinition("tradeAmount", 1, label="Trade Amount", min=0.001, step=0.001),
    )

    def execute(self, context: StrategyContext) -> Signal:
        i = context.current_index
        if i < 1:
            return Signal.hold()

        p = context.parameters
        short = int(p["shortPeriod"])
        long = int(p["longPeriod"])
        signal = int(p["signalPeriod"])
        amount = float(p["tradeAmount"])
        if long <= short:
            return Signal.hold()

        m = macd(closes(context.historical_data[: i + 1]), short, long, signal)
        cur_line, prev_line = m.line[i], m.line[i - 1]
        cur_sig, prev_sig = m.signal[i], m.signal[i - 1]
        if not np.all(np.isfinite([cur_line, prev_line, cur_sig, prev_sig])):
            return Signal.hold()

        price = context.bar.close
        if prev_line < prev_sig and cur_line > cur_sig:
            if context.portfolio.cash >= price * amount:
                return Signal.buy(amount)
            return Signal.hold()

        if prev_line > prev_sig and cur_line < cur_sig:
            if context.portfolio.shares >= amount:
                return Signal.sell(amount)
            return Signal.hold()

        return Signal.hold()
