"""arbiter.backtest.strategies.ichimoku

Ichimoku cloud trend follower.

BUY needs all four:
1. tenkan-sen crosses above kijun-sen
2. close above both current senkou spans (the cloud plotted at this bar)
3. chikou span above the current cloud
4. future cloud bullish (span A > span B)

SELL is the mirror image.

Rule 3 compares the lagging close against the cloud at the *current* index,
not the cloud at the lagged index. That is a simplification of the textbook
rule and is kept as-is.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from arbiter.backtest.indicators import midpoint
from arbiter.backtest.strategies.base import Strategy
from arbiter.core.types import ParameterDefinition, Signal, StrategyContext, closes, highs, lows


@dataclass(frozen=True, slots=True)
class IchimokuValues:
    tenkan: float | None
    kijun: float | None
    span_a: float | None  # cloud plotted at this bar, computed `displacement` bars ago
    span_b: float | None
    chikou: float | None  # close `lag` bars ago
    future_span_a: float | None  # cloud that will be plotted `displacement` bars ahead
    future_span_b: float | None

    def complete(self) -> bool:
        return all(
            v is not None
            for v in (
                self.tenkan,
                self.kijun,
                self.span_a,
                self.span_b,
                self.chikou,
                self.future_span_a,
                self.future_span_b,
            )
        )


def ichimoku_at(
    high: np.ndarray,
    low: np.ndarray,
    close: np.ndarray,
    i: int,
    *,
    tenkan_period: int,
    kijun_period: int,
    span_b_period: int,
    lag: int,
    displacement: int,
) -> IchimokuValues:
    tenkan = midpoint(high, low, tenkan_period, i)
    kijun = midpoint(high, low, kijun_period, i)
    chikou = float(close[i - lag]) if 0 <= i - lag < close.size else None

    span_a = span_b = None
    past = i - displacement
    if past >= 0:
        past_tenkan = midpoint(high, low, tenkan_period, past)
        past_kijun = midpoint(high, low, kijun_period, past)
        if past_tenkan is not None and past_kijun is not None:
            span_a = (past_tenkan + past_kijun) / 2.0
        span_b = midpoint(high, low, span_b_period, past)

    future_a = (tenkan + kijun) / 2.0 if tenkan is not None and kijun is not None else None
    future_b = midpoint(high, low, span_b_period, i)

    return IchimokuValues(
        tenkan=tenkan,
        kijun=kijun,
        span_a=span_a,
        span_b=span_b,
        chikou=chikou,
        future_span_a=future_a,
        future_span_b=future_b,
    )


class IchimokuCloudStrategy(Strategy):
    id = "ichimoku-cloud"
    name = "Ichimoku Cloud Strategy"
    description = "Trend following on Ichimoku Kinko Hyo: line cross, cloud position, lagging span and cloud outlook."
    parameters = (
        ParameterDefinition("tenkanPeriod", 9, label="Tenkan-sen Period"),
        ParameterDefinition("kijunPeriod", 26, label="Kijun-sen Period"),
        ParameterDefinition("senkouSpanBPeriod", 52, label="Senkou Span B Period"),
        ParameterDefinition("chikouLaggingPeriod", 26, label="Chikou Span Lag Period"),
        ParameterDefinition("senkouCloudDisplacement", 26, label="Cloud Displacement"),
        ParameterDefinition("tradeAmount", 1, label="Trade Amount"),
    )

    def execute(self, context: StrategyContext) -> Signal:
        p = context.parameters
        tenkan_period = int(p["tenkanPeriod"])
        kijun_period = int(p["kijunPeriod"])
        span_b_period = int(p["senkouSpanBPeriod"])
        lag = int(p["chikouLaggingPeriod"])
        displacement = int(p["senkouCloudDisplacement"])
        amount = float(p["tradeAmount"])

        i = context.current_index
        if i < max(tenkan_period, kijun_period, span_b_period) + lag + displacement:
            return Signal.hold()

        bars = context.historical_data[: i + 1]
        high, low, close = highs(bars), lows(bars), closes(bars)
        kw = dict(
            tenkan_period=tenkan_period,
            kijun_period=kijun_period,
            span_b_period=span_b_period,
            lag=lag,
            displacement=displacement,
        )
        cur = ichimoku_at(high, low, close, i, **kw)
        prev = ichimoku_at(high, low, close, i - 1, **kw)
        if not cur.complete() or prev.tenkan is None or prev.kijun is None:
            return Signal.hold()

        price = float(close[i])
        cloud_top = max(cur.span_a, cur.span_b)
        cloud_bottom = min(cur.span_a, cur.span_b)

        bullish = (
            prev.tenkan < prev.kijun
            and cur.tenkan > cur.kijun
            and price > cloud_top
            and cur.chikou > cloud_top
            and cur.future_span_a > cur.future_span_b
        )
        if bullish and context.portfolio.cash >= price * amount:
            return Signal.buy(amount)

        bearish = (
            prev.tenkan > prev.kijun
            and cur.tenkan < cur.kijun
            and price < cloud_bottom
            and cur.chikou < cloud_bottom
            and cur.future_span_a < cur.future_span_b
        )
        if bearish and context.portfolio.shares >= amount:
            return Signal.sell(amount)

        return Signal.hold()
