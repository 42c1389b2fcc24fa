"""arbiter.backtest.strategies

Strategy library.

Each strategy is an instance behind one contract: a parameter schema and
``execute(context) -> Signal``. The registry maps ids to instances.
"""

from arbiter.backtest.strategies.base import Strategy
from arbiter.backtest.strategies.ichimoku import IchimokuCloudStrategy
from arbiter.backtest.strategies.macd import MACDCrossoverStrategy
from arbiter.backtest.strategies.registry import StrategyRegistry, default_registry
from arbiter.backtest.strategies.rsi_bollinger import RSIBollingerStrategy
from arbiter.backtest.strategies.threshold import SimpleThresholdStrategy

__all__ = [
    "Strategy",
    "StrategyRegistry",
    "default_registry",
    "IchimokuCloudStrategy",
    "MACDCrossoverStrategy",
    "RSIBollingerStrategy",
    "SimpleThresholdStrategy",
]
