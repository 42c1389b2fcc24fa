"""arbiter.core

Core primitives.

Everything else depends on this package; this package depends on nothing else.
"""

from .config import Config
from .exceptions import ArbiterError
from .types import Bar, Decision, PortfolioView, Signal, SignalAction, StrategyContext

__all__ = [
    "ArbiterError",
    "Bar",
    "Config",
    "Decision",
    "PortfolioView",
    "Signal",
    "SignalAction",
    "StrategyContext",
]
