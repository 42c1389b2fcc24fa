"""arbiter.core.exceptions

Errors are part of the interface.

Most of these never escape the selector: they are raised to unwind a code path
and recovered as a HOLD at the boundary.
"""

from __future__ import annotations


class ArbiterError(Exception):
    """Base exception for arbiter."""


class ConfigError(ArbiterError):
    """Configuration is missing, invalid, or inconsistent."""


class DataError(ArbiterError):
    """Price data is missing, malformed, or too short."""


class StrategyError(ArbiterError):
    """Strategy contract violations or lookup failures."""


class DataInsufficiencyError(DataError):
    """Not enough history to evaluate anything."""


class NoCandidateError(StrategyError):
    """Nothing left to choose from."""


class InvalidParameterRangeError(StrategyError):
    """A parameter range cannot be stepped through."""


class StrategyNotFoundError(StrategyError):
    """No strategy is registered under the requested id."""


class StrategyResolutionError(StrategyNotFoundError):
    """A selected strategy vanished from the registry between evaluation and execution."""
