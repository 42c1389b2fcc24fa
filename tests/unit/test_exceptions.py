from __future__ import annotations

import pytest

from arbiter.core.exceptions import (
    ArbiterError,
    ConfigError,
    DataError,
    DataInsufficiencyError,
    InvalidParameterRangeError,
    NoCandidateError,
    StrategyError,
    StrategyNotFoundError,
    StrategyResolutionError,
)


def test_exception_hierarchy_is_structural() -> None:
    assert issubclass(ConfigError, ArbiterError)
    assert issubclass(DataError, ArbiterError)
    assert issubclass(StrategyError, ArbiterError)


def test_selection_failures_are_typed() -> None:
    assert issubclass(DataInsufficiencyError, DataError)
    assert issubclass(NoCandidateError, StrategyError)
    assert issubclass(InvalidParameterRangeError, StrategyError)


def test_resolution_failure_is_a_not_found() -> None:
    assert issubclass(StrategyResolutionError, StrategyNotFoundError)
    with pytest.raises(StrategyNotFoundError) as e:
        raise StrategyResolutionError("macd-crossover vanished")
    assert "vanished" in str(e.value)
