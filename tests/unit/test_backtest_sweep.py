from __future__ import annotations

import logging

import pytest

from arbiter.backtest.sweep import (
    ParameterRange,
    axis_values,
    count_combinations,
    generate_combinations,
    optimizable_ranges,
)
from arbiter.core.exceptions import InvalidParameterRangeError
from arbiter.core.types import ParameterDefinition, ParameterType


def test_axis_5_to_200_step_5_is_bounded_and_hits_both_ends():
    vals = axis_values(ParameterRange("lookback", 5, 200, 5))
    assert min(vals) == 5
    assert max(vals) == 200
    assert all(5 <= v <= 200 for v in vals)
    assert len(vals) == 40


def test_axis_step_overshoot_force_includes_max():
    assert axis_values(ParameterRange("p", 10, 12, 5)) == [10, 12]


def test_axis_float_step_does_not_drift():
    vals = axis_values(ParameterRange("k", 1.5, 2.5, 0.1))
    assert vals[-1] == 2.5
    assert len(vals) == 11
    assert 2.0 in vals


def test_axis_single_point():
    assert axis_values(ParameterRange("p", 3, 3, 1)) == [3]


def test_grid_product_in_schema_order_with_defaults_filled():
    ranges = [ParameterRange("a", 1, 2, 1), ParameterRange("b", 10, 20, 10)]
    combos = generate_combinations(ranges, {"a": 1, "b": 10, "c": "keep"})
    assert combos == [
        {"a": 1, "b": 10, "c": "keep"},
        {"a": 1, "b": 20, "c": "keep"},
        {"a": 2, "b": 10, "c": "keep"},
        {"a": 2, "b": 20, "c": "keep"},
    ]


def test_grid_empty_ranges_returns_defaults_singleton():
    assert generate_combinations([], {"x": 1}) == [{"x": 1}]


@pytest.mark.parametrize(
    "bad",
    [
        ParameterRange("a", float("nan"), 5, 1),
        ParameterRange("a", 1, 5, 0),
        ParameterRange("a", 1, 5, -1),
        ParameterRange("a", 1, 5, float("nan")),
        ParameterRange("a", 1, float("inf"), 1),
        ParameterRange("a", float("-inf"), 5, 1),
    ],
)
def test_grid_invalid_dimension_frozen_at_default(bad: ParameterRange, caplog: pytest.LogCaptureFixture):
    ranges = [bad, ParameterRange("b", 1, 2, 1)]
    with caplog.at_level(logging.WARNING, logger="arbiter.sweep"):
        combos = generate_combinations(ranges, {"a": 7, "b": 1})
    assert combos == [{"a": 7, "b": 1}, {"a": 7, "b": 2}]
    assert any(r.getMessage() == "grid_dimension_invalid" for r in caplog.records)


def test_grid_all_dimensions_invalid_still_returns_one_combination():
    combos = generate_combinations([ParameterRange("a", 1, 5, 0)], {"a": 3})
    assert combos == [{"a": 3}]


def test_grid_large_is_warned_not_refused(caplog: pytest.LogCaptureFixture):
    ranges = [ParameterRange("a", 1, 20, 1), ParameterRange("b", 1, 20, 1)]
    with caplog.at_level(logging.WARNING, logger="arbiter.sweep"):
        combos = generate_combinations(ranges, {"a": 1, "b": 1}, warn_above=100)
    assert len(combos) == 400
    assert any(r.getMessage() == "grid_large" for r in caplog.records)


def test_range_check_rejects_non_positive_step():
    with pytest.raises(InvalidParameterRangeError):
        ParameterRange("a", 1, 2, 0).check()


def test_optimizable_ranges_only_numeric_with_full_bounds():
    params = (
        ParameterDefinition("n", 10, min=5, max=15, step=5),
        ParameterDefinition("no_step", 10, min=5, max=15),
        ParameterDefinition("flag", False, type=ParameterType.BOOLEAN),
        ParameterDefinition("inverted", 10, min=15, max=5, step=1),
    )
    ranges = optimizable_ranges(params)
    assert [r.name for r in ranges] == ["n"]
    assert count_combinations(ranges) == 3


def test_range_check_rejects_unbounded_axis():
    with pytest.raises(InvalidParameterRangeError):
        ParameterRange("a", 1, float("inf"), 1).check()


def test_unbounded_parameter_is_not_optimizable():
    params = (
        ParameterDefinition("open_ended", 10, min=5, max=float("inf"), step=5),
        ParameterDefinition("tiny_step", 10, min=5, max=15, step=float("inf")),
    )
    assert optimizable_ranges(params) == []
