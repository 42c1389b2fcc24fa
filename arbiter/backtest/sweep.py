"""arbiter.backtest.sweep

Parameter grid generation.

Each optimizable numeric parameter becomes an axis ``min, min+step, ...``
bounded by ``max``; ``max`` itself is always on the axis even when the step
does not land on it. The grid is the Cartesian product of the axes, in schema
order, with every non-optimized parameter fixed at its default.

Grids grow multiplicatively. Large grids are logged, never refused: bounding
the search is the caller's job.
"""

from __future__ import annotations

import itertools
import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from arbiter.core.exceptions import InvalidParameterRangeError
from arbiter.core.types import ParameterDefinition

LARGE_GRID_WARNING = 1000

_log = logging.getLogger("arbiter.sweep")


@dataclass(frozen=True, slots=True)
class ParameterRange:
    name: str
    min: float
    max: float
    step: float

    @classmethod
    def from_definition(cls, p: ParameterDefinition) -> ParameterRange:
        return cls(name=p.name, min=p.min, max=p.max, step=p.step)  # type: ignore[arg-type]

    def check(self) -> None:
        try:
            lo, hi, st = float(self.min), float(self.max), float(self.step)
        except (TypeError, ValueError) as e:
            raise InvalidParameterRangeError(f"non-numeric range for {self.name}") from e
        if not (math.isfinite(lo) and math.isfinite(hi) and math.isfinite(st)):
            raise InvalidParameterRangeError(f"non-finite range for {self.name}")
        if st <= 0:
            raise InvalidParameterRangeError(f"step must be > 0 for {self.name}, got {st}")


def optimizable_ranges(parameters: Iterable[ParameterDefinition]) -> list[ParameterRange]:
    return [ParameterRange.from_definition(p) for p in parameters if p.optimizable]


def axis_values(r: ParameterRange) -> list[Any]:
    """Stepped values of one axis. Assumes ``r.check()`` passed."""

    out: list[Any] = []
    k = 0
    # min + k*step rather than repeated addition: no drift on float steps
    v = r.min
    while v <= r.max:
        out.append(v)
        k += 1
        v = round(r.min + k * r.step, 10)
    if out and out[-1] < r.max:
        out.append(r.max)
    return out


def count_combinations(ranges: Iterable[ParameterRange]) -> int:
    total = 1
    for r in ranges:
        try:
            r.check()
        except InvalidParameterRangeError:
            continue
        total *= len(axis_values(r))
    return total


def generate_combinations(
    ranges: list[ParameterRange],
    defaults: Mapping[str, Any],
    *,
    warn_above: int = LARGE_GRID_WARNING,
    logger: logging.Logger | None = None,
) -> list[dict[str, Any]]:
    """Expand ``ranges`` into parameter combinations.

    Every combination carries every key of ``defaults``. An axis with non-finite
    bounds or a non-positive step is frozen at its default instead of
    branching. Never returns an empty list.
    """

    log = logger or _log
    base = dict(defaults)
    if not ranges:
        return [base]

    names: list[str] = []
    axes: list[list[Any]] = []
    for r in ranges:
        try:
            r.check()
        except InvalidParameterRangeError as e:
            frozen = base.get(r.name)
            if frozen is None and isinstance(r.min, (int, float)) and math.isfinite(float(r.min)):
                frozen = r.min
            log.warning("grid_dimension_invalid", extra={"param": r.name, "reason": str(e), "frozen_at": frozen})
            base[r.name] = frozen
            continue
        names.append(r.name)
        axes.append(axis_values(r))

    total = math.prod(len(a) for a in axes)
    if total > warn_above:
        log.warning("grid_large", extra={"combinations": total, "threshold": warn_above, "params": names})

    combos = [{**base, **dict(zip(names, values))} for values in itertools.product(*axes)]
    return combos or [base]
