from __future__ import annotations

from fastapi import APIRouter, Depends

from api.auth import AuthDep
from api.deps import get_registry
from api.schemas.strategies import ParameterInfo, StrategyInfo
from arbiter.backtest.strategies import Strategy, StrategyRegistry
from arbiter.backtest.sweep import count_combinations, optimizable_ranges
from arbiter.core.exceptions import StrategyNotFoundError

router = APIRouter(prefix="/strategies", dependencies=[AuthDep])


def _info(s: Strategy) -> StrategyInfo:
    defaults = s.defaults()
    return StrategyInfo(
        id=s.id,
        name=s.name,
        description=s.description,
        parameters=[
            ParameterInfo(
                name=p.name,
                label=p.label or p.name,
                type=str(p.type),
                default=defaults.get(p.name, p.default),
                description=p.description,
                min=p.min,
                max=p.max,
                step=p.step,
                options=list(p.options),
                optimizable=p.optimizable,
            )
            for p in s.parameters
        ],
        grid_size=count_combinations(optimizable_ranges(s.parameters)),
    )


@router.get("", response_model=list[StrategyInfo])
def list_strategies(registry: StrategyRegistry = Depends(get_registry)) -> list[StrategyInfo]:
    return [_info(s) for s in registry.list_candidates()]


@router.get("/{strategy_id}", response_model=StrategyInfo)
def get_strategy(strategy_id: str, registry: StrategyRegistry = Depends(get_registry)) -> StrategyInfo:
    s = registry.peek(strategy_id)
    if s is None:
        raise StrategyNotFoundError(f"unknown strategy: {strategy_id}")
    return _info(s)
