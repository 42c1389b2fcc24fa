from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends

from api.auth import AuthDep
from api.deps import get_config, get_registry
from api.schemas.backtest import BacktestRequest, BacktestResponse
from arbiter.backtest.engine import run_backtest
from arbiter.backtest.io import bars_from_rows
from arbiter.backtest.strategies import StrategyRegistry
from arbiter.core.config import Config

router = APIRouter(prefix="/backtest", dependencies=[AuthDep])


@router.post("", response_model=BacktestResponse)
def backtest(
    body: BacktestRequest,
    registry: StrategyRegistry = Depends(get_registry),
    config: Config = Depends(get_config),
) -> BacktestResponse:
    strategy = registry.get(body.strategy_id)
    bars = bars_from_rows(b.model_dump() for b in body.bars)

    res = run_backtest(
        strategy,
        bars,
        symbol=body.symbol.upper(),
        initial_cash=body.initial_cash,
        parameters=body.parameters,
        cfg=config.backtest,
    )
    payload = asdict(res)
    payload["trades"] = [{**asdict(t), "action": t.action.value} for t in res.trades]
    payload["total_trades"] = res.total_trades
    return BacktestResponse.model_validate(payload)
