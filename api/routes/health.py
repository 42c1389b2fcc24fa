from __future__ import annotations

import time

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from api.deps import get_registry
from arbiter import __version__
from arbiter.backtest.strategies import StrategyRegistry

router = APIRouter()


class HealthResponse(BaseModel):
    version: str
    uptime_seconds: float
    strategies: int


@router.get("/health", response_model=HealthResponse)
def health(request: Request, registry: StrategyRegistry = Depends(get_registry)) -> HealthResponse:
    started_at = float(getattr(request.app.state, "started_at", time.monotonic()))
    return HealthResponse(
        version=__version__,
        uptime_seconds=time.monotonic() - started_at,
        strategies=len(registry),
    )
