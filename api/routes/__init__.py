from __future__ import annotations

from fastapi import APIRouter

from api.routes import backtest, selector, strategies


def get_api_router() -> APIRouter:
    router = APIRouter()

    router.include_router(strategies.router, tags=["strategies"])
    router.include_router(selector.router, tags=["selector"])
    router.include_router(backtest.router, tags=["backtest"])

    return router
