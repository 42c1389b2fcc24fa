from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from api.schemas.common import BarIn, DecisionOut


class BacktestRequest(BaseModel):
    strategy_id: str = Field(min_length=1)
    symbol: str = ""
    initial_cash: float | None = Field(default=None, gt=0)
    parameters: dict[str, Any] = Field(default_factory=dict)
    bars: list[BarIn]


class TradeOut(BaseModel):
    timestamp: int
    date: str
    action: str
    price: float
    shares: float
    cash_after: float


class EquityPointOut(BaseModel):
    timestamp: int
    value: float


class BacktestResponse(BaseModel):
    symbol: str
    strategy_id: str
    parameters: dict[str, Any]
    initial_value: float
    final_value: float
    total_pnl: float
    pnl_pct: float
    total_trades: int
    bars_processed: int
    sharpe: float
    max_drawdown: float
    trades: list[TradeOut]
    equity_curve: list[EquityPointOut]
    decisions: list[DecisionOut] = Field(default_factory=list)
