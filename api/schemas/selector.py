from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from api.schemas.common import BarIn, DecisionOut, SignalOut


class SelectionStateOut(BaseModel):
    symbol: str
    chosen_strategy_id: str | None = None
    chosen_strategy_name: str | None = None
    parameters_used: dict[str, Any] | None = None
    score: float | None = None
    metric: str | None = None
    simulated_pnl: float | None = None
    simulated_win_rate: float | None = None
    simulated_sharpe: float | None = None
    message: str


class EvaluateRequest(BaseModel):
    symbol: str = Field(min_length=1)
    bars: list[BarIn] = Field(min_length=1)
    index: int | None = Field(default=None, ge=0)
    cash: float | None = Field(default=None, gt=0)
    options: dict[str, Any] = Field(default_factory=dict)


class EvaluateResponse(BaseModel):
    symbol: str
    index: int
    signal: SignalOut
    state: SelectionStateOut
    decision: DecisionOut | None = None


class SuggestRequest(BaseModel):
    """Bars per symbol; each symbol is evaluated at its last bar."""

    symbols: dict[str, list[BarIn]] = Field(min_length=1)
    capital: float = Field(gt=0)
    risk_percentage: float | None = None
    overall_metric: str | None = None
    options: dict[str, Any] = Field(default_factory=dict)


class SymbolChoiceOut(BaseModel):
    symbol: str
    strategy_id: str
    strategy_name: str
    parameters: dict[str, Any]
    score: float | None = None
    metric: str | None = None
    pnl: float | None = None
    win_rate: float | None = None
    sharpe: float | None = None
    last_price: float


class SuggestionOut(BaseModel):
    overall_metric: str
    message: str
    symbol: str | None = None
    strategy_id: str | None = None
    strategy_name: str | None = None
    parameters: dict[str, Any] | None = None
    evaluation_score: float | None = None
    evaluation_metric: str | None = None
    overall_score: float | None = None
    recent_price: float | None = None
    choices: list[SymbolChoiceOut] = Field(default_factory=list)
