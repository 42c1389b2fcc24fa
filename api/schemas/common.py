from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail


class BarIn(BaseModel):
    """One OHLCV bar. Only ``close`` is required; high/low default to the close."""

    close: float
    open: float | None = None
    high: float | None = None
    low: float | None = None
    volume: float | None = None
    timestamp: int | None = None
    date: str = ""


class SignalOut(BaseModel):
    action: str
    amount: float | None = None


class DecisionOut(BaseModel):
    timestamp: int
    date: str
    chosen_strategy_id: str | None = None
    chosen_strategy_name: str | None = None
    parameters_used: dict[str, Any] | None = None
    evaluation_score: float | None = None
    evaluation_metric: str | None = None
    candidates: dict[str, float] = Field(default_factory=dict)
