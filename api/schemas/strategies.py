from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ParameterInfo(BaseModel):
    name: str
    label: str
    type: str
    default: Any
    description: str = ""
    min: float | None = None
    max: float | None = None
    step: float | None = None
    options: list[Any] = []
    optimizable: bool = False


class StrategyInfo(BaseModel):
    id: str
    name: str
    description: str
    parameters: list[ParameterInfo]
    grid_size: int = 1
