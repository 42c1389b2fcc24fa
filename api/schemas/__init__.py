from api.schemas.backtest import BacktestRequest, BacktestResponse
from api.schemas.common import BarIn, DecisionOut, ErrorResponse, SignalOut
from api.schemas.selector import (
    EvaluateRequest,
    EvaluateResponse,
    SelectionStateOut,
    SuggestionOut,
    SuggestRequest,
    SymbolChoiceOut,
)
from api.schemas.strategies import ParameterInfo, StrategyInfo

__all__ = [
    "BacktestRequest",
    "BacktestResponse",
    "BarIn",
    "DecisionOut",
    "ErrorResponse",
    "EvaluateRequest",
    "EvaluateResponse",
    "ParameterInfo",
    "SelectionStateOut",
    "SignalOut",
    "StrategyInfo",
    "SuggestRequest",
    "SuggestionOut",
    "SymbolChoiceOut",
]
