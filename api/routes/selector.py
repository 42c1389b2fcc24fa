from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import ValidationError

from api.auth import AuthDep
from api.deps import get_config, get_selector
from api.errors import ApiError
from api.schemas.common import DecisionOut, SignalOut
from api.schemas.selector import (
    EvaluateRequest,
    EvaluateResponse,
    SelectionStateOut,
    SuggestionOut,
    SuggestRequest,
)
from arbiter.backtest.io import bars_from_rows
from arbiter.backtest.selector import StrategySelector
from arbiter.backtest.suggest import suggest
from arbiter.core.config import Config, SelectorOptions, SuggestConfig
from arbiter.core.types import PortfolioView, StrategyContext

router = APIRouter(prefix="/selector", dependencies=[AuthDep])


def _options_or_400(selector: StrategySelector, options: dict[str, Any]) -> SelectorOptions:
    try:
        return selector.options_from(options)
    except ValidationError as e:
        details = [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors(include_url=False)]
        raise ApiError(
            code="selector.invalid_options",
            message="Invalid selector options",
            status=400,
            details=details,
        ) from e


@router.get("/current-strategy/{symbol}", response_model=SelectionStateOut)
def current_strategy(symbol: str, selector: StrategySelector = Depends(get_selector)) -> SelectionStateOut:
    sym = symbol.upper()
    state = selector.selection_state(sym)
    if not state.has_selection:
        raise ApiError(code="selector.no_selection", message=state.message, status=404, symbol=sym)
    return SelectionStateOut.model_validate(asdict(state))


@router.post("/evaluate", response_model=EvaluateResponse)
def evaluate(
    body: EvaluateRequest,
    selector: StrategySelector = Depends(get_selector),
    config: Config = Depends(get_config),
) -> EvaluateResponse:
    opts = _options_or_400(selector, body.options)

    bars = bars_from_rows(b.model_dump() for b in body.bars)
    index = len(bars) - 1 if body.index is None else body.index
    if index >= len(bars):
        raise ApiError(
            code="selector.invalid_index",
            message=f"index {index} out of range for {len(bars)} bars",
            status=400,
        )

    sym = body.symbol.upper()
    ctx = StrategyContext(
        symbol=sym,
        historical_data=bars,
        current_index=index,
        parameters={},
        portfolio=PortfolioView(cash=body.cash or config.backtest.initial_cash),
    )
    sig = selector.evaluate_and_execute(sym, ctx, opts)
    decision = selector.take_decision()
    state = selector.selection_state(sym)

    return EvaluateResponse(
        symbol=sym,
        index=index,
        signal=SignalOut(action=sig.action.value, amount=sig.amount),
        state=SelectionStateOut.model_validate(asdict(state)),
        decision=DecisionOut.model_validate(asdict(decision)) if decision is not None else None,
    )


@router.post("/suggest", response_model=SuggestionOut)
def suggest_strategy(
    body: SuggestRequest,
    selector: StrategySelector = Depends(get_selector),
    config: Config = Depends(get_config),
) -> SuggestionOut:
    opts = _options_or_400(selector, body.options)
    overrides: dict[str, Any] = {"risk_percentage": body.risk_percentage, "overall_metric": body.overall_metric}
    settings = SuggestConfig.model_validate(
        {**config.suggest.model_dump(), **{k: v for k, v in overrides.items() if v is not None}}
    )
    bars_by_symbol = {sym.upper(): bars_from_rows(b.model_dump() for b in bars) for sym, bars in body.symbols.items()}

    out = suggest(selector, bars_by_symbol, capital=body.capital, options=opts, settings=settings)
    return SuggestionOut.model_validate(asdict(out))
