"""arbiter.backtest.selector

Meta-selection: pick the strategy that would have done best over the recent
past, then let it make the live call.

Per invocation, for one symbol:
1. candidates = registry minus this selector, narrowed by the allowlist
2. window = the ``lookback`` complete bars before the current one
3. every candidate x every parameter combination is simulated on the window
4. best combination per candidate, then best candidate (strictly greater
   score wins; on ties the first one enumerated stays)
5. the winner is stored for the symbol and executed on the live context

Every failure path ends in HOLD. A live decision loop is never blocked by
an evaluation problem.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Any

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from arbiter.backtest.simulator import SIMULATION_CASH, SimResult, score, simulate
from arbiter.backtest.state import SelectionState, SelectionStore
from arbiter.backtest.strategies.base import Strategy
from arbiter.backtest.strategies.registry import StrategyRegistry
from arbiter.backtest.sweep import generate_combinations, optimizable_ranges
from arbiter.core.config import SelectorOptions
from arbiter.core.exceptions import DataInsufficiencyError, NoCandidateError, StrategyResolutionError
from arbiter.core.types import (
    Bar,
    Decision,
    EvaluationMetric,
    ParameterDefinition,
    ParameterType,
    Signal,
    StrategyContext,
)

SELECTOR_ID = "meta-selector"
UNKNOWN_STRATEGY_NAME = "Unknown Strategy"


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    strategy_id: str
    best_score: float
    best_parameters: dict[str, Any] | None
    combinations_tested: int
    pnl: float | None = None
    win_rate: float | None = None
    sharpe: float | None = None

    @property
    def has_result(self) -> bool:
        return self.best_parameters is not None


def pick_best(results: Sequence[EvaluationResult]) -> EvaluationResult | None:
    best: EvaluationResult | None = None
    for r in results:
        if not r.has_result:
            continue
        if best is None or r.best_score > best.best_score:
            best = r
    return best


def _option_key(key: str) -> str:
    return to_camel(key) if "_" in key else key


class StrategySelector(Strategy):
    id = SELECTOR_ID
    name = "Meta Strategy Selector"
    description = "Selects and executes an underlying strategy based on its recent backtested performance."
    parameters = (
        ParameterDefinition(
            "evaluationLookbackPeriod",
            30,
            label="Evaluation Lookback Period",
            description="Number of recent bars used to evaluate candidate strategies.",
            min=5,
            max=200,
            step=5,
        ),
        ParameterDefinition(
            "candidateStrategyIds",
            "",
            type=ParameterType.STRING,
            label="Candidate Strategy IDs (comma-separated)",
            description="Optional allowlist. Empty means every registered strategy except this one.",
        ),
        ParameterDefinition(
            "evaluationMetric",
            EvaluationMetric.PNL.value,
            type=ParameterType.STRING,
            label="Evaluation Metric",
            description="pnl, sharpe or winRate.",
            options=tuple(m.value for m in EvaluationMetric),
        ),
        ParameterDefinition(
            "optimizeParameters",
            False,
            type=ParameterType.BOOLEAN,
            label="Optimize Candidate Parameters",
            description="Grid-search each candidate's numeric parameters. Multiplies evaluation time.",
        ),
    )

    def __init__(
        self,
        *,
        registry: StrategyRegistry,
        store: SelectionStore,
        options: SelectorOptions | None = None,
        logger: logging.Logger | None = None,
        cash: float = SIMULATION_CASH,
    ) -> None:
        self.registry = registry
        self.store = store
        self.options = options or SelectorOptions()
        self.logger = logger or logging.getLogger("arbiter.selector")
        self.cash = float(cash)
        self.last_decision: Decision | None = None

    # Strategy contract

    def execute(self, context: StrategyContext) -> Signal:
        self.last_decision = None
        try:
            opts = self.options_from(context.parameters)
        except ValidationError as e:
            self.logger.error(
                "selector_options_invalid",
                extra={"symbol": context.symbol, "errors": e.errors(include_url=False)},
            )
            return Signal.hold()
        return self.evaluate_and_execute(context.symbol, context, opts)

    def defaults(self) -> dict[str, Any]:
        """Schema defaults with the configured options in place of the literals."""

        o = self.options
        return {
            **super().defaults(),
            "evaluationLookbackPeriod": o.evaluation_lookback_period,
            "candidateStrategyIds": ",".join(o.candidate_strategy_ids),
            "evaluationMetric": str(o.evaluation_metric),
            "optimizeParameters": o.optimize_parameters,
        }

    def take_decision(self) -> Decision | None:
        d, self.last_decision = self.last_decision, None
        return d

    def options_from(self, parameters: Mapping[str, Any]) -> SelectorOptions:
        merged = self.options.model_dump(by_alias=True)
        merged.update({_option_key(k): v for k, v in parameters.items()})
        return SelectorOptions.model_validate(merged)

    # Selection

    def evaluate_and_execute(
        self,
        symbol: str,
        context: StrategyContext,
        options: SelectorOptions | None = None,
    ) -> Signal:
        opts = options or self.options
        self.last_decision = None
        self.logger.info(
            "selector_started",
            extra={"symbol": symbol, "index": context.current_index, "metric": str(opts.evaluation_metric)},
        )
        try:
            return self._select_and_execute(symbol, context, opts)
        except DataInsufficiencyError as e:
            self.logger.info("selector_hold_insufficient_data", extra={"symbol": symbol, "reason": str(e)})
        except NoCandidateError as e:
            self.logger.warning("selector_hold_no_candidate", extra={"symbol": symbol, "reason": str(e)})
        except StrategyResolutionError as e:
            self.logger.error("selector_hold_resolution_failed", extra={"symbol": symbol, "reason": str(e)})
        return Signal.hold()

    def candidates(self, options: SelectorOptions | None = None) -> list[Strategy]:
        opts = options or self.options
        out = [s for s in self.registry.list_candidates() if s.id != self.id]
        if opts.candidate_strategy_ids:
            allowed = set(opts.candidate_strategy_ids)
            out = [s for s in out if s.id in allowed]
        return out

    def evaluation_window(self, context: StrategyContext, lookback: int) -> tuple[Bar, ...]:
        """The ``lookback`` bars strictly before the current (incomplete) one."""

        i = context.current_index
        if i < lookback:
            raise DataInsufficiencyError(f"current index {i} < lookback {lookback}")
        window = tuple(context.historical_data[max(0, i - lookback) : i])
        if len(window) < lookback:
            raise DataInsufficiencyError(f"window has {len(window)} bars, need {lookback}")
        return window

    def combinations_for(self, strategy: Strategy, options: SelectorOptions | None = None) -> list[dict[str, Any]]:
        opts = options or self.options
        defaults = strategy.defaults()
        if not opts.optimize_parameters:
            return [defaults]
        ranges = optimizable_ranges(strategy.parameters)
        if not ranges:
            return [defaults]
        return generate_combinations(
            ranges,
            defaults,
            warn_above=opts.combination_warning_threshold,
            logger=self.logger,
        )

    def evaluate_candidates(
        self,
        candidates: Sequence[Strategy],
        window: Sequence[Bar],
        options: SelectorOptions | None = None,
        *,
        symbol: str = "",
    ) -> list[EvaluationResult]:
        opts = options or self.options
        metric = opts.evaluation_metric
        plans = [(c, self.combinations_for(c, opts)) for c in candidates]
        jobs = [(c, params) for c, combos in plans for params in combos]

        def run(job: tuple[Strategy, dict[str, Any]]) -> SimResult | None:
            strategy, params = job
            try:
                return simulate(strategy, params, window, symbol=symbol, cash=self.cash)
            except Exception:  # noqa: BLE001 - candidate isolation boundary
                self.logger.exception(
                    "selector_simulation_failed",
                    extra={"symbol": symbol, "strategy_id": strategy.id, "params": params},
                )
                return None

        if opts.max_workers > 1 and len(jobs) > 1:
            # map() yields in submission order: tie-breaks match the sequential path
            with ThreadPoolExecutor(max_workers=opts.max_workers) as pool:
                sims = list(pool.map(run, jobs))
        else:
            sims = [run(j) for j in jobs]

        results: list[EvaluationResult] = []
        pos = 0
        for candidate, combos in plans:
            best_score = -math.inf
            best_params: dict[str, Any] | None = None
            best_sim: SimResult | None = None
            for params in combos:
                sim = sims[pos]
                pos += 1
                if sim is None:
                    continue
                s = score(sim, metric)
                if s > best_score:
                    best_score, best_params, best_sim = s, params, sim
            results.append(
                EvaluationResult(
                    strategy_id=candidate.id,
                    best_score=best_score,
                    best_parameters=dict(best_params) if best_params is not None else None,
                    combinations_tested=len(combos),
                    pnl=best_sim.pnl if best_sim is not None else None,
                    win_rate=best_sim.win_rate if best_sim is not None else None,
                    sharpe=best_sim.sharpe if best_sim is not None else None,
                )
            )
            self.logger.debug(
                "selector_candidate_scored",
                extra={
                    "symbol": symbol,
                    "strategy_id": candidate.id,
                    "metric": str(metric),
                    "score": best_score,
                    "combinations": len(combos),
                    "params": best_params,
                },
            )
        return results

    def _select_and_execute(self, symbol: str, context: StrategyContext, opts: SelectorOptions) -> Signal:
        candidates = self.candidates(opts)
        if not candidates:
            raise NoCandidateError("no candidate strategies")

        window = self.evaluation_window(context, opts.evaluation_lookback_period)
        results = self.evaluate_candidates(candidates, window, opts, symbol=symbol)
        scoreboard = {r.strategy_id: r.best_score for r in results if r.has_result}
        metric = str(opts.evaluation_metric)

        best = pick_best(results)
        if best is None or best.best_parameters is None:
            self.last_decision = self._decision(context, metric=metric, candidates=scoreboard)
            raise NoCandidateError(f"no candidate produced a result ({len(results)} evaluated)")

        self.store.record(
            symbol,
            best.strategy_id,
            best.best_parameters,
            score=best.best_score,
            metric=metric,
            pnl=best.pnl,
            win_rate=best.win_rate,
            sharpe=best.sharpe,
        )

        winner = self.registry.resolve(best.strategy_id)
        if winner is None:
            self.last_decision = self._decision(
                context,
                strategy_id=best.strategy_id,
                strategy_name="Error: strategy not found in registry",
                params=best.best_parameters,
                score=best.best_score,
                metric=metric,
                candidates=scoreboard,
            )
            raise StrategyResolutionError(f"chosen strategy no longer registered: {best.strategy_id}")

        params = {**winner.defaults(), **best.best_parameters}
        self.last_decision = self._decision(
            context,
            strategy_id=winner.id,
            strategy_name=winner.name,
            params=params,
            score=best.best_score,
            metric=metric,
            candidates=scoreboard,
        )
        self.logger.info(
            "selector_chose",
            extra={
                "symbol": symbol,
                "strategy_id": winner.id,
                "metric": metric,
                "score": best.best_score,
                "params": params,
                "optimized": opts.optimize_parameters,
            },
        )

        try:
            return winner.execute(replace(context, parameters=params))
        except Exception:  # noqa: BLE001 - live execution never crashes the caller
            self.logger.exception("selector_winner_execute_failed", extra={"symbol": symbol, "strategy_id": winner.id})
            return Signal.hold()

    def _decision(
        self,
        context: StrategyContext,
        *,
        strategy_id: str | None = None,
        strategy_name: str | None = None,
        params: dict[str, Any] | None = None,
        score: float | None = None,
        metric: str | None = None,
        candidates: dict[str, float] | None = None,
    ) -> Decision:
        i = context.current_index
        bar = context.historical_data[i] if 0 <= i < len(context.historical_data) else None
        return Decision(
            timestamp=bar.timestamp if bar is not None else 0,
            date=bar.date if bar is not None else "",
            chosen_strategy_id=strategy_id,
            chosen_strategy_name=strategy_name,
            parameters_used=dict(params) if params is not None else None,
            evaluation_score=score,
            evaluation_metric=metric,
            candidates=dict(candidates or {}),
        )

    # Read side

    def selection_state(self, symbol: str) -> SelectionState:
        rec = self.store.get(symbol)
        if rec is None:
            return SelectionState.empty(symbol)

        strategy = self.registry.peek(rec.strategy_id)
        name = strategy.name if strategy is not None else UNKNOWN_STRATEGY_NAME
        return SelectionState(
            symbol=symbol,
            chosen_strategy_id=rec.strategy_id,
            chosen_strategy_name=name,
            parameters_used=dict(rec.parameters),
            score=rec.score,
            metric=rec.metric,
            simulated_pnl=rec.pnl,
            simulated_win_rate=rec.win_rate,
            simulated_sharpe=rec.sharpe,
            message=f"Currently using {name} (ID: {rec.strategy_id}) for {symbol}.",
        )
