"""arbiter.cli

Command line interface entry point for arbiter.

Design constraints:
- argparse-based.
- Lazy imports: do not import numpy or the API stack at parse time.
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from arbiter.core.config import Config, SelectorOptions

EPILOG = "Past performance picks the strategy. It does not promise the future."


@dataclass(frozen=True)
class CliContext:
    repo_root: Path


def _repo_root_from_cwd() -> Path:
    return Path.cwd()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arbiter",
        description="Strategy meta-selection and backtesting.",
        epilog=EPILOG,
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML config file (default: config/user.yaml, then config/default.yaml).",
    )
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines.")

    sub = parser.add_subparsers(dest="command")

    p_strat = sub.add_parser("strategies", help="List registered strategies")
    p_strat.add_argument("--json", action="store_true")

    p_bt = sub.add_parser("backtest", help="Backtest one strategy over a CSV of bars")
    p_bt.add_argument("--csv", type=Path, required=True)
    p_bt.add_argument("--strategy", required=True, help="Strategy id.")
    p_bt.add_argument("--symbol", default="")
    p_bt.add_argument("--cash", type=float, default=None, help="Initial cash.")
    p_bt.add_argument("--param", action="append", default=[], metavar="NAME=VALUE", help="Strategy parameter override.")
    p_bt.add_argument("--json", action="store_true")

    p_sel = sub.add_parser("select", help="Run one meta-selection at a bar of a CSV")
    p_sel.add_argument("--csv", type=Path, required=True)
    p_sel.add_argument("--symbol", default="")
    p_sel.add_argument("--index", type=int, default=None, help="Bar index to decide on (default: last bar).")
    p_sel.add_argument("--lookback", type=int, default=None)
    p_sel.add_argument("--metric", default=None, help="pnl, winRate or sharpe.")
    p_sel.add_argument("--candidates", default=None, help="Comma-separated strategy ids.")
    p_sel.add_argument("--optimize", action="store_true")
    p_sel.add_argument("--workers", type=int, default=None)
    p_sel.add_argument("--json", action="store_true")

    p_sug = sub.add_parser("suggest", help="Pick the best symbol and strategy for a capital amount")
    p_sug.add_argument(
        "--csv",
        action="append",
        default=[],
        metavar="SYMBOL=PATH",
        help="Bars for one symbol (repeatable; default: every *.csv under data_dir).",
    )
    p_sug.add_argument("--capital", type=float, required=True)
    p_sug.add_argument("--risk", type=float, default=None, help="Percent of capital per position (1-100).")
    p_sug.add_argument("--overall-metric", default=None, help="pnl, winRate or sharpe across symbols.")
    p_sug.add_argument("--lookback", type=int, default=None)
    p_sug.add_argument("--metric", default=None, help="pnl, winRate or sharpe within a symbol.")
    p_sug.add_argument("--candidates", default=None, help="Comma-separated strategy ids.")
    p_sug.add_argument("--optimize", action="store_true")
    p_sug.add_argument("--workers", type=int, default=None)
    p_sug.add_argument("--json", action="store_true")

    p_api = sub.add_parser("api", help="Start FastAPI server")
    p_api.add_argument("--host", default=None)
    p_api.add_argument("--port", type=int, default=None)

    return parser


def _print_version() -> None:
    from arbiter import __version__

    print(f"arbiter v{__version__}")


def _load_config(ctx: CliContext, args: argparse.Namespace) -> Config:
    from arbiter.core.config import Config

    if args.config is not None:
        return Config.from_yaml(args.config)
    user_cfg = ctx.repo_root / "config" / "user.yaml"
    if user_cfg.exists():
        return Config.from_yaml(user_cfg)
    if (ctx.repo_root / "config" / "default.yaml").exists():
        return Config.from_repo_defaults(ctx.repo_root)
    return Config()


def _parse_params(items: list[str]) -> dict[str, Any]:
    import yaml

    out: dict[str, Any] = {}
    for item in items:
        name, sep, raw = item.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"expected NAME=VALUE, got {item!r}")
        out[name.strip()] = yaml.safe_load(raw) if raw.strip() else ""
    return out


def _dump(obj: Any) -> None:
    print(json.dumps(obj, indent=2, default=str))


def _selector_options(cfg: Config, args: argparse.Namespace) -> SelectorOptions:
    """Configured selector options with command line overrides applied. Raises ValidationError."""

    from arbiter.core.config import SelectorOptions

    overrides: dict[str, Any] = {
        "evaluation_lookback_period": args.lookback,
        "evaluation_metric": args.metric,
        "candidate_strategy_ids": args.candidates,
        "max_workers": args.workers,
    }
    if args.optimize:
        overrides["optimize_parameters"] = True
    return SelectorOptions.model_validate(
        {**cfg.selector.model_dump(), **{k: v for k, v in overrides.items() if v is not None}}
    )


def _cmd_strategies(ctx: CliContext, args: argparse.Namespace, cfg: Config) -> int:
    from arbiter.backtest.strategies import default_registry
    from arbiter.backtest.sweep import count_combinations, optimizable_ranges

    reg = default_registry(options=cfg.selector)
    rows = [
        {
            "id": s.id,
            "name": s.name,
            "description": s.description,
            "parameters": [p.name for p in s.parameters],
            "optimizable": [p.name for p in s.parameters if p.optimizable],
            "grid_size": count_combinations(optimizable_ranges(s.parameters)),
        }
        for s in reg.list_candidates()
    ]
    if args.json:
        _dump(rows)
        return 0
    for r in rows:
        opt = ", ".join(r["optimizable"]) or "-"
        print(f"{r['id']:<16} {r['name']}  (optimizable: {opt}; grid: {r['grid_size']})")
    return 0


def _cmd_backtest(ctx: CliContext, args: argparse.Namespace, cfg: Config) -> int:
    from arbiter.backtest.engine import run_backtest
    from arbiter.backtest.io import load_bars_csv
    from arbiter.backtest.strategies import default_registry
    from arbiter.core.exceptions import DataError, StrategyNotFoundError

    reg = default_registry(options=cfg.selector, simulation_cash=cfg.backtest.simulation_cash)
    try:
        strategy = reg.get(args.strategy)
    except StrategyNotFoundError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    try:
        params = _parse_params(args.param)
        bars = load_bars_csv(args.csv)
    except (DataError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    res = run_backtest(
        strategy,
        bars,
        symbol=args.symbol.upper(),
        initial_cash=args.cash,
        parameters=params,
        cfg=cfg.backtest,
    )
    if args.json:
        _dump(asdict(res))
        return 0

    print(f"arbiter backtest: {res.strategy_id} on {res.symbol or '-'}")
    print(f"- bars: {res.bars_processed}")
    print(f"- initial: {res.initial_value:.2f}")
    print(f"- final: {res.final_value:.2f}")
    print(f"- pnl: {res.total_pnl:.2f} ({res.pnl_pct:.2f}%)")
    print(f"- trades: {res.total_trades}")
    print(f"- sharpe: {res.sharpe:.3f}")
    print(f"- max drawdown: {res.max_drawdown:.2%}")
    if res.decisions:
        print(f"- selector decisions: {len(res.decisions)}")
    return 0


def _cmd_select(ctx: CliContext, args: argparse.Namespace, cfg: Config) -> int:
    from pydantic import ValidationError

    from arbiter.backtest.io import load_bars_csv
    from arbiter.backtest.selector import SELECTOR_ID, StrategySelector
    from arbiter.backtest.strategies import default_registry
    from arbiter.core.exceptions import DataError
    from arbiter.core.types import PortfolioView, StrategyContext

    try:
        opts = _selector_options(cfg, args)
        bars = load_bars_csv(args.csv)
    except (DataError, ValidationError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    if not bars:
        print("error: no bars in CSV", file=sys.stderr)
        return 2

    reg = default_registry(options=opts, simulation_cash=cfg.backtest.simulation_cash)
    selector = reg.peek(SELECTOR_ID)
    assert isinstance(selector, StrategySelector)

    symbol = args.symbol.upper()
    index = len(bars) - 1 if args.index is None else args.index
    ctx_ = StrategyContext(
        symbol=symbol,
        historical_data=bars,
        current_index=index,
        parameters={},
        portfolio=PortfolioView(cash=cfg.backtest.initial_cash),
    )
    sig = selector.evaluate_and_execute(symbol, ctx_, opts)
    state = selector.selection_state(symbol)

    if args.json:
        _dump({"signal": asdict(sig), "state": asdict(state)})
        return 0

    print(f"arbiter select: {symbol or '-'} @ bar {index}")
    print(f"- signal: {sig.action}" + (f" {sig.amount:g}" if sig.amount is not None else ""))
    print(f"- {state.message}")
    if state.has_selection:
        print(f"- {state.metric}: {state.score}")
        print(f"- parameters: {state.parameters_used}")
    return 0


def _suggest_sources(ctx: CliContext, args: argparse.Namespace, cfg: Config) -> dict[str, Path]:
    if args.csv:
        out: dict[str, Path] = {}
        for item in args.csv:
            symbol, sep, path = item.partition("=")
            if not sep or not symbol.strip() or not path.strip():
                raise ValueError(f"expected SYMBOL=PATH, got {item!r}")
            out[symbol.strip().upper()] = Path(path.strip())
        return out
    data_dir = cfg.data_dir if cfg.data_dir.is_absolute() else ctx.repo_root / cfg.data_dir
    return {p.stem.upper(): p for p in sorted(data_dir.glob("*.csv"))}


def _cmd_suggest(ctx: CliContext, args: argparse.Namespace, cfg: Config) -> int:
    from pydantic import ValidationError

    from arbiter.backtest.io import load_bars_csv
    from arbiter.backtest.selector import SELECTOR_ID, StrategySelector
    from arbiter.backtest.strategies import default_registry
    from arbiter.backtest.suggest import suggest
    from arbiter.core.config import SuggestConfig
    from arbiter.core.exceptions import DataError

    if args.capital <= 0:
        print("error: --capital must be positive", file=sys.stderr)
        return 2
    try:
        opts = _selector_options(cfg, args)
        settings = SuggestConfig.model_validate(
            {
                **cfg.suggest.model_dump(),
                **({"risk_percentage": args.risk} if args.risk is not None else {}),
                **({"overall_metric": args.overall_metric} if args.overall_metric is not None else {}),
            }
        )
        sources = _suggest_sources(ctx, args, cfg)
        bars_by_symbol = {symbol: load_bars_csv(path) for symbol, path in sources.items()}
    except (DataError, ValidationError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    if not bars_by_symbol:
        print("error: no symbols to analyse (pass --csv SYMBOL=PATH or put CSVs under data_dir)", file=sys.stderr)
        return 2

    reg = default_registry(options=opts, simulation_cash=cfg.backtest.simulation_cash)
    selector = reg.peek(SELECTOR_ID)
    assert isinstance(selector, StrategySelector)

    out = suggest(selector, bars_by_symbol, capital=args.capital, options=opts, settings=settings)

    if args.json:
        _dump(asdict(out))
        return 0

    print(f"arbiter suggest: {len(bars_by_symbol)} symbol(s), capital {args.capital:g}")
    for c in out.choices:
        print(f"- {c.symbol:<10} {c.strategy_name} ({c.metric}: {c.score})")
    print(f"- {out.message}")
    if out.has_suggestion:
        print(f"- parameters: {out.parameters}")
    return 0


def _cmd_api(ctx: CliContext, args: argparse.Namespace, cfg: Config) -> int:
    host = args.host or cfg.api.host
    port = args.port or cfg.api.port

    import uvicorn

    uvicorn.run("api.main:create_app", factory=True, host=host, port=port, reload=False)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        _print_version()
        return 0

    if not args.command:
        parser.print_help()
        return 2

    from arbiter.core.exceptions import ConfigError
    from arbiter.core.logs import configure_logging

    ctx = CliContext(repo_root=_repo_root_from_cwd())
    try:
        cfg = _load_config(ctx, args)
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    log_cfg = cfg.logging.model_copy(update={"json_output": True}) if args.json_logs else cfg.logging
    configure_logging(log_cfg)

    dispatch: dict[str, Callable[[CliContext, argparse.Namespace, Config], int]] = {
        "strategies": _cmd_strategies,
        "backtest": _cmd_backtest,
        "select": _cmd_select,
        "suggest": _cmd_suggest,
        "api": _cmd_api,
    }

    fn = dispatch.get(str(args.command))
    if fn is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 2

    return int(fn(ctx, args, cfg))


if __name__ == "__main__":
    raise SystemExit(main())
