from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from fastapi import Request

from api.errors import ApiError
from arbiter.backtest.selector import SELECTOR_ID, StrategySelector
from arbiter.backtest.strategies import StrategyRegistry, default_registry
from arbiter.core.config import Config


@lru_cache
def _repo_root() -> Path:
    # Assume running from repo root (uvicorn started there). Fallback to parent of this file.
    here = Path(__file__).resolve()
    for p in [Path.cwd(), here.parent.parent]:
        if (p / "config" / "default.yaml").exists():
            return p
    return Path.cwd()


def load_config(root: Path | None = None) -> Config:
    root = root or _repo_root()
    user_path = root / "config" / "user.yaml"
    if user_path.exists():
        return Config.from_yaml(user_path)
    if (root / "config" / "default.yaml").exists():
        return Config.from_repo_defaults(root)
    return Config()


def build_registry(config: Config) -> StrategyRegistry:
    return default_registry(options=config.selector, simulation_cash=config.backtest.simulation_cash)


def get_config(request: Request) -> Config:
    cfg = getattr(request.app.state, "config", None)
    if cfg is None:
        cfg = load_config()
        request.app.state.config = cfg
    return cfg


def get_registry(request: Request) -> StrategyRegistry:
    reg = getattr(request.app.state, "registry", None)
    if reg is None:
        reg = build_registry(get_config(request))
        request.app.state.registry = reg
    return reg


def get_selector(request: Request) -> StrategySelector:
    s = get_registry(request).peek(SELECTOR_ID)
    if not isinstance(s, StrategySelector):
        raise ApiError(code="selector.unavailable", message="Meta-selector is not registered", status=503)
    return s
