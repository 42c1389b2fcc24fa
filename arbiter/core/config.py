"""arbiter.core.config

Two config surfaces only:
1) `config/default.yaml` (or any YAML passed explicitly)
2) Environment variables, `ARBITER_` prefix, `__` for nesting

Selector options double as per-call options: the meta-selector reads them from
its strategy parameters, which arrive camelCased, so both spellings validate.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings

from arbiter.core.exceptions import ConfigError
from arbiter.core.types import EvaluationMetric

_log = logging.getLogger("arbiter.config")


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _metric_or_pnl(v: Any) -> Any:
    if isinstance(v, EvaluationMetric):
        return v
    if not isinstance(v, str) or v not in {m.value for m in EvaluationMetric}:
        _log.warning("selector_metric_unrecognized", extra={"metric": v, "fallback": "pnl"})
        return EvaluationMetric.PNL
    return v


class SelectorOptions(BaseModel):
    """Meta-selection options."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    evaluation_lookback_period: int = Field(default=30, ge=1)
    candidate_strategy_ids: list[str] = Field(default_factory=list)
    evaluation_metric: EvaluationMetric = EvaluationMetric.PNL
    optimize_parameters: bool = False
    max_workers: int = Field(default=1, ge=1)
    combination_warning_threshold: int = Field(default=1000, ge=1)

    @field_validator("candidate_strategy_ids", mode="before")
    @classmethod
    def split_candidate_ids(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            items = v.split(",")
        else:
            items = [str(x) for x in v]
        return [s.strip() for s in items if s.strip()]

    @field_validator("evaluation_metric", mode="before")
    @classmethod
    def unknown_metric_means_pnl(cls, v: Any) -> Any:
        return _metric_or_pnl(v)


class BacktestConfig(BaseModel):
    initial_cash: float = Field(default=10_000.0, gt=0)
    periods_per_year: int = Field(default=252, ge=1)
    simulation_cash: float = Field(default=100_000.0, gt=0)


class SuggestConfig(BaseModel):
    """Cross-symbol suggestion defaults.

    Out-of-range values fall back to the defaults with a warning, the same way
    an unknown selector metric falls back to ``pnl``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    risk_percentage: float = 20.0
    overall_metric: EvaluationMetric = EvaluationMetric.PNL

    @field_validator("risk_percentage", mode="before")
    @classmethod
    def risk_within_bounds(cls, v: Any) -> Any:
        if v is None:
            return 20.0
        try:
            pct = float(v)
        except (TypeError, ValueError):
            pct = math.nan
        if not 1 <= pct <= 100:
            _log.warning("suggest_risk_out_of_range", extra={"risk_percentage": v, "fallback": 20.0})
            return 20.0
        return pct

    @field_validator("overall_metric", mode="before")
    @classmethod
    def unknown_overall_metric_means_pnl(cls, v: Any) -> Any:
        return _metric_or_pnl(v)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = False

    @field_validator("level")
    @classmethod
    def known_level(cls, v: str) -> str:
        v = v.upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return v


class ApiConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 5060
    auth_token: str = ""


class Config(BaseSettings):
    """Root configuration. Single source of truth."""

    data_dir: Path = Path("data")

    selector: SelectorOptions = Field(default_factory=SelectorOptions)
    backtest: BacktestConfig = Field(default_factory=BacktestConfig)
    suggest: SuggestConfig = Field(default_factory=SuggestConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    model_config = {"env_prefix": "ARBITER_", "env_nested_delimiter": "__"}

    @classmethod
    def from_yaml(cls, path: Path, *, overlay: dict[str, Any] | None = None) -> Config:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        try:
            raw = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Config file is not valid YAML: {path}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"Config root must be a mapping: {path}")

        if overlay:
            raw = _deep_merge(raw, overlay)
        return cls(**raw)

    @classmethod
    def from_repo_defaults(cls, repo_root: Path | None = None) -> Config:
        root = repo_root or Path.cwd()
        return cls.from_yaml(root / "config" / "default.yaml")
