from __future__ import annotations

import logging
import time

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from api.deps import build_registry, load_config
from api.errors import ApiError, api_error_handler, arbiter_error_handler, validation_error_handler
from api.routes import get_api_router, health
from arbiter import __version__
from arbiter.core.config import Config
from arbiter.core.exceptions import ArbiterError

_log = logging.getLogger("arbiter.api")


def create_app(config: Config | None = None) -> FastAPI:
    config = config or load_config()
    if not config.api.auth_token:
        _log.warning("api_auth_disabled", extra={"hint": "set ARBITER_API__AUTH_TOKEN"})

    openapi_tags = [
        {"name": "health", "description": "Liveness and version metadata."},
        {"name": "strategies", "description": "Registered strategies and their parameter schemas."},
        {"name": "selector", "description": "Meta-selection runs and per-symbol selection state."},
        {"name": "backtest", "description": "Single-strategy backtests over inline bars."},
    ]

    app = FastAPI(
        title="arbiter API",
        description="Strategy meta-selection and backtesting",
        version=__version__,
        openapi_tags=openapi_tags,
    )

    # State lives on the app so tests can swap any piece before the first request.
    app.state.started_at = time.monotonic()
    app.state.config = config
    app.state.registry = build_registry(config)

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(ArbiterError, arbiter_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(health.router, tags=["health"])
    app.include_router(get_api_router(), prefix="/api/v1")
    return app
