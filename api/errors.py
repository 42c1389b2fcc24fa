from __future__ import annotations

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from arbiter.core.exceptions import ArbiterError, ConfigError, DataError, StrategyError, StrategyNotFoundError


class ApiError(Exception):
    def __init__(self, code: str, message: str, status: int = 400, **extra: object) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status
        self.extra = extra


def _body(code: str, message: str, **extra: object) -> dict[str, object]:
    return {"error": {"code": code, "message": message, **extra}}


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status, content=_body(exc.code, exc.message, **exc.extra))


async def arbiter_error_handler(request: Request, exc: ArbiterError) -> JSONResponse:
    if isinstance(exc, StrategyNotFoundError):
        status, code = 404, "strategy.not_found"
    elif isinstance(exc, DataError):
        status, code = 400, "data.invalid"
    elif isinstance(exc, StrategyError):
        status, code = 400, "strategy.invalid"
    elif isinstance(exc, ConfigError):
        status, code = 500, "config.invalid"
    else:
        status, code = 400, "arbiter.error"
    return JSONResponse(status_code=status, content=_body(code, str(exc)))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]
    return JSONResponse(status_code=400, content=_body("request.invalid", "Request validation failed", details=details))
