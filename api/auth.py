from __future__ import annotations

from fastapi import Depends, Header

from api.deps import get_config
from api.errors import ApiError
from arbiter.core.config import Config


def require_bearer_token(
    authorization: str | None = Header(default=None, alias="Authorization"),
    config: Config = Depends(get_config),
) -> None:
    """Require Authorization: Bearer <token>.

    If config.api.auth_token is empty, auth is treated as disabled.
    """

    expected = config.api.auth_token
    if not expected:
        return

    if not authorization:
        raise ApiError(code="auth.missing_token", message="Missing bearer token", status=401)

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise ApiError(code="auth.invalid_header", message="Invalid authorization header", status=401)

    if token.strip() != expected:
        raise ApiError(code="auth.invalid_token", message="Invalid bearer token", status=401)


AuthDep = Depends(require_bearer_token)
