"""Session authentication for private procedures.

Sessions are issued by the identity provider as signed JWTs and sent as
``Authorization: Bearer <token>``. This module only verifies them and exposes
the ``sub`` claim as the current user id; it never issues tokens.

Public procedures use ``get_current_user_id`` (user id or None); private
procedures use ``require_current_user``, which rejects anonymous callers.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.core.config import settings
from app.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)

http_bearer = HTTPBearer(auto_error=False)


def decode_session_token(token: str) -> str:
    """Verify a session token and return the user id it was issued for.

    Pure validation logic without FastAPI dependencies for easy testing.

    Args:
        token: Encoded JWT.

    Returns:
        The ``sub`` claim.

    Raises:
        AuthenticationAppError: If verification is not configured, the
            signature/claims are invalid, or the token has no subject.
    """
    cfg = settings.auth
    if not cfg.jwt_key:
        logger.error(
            "auth.verification_failed",
            extra={"reason": "jwt_key_not_configured"},
        )
        raise AuthenticationAppError(
            code="unauthorized",
            message="Session verification is not configured",
        )

    options = {
        "verify_aud": cfg.jwt_audience is not None,
        "verify_iss": cfg.jwt_issuer is not None,
    }
    try:
        payload = jwt.decode(
            token,
            cfg.jwt_key,
            algorithms=[cfg.jwt_algorithm],
            audience=cfg.jwt_audience,
            issuer=cfg.jwt_issuer,
            options=options,
        )
    except JWTError as exc:
        logger.warning("auth.invalid_token", extra={"reason": type(exc).__name__})
        raise AuthenticationAppError(
            code="unauthorized",
            message="Invalid session token",
        ) from exc

    user_id = payload.get("sub")
    if not user_id or not isinstance(user_id, str):
        logger.warning("auth.invalid_token", extra={"reason": "missing_sub"})
        raise AuthenticationAppError(
            code="unauthorized",
            message="Invalid session token",
        )
    return user_id


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(http_bearer)],
) -> str | None:
    """FastAPI dependency resolving the caller's user id, if signed in.

    Invalid tokens are treated like missing ones: the caller is anonymous.
    """
    if credentials is None or not credentials.credentials:
        return None
    try:
        return decode_session_token(credentials.credentials)
    except AuthenticationAppError:
        return None


async def require_current_user(
    user_id: Annotated[str | None, Depends(get_current_user_id)],
) -> str:
    """FastAPI dependency for private procedures.

    Usage:
        @router.post("/private")
        async def endpoint(user_id: CurrentUserId): ...

    Raises:
        AuthenticationAppError: 401 when the caller is not signed in.
    """
    if user_id is None:
        logger.info("auth.missing_session")
        raise AuthenticationAppError(
            code="unauthorized",
            message="You must be signed in to do that",
        )
    return user_id


CurrentUserId = Annotated[str, Depends(require_current_user)]
