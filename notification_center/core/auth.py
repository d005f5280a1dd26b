"""
JWT handling and the current-user dependency.

Identity is issued by the external auth service; this module only verifies
bearer tokens and resolves their ``user_id`` claim to a ``users`` row so every
notification query can be scoped to the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from notification_center.core.config import settings
from notification_center.core.db import get_session
from notification_center.core.errors import ErrorCode
from notification_center.models.user import User
from notification_center.repositories.user import UserRepository

logger = logging.getLogger("notification_center.auth")

security = HTTPBearer(auto_error=False)


def create_access_token(
    user: User,
    expires_delta: timedelta | None = None,
) -> tuple[str, datetime]:
    """
    Create a signed access token for ``user``.

    Used by tests and local tooling; production tokens come from the auth
    service but share the same claims.

    Returns:
        Tuple of (token_string, expires_at_datetime)
    """
    now = datetime.now(timezone.utc)
    expires_at = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    payload = {
        "user_id": str(user.id),
        "username": user.username,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }

    token = jwt.encode(
        payload,
        settings.secret_key.get_secret_value(),
        algorithm=settings.jwt_algorithm,
    )
    logger.debug("JWT issued", extra={"user_id": str(user.id), "expires_at": expires_at.isoformat()})
    return token, expires_at


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT access token.

    Raises:
        jwt.ExpiredSignatureError: Token has expired
        jwt.InvalidTokenError: Token is invalid
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.jwt_algorithm],
        )
        return payload
    except jwt.ExpiredSignatureError:
        logger.warning("JWT token expired")
        raise
    except jwt.InvalidTokenError:
        logger.warning("JWT token invalid")
        raise


def _unauthorized(message: str, code: ErrorCode = ErrorCode.AUTH_FAILED) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": code, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),  # noqa: B008
    session: AsyncSession = Depends(get_session),  # noqa: B008
) -> User:
    """
    FastAPI dependency returning the authenticated user.

    Raises:
        HTTPException 401: header missing, token invalid or expired, or the
            ``user_id`` claim does not resolve to a user.
    """
    if credentials is None:
        raise _unauthorized("Unauthorized")

    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token expired", ErrorCode.TOKEN_EXPIRED) from exc
    except jwt.InvalidTokenError as exc:
        raise _unauthorized("Invalid token") from exc

    raw_user_id = payload.get("user_id")
    if not raw_user_id:
        raise _unauthorized("Invalid token: missing user_id")
    try:
        user_id = UUID(str(raw_user_id))
    except ValueError as exc:
        raise _unauthorized("Invalid token: malformed user_id") from exc

    user = await UserRepository(session).get(user_id)
    if user is None:
        logger.warning("User not found for valid token", extra={"user_id": str(user_id)})
        raise _unauthorized("User not found", ErrorCode.USER_NOT_FOUND)

    request.state.user_id = user.id
    return user


__all__ = ["create_access_token", "decode_access_token", "get_current_user", "security"]
