from __future__ import annotations

import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JOSEError
from sqlalchemy.orm import Session

from warmwelcome.config import Settings
from warmwelcome.context import AppContext
from warmwelcome.db import get_session
from warmwelcome.errors import AuthenticationError, ConfigurationError
from warmwelcome.models import User
from warmwelcome.repositories import UsersRepository

bearer_scheme = HTTPBearer(auto_error=False)
logger = logging.getLogger("auth")

_ALGORITHM = "HS256"


def get_app_context(request: Request) -> AppContext:
    return request.app.state.context


def _unauthorized(message: str, public_message: str) -> AuthenticationError:
    return AuthenticationError(message=message, status_code=401, public_message=public_message)


def _decode_access_token(token: str, settings: Settings) -> dict:
    if not settings.JWT_SECRET:
        raise ConfigurationError(message="JWT_SECRET is not configured")
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise _unauthorized("Expired access token", "Token expired. Please login again.") from exc
    except JOSEError as exc:
        logger.info("Access token verification failed", exc_info=exc)
        raise _unauthorized("Invalid access token", "Invalid token. Please login again.") from exc


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
    context: AppContext = Depends(get_app_context),
) -> User:
    if credentials is None or not credentials.credentials:
        raise _unauthorized(
            "Missing bearer token",
            "Authentication required. Please provide a valid token.",
        )

    claims = _decode_access_token(credentials.credentials, context.settings)
    user_id = claims.get("userId") or claims.get("sub")
    user = UsersRepository(session).get(user_id) if isinstance(user_id, str) else None
    if user is None:
        raise _unauthorized("Token refers to an unknown user", "User not found. Token may be invalid.")
    return user
