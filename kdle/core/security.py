"""
Bearer-token authentication.

Accounts live in the hosted auth provider; it issues HS256 access tokens
that carry the user id in `sub` and the address in `email`. This module
only verifies them.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from kdle.core.config import settings
from kdle.core.errors import ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None


def parse_token(token: str) -> AuthUser:
    try:
        payload = jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=["HS256"],
            audience=settings.AUTH_JWT_AUDIENCE,
        )
    except jwt.PyJWTError as exc:
        raise UnauthorizedError("Invalid or expired token") from exc

    sub = payload.get("sub")
    if not sub:
        raise UnauthorizedError("Invalid or expired token")
    return AuthUser(id=str(sub), email=payload.get("email"))


def is_admin_email(email: Optional[str], allowlist: list[str]) -> bool:
    """An empty allowlist admits every authenticated user."""
    if not allowlist:
        return True
    return (email or "").lower() in allowlist


def get_optional_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[AuthUser]:
    """Personalize when a valid token is present, otherwise play anonymously."""
    if creds is None:
        return None
    try:
        return parse_token(creds.credentials)
    except UnauthorizedError:
        logger.debug("Ignoring invalid bearer token on anonymous route")
        return None


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthUser:
    if creds is None:
        raise UnauthorizedError()
    return parse_token(creds.credentials)


def require_admin(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    if not is_admin_email(user.email, settings.admin_emails_list):
        raise ForbiddenError()
    return user
