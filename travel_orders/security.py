"""Credential checks and bearer token authentication for the API."""
from __future__ import annotations

import logging

from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import Unauthorized
from .models import User
from .ports import AccessTokenRepository, UserRepository

logger = logging.getLogger("travelorders.security")

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"
ADMIN_REQUIRED_MESSAGE = "Access denied. Admin privileges required."
UNAUTHENTICATED_MESSAGE = "Unauthenticated"


def verify_credentials(users: UserRepository, email: str, password: str) -> User:
    """Return the account for ``email`` when ``password`` matches its stored hash.

    Unknown emails and wrong passwords fail with the same message so callers
    cannot tell which accounts exist.
    """

    user = users.get_by_email(email)
    if user is None or not users.verify_password(user.id, password):
        logger.warning("Failed login attempt for %s", email)
        raise Unauthorized(INVALID_CREDENTIALS_MESSAGE)
    return user


def verify_admin(
    users: UserRepository,
    tokens: AccessTokenRepository,
    email: str,
    password: str,
    *,
    admin_name: str,
) -> str:
    """Mint a bearer token for the designated administrative account."""

    user = verify_credentials(users, email, password)
    if user.name != admin_name:
        logger.warning("User %s requested an access token without admin privileges", user.id)
        raise Unauthorized(ADMIN_REQUIRED_MESSAGE)

    token = tokens.issue(user.id, "token")
    logger.info("Issued access token for user %s", user.id)
    return token


class BearerAuth:
    """Resolve ``Authorization: Bearer`` headers to stored users."""

    def __init__(self, tokens: AccessTokenRepository) -> None:
        self._tokens = tokens
        self._bearer = HTTPBearer(auto_error=False)

    async def __call__(self, request: Request) -> User:
        credentials: HTTPAuthorizationCredentials | None = await self._bearer(request)
        if credentials is None or credentials.scheme.lower() != "bearer":
            raise Unauthorized(UNAUTHENTICATED_MESSAGE)

        user = self._tokens.resolve(credentials.credentials.strip())
        if user is None:
            raise Unauthorized(UNAUTHENTICATED_MESSAGE)
        return user


__all__ = [
    "ADMIN_REQUIRED_MESSAGE",
    "BearerAuth",
    "INVALID_CREDENTIALS_MESSAGE",
    "UNAUTHENTICATED_MESSAGE",
    "verify_admin",
    "verify_credentials",
]
