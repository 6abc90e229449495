"""Bearer token authentication for protected routes."""

import logging
from dataclasses import dataclass

from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import Unauthorized
from .tokens import InvalidClaims, TokenError, TokenService

logger = logging.getLogger("shopapi.security")

AUTHORIZATION_REQUIRED = "authorization required"
INVALID_TOKEN = "invalid token"
INVALID_DATA = "invalid data"


@dataclass(frozen=True)
class Caller:
    """Identity attached to an authenticated request."""

    user_id: int
    token: str

    def is_user(self, user_id: int) -> bool:
        return self.user_id == user_id


class BearerAuth:
    """FastAPI dependency that verifies the ``Authorization: Bearer`` header."""

    def __init__(self, tokens: TokenService) -> None:
        self._tokens = tokens
        self._bearer = HTTPBearer(auto_error=False)

    async def __call__(self, request: Request) -> Caller:
        credentials: HTTPAuthorizationCredentials | None = await self._bearer(request)  # type: ignore[assignment]
        if credentials is None or credentials.scheme.lower() != "bearer":
            raise Unauthorized(AUTHORIZATION_REQUIRED)

        token = credentials.credentials
        try:
            subject = self._tokens.verify(token)
        except InvalidClaims as exc:
            logger.info("Rejected token with unusable claims: %s", exc)
            raise Unauthorized(INVALID_DATA) from exc
        except TokenError as exc:
            logger.info("Rejected token: %s", exc)
            raise Unauthorized(INVALID_TOKEN) from exc

        return Caller(user_id=subject, token=token)


__all__ = ["AUTHORIZATION_REQUIRED", "BearerAuth", "Caller", "INVALID_DATA", "INVALID_TOKEN"]
