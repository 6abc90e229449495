"""Signed bearer tokens and the revocation set that invalidates them early."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Set

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidSignatureError, InvalidTokenError

TOKEN_TTL = timedelta(hours=72)
SIGNING_ALGORITHM = "HS256"
SUBJECT_CLAIM = "user_id"


class TokenError(Exception):
    """Base class for tokens that must not authenticate a request."""


class InvalidSignature(TokenError):
    pass


class TokenExpired(TokenError):
    pass


class MalformedToken(TokenError):
    pass


class TokenRevoked(TokenError):
    pass


class InvalidClaims(TokenError):
    """The token verified but does not name a usable subject."""


class TokenConfigError(RuntimeError):
    """Raised when no signing secret has been configured."""


class RevocationSet:
    """Thread-safe record of tokens invalidated before their natural expiry."""

    def __init__(self) -> None:
        self._tokens: Set[str] = set()
        self._lock = threading.Lock()

    def add(self, token: str) -> None:
        with self._lock:
            self._tokens.add(token)

    def __contains__(self, token: object) -> bool:
        with self._lock:
            return token in self._tokens

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issue, verify and revoke HS256 bearer tokens."""

    def __init__(
        self,
        secret: Optional[str],
        revocations: RevocationSet,
        *,
        ttl: timedelta = TOKEN_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._secret = secret
        self._revocations = revocations
        self._ttl = ttl
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def revocations(self) -> RevocationSet:
        return self._revocations

    def issue(self, subject_id: int) -> str:
        secret = self._require_secret()
        issued_at = self._clock()
        claims = {
            SUBJECT_CLAIM: subject_id,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._ttl).timestamp()),
        }
        return jwt.encode(claims, secret, algorithm=SIGNING_ALGORITHM)

    def verify(self, token: str) -> int:
        """Return the subject of ``token`` or raise a :class:`TokenError`."""

        secret = self._require_secret()
        if token in self._revocations:
            raise TokenRevoked("token has been revoked")

        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[SIGNING_ALGORITHM],
                options={"require": ["exp"]},
            )
        except ExpiredSignatureError as exc:
            raise TokenExpired("token has expired") from exc
        except InvalidSignatureError as exc:
            raise InvalidSignature("token signature does not match") from exc
        except InvalidTokenError as exc:
            raise MalformedToken(str(exc)) from exc

        subject = claims.get(SUBJECT_CLAIM)
        if isinstance(subject, bool) or not isinstance(subject, int) or subject <= 0:
            raise InvalidClaims(f"missing or invalid '{SUBJECT_CLAIM}' claim")
        return subject

    def revoke(self, token: str) -> None:
        self._revocations.add(token)

    def _require_secret(self) -> str:
        if not self._secret:
            raise TokenConfigError("JWT signing secret is not configured")
        return self._secret


__all__ = [
    "InvalidClaims",
    "InvalidSignature",
    "MalformedToken",
    "RevocationSet",
    "TOKEN_TTL",
    "TokenConfigError",
    "TokenError",
    "TokenExpired",
    "TokenRevoked",
    "TokenService",
]
