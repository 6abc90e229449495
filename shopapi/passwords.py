"""One-way password hashing backed by passlib."""

from __future__ import annotations

from passlib.context import CryptContext

from .errors import HashingError


class PasswordHasher:
    """Hash and verify passwords with a per-call random salt."""

    def __init__(self, schemes: tuple[str, ...] = ("pbkdf2_sha256",)) -> None:
        self._context = CryptContext(schemes=list(schemes), deprecated="auto")

    def hash(self, password: str) -> str:
        try:
            return self._context.hash(password)
        except (ValueError, TypeError, MemoryError) as exc:
            raise HashingError() from exc

    def verify(self, password: str, hashed: str) -> bool:
        if not hashed:
            return False
        try:
            return self._context.verify(password, hashed)
        except (ValueError, TypeError):
            # Unknown or corrupted digests never match.
            return False


__all__ = ["PasswordHasher"]
