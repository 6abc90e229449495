"""Error taxonomy shared by the domain services and the HTTP layer."""

from __future__ import annotations

from typing import Iterable, List


class ServiceError(Exception):
    """Base class for errors that are surfaced to API clients."""

    status_code = 500
    default_message = "internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(ServiceError):
    status_code = 400
    default_message = "bad request"


class ValidationFailed(ServiceError):
    """One or more field-level constraint violations."""

    status_code = 422
    default_message = "validation failed"

    def __init__(self, messages: Iterable[str]) -> None:
        self.messages: List[str] = list(messages)
        super().__init__("; ".join(self.messages) or None)


class Unauthorized(ServiceError):
    status_code = 401
    default_message = "authorization required"


class NotFound(ServiceError):
    status_code = 404
    default_message = "not found"


class Conflict(ServiceError):
    # Duplicate unique fields are reported as a plain bad request.
    status_code = 400
    default_message = "conflict"


class Internal(ServiceError):
    status_code = 500
    default_message = "internal server error"


class UserNotFound(NotFound):
    default_message = "user not found"


class UserAlreadyExists(Conflict):
    default_message = "user with this email already exists"


class InvalidCredentials(Unauthorized):
    default_message = "invalid email or password"


class HashingError(Internal):
    default_message = "failed to hash password"


__all__ = [
    "BadRequest",
    "Conflict",
    "HashingError",
    "Internal",
    "InvalidCredentials",
    "NotFound",
    "ServiceError",
    "Unauthorized",
    "UserAlreadyExists",
    "UserNotFound",
    "ValidationFailed",
]
