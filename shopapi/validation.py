"""Request validation messages and the uniform JSON error envelope.

Every failure leaves the API in one of two shapes::

    {"error": "user not found"}
    {"errors": ["field 'email' must be a valid email", ...]}

Path and query problems, as well as bodies that are missing or not a JSON
object, are bad requests (400). Well-formed bodies carrying bad values are
unprocessable (422) and report every failing field at once.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from email_validator import EmailNotValidError, validate_email
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic_core import PydanticCustomError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .database import normalize_price
from .errors import BadRequest, Internal, ServiceError, Unauthorized, ValidationFailed

logger = logging.getLogger("shopapi.api")

ID_MESSAGE = "ID must be a positive integer"
MALFORMED_BODY_MESSAGE = "malformed request body"

QUERY_MESSAGES: Dict[str, str] = {
    "page": "page must be a positive integer",
    "limit": "limit must be a positive integer",
    "min_age": "min_age must be a non-negative integer",
    "max_age": "max_age must be a non-negative integer",
}

# pydantic error type -> validation rule name
_RULES: Dict[str, str] = {
    "missing": "required",
    "email": "email",
    "string_too_short": "min",
    "greater_than": "gt",
    "greater_than_equal": "gte",
    "less_than_equal": "lte",
    "int_type": "int",
    "int_parsing": "int",
    "int_from_float": "int",
}

MIN_PRICE = Decimal("0.01")


def require_text(value: Any) -> Any:
    """Treat an empty string like an absent field."""

    if value == "":
        raise PydanticCustomError("missing", "Field required")
    return value


def check_email(value: str) -> str:
    """Pydantic validator that accepts syntactically valid email addresses unchanged."""

    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise PydanticCustomError("email", "value is not a valid email address") from exc
    return value


def check_price(value: Decimal) -> Decimal:
    # Prices are stored in cents; anything that rounds to zero is rejected.
    if normalize_price(value) < MIN_PRICE:
        raise PydanticCustomError(
            "greater_than_equal",
            "Input should be greater than or equal to {ge}",
            {"ge": str(MIN_PRICE)},
        )
    return value


def _field_name(loc: Sequence[Any]) -> str:
    parts = [str(part) for part in loc[1:] if not isinstance(part, int)]
    if not parts:
        return str(loc[0]) if loc else "body"
    return ".".join(parts)


def format_field_error(error: Mapping[str, Any]) -> str:
    """Render one pydantic error as a human-readable message."""

    field = _field_name(error.get("loc", ()))
    error_type = str(error.get("type", ""))
    rule = _RULES.get(error_type, error_type)
    ctx = error.get("ctx") or {}

    if rule == "required":
        return f"field '{field}' is required"
    if rule == "email":
        return f"field '{field}' must be a valid email"
    if rule == "min":
        return f"field '{field}' must contain at least {ctx.get('min_length')} characters"
    if rule == "gt":
        return f"field '{field}' must be greater than {ctx.get('gt')}"
    if rule == "gte":
        return f"field '{field}' must be greater than or equal to {ctx.get('ge')}"
    if rule == "lte":
        return f"field '{field}' must be less than or equal to {ctx.get('le')}"
    if rule == "int":
        return f"field '{field}' must be an integer"
    return f"field '{field}' failed check '{rule}'"


def classify_validation_errors(errors: Sequence[Mapping[str, Any]]) -> ServiceError:
    """Pick the single error that best describes a failed request.

    Path parameters are checked first, then query parameters, then the body.
    """

    by_source: Dict[str, List[Mapping[str, Any]]] = {}
    for error in errors:
        loc = error.get("loc") or ("body",)
        by_source.setdefault(str(loc[0]), []).append(error)

    if "path" in by_source:
        return BadRequest(ID_MESSAGE)

    if "query" in by_source:
        name = _field_name(by_source["query"][0].get("loc", ()))
        return BadRequest(QUERY_MESSAGES.get(name, f"invalid query parameter '{name}'"))

    # An absent body or a JSON value that is not an object never reaches the fields.
    body_errors = by_source.get("body", [])
    if any(
        error.get("type") == "json_invalid" or len(error.get("loc") or ("body",)) == 1
        for error in body_errors
    ):
        return BadRequest(MALFORMED_BODY_MESSAGE)

    remaining = [error for source in by_source.values() for error in source]
    return ValidationFailed(format_field_error(error) for error in remaining)


def error_response(exc: ServiceError) -> JSONResponse:
    headers: Optional[Dict[str, str]] = None
    if isinstance(exc, Unauthorized):
        headers = {"WWW-Authenticate": "Bearer"}

    if isinstance(exc, ValidationFailed):
        content: Dict[str, Any] = {"errors": exc.messages}
    else:
        content = {"error": exc.message}
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    """Route every failure through the uniform error envelope."""

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_request: Request, exc: RequestValidationError) -> JSONResponse:
        shaped = classify_validation_errors(exc.errors())
        logger.info("Rejected request: %s", shaped.message)
        return error_response(shaped)

    @app.exception_handler(ServiceError)
    async def handle_service_error(_request: Request, exc: ServiceError) -> JSONResponse:
        if isinstance(exc, Internal):
            logger.error("Internal error: %s", exc.message, exc_info=exc)
            return error_response(Internal())
        return error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        shaped = ServiceError(str(exc.detail))
        shaped.status_code = exc.status_code
        response = error_response(shaped)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error while serving %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": Internal.default_message},
        )


__all__ = [
    "ID_MESSAGE",
    "MALFORMED_BODY_MESSAGE",
    "MIN_PRICE",
    "QUERY_MESSAGES",
    "check_email",
    "check_price",
    "classify_validation_errors",
    "error_response",
    "format_field_error",
    "register_error_handlers",
    "require_text",
]
