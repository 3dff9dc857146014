"""Common exception handlers for API responses."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    PostSearchException,
    RateLimitExceededError,
    RecordNotFoundError,
    SearchFailedError,
    ServiceUnavailableError,
    ValidationError,
    VectorStoreUnavailableError,
)
from app.core.logging import get_logger
from app.api.response_utils import build_meta
from app.schemas.response import ResponseError, ResponseEnvelope

logger = get_logger(__name__)


EXCEPTION_RESPONSE_MAP: dict[type[Exception], tuple[int, str]] = {
    ValidationError: (status.HTTP_400_BAD_REQUEST, "ValidationError"),
    AuthenticationError: (status.HTTP_401_UNAUTHORIZED, "AuthenticationError"),
    AuthorizationError: (status.HTTP_403_FORBIDDEN, "AuthorizationError"),
    RecordNotFoundError: (status.HTTP_404_NOT_FOUND, "RecordNotFoundError"),
    RateLimitExceededError: (status.HTTP_429_TOO_MANY_REQUESTS, "RateLimitExceededError"),
    SearchFailedError: (status.HTTP_500_INTERNAL_SERVER_ERROR, "SearchFailedError"),
    ServiceUnavailableError: (status.HTTP_503_SERVICE_UNAVAILABLE, "ServiceUnavailableError"),
    VectorStoreUnavailableError: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "VectorStoreUnavailableError",
    ),
}
DEFAULT_ERROR_CODE = "INTERNAL.UNEXPECTED"
DEFAULT_ERROR_MESSAGE = "Unexpected server error."


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers that wrap exceptions in the common envelope."""

    app.add_exception_handler(PostSearchException, _app_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_error_handler)
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)


def resolve_exception_response(exc: Exception) -> tuple[int, str] | None:
    """Status and code for exc, matching the closest mapped base class."""

    for klass in type(exc).__mro__:
        if klass in EXCEPTION_RESPONSE_MAP:
            return EXCEPTION_RESPONSE_MAP[klass]
    return None


def _serialize_error(
    *,
    code: str,
    message: str,
    details: Any | None = None,
    hint: str | None = None,
) -> ResponseError:
    return ResponseError(
        code=code,
        message=message,
        details=details,
        hint=hint,
    )


def _error_response(request: Request, status_code: int, error: ResponseError) -> JSONResponse:
    envelope = ResponseEnvelope[None](
        success=False,
        data=None,
        error=error,
        meta=build_meta(request),
    )
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(envelope, by_alias=True),
    )


def _compress_detail(detail: Any) -> tuple[str, Any | None]:
    if isinstance(detail, dict):
        message = detail.get("message", str(detail))
        return message, detail.get("details") or detail

    return str(detail), None


def _format_validation_message(errors: list[dict[str, Any]]) -> str:
    if not errors:
        return "Validation error"

    parts: list[str] = []
    for error in errors:
        loc = error.get("loc", [])
        msg = error.get("msg", "Validation error")
        loc_path = ".".join(str(item) for item in loc) if loc else None
        parts.append(f"{loc_path}: {msg}" if loc_path else msg)

    return "; ".join(parts)


async def _app_exception_handler(request: Request, exc: PostSearchException) -> JSONResponse:
    mapped = resolve_exception_response(exc)
    if mapped is None:
        # unmapped domain errors are internal; keep their text out of the response
        logger.error(
            "unmapped_application_error",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            _serialize_error(code=DEFAULT_ERROR_CODE, message=DEFAULT_ERROR_MESSAGE),
        )

    status_code, error_code = mapped
    return _error_response(
        request,
        status_code,
        _serialize_error(
            code=error_code,
            message=exc.message,
            details=getattr(exc, "details", None),
            hint=getattr(exc, "hint", None),
        ),
    )


async def _request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors() or []

    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        _serialize_error(
            code="ValidationError",
            message=_format_validation_message(errors),
            details={"errors": jsonable_encoder(errors)},
        ),
    )


async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message, details = _compress_detail(exc.detail)
    code = getattr(exc, "code", None) or f"HTTP.{exc.status_code}"

    response = _error_response(
        request,
        exc.status_code,
        _serialize_error(code=code, message=message, details=details),
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        _serialize_error(code=DEFAULT_ERROR_CODE, message=DEFAULT_ERROR_MESSAGE),
    )
