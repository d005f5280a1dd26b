"""Error envelope of the notifications API and the handlers that render it.

Every failure leaves the server as ``{"error": {"code", "message", "details"?}}``.
The polling client reads ``message`` verbatim into its failure toasts, so the
messages raised here are user facing.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from enum import StrEnum
from http import HTTPStatus
from typing import Any, ClassVar, cast

from fastapi import FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

ExceptionHandlerCallable = Callable[[Request, Exception], Awaitable[Response]]

logger = logging.getLogger("notification_center.errors")


class ErrorCode(StrEnum):
    AUTH_FAILED = "AUTH_FAILED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"  # noqa: S105
    USER_NOT_FOUND = "USER_NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"

    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_NOTIFICATION_IDS = "MISSING_NOTIFICATION_IDS"
    MISSING_DELETE_TARGET = "MISSING_DELETE_TARGET"

    NOTIFICATION_NOT_FOUND = "NOTIFICATION_NOT_FOUND"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_LOCATION_PREFIXES = frozenset({"body", "query", "path"})

_CODES_BY_STATUS: dict[int, ErrorCode] = {
    status.HTTP_400_BAD_REQUEST: ErrorCode.VALIDATION_ERROR,
    status.HTTP_401_UNAUTHORIZED: ErrorCode.AUTH_FAILED,
    status.HTTP_403_FORBIDDEN: ErrorCode.FORBIDDEN,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.METHOD_NOT_ALLOWED,
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: ErrorCode.PAYLOAD_TOO_LARGE,
}


class ApplicationError(Exception):
    """Domain error rendered in the public envelope.

    Subclasses fix the HTTP status and the default code; raise sites pick a
    more specific code when the client needs to tell failures apart.
    """

    status_code: ClassVar[int] = status.HTTP_400_BAD_REQUEST
    default_code: ClassVar[ErrorCode] = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | str | None = None,
        details: object | None = None,
    ) -> None:
        super().__init__(message)
        self.code = str(code or self.default_code)
        self.message = message
        self.details = details


class ValidationFailedError(ApplicationError):
    """Well-formed request that names nothing to act on."""


class NotFoundError(ApplicationError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = ErrorCode.NOT_FOUND


class ForbiddenError(ApplicationError):
    """The notification exists but is addressed to someone else."""

    status_code = status.HTTP_403_FORBIDDEN
    default_code = ErrorCode.FORBIDDEN


async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
    user_id = getattr(request.state, "user_id", None)
    logger.info(
        "Notification request rejected",
        extra={
            "code": exc.code,
            "status_code": exc.status_code,
            "http_method": request.method,
            "http_path": request.url.path,
            "user_id": str(user_id) if user_id else None,
        },
    )
    return error_response(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )


async def request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    return error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        code=ErrorCode.VALIDATION_ERROR,
        message="Invalid request parameters",
        details=_format_validation_errors(exc.errors()) or None,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    phrase = HTTPStatus(exc.status_code).phrase
    detail: Any = exc.detail
    if isinstance(detail, Mapping):
        code = detail.get("code") or _CODES_BY_STATUS.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        message = str(detail.get("message") or phrase)
        details = detail.get("details")
    else:
        code = _CODES_BY_STATUS.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        message = str(detail or phrase)
        details = None

    response = error_response(
        status_code=exc.status_code,
        code=code,
        message=message,
        details=details,
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception during request",
        exc_info=(exc.__class__, exc, exc.__traceback__),
        extra={"http_method": request.method, "http_path": request.url.path},
    )
    return error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code=ErrorCode.INTERNAL_ERROR,
        message="Internal server error. Please try again later.",
    )


_HANDLERS: tuple[tuple[type[Exception], Callable[..., Awaitable[Response]]], ...] = (
    (ApplicationError, application_error_handler),
    (RequestValidationError, request_validation_exception_handler),
    (StarletteHTTPException, http_exception_handler),
    (Exception, unexpected_exception_handler),
)


def register_exception_handlers(app: FastAPI) -> None:
    for exc_class, handler in _HANDLERS:
        app.add_exception_handler(exc_class, cast(ExceptionHandlerCallable, handler))


def error_response(
    *,
    status_code: int,
    code: ErrorCode | str,
    message: str,
    details: object | None = None,
) -> JSONResponse:
    body = build_error_payload(code=code, message=message, details=details)
    return JSONResponse(content=jsonable_encoder(body), status_code=status_code)


def build_error_payload(
    *,
    code: ErrorCode | str,
    message: str,
    details: object | None = None,
) -> dict[str, dict[str, object]]:
    section: dict[str, object] = {"code": str(code), "message": message}
    if details is not None:
        section["details"] = details
    return {"error": section}


def _format_validation_errors(errors: Sequence[Mapping[str, Any]]) -> dict[str, str]:
    """Collapse pydantic errors to ``{"notificationIds.0": "msg; msg"}``."""
    formatted: dict[str, str] = {}
    for error in errors:
        location = error.get("loc") or ()
        field = ".".join(str(part) for part in location if part not in _LOCATION_PREFIXES) or "_schema"
        message = str(error.get("msg", "Invalid value"))
        formatted[field] = f"{formatted[field]}; {message}" if field in formatted else message
    return formatted


__all__ = [
    "ApplicationError",
    "ErrorCode",
    "ForbiddenError",
    "NotFoundError",
    "ValidationFailedError",
    "build_error_payload",
    "error_response",
    "register_exception_handlers",
]
