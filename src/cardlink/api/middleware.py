"""Custom middleware and exception handlers producing the JSON envelope."""

from typing import Callable, Dict, List

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..core.errors import DomainError
from ..utils.logging_config import get_logger, log_exception
from .responses import failure

logger = get_logger("api")

STATUS_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    413: "Payload Too Large",
    422: "Unprocessable Entity",
    429: "Too Many Requests",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


def _status_title(status_code: int) -> str:
    return STATUS_TITLES.get(status_code, "HTTP Error")


def _validation_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    """Flatten pydantic errors into ``[{field, message}]``."""
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(location) or "body", "message": error.get("msg", "Invalid value")})
    return errors


async def domain_error_handler(request: Request, exc: DomainError) -> Response:
    if exc.status_code >= 500:
        log_exception("api", exc, {"path": request.url.path, "method": request.method})
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {type(exc).__name__}: {exc.message}")
    return failure(exc.status_code, exc.message, type(exc).__name__, **exc.extra)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    response = failure(exc.status_code, str(exc.detail), _status_title(exc.status_code))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> Response:
    errors = _validation_errors(exc)
    logger.info(f"{request.method} {request.url.path} -> 400 validation: {errors}")
    return failure(
        status.HTTP_400_BAD_REQUEST,
        "Validation failed",
        "ValidationError",
        errors=errors,
    )


def install_error_handlers(app: FastAPI) -> None:
    """Register the handlers that map exceptions onto the envelope."""
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)


class ErrorEnvelopeMiddleware(BaseHTTPMiddleware):
    """Last-resort handler turning unexpected exceptions into a sanitized 500 envelope."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            log_exception("api", exc, {"path": request.url.path, "method": request.method})
            return failure(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "An unexpected error occurred",
                _status_title(status.HTTP_500_INTERNAL_SERVER_ERROR),
            )


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to enforce request size limits."""

    def __init__(self, app: ASGIApp, max_request_bytes: int = 1024 * 1024):
        super().__init__(app)
        self.max_request_bytes = max_request_bytes

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Check Content-Length header first
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                length = int(content_length)
            except ValueError:
                return failure(
                    status.HTTP_400_BAD_REQUEST,
                    "Invalid Content-Length header",
                    _status_title(status.HTTP_400_BAD_REQUEST),
                )
            if length > self.max_request_bytes:
                logger.warning(f"Rejected {length} byte request to {request.url.path}")
                return failure(
                    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    f"Request size {length} bytes exceeds limit of {self.max_request_bytes} bytes",
                    _status_title(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE),
                )

        return await call_next(request)
