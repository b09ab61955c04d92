"""
Error types and the single JSON formatting path for every error response.

All errors leave the service in the envelope:

    {"error": {"message": "...", "details": ..., "status": 400}}
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class ApiError(Exception):
    """Base class for errors that map to a client-facing response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


# PUBLIC_INTERFACE
class ValidationError(ApiError):
    """Request input rejected; details usually hold a list of {field, message}."""

    status_code = status.HTTP_400_BAD_REQUEST


# PUBLIC_INTERFACE
class NotFoundError(ApiError):
    """Referenced resource does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


# PUBLIC_INTERFACE
class InternalError(ApiError):
    """Unexpected failure; the message is generic and safe to show to clients."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_envelope(message: str, status_code: int, details: Any = None) -> Dict[str, Any]:
    return {"error": {"message": message, "details": details, "status": status_code}}


def error_response(message: str, status_code: int, details: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error_envelope(message, status_code, details)),
    )


# PUBLIC_INTERFACE
@contextmanager
def store_errors(message: str) -> Iterator[None]:
    """
    Wrap document-store calls made by a handler.

    ApiErrors raised inside the block propagate unchanged. Any other exception is
    logged with its traceback and re-raised as InternalError(message), so store
    internals never reach the client.
    """
    try:
        yield
    except ApiError:
        raise
    except Exception as exc:
        logger.exception("%s", message)
        raise InternalError(message) from exc


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return error_response(exc.message, exc.status_code, exc.details)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        "Request validation failed",
        status.HTTP_400_BAD_REQUEST,
        exc.errors(),
    )


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail: Optional[str] = exc.detail if isinstance(exc.detail, str) else None
    response = error_response(detail or "HTTP error", exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response("Internal Server Error", status.HTTP_500_INTERNAL_SERVER_ERROR)


# PUBLIC_INTERFACE
def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers so every error response uses the same envelope."""
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
