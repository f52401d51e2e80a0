# smart_er/core/errors.py
"""
Domain errors and the handlers that render them.

Services raise these; endpoints never build error responses by hand.
Every error leaves the API as `{"success": false, "error": "<message>"}`
with the status code of its kind.
"""

import logging
from typing import cast

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ERError(Exception):
    """Base class for errors a caller can act on."""

    kind = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Unexpected error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(ERError):
    """Bed, patient, queue ticket or target bed does not exist."""

    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(ERError):
    """Bed already occupied, target occupied, duplicate active queue."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class InvalidArgumentError(ERError):
    """Missing field, out-of-range ESI, unknown action, wrong bed state."""

    kind = "invalid_argument"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class InternalError(ERError):
    """Data-store failure. The message is generic; details go to the log only."""


def error_response(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": message},
        status_code=status_code,
        headers=headers,
    )


def _er_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = cast(ERError, exc)
    if error.status_code >= 500:
        logger.error("Request failed path=%s kind=%s", request.url.path, error.kind)
    return error_response(error.status_code, error.message)


def _http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    return error_response(
        http_exc.status_code,
        str(http_exc.detail),
        headers=getattr(http_exc, "headers", None),
    )


def _validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    validation_error = cast(RequestValidationError, exc)
    errors = validation_error.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request body"
    return error_response(status.HTTP_400_BAD_REQUEST, message)


def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error path=%s", request.url.path, exc_info=exc)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, ERError.default_message)


def register_exception_handlers(app: FastAPI) -> None:
    """Render domain, HTTP, validation and unexpected errors in the API's error shape."""
    app.add_exception_handler(ERError, _er_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
