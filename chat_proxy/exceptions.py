"""Custom exception hierarchy and global error handlers."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

MESSAGES_REQUIRED = "messages array required"
INVALID_BODY = "invalid request body"
SERVER_ERROR = "server_error"


class AppException(Exception):
    """Base application exception.

    ``detail`` becomes the value of the ``error`` key in the JSON response,
    so it may be any JSON-serialisable value, not only a string.
    """

    def __init__(
        self,
        detail: Any,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
    ):
        self.detail = detail
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(detail)


class InvalidChatRequestError(AppException):
    def __init__(self, detail: str = MESSAGES_REQUIRED):
        super().__init__(detail=detail, status_code=400, error_code="INVALID_REQUEST")


class PayloadTooLargeError(AppException):
    def __init__(self, detail: str = "payload too large"):
        super().__init__(detail=detail, status_code=413, error_code="PAYLOAD_TOO_LARGE")


class UpstreamRejectedError(AppException):
    """The upstream answered with a non-2xx status; passed through as-is."""

    def __init__(self, status_code: int, detail: Any):
        super().__init__(detail=detail, status_code=status_code, error_code="UPSTREAM_REJECTED")


class UpstreamTransportError(AppException):
    """The upstream could not be reached or its body could not be parsed."""

    def __init__(self, detail: str = SERVER_ERROR):
        super().__init__(detail=detail, status_code=500, error_code="UPSTREAM_TRANSPORT")


def _is_messages_error(error: dict[str, Any]) -> bool:
    if error.get("type") == "json_invalid":
        return True
    loc = tuple(error.get("loc", ()))
    # ("body",) covers a missing body or one that is not a JSON object
    return loc == ("body",) or loc[:2] == ("body", "messages")


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppException)
    def handle_app_exception(_request: Request, exc: AppException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    def handle_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if not errors or any(_is_messages_error(e) for e in errors):
            error = InvalidChatRequestError()
        else:
            error = InvalidChatRequestError(INVALID_BODY)
        return handle_app_exception(_request, error)

    @app.exception_handler(Exception)
    def handle_generic_exception(_request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception: %s", exc, exc_info=True)
        return JSONResponse(status_code=500, content={"error": SERVER_ERROR})
