"""
Error taxonomy for the teams backend and the handlers that render it as JSON.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class TeamsError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500
    # 404-class errors answer with "message", everything else with "error".
    body_key: str = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TeamsError):
    """Malformed or missing input."""

    status_code = 400


class NotFoundError(TeamsError):
    """A referenced body, member or file does not exist."""

    status_code = 404
    body_key = "message"


class StoreError(TeamsError):
    """The document store or object store rejected an operation."""

    status_code = 500

    def __init__(self, operation: str, cause: Exception | None = None):
        super().__init__(f"An error occurred while {operation}.")
        self.operation = operation
        self.cause = cause


class StreamError(TeamsError):
    """A binary transfer failed while reading from the object store."""

    status_code = 404
    body_key = "message"


def _teams_error_handler(request: Request, exc: TeamsError) -> JSONResponse:
    if isinstance(exc, StoreError):
        logger.error(
            "Store failure on %s %s while %s: %s",
            request.method,
            request.url.path,
            exc.operation,
            exc.cause,
            exc_info=exc.cause,
        )
    return JSONResponse(status_code=exc.status_code, content={exc.body_key: exc.message})


def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request.", "fields": fields},
    )


def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "%s on %s (500): %s", type(exc).__name__, request.url.path, exc, exc_info=exc
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error."})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TeamsError, _teams_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_handler)
