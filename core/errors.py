# core/errors.py

import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


class AppError(Exception):
    status_code = 400
    default_message = "An error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(AppError):
    status_code = 400
    default_message = "Bad request"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Unauthenticated."


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Conflict"


class ValidationError(AppError):
    """Field-level failures keyed by dotted path, e.g. ``items.0.quantity``."""

    status_code = 422
    default_message = "Validation error"

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors


def error_payload(message: str, errors: Optional[Dict[str, List[str]]] = None) -> dict:
    payload = {"status": "error", "message": message}
    if errors is not None:
        payload["errors"] = errors
    return payload


def _field_path(loc) -> str:
    parts = [str(part) for part in loc]
    if parts and parts[0] in ("body", "query", "path"):
        parts = parts[1:]
    return ".".join(parts) or "request"


def format_validation_errors(raw_errors) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for error in raw_errors:
        message = error.get("msg", "Invalid value")
        # pydantic prefixes messages raised from custom validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(_field_path(error.get("loc", ())), []).append(message)
    return errors


def register_exception_handlers(app: FastAPI):

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=exc.status_code, content=error_payload(exc.message, exc.errors))

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=error_payload(exc.message))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content=error_payload("Validation error", format_validation_errors(exc.errors())),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_payload(UNEXPECTED_ERROR_MESSAGE))
