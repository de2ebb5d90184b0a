"""Central exception handlers: every failure leaves the API as an error envelope."""
import logging
import traceback
from typing import Optional

from bson.errors import InvalidId
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings
from errors import ExpenseTrackerError, FieldError
from models.response import error_response
from models.validation import field_errors

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:

    def stack_for(exc: BaseException) -> Optional[str]:
        if not settings.is_development:
            return None
        return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    def log_failure(request: Request, status_code: int, message: str, exc: BaseException) -> None:
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} -> {status_code}: {message}", exc_info=exc)
        elif settings.is_development:
            logger.warning(f"{request.method} {request.url.path} -> {status_code}: {message}")

    @app.exception_handler(ExpenseTrackerError)
    async def expense_tracker_error_handler(request: Request, exc: ExpenseTrackerError):
        log_failure(request, exc.status_code, exc.message, exc)
        return error_response(exc.status_code, exc.message, exc.errors, stack_for(exc))

    # The handlers below classify raw errors that did not go through the service.

    @app.exception_handler(DuplicateKeyError)
    async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
        key_pattern = (exc.details or {}).get("keyPattern") or {}
        field = next(iter(key_pattern), "unknown")
        message = f"Duplicate value for field: {field}"
        log_failure(request, 409, message, exc)
        return error_response(409, message, stack=stack_for(exc))

    @app.exception_handler(InvalidId)
    async def invalid_id_handler(request: Request, exc: InvalidId):
        log_failure(request, 400, str(exc), exc)
        return error_response(400, "Invalid expense ID format", stack=stack_for(exc))

    @app.exception_handler(ValidationError)
    async def schema_violation_handler(request: Request, exc: ValidationError):
        log_failure(request, 400, "Validation failed", exc)
        return error_response(400, "Validation failed", field_errors(exc), stack_for(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            FieldError(field=".".join(str(part) for part in error["loc"][1:]), message=error["msg"])
            for error in exc.errors()
        ]
        log_failure(request, 400, "Validation error", exc)
        return error_response(400, "Validation error", errors)

    @app.exception_handler(RateLimitExceeded)
    def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        # sync: SlowAPIMiddleware calls this handler directly
        logger.warning(f"Rate limit exceeded for {request.client.host if request.client else 'unknown'}: {exc.detail}")
        response = error_response(429, f"Rate limit exceeded: {exc.detail}")
        limiter = getattr(request.app.state, "limiter", None)
        view_rate_limit = getattr(request.state, "view_rate_limit", None)
        if limiter is not None and view_rate_limit is not None:
            response = limiter._inject_headers(response, view_rate_limit)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Route not found: {request.url.path}"
        else:
            message = str(exc.detail)
        log_failure(request, exc.status_code, message, exc)
        return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return error_response(500, "Internal Server Error", stack=stack_for(exc))
