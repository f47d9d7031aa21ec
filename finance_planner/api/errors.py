"""Map domain exceptions to HTTP error responses"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from finance_planner.config import settings
from finance_planner.domain.exceptions import (
    AuthError,
    BalanceConflictError,
    ConcurrentUpdateError,
    DomainException,
    DuplicateKeyError,
    NotFoundError,
    PermissionDeniedError,
    ReferenceInUseError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    ValidationError: 400,
    DuplicateKeyError: 400,
    AuthError: 401,
    PermissionDeniedError: 403,
    NotFoundError: 404,
    BalanceConflictError: 409,
    ReferenceInUseError: 409,
    ConcurrentUpdateError: 409,
}


def status_for(exc: DomainException) -> int:
    for exc_type in type(exc).__mro__:
        if exc_type in STATUS_CODES:
            return STATUS_CODES[exc_type]
    return 500


def error_body(message: str, details=None) -> dict:
    body = {"error": message}
    if details:
        body["details"] = details
    return body


def _location(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException):
        status_code = status_for(exc)
        request_id = getattr(request.state, "request_id", None)
        if status_code == 500:
            logger.error(f"Unhandled domain error: {exc}", extra={"request_id": request_id})
            return JSONResponse(status_code=500, content=error_body("Internal server error"))

        logger.info(
            f"Request rejected: {exc}",
            extra={"request_id": request_id, "error_type": type(exc).__name__, "status": status_code},
        )
        details = exc.details if isinstance(exc, ValidationError) else None
        return JSONResponse(status_code=status_code, content=error_body(str(exc), details))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [f"{_location(err['loc'])}: {err['msg']}" for err in exc.errors()]
        return JSONResponse(status_code=400, content=error_body("Invalid data", details))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)), headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            f"Unhandled error: {exc}",
            extra={"request_id": getattr(request.state, "request_id", None)},
        )
        message = str(exc) if settings.environment == "development" else "Internal server error"
        return JSONResponse(status_code=500, content=error_body(message))
