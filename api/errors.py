"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from core.exceptions import (
    ConflictError,
    InsufficientBalance,
    InvalidAssignment,
    InvalidTransition,
    NotFound,
    SettlementError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first; SettlementError catches anything added later
_STATUS_CODES: list[tuple[type[SettlementError], int]] = [
    (ValidationError, 400),
    (InvalidTransition, 400),
    (InsufficientBalance, 400),
    (InvalidAssignment, 404),
    (NotFound, 404),
    (ConflictError, 409),
    (SettlementError, 400),
]


def status_code_for(exc: SettlementError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return "; ".join(parts) or "Invalid request"


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(SettlementError)
    async def settlement_error_handler(request: Request, exc: SettlementError):
        status_code = status_code_for(exc)
        if isinstance(exc, ConflictError):
            logger.warning(f"{request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status_code,
            content=error_response(exc.code, str(exc), _request_id(request)).model_dump(mode="json"),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content=error_response(
                ErrorCodes.VALIDATION_ERROR,
                _format_validation_errors(exc),
                _request_id(request),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content=error_response(
                ErrorCodes.INTERNAL_ERROR,
                "An internal error occurred",
                _request_id(request),
            ).model_dump(mode="json"),
        )
