"""
Domain error taxonomy and global exception handlers.

Services raise the domain errors below; the handlers turn them into
``{"success": false, "error": <kind>, "detail": <message>}`` responses and
keep stack traces away from clients.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


# ── Domain errors ───────────────────────────────────────────────────
class ERPError(Exception):
    """Base class for business rule violations."""

    status_code = 400
    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ERPError):
    """Malformed or out-of-range input."""

    kind = "validation_error"


class InvalidRangeError(ValidationError):
    """A time or date range whose end precedes its start."""

    kind = "invalid_range"


class NotFoundError(ERPError):
    status_code = 404
    kind = "not_found"


class ConflictError(ERPError):
    """Uniqueness or overlap violation."""

    status_code = 409
    kind = "conflict"


class DuplicatePeriodError(ConflictError):
    kind = "duplicate_period"


class StateError(ERPError):
    """Operation not allowed in the record's current status."""

    kind = "state_error"


class AlreadyPaidError(StateError):
    kind = "already_paid"


class DependencyFailure(ERPError):
    """A lookup feeding a derived payroll figure failed."""

    status_code = 503
    kind = "dependency_failure"


# ── Handlers ────────────────────────────────────────────────────────
async def _erp_error_handler(_request: Request, exc: ERPError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind, "success": False},
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
        headers=exc.headers,
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content={"detail": "Database constraint violation", "error": "conflict", "success": False},
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal database error", "success": False},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "success": False},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(ERPError, _erp_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
