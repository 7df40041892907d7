"""
Public health check.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from payroll_erp.core.config import settings
from payroll_erp.schemas.common import HealthResponse

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Report database reachability; never requires auth."""
    db_ok = await request.app.state.database.ping()
    if not db_ok:
        logger.error("Health check: database unreachable")
    return HealthResponse(
        status="ok" if db_ok else "degraded",
        db=db_ok,
        version=settings.VERSION,
    )
