"""
Monthly attendance bonus tiers.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_erp.core.config import settings
from payroll_erp.core.exceptions import DependencyFailure
from payroll_erp.core.numbers import ZERO, quantize
from payroll_erp.services import repository
from payroll_erp.services.repository import AttendanceRow

logger = logging.getLogger(__name__)


def attendance_bonus(records: Sequence[AttendanceRow]) -> Decimal:
    """Flat bonus for perfect (100%) or good (>= threshold) attendance."""
    total = len(records)
    if total == 0:
        return ZERO
    present = sum(1 for r in records if r.status == "present")
    # Integer comparison keeps the tier boundaries exact
    if present == total:
        return quantize(settings.PERFECT_ATTENDANCE_BONUS)
    if present * 100 >= settings.GOOD_ATTENDANCE_PERCENT * total:
        return quantize(settings.GOOD_ATTENDANCE_BONUS)
    return ZERO


async def calculate_attendance_bonus(
    db: AsyncSession, employee_id: int, month: int, year: int
) -> Decimal:
    """Attendance bonus for one employee and period; lookup failures yield 0."""
    try:
        records = await _load_records(db, employee_id, month, year)
    except DependencyFailure as exc:
        logger.warning(
            "Attendance bonus for employee %d (%02d/%d) defaulted to 0: %s",
            employee_id, month, year, exc.message, exc_info=True,
        )
        return ZERO
    return attendance_bonus(records)


async def _load_records(
    db: AsyncSession, employee_id: int, month: int, year: int
) -> list[AttendanceRow]:
    try:
        return await repository.attendance_rows_in(db, employee_id, month, year)
    except SQLAlchemyError as exc:
        await db.rollback()
        raise DependencyFailure(f"Attendance lookup failed: {exc}") from exc
