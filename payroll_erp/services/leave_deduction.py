"""
Salary deduction for unpaid leave taken in a payroll period.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_erp.core.config import settings
from payroll_erp.core.exceptions import DependencyFailure
from payroll_erp.core.numbers import ZERO, quantize
from payroll_erp.services import repository
from payroll_erp.services.repository import LeaveRow

logger = logging.getLogger(__name__)

# Fixed business rule, not configurable
UNPAID_LEAVE_TYPES = frozenset({"sick", "emergency"})


def unpaid_days(leaves: Iterable[LeaveRow]) -> int:
    return sum(
        lv.total_days
        for lv in leaves
        if lv.status == "approved" and lv.leave_type in UNPAID_LEAVE_TYPES
    )


def leave_deduction(
    monthly_salary: Decimal,
    leaves: Iterable[LeaveRow],
    divisor: int | None = None,
) -> Decimal:
    """``unpaid days × monthly salary / divisor``, rounded to cents."""
    days = unpaid_days(leaves)
    if not days:
        return ZERO
    # Multiply before dividing so 1/30ths do not accumulate rounding error
    return quantize(Decimal(days) * Decimal(monthly_salary) / Decimal(divisor or settings.DAILY_RATE_DIVISOR))


async def calculate_leave_deductions(
    db: AsyncSession, employee_id: int, month: int, year: int
) -> Decimal:
    """Leave deduction for one employee and period.

    A leave belongs to the period its start date falls in; it is never split
    across months. Lookup failures are logged and yield 0 so payroll
    generation is never blocked by this figure.
    """
    try:
        employee = await _load_employee(db, employee_id)
        leaves = await _load_leaves(db, employee_id, month, year)
    except DependencyFailure as exc:
        logger.warning(
            "Leave deductions for employee %d (%02d/%d) defaulted to 0: %s",
            employee_id, month, year, exc.message, exc_info=True,
        )
        return ZERO
    return leave_deduction(employee.salary, leaves)


async def _load_employee(db: AsyncSession, employee_id: int) -> repository.EmployeeRow:
    try:
        employee = await repository.get_employee_row(db, employee_id)
    except SQLAlchemyError as exc:
        await db.rollback()
        raise DependencyFailure(f"Employee lookup failed: {exc}") from exc
    if employee is None:
        raise DependencyFailure(f"Employee {employee_id} not found")
    return employee


async def _load_leaves(
    db: AsyncSession, employee_id: int, month: int, year: int
) -> list[LeaveRow]:
    try:
        return await repository.approved_leaves_starting_in(db, employee_id, month, year)
    except SQLAlchemyError as exc:
        await db.rollback()
        raise DependencyFailure(f"Leave lookup failed: {exc}") from exc
