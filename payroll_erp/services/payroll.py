"""
Payroll aggregation and status lifecycle.

``total_pay = base + bonus + overtime + allowances + attendance_bonus
- deductions - leave_deductions``, with no floor at zero.

Leave deductions and the attendance bonus are derived once, when a record is
generated. Later updates reuse the stored figures even if the underlying
attendance or leave rows have changed since.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_erp.core.config import settings
from payroll_erp.core.exceptions import (AlreadyPaidError, DuplicatePeriodError,
                                         ERPError, NotFoundError,
                                         ValidationError)
from payroll_erp.core.numbers import MAX_AMOUNT, ZERO, quantize
from payroll_erp.models.payroll import PAYROLL_STATUSES, Payroll
from payroll_erp.services import repository
from payroll_erp.services.attendance_bonus import calculate_attendance_bonus
from payroll_erp.services.leave_deduction import calculate_leave_deductions

logger = logging.getLogger(__name__)

FINANCIAL_FIELDS = ("base_salary", "bonus", "overtime", "allowances", "deductions")
UPDATABLE_FIELDS = FINANCIAL_FIELDS + ("notes", "payment_date")


def compute_total_pay(
    *,
    base_salary: Decimal,
    bonus: Decimal = ZERO,
    overtime: Decimal = ZERO,
    allowances: Decimal = ZERO,
    deductions: Decimal = ZERO,
    leave_deductions: Decimal = ZERO,
    attendance_bonus: Decimal = ZERO,
) -> Decimal:
    return quantize(
        Decimal(base_salary)
        + Decimal(bonus)
        + Decimal(overtime)
        + Decimal(allowances)
        + Decimal(attendance_bonus)
        - Decimal(deductions)
        - Decimal(leave_deductions)
    )


def check_storable(**amounts: Decimal) -> None:
    """Reject amounts that do not fit the payroll columns."""
    for name, value in amounts.items():
        if abs(value) > MAX_AMOUNT:
            raise ValidationError(f"{name} exceeds the maximum amount of {MAX_AMOUNT}")


def validate_period(month: int, year: int) -> None:
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if not settings.PAYROLL_MIN_YEAR <= year <= settings.PAYROLL_MAX_YEAR:
        raise ValidationError(
            f"Year must be between {settings.PAYROLL_MIN_YEAR} and {settings.PAYROLL_MAX_YEAR}"
        )


def local_today() -> date:
    return datetime.now(settings.local_timezone).date()


async def get_payroll(db: AsyncSession, payroll_id: int) -> Payroll:
    result = await db.execute(select(Payroll).where(Payroll.id == payroll_id))
    payroll = result.scalar_one_or_none()
    if payroll is None:
        raise NotFoundError("Payroll record not found")
    return payroll


# ── Generate ────────────────────────────────────────────────────────
async def generate_payroll(
    db: AsyncSession,
    *,
    employee_id: int,
    month: int,
    year: int,
    base_salary: Decimal,
    bonus: Decimal = ZERO,
    overtime: Decimal = ZERO,
    allowances: Decimal = ZERO,
    deductions: Decimal = ZERO,
    notes: Optional[str] = None,
    generated_by: Optional[int] = None,
) -> Payroll:
    """Create the single ``pending`` payroll record for an employee and period.

    Raises :class:`DuplicatePeriodError` when the period already has a record
    and :class:`NotFoundError` when the employee does not exist.
    """
    validate_period(month, year)

    if await repository.find_payroll(db, employee_id, month, year) is not None:
        raise DuplicatePeriodError("Payroll already exists for this employee and month/year")

    employee = await repository.get_employee_row(db, employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")

    leave_deductions = await calculate_leave_deductions(db, employee_id, month, year)
    attendance_bonus = await calculate_attendance_bonus(db, employee_id, month, year)
    total_pay = compute_total_pay(
        base_salary=base_salary,
        bonus=bonus,
        overtime=overtime,
        allowances=allowances,
        deductions=deductions,
        leave_deductions=leave_deductions,
        attendance_bonus=attendance_bonus,
    )
    check_storable(leave_deductions=leave_deductions, total_pay=total_pay)

    payroll = Payroll(
        employee_id=employee_id,
        month=month,
        year=year,
        base_salary=quantize(base_salary),
        bonus=quantize(bonus),
        overtime=quantize(overtime),
        allowances=quantize(allowances),
        deductions=quantize(deductions),
        leave_deductions=leave_deductions,
        attendance_bonus=attendance_bonus,
        total_pay=total_pay,
        status="pending",
        notes=notes,
        generated_by=generated_by,
        generated_at=datetime.now(timezone.utc),
    )
    db.add(payroll)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent generate for the same period
        await db.rollback()
        raise DuplicatePeriodError(
            "Payroll already exists for this employee and month/year"
        ) from None
    await db.refresh(payroll)

    logger.info(
        "Generated payroll %d for %s (%02d/%d): total %s",
        payroll.id, employee.name, month, year, payroll.total_pay,
    )
    return payroll


# ── Update ──────────────────────────────────────────────────────────
async def update_payroll(db: AsyncSession, payroll_id: int, changes: dict[str, Any]) -> Payroll:
    """Apply partial changes; financial changes recompute the total from stored derived figures."""
    payroll = await get_payroll(db, payroll_id)

    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

    values = dict(changes)
    for name in FINANCIAL_FIELDS:
        if name in values:
            if values[name] is None:
                raise ValidationError(f"{name} cannot be null")
            values[name] = quantize(values[name])

    # Validate the new total before touching the record
    if any(name in values for name in FINANCIAL_FIELDS):
        figures = {name: values.get(name, getattr(payroll, name)) for name in FINANCIAL_FIELDS}
        values["total_pay"] = compute_total_pay(
            **figures,
            leave_deductions=payroll.leave_deductions,
            attendance_bonus=payroll.attendance_bonus,
        )
        check_storable(total_pay=values["total_pay"])

    for name, value in values.items():
        setattr(payroll, name, value)

    await db.commit()
    await db.refresh(payroll)
    logger.info("Updated payroll %d: %s", payroll_id, sorted(changes))
    return payroll


# ── Status transitions ──────────────────────────────────────────────
async def mark_paid(
    db: AsyncSession,
    payroll_id: int,
    *,
    paid_by: Optional[int] = None,
    payment_date: Optional[date] = None,
) -> Payroll:
    """Move a record to ``paid``.

    Any non-paid status is accepted, including ``cancelled``.
    """
    payroll = await get_payroll(db, payroll_id)
    if payroll.status == "paid":
        raise AlreadyPaidError("Payroll is already marked as paid")

    payroll.status = "paid"
    payroll.payment_date = payment_date or local_today()
    payroll.paid_by = paid_by
    payroll.paid_at = datetime.now(timezone.utc)

    await db.commit()
    await db.refresh(payroll)
    logger.info("Payroll %d marked as paid on %s", payroll_id, payroll.payment_date)
    return payroll


async def cancel_payroll(
    db: AsyncSession, payroll_id: int, reason: Optional[str] = None
) -> Payroll:
    payroll = await get_payroll(db, payroll_id)
    if payroll.status == "paid":
        raise AlreadyPaidError("Cannot cancel a paid payroll record")

    payroll.status = "cancelled"
    if reason:
        payroll.notes = reason

    await db.commit()
    await db.refresh(payroll)
    logger.info("Payroll %d cancelled", payroll_id)
    return payroll


# ── Bulk ────────────────────────────────────────────────────────────
@dataclass
class BulkResult:
    total_employees: int
    generated: list[Payroll] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


async def generate_bulk(
    db: AsyncSession,
    *,
    month: int,
    year: int,
    bonus: Decimal = ZERO,
    overtime: Decimal = ZERO,
    allowances: Decimal = ZERO,
    deductions: Decimal = ZERO,
    generated_by: Optional[int] = None,
) -> BulkResult:
    """Generate a period's payroll for every active employee.

    Each employee's own salary is the base. Failures are collected per
    employee and never stop the batch.
    """
    validate_period(month, year)

    employees = await repository.active_employee_rows(db)
    if not employees:
        raise ValidationError("No active employees found")

    result = BulkResult(total_employees=len(employees))
    generated_ids: list[int] = []
    for employee in employees:
        try:
            payroll = await generate_payroll(
                db,
                employee_id=employee.id,
                month=month,
                year=year,
                base_salary=employee.salary,
                bonus=bonus,
                overtime=overtime,
                allowances=allowances,
                deductions=deductions,
                generated_by=generated_by,
            )
        except ERPError as exc:
            result.errors.append(f"{employee.name}: {exc.message}")
            continue
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("Bulk payroll failed for employee %d: %s", employee.id, exc)
            result.errors.append(f"{employee.name}: failed to generate payroll")
            continue
        generated_ids.append(payroll.id)

    if generated_ids:
        # Reload: a rollback inside the loop expires earlier instances
        rows = await db.execute(
            select(Payroll).where(Payroll.id.in_(generated_ids)).order_by(Payroll.id)
        )
        result.generated = list(rows.scalars().all())

    logger.info(
        "Bulk payroll %02d/%d: %d generated, %d failed",
        month, year, len(result.generated), len(result.errors),
    )
    return result


# ── Reporting ───────────────────────────────────────────────────────
def _average(values: list[Decimal]) -> Decimal:
    return quantize(sum(values, ZERO) / len(values)) if values else ZERO


async def yearly_summary(db: AsyncSession, employee_id: int, year: int) -> dict[str, Any]:
    """Totals of one employee's payroll records for a year; cancelled records are excluded from sums."""
    result = await db.execute(
        select(Payroll)
        .where(Payroll.employee_id == employee_id, Payroll.year == year)
        .order_by(Payroll.month)
    )
    records = list(result.scalars().all())
    counted = [p for p in records if p.status != "cancelled"]
    paid = [p for p in records if p.status == "paid"]
    return {
        "employee_id": employee_id,
        "year": year,
        "total_records": len(records),
        "paid_records": len(paid),
        "pending_records": sum(1 for p in records if p.status == "pending"),
        "total_earnings": quantize(sum((p.total_pay for p in counted), ZERO)),
        "total_paid": quantize(sum((p.total_pay for p in paid), ZERO)),
        "average_monthly_pay": _average([p.total_pay for p in counted]),
        "monthly": records,
    }


async def period_stats(db: AsyncSession, month: int, year: int) -> dict[str, Any]:
    validate_period(month, year)
    result = await db.execute(
        select(Payroll).where(Payroll.month == month, Payroll.year == year)
    )
    records = list(result.scalars().all())
    counted = [p.total_pay for p in records if p.status != "cancelled"]
    return {
        "month": month,
        "year": year,
        "total_records": len(records),
        "by_status": {s: sum(1 for p in records if p.status == s) for s in PAYROLL_STATUSES},
        "total_payout": quantize(sum(counted, ZERO)),
        "total_paid": quantize(sum((p.total_pay for p in records if p.status == "paid"), ZERO)),
        "average_total_pay": _average(counted),
    }
