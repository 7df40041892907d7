"""
Payroll endpoints — generation, adjustment, payment and reporting.

All mutations are staff-only and delegate to :mod:`payroll_erp.services.payroll`.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_erp.api.v1.deps import (ensure_owner_or_staff,
                                     get_current_active_user,
                                     get_current_employee, get_db,
                                     require_staff)
from payroll_erp.models.employee import Employee
from payroll_erp.models.payroll import Payroll
from payroll_erp.models.user import User
from payroll_erp.schemas.payroll import (BulkPayrollResponse, PayrollBulkCreate,
                                         PayrollCancel, PayrollCreate,
                                         PayrollMarkPaid, PayrollRead,
                                         PayrollStats, PayrollUpdate,
                                         PayrollYearSummary)
from payroll_erp.services import payroll as payroll_service

router = APIRouter(prefix="/payroll", tags=["payroll"])
logger = logging.getLogger(__name__)


# ── Listing & reports ───────────────────────────────────────────────
@router.get("", response_model=list[PayrollRead])
async def list_payrolls(
    employee_id: int | None = None,
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = None,
    status: str | None = None,
    skip: int = 0,
    limit: int = Query(default=50, le=500),
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> list[Payroll]:
    query = (
        select(Payroll)
        .order_by(Payroll.year.desc(), Payroll.month.desc(), Payroll.employee_id)
        .offset(skip)
        .limit(limit)
    )
    if employee_id is not None:
        query = query.where(Payroll.employee_id == employee_id)
    if month is not None:
        query = query.where(Payroll.month == month)
    if year is not None:
        query = query.where(Payroll.year == year)
    if status:
        query = query.where(Payroll.status == status)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.get("/stats", response_model=PayrollStats)
async def payroll_stats(
    month: int = Query(ge=1, le=12),
    year: int = Query(),
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> PayrollStats:
    return PayrollStats(**await payroll_service.period_stats(db, month, year))


@router.get("/my", response_model=list[PayrollRead])
async def my_payrolls(
    year: int | None = None,
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
) -> list[Payroll]:
    query = (
        select(Payroll)
        .where(Payroll.employee_id == employee.id)
        .order_by(Payroll.year.desc(), Payroll.month.desc())
    )
    if year is not None:
        query = query.where(Payroll.year == year)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.get("/summary/{employee_id}", response_model=PayrollYearSummary)
async def payroll_summary(
    employee_id: int,
    year: int | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PayrollYearSummary:
    """Yearly totals for one employee (defaults to the current local year)."""
    await ensure_owner_or_staff(db, current_user, employee_id)
    year = year or payroll_service.local_today().year
    payroll_service.validate_period(1, year)
    summary = await payroll_service.yearly_summary(db, employee_id, year)
    return PayrollYearSummary.model_validate(summary, from_attributes=True)


# ── Generation ──────────────────────────────────────────────────────
@router.post("", response_model=PayrollRead, status_code=201)
async def generate_payroll(
    body: PayrollCreate,
    db: AsyncSession = Depends(get_db),
    staff: User = Depends(require_staff),
) -> Payroll:
    return await payroll_service.generate_payroll(
        db,
        employee_id=body.employee_id,
        month=body.month,
        year=body.year,
        base_salary=body.base_salary,
        bonus=body.bonus,
        overtime=body.overtime,
        allowances=body.allowances,
        deductions=body.deductions,
        notes=body.notes,
        generated_by=staff.id,
    )


@router.post("/bulk", response_model=BulkPayrollResponse, status_code=201)
async def generate_bulk_payroll(
    body: PayrollBulkCreate,
    db: AsyncSession = Depends(get_db),
    staff: User = Depends(require_staff),
) -> BulkPayrollResponse:
    """Generate the period's payroll for every active employee.

    Per-employee failures are reported in ``errors`` and do not fail the call.
    """
    result = await payroll_service.generate_bulk(
        db,
        month=body.month,
        year=body.year,
        bonus=body.bonus,
        overtime=body.overtime,
        allowances=body.allowances,
        deductions=body.deductions,
        generated_by=staff.id,
    )
    return BulkPayrollResponse(
        message=(
            f"Generated {len(result.generated)} of {result.total_employees} payroll records"
            f" for {body.month:02d}/{body.year}"
        ),
        total_employees=result.total_employees,
        generated=[PayrollRead.model_validate(p) for p in result.generated],
        errors=result.errors,
    )


# ── Single record ───────────────────────────────────────────────────
@router.get("/{payroll_id}", response_model=PayrollRead)
async def get_payroll(
    payroll_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Payroll:
    payroll = await payroll_service.get_payroll(db, payroll_id)
    await ensure_owner_or_staff(db, current_user, payroll.employee_id)
    return payroll


@router.put("/{payroll_id}", response_model=PayrollRead)
async def update_payroll(
    payroll_id: int,
    body: PayrollUpdate,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> Payroll:
    return await payroll_service.update_payroll(
        db, payroll_id, body.model_dump(exclude_unset=True)
    )


@router.put("/{payroll_id}/mark-paid", response_model=PayrollRead)
async def mark_payroll_paid(
    payroll_id: int,
    body: PayrollMarkPaid | None = None,
    db: AsyncSession = Depends(get_db),
    staff: User = Depends(require_staff),
) -> Payroll:
    return await payroll_service.mark_paid(
        db,
        payroll_id,
        paid_by=staff.id,
        payment_date=body.payment_date if body else None,
    )


@router.put("/{payroll_id}/cancel", response_model=PayrollRead)
async def cancel_payroll(
    payroll_id: int,
    body: PayrollCancel | None = None,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> Payroll:
    return await payroll_service.cancel_payroll(
        db, payroll_id, reason=body.reason if body else None
    )
