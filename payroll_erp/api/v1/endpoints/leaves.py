"""
Leave request endpoints.

A request covers an inclusive date range and starts ``pending``; staff move
it to ``approved`` or ``rejected``, both terminal. Pending and approved
requests of one employee may not share a day.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import extract, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_erp.api.v1.deps import (ensure_owner_or_staff,
                                     find_linked_employee,
                                     get_current_active_user,
                                     get_current_employee, get_database,
                                     get_db, require_staff)
from payroll_erp.core.config import settings
from payroll_erp.core.exceptions import (ConflictError, NotFoundError,
                                         StateError, ValidationError)
from payroll_erp.core.numbers import ZERO, quantize
from payroll_erp.db.session import Database
from payroll_erp.models.employee import Employee
from payroll_erp.models.leave import LEAVE_STATUSES, LEAVE_TYPES, LeaveRequest
from payroll_erp.models.user import User
from payroll_erp.schemas.common import MessageResponse
from payroll_erp.schemas.leave import (LeaveApprove, LeaveCreate, LeaveRead,
                                       LeaveReject, LeaveStats, LeaveUpdate)
from payroll_erp.services import repository
from payroll_erp.services.payroll import validate_period

router = APIRouter(prefix="/leaves", tags=["leaves"])
logger = logging.getLogger(__name__)


def _local_today() -> date:
    return datetime.now(settings.local_timezone).date()


def _check_range(start: date, end: date) -> None:
    if start > end:
        raise ValidationError("End date must be on or after the start date")


async def _ensure_no_overlap(
    db: AsyncSession,
    employee_id: int,
    start: date,
    end: date,
    exclude_id: int | None = None,
) -> None:
    clash = await repository.find_overlapping_leave(db, employee_id, start, end, exclude_id)
    if clash is not None:
        raise ConflictError(
            f"Leave overlaps with an existing {clash.status} request "
            f"({clash.start_date} to {clash.end_date})"
        )


async def _get_leave(db: AsyncSession, leave_id: int) -> LeaveRequest:
    leave = await db.get(LeaveRequest, leave_id)
    if leave is None:
        raise NotFoundError("Leave request not found")
    return leave


def _require_pending(leave: LeaveRequest, action: str) -> None:
    if leave.status != "pending":
        raise StateError(f"Only pending leave requests can be {action}")


# ── Create / self-service ───────────────────────────────────────────
@router.post("", response_model=LeaveRead, status_code=201)
async def create_leave(
    body: LeaveCreate,
    db: AsyncSession = Depends(get_db),
    database: Database = Depends(get_database),
    current_user: User = Depends(get_current_active_user),
) -> LeaveRequest:
    """Apply for leave, for oneself or (staff) on behalf of an employee."""
    if body.employee_id is None:
        employee = await find_linked_employee(db, current_user)
        if employee is None:
            raise NotFoundError("No employee profile is linked to this account")
        employee_id = employee.id
    else:
        await ensure_owner_or_staff(db, current_user, body.employee_id)
        employee_id = body.employee_id

    _check_range(body.start_date, body.end_date)
    if body.start_date < _local_today():
        raise ValidationError("Start date must be today or later")

    # Overlap check and insert must not interleave for one employee
    async with database.lock(("leave", employee_id)):
        if await repository.lock_employee(db, employee_id) is None:
            raise NotFoundError("Employee not found")
        await _ensure_no_overlap(db, employee_id, body.start_date, body.end_date)

        leave = LeaveRequest(
            employee_id=employee_id,
            start_date=body.start_date,
            end_date=body.end_date,
            reason=body.reason,
            leave_type=body.leave_type,
            notes=body.notes,
            status="pending",
            total_days=(body.end_date - body.start_date).days + 1,
        )
        db.add(leave)
        await db.commit()
    await db.refresh(leave)
    logger.info(
        "Leave %d requested for employee %d: %s to %s (%s)",
        leave.id, employee_id, leave.start_date, leave.end_date, leave.leave_type,
    )
    return leave


@router.get("/my", response_model=list[LeaveRead])
async def my_leaves(
    status: str | None = None,
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
) -> list[LeaveRequest]:
    query = (
        select(LeaveRequest)
        .where(LeaveRequest.employee_id == employee.id)
        .order_by(LeaveRequest.start_date.desc())
    )
    if status:
        query = query.where(LeaveRequest.status == status)
    result = await db.execute(query)
    return list(result.scalars().all())


# ── Staff views ─────────────────────────────────────────────────────
@router.get("", response_model=list[LeaveRead])
async def list_leaves(
    employee_id: int | None = None,
    status: str | None = None,
    leave_type: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = None,
    skip: int = 0,
    limit: int = Query(default=50, le=500),
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> list[LeaveRequest]:
    query = (
        select(LeaveRequest)
        .order_by(LeaveRequest.start_date.desc(), LeaveRequest.id.desc())
        .offset(skip)
        .limit(limit)
    )
    if employee_id is not None:
        query = query.where(LeaveRequest.employee_id == employee_id)
    if status:
        query = query.where(LeaveRequest.status == status)
    if leave_type:
        query = query.where(LeaveRequest.leave_type == leave_type)
    # Date filters select requests overlapping the window
    if start_date:
        query = query.where(LeaveRequest.end_date >= start_date)
    if end_date:
        query = query.where(LeaveRequest.start_date <= end_date)
    if month is not None:
        query = query.where(extract("month", LeaveRequest.start_date) == month)
    if year is not None:
        query = query.where(extract("year", LeaveRequest.start_date) == year)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.get("/stats", response_model=LeaveStats)
async def leave_stats(
    month: int = Query(ge=1, le=12),
    year: int = Query(),
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> LeaveStats:
    validate_period(month, year)
    first, next_first = repository.period_bounds(month, year)
    result = await db.execute(
        select(LeaveRequest).where(
            LeaveRequest.start_date >= first, LeaveRequest.start_date < next_first
        )
    )
    leaves = list(result.scalars().all())
    by_status = Counter(lv.status for lv in leaves)
    by_type = Counter(lv.leave_type for lv in leaves)
    approved_days = [lv.total_days for lv in leaves if lv.status == "approved"]
    return LeaveStats(
        month=month,
        year=year,
        total_requests=len(leaves),
        by_status={s: by_status[s] for s in LEAVE_STATUSES},
        by_type={t: by_type[t] for t in LEAVE_TYPES if by_type[t]},
        average_approved_days=(
            quantize(Decimal(sum(approved_days)) / len(approved_days)) if approved_days else ZERO
        ),
    )


# ── Single request ──────────────────────────────────────────────────
@router.get("/{leave_id}", response_model=LeaveRead)
async def get_leave(
    leave_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> LeaveRequest:
    leave = await _get_leave(db, leave_id)
    await ensure_owner_or_staff(db, current_user, leave.employee_id)
    return leave


@router.put("/{leave_id}", response_model=LeaveRead)
async def update_leave(
    leave_id: int,
    body: LeaveUpdate,
    db: AsyncSession = Depends(get_db),
    database: Database = Depends(get_database),
    current_user: User = Depends(get_current_active_user),
) -> LeaveRequest:
    leave = await _get_leave(db, leave_id)
    await ensure_owner_or_staff(db, current_user, leave.employee_id)
    employee_id = leave.employee_id

    # Only notes may be cleared with an explicit null
    changes = {
        k: v
        for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k == "notes"
    }

    async with database.lock(("leave", employee_id)):
        await repository.lock_employee(db, employee_id)
        await db.refresh(leave)
        _require_pending(leave, "updated")

        start = changes.get("start_date", leave.start_date)
        end = changes.get("end_date", leave.end_date)
        _check_range(start, end)
        if "start_date" in changes and start < _local_today():
            raise ValidationError("Start date must be today or later")
        if "start_date" in changes or "end_date" in changes:
            await _ensure_no_overlap(db, employee_id, start, end, exclude_id=leave.id)

        for field, value in changes.items():
            setattr(leave, field, value)
        leave.total_days = (end - start).days + 1

        await db.commit()
    await db.refresh(leave)
    logger.info("Updated leave %d", leave_id)
    return leave


@router.put("/{leave_id}/approve", response_model=LeaveRead)
async def approve_leave(
    leave_id: int,
    body: LeaveApprove | None = None,
    db: AsyncSession = Depends(get_db),
    staff: User = Depends(require_staff),
) -> LeaveRequest:
    leave = await _get_leave(db, leave_id)
    _require_pending(leave, "approved")

    leave.status = "approved"
    leave.approved_by = staff.id
    leave.approved_at = datetime.now(timezone.utc)
    if body and body.notes:
        leave.notes = body.notes

    await db.commit()
    await db.refresh(leave)
    logger.info("Leave %d approved by user %d", leave_id, staff.id)
    return leave


@router.put("/{leave_id}/reject", response_model=LeaveRead)
async def reject_leave(
    leave_id: int,
    body: LeaveReject,
    db: AsyncSession = Depends(get_db),
    staff: User = Depends(require_staff),
) -> LeaveRequest:
    leave = await _get_leave(db, leave_id)
    _require_pending(leave, "rejected")

    leave.status = "rejected"
    leave.rejection_reason = body.rejection_reason
    leave.approved_by = staff.id
    leave.approved_at = datetime.now(timezone.utc)

    await db.commit()
    await db.refresh(leave)
    logger.info("Leave %d rejected by user %d", leave_id, staff.id)
    return leave


@router.delete("/{leave_id}", response_model=MessageResponse)
async def delete_leave(
    leave_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MessageResponse:
    leave = await _get_leave(db, leave_id)
    await ensure_owner_or_staff(db, current_user, leave.employee_id)
    _require_pending(leave, "deleted")

    await db.delete(leave)
    await db.commit()
    logger.info("Deleted leave %d", leave_id)
    return MessageResponse(message="Leave request deleted")
