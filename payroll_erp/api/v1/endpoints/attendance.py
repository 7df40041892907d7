"""
Attendance endpoints — manual marking by staff and self-service check-in/out.

Every write runs the times through :func:`derive_attendance`, so working
hours, lateness and overtime are never supplied by the caller. A check-out
earlier than the check-in is rejected before anything is written.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import extract, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_erp.api.v1.deps import (ensure_owner_or_staff,
                                     get_current_active_user,
                                     get_current_employee, get_db,
                                     require_staff)
from payroll_erp.core.config import settings
from payroll_erp.core.exceptions import (ConflictError, NotFoundError,
                                         StateError)
from payroll_erp.core.numbers import ZERO, quantize
from payroll_erp.models.attendance import ATTENDANCE_STATUSES, Attendance
from payroll_erp.models.employee import Employee
from payroll_erp.models.user import User
from payroll_erp.schemas.attendance import (AttendanceCreate, AttendanceRead,
                                            AttendanceStats, AttendanceUpdate,
                                            CheckRequest, MonthlySummary,
                                            TodayStatus)
from payroll_erp.services import repository
from payroll_erp.services.attendance import AttendanceMetrics, derive_attendance
from payroll_erp.services.payroll import validate_period

router = APIRouter(prefix="/attendance", tags=["attendance"])
logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now(settings.local_timezone)


def _apply(record: Attendance, metrics: AttendanceMetrics) -> None:
    record.working_hours = metrics.working_hours
    record.is_late = metrics.is_late
    record.late_minutes = metrics.late_minutes
    record.overtime_hours = metrics.overtime_hours


async def _todays_record(db: AsyncSession, employee_id: int, today: date) -> Attendance | None:
    result = await db.execute(
        select(Attendance)
        .where(Attendance.employee_id == employee_id, Attendance.date == today)
        .with_for_update()
    )
    return result.scalar_one_or_none()


async def _get_record(db: AsyncSession, attendance_id: int) -> Attendance:
    record = await db.get(Attendance, attendance_id)
    if record is None:
        raise NotFoundError("Attendance record not found")
    return record


def _average(values: list[Decimal]) -> Decimal:
    return quantize(sum(values) / len(values)) if values else ZERO


# ── Self-service ────────────────────────────────────────────────────
@router.post("/check-in", response_model=AttendanceRead)
async def check_in(
    body: CheckRequest | None = None,
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
) -> Attendance:
    """Record the caller's check-in for today (local clock)."""
    now = _local_now()
    clock = now.time().replace(second=0, microsecond=0, tzinfo=None)

    record = await _todays_record(db, employee.id, now.date())
    if record is not None and record.check_in is not None:
        raise ConflictError("Already checked in today")
    if record is None:
        record = Attendance(employee_id=employee.id, date=now.date(), status="present")
        db.add(record)

    record.check_in = clock
    _apply(record, derive_attendance(clock, record.check_out))
    if body and body.notes:
        record.notes = body.notes

    await db.commit()
    await db.refresh(record)
    logger.info("Check-in for employee %d at %s", employee.id, clock.strftime("%H:%M"))
    return record


@router.post("/check-out", response_model=AttendanceRead)
async def check_out(
    body: CheckRequest | None = None,
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
) -> Attendance:
    """Record the caller's check-out for today and derive the day's hours."""
    now = _local_now()
    clock = now.time().replace(second=0, microsecond=0, tzinfo=None)

    record = await _todays_record(db, employee.id, now.date())
    if record is None or record.check_in is None:
        raise StateError("You must check in before checking out")
    if record.check_out is not None:
        raise ConflictError("Already checked out today")

    metrics = derive_attendance(record.check_in, clock)
    record.check_out = clock
    _apply(record, metrics)
    if body and body.notes:
        record.notes = body.notes

    await db.commit()
    await db.refresh(record)
    logger.info(
        "Check-out for employee %d at %s (%s h)",
        employee.id, clock.strftime("%H:%M"), record.working_hours,
    )
    return record


@router.get("/today", response_model=TodayStatus)
async def today_status(
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
) -> TodayStatus:
    today = _local_now().date()
    result = await db.execute(
        select(Attendance).where(Attendance.employee_id == employee.id, Attendance.date == today)
    )
    record = result.scalar_one_or_none()
    if record is None:
        return TodayStatus(date=today, status="not_marked")
    return TodayStatus(
        date=today, status=record.status, attendance=AttendanceRead.model_validate(record)
    )


@router.get("/my", response_model=list[AttendanceRead])
async def my_attendance(
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = None,
    skip: int = 0,
    limit: int = Query(default=50, le=500),
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
) -> list[Attendance]:
    query = (
        select(Attendance)
        .where(Attendance.employee_id == employee.id)
        .order_by(Attendance.date.desc())
        .offset(skip)
        .limit(limit)
    )
    if month is not None:
        query = query.where(extract("month", Attendance.date) == month)
    if year is not None:
        query = query.where(extract("year", Attendance.date) == year)
    result = await db.execute(query)
    return list(result.scalars().all())


# ── Reports ─────────────────────────────────────────────────────────
@router.get("/monthly/{employee_id}/{month}/{year}", response_model=MonthlySummary)
async def monthly_summary(
    employee_id: int,
    month: int,
    year: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MonthlySummary:
    validate_period(month, year)
    await ensure_owner_or_staff(db, current_user, employee_id)
    if await db.get(Employee, employee_id) is None:
        raise NotFoundError("Employee not found")

    rows = await repository.attendance_rows_in(db, employee_id, month, year)
    counts = Counter(r.status for r in rows)
    hours = [Decimal(r.working_hours) for r in rows if r.working_hours is not None]
    return MonthlySummary(
        employee_id=employee_id,
        month=month,
        year=year,
        total_days=len(rows),
        present=counts["present"],
        absent=counts["absent"],
        late=counts["late"],
        half_day=counts["half_day"],
        total_working_hours=quantize(sum(hours, ZERO)),
        average_working_hours=_average(hours),
    )


@router.get("/stats", response_model=AttendanceStats)
async def attendance_stats(
    month: int = Query(ge=1, le=12),
    year: int = Query(),
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> AttendanceStats:
    validate_period(month, year)
    first, next_first = repository.period_bounds(month, year)
    result = await db.execute(
        select(Attendance).where(Attendance.date >= first, Attendance.date < next_first)
    )
    records = list(result.scalars().all())
    counts = Counter(r.status for r in records)
    hours = [Decimal(r.working_hours) for r in records if r.working_hours is not None]
    return AttendanceStats(
        month=month,
        year=year,
        total_records=len(records),
        by_status={s: counts[s] for s in ATTENDANCE_STATUSES},
        late_arrivals=sum(1 for r in records if r.is_late),
        average_working_hours=_average(hours),
    )


# ── Staff management ────────────────────────────────────────────────
@router.get("", response_model=list[AttendanceRead])
async def list_attendance(
    employee_id: int | None = None,
    status: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = None,
    skip: int = 0,
    limit: int = Query(default=50, le=500),
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> list[Attendance]:
    query = (
        select(Attendance)
        .order_by(Attendance.date.desc(), Attendance.employee_id)
        .offset(skip)
        .limit(limit)
    )
    if employee_id is not None:
        query = query.where(Attendance.employee_id == employee_id)
    if status:
        query = query.where(Attendance.status == status)
    if start_date:
        query = query.where(Attendance.date >= start_date)
    if end_date:
        query = query.where(Attendance.date <= end_date)
    if month is not None:
        query = query.where(extract("month", Attendance.date) == month)
    if year is not None:
        query = query.where(extract("year", Attendance.date) == year)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("", response_model=AttendanceRead, status_code=201)
async def mark_attendance(
    body: AttendanceCreate,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> Attendance:
    """Create the attendance record of one employee for one day."""
    if await db.get(Employee, body.employee_id) is None:
        raise NotFoundError("Employee not found")

    existing = await db.execute(
        select(Attendance.id).where(
            Attendance.employee_id == body.employee_id, Attendance.date == body.date
        )
    )
    if existing.first() is not None:
        raise ConflictError("Attendance already marked for this date")

    metrics = derive_attendance(body.check_in, body.check_out)
    record = Attendance(**body.model_dump())
    _apply(record, metrics)
    db.add(record)
    await db.commit()
    await db.refresh(record)
    logger.info("Marked attendance for employee %d on %s", record.employee_id, record.date)
    return record


@router.get("/{attendance_id}", response_model=AttendanceRead)
async def get_attendance(
    attendance_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Attendance:
    record = await _get_record(db, attendance_id)
    await ensure_owner_or_staff(db, current_user, record.employee_id)
    return record


@router.put("/{attendance_id}", response_model=AttendanceRead)
async def update_attendance(
    attendance_id: int,
    body: AttendanceUpdate,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> Attendance:
    record = await _get_record(db, attendance_id)
    changes = body.model_dump(exclude_unset=True)
    if changes.get("status", "") is None:
        changes.pop("status")

    # Re-derive from the merged times before touching the record
    check_in = changes.get("check_in", record.check_in)
    check_out = changes.get("check_out", record.check_out)
    metrics = derive_attendance(check_in, check_out)

    for field, value in changes.items():
        setattr(record, field, value)
    _apply(record, metrics)

    await db.commit()
    await db.refresh(record)
    logger.info("Updated attendance %d", attendance_id)
    return record
