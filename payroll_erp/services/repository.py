"""
Query functions feeding the payroll calculators.

Each function issues one statement and returns frozen dataclasses, so the
calculators never touch a live ORM entity.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_erp.models.attendance import Attendance
from payroll_erp.models.employee import Employee
from payroll_erp.models.leave import BLOCKING_STATUSES, LeaveRequest
from payroll_erp.models.payroll import Payroll


@dataclass(frozen=True)
class EmployeeRow:
    id: int
    name: str
    salary: Decimal
    is_active: bool


@dataclass(frozen=True)
class LeaveRow:
    id: int
    leave_type: str
    status: str
    start_date: date
    end_date: date
    total_days: int


@dataclass(frozen=True)
class AttendanceRow:
    date: date
    status: str
    working_hours: Decimal | None = None


def period_bounds(month: int, year: int) -> tuple[date, date]:
    """Return ``(first_day, first_day_of_next_month)`` for a period."""
    first = date(year, month, 1)
    if month == 12:
        return first, date(year + 1, 1, 1)
    return first, date(year, month + 1, 1)


def _employee_row(emp: Employee) -> EmployeeRow:
    return EmployeeRow(
        id=emp.id,
        name=emp.name,
        salary=Decimal(emp.salary),
        is_active=bool(emp.is_active),
    )


async def get_employee_row(db: AsyncSession, employee_id: int) -> EmployeeRow | None:
    result = await db.execute(select(Employee).where(Employee.id == employee_id))
    emp = result.scalar_one_or_none()
    return _employee_row(emp) if emp is not None else None


async def active_employee_rows(db: AsyncSession) -> list[EmployeeRow]:
    result = await db.execute(
        select(Employee).where(Employee.is_active.is_(True)).order_by(Employee.id)
    )
    return [_employee_row(emp) for emp in result.scalars().all()]


async def approved_leaves_starting_in(
    db: AsyncSession, employee_id: int, month: int, year: int
) -> list[LeaveRow]:
    """Approved leaves attributed to a period by their start date."""
    first, next_first = period_bounds(month, year)
    result = await db.execute(
        select(LeaveRequest).where(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.status == "approved",
            LeaveRequest.start_date >= first,
            LeaveRequest.start_date < next_first,
        )
    )
    return [
        LeaveRow(
            id=lv.id,
            leave_type=lv.leave_type,
            status=lv.status,
            start_date=lv.start_date,
            end_date=lv.end_date,
            total_days=lv.total_days,
        )
        for lv in result.scalars().all()
    ]


async def attendance_rows_in(
    db: AsyncSession, employee_id: int, month: int, year: int
) -> list[AttendanceRow]:
    first, next_first = period_bounds(month, year)
    result = await db.execute(
        select(Attendance)
        .where(
            Attendance.employee_id == employee_id,
            Attendance.date >= first,
            Attendance.date < next_first,
        )
        .order_by(Attendance.date)
    )
    return [
        AttendanceRow(date=att.date, status=att.status, working_hours=att.working_hours)
        for att in result.scalars().all()
    ]


async def find_payroll(
    db: AsyncSession, employee_id: int, month: int, year: int
) -> Payroll | None:
    result = await db.execute(
        select(Payroll).where(
            Payroll.employee_id == employee_id,
            Payroll.month == month,
            Payroll.year == year,
        )
    )
    return result.scalar_one_or_none()


async def find_overlapping_leave(
    db: AsyncSession,
    employee_id: int,
    start: date,
    end: date,
    exclude_id: int | None = None,
) -> LeaveRequest | None:
    """First pending/approved leave of the employee sharing a day with ``[start, end]``."""
    query = select(LeaveRequest).where(
        LeaveRequest.employee_id == employee_id,
        LeaveRequest.status.in_(BLOCKING_STATUSES),
        LeaveRequest.start_date <= end,
        LeaveRequest.end_date >= start,
    )
    if exclude_id is not None:
        query = query.where(LeaveRequest.id != exclude_id)
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none()


async def lock_employee(db: AsyncSession, employee_id: int) -> Employee | None:
    """Load the employee with a row lock held until the transaction ends.

    Writes that must see each other's results for one employee (leave
    overlap checks) take this lock first.
    """
    result = await db.execute(
        select(Employee).where(Employee.id == employee_id).with_for_update()
    )
    return result.scalar_one_or_none()
