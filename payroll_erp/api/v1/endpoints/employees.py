"""
Employee CRUD endpoints.

- List / create / delete / reactivate / stats require admin or HR.
- A single employee record is visible to staff and to its own account.
- GET /employees/profile returns the caller's own employee record.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_erp.api.v1.deps import (ensure_owner_or_staff,
                                     get_current_active_user,
                                     get_current_employee, get_db,
                                     require_staff)
from payroll_erp.core.exceptions import ConflictError, NotFoundError, StateError
from payroll_erp.core.numbers import ZERO, quantize
from payroll_erp.models.department import Department
from payroll_erp.models.employee import Employee
from payroll_erp.models.user import User
from payroll_erp.schemas.common import MessageResponse
from payroll_erp.schemas.employee import (EmployeeCountByGroup, EmployeeCreate,
                                          EmployeeRead, EmployeeStats,
                                          EmployeeUpdate, SalaryRange)

router = APIRouter(prefix="/employees", tags=["employees"])
logger = logging.getLogger(__name__)

NULLABLE_FIELDS = ("phone", "address", "joining_date", "user_id")


async def _get_employee(db: AsyncSession, employee_id: int) -> Employee:
    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    return employee


async def _check_references(
    db: AsyncSession,
    *,
    email: str | None = None,
    department_id: int | None = None,
    user_id: int | None = None,
    exclude_id: int | None = None,
) -> None:
    """Validate the department exists and the email / user link are free."""
    if department_id is not None and await db.get(Department, department_id) is None:
        raise NotFoundError("Department not found")

    if user_id is not None and await db.get(User, user_id) is None:
        raise NotFoundError("User not found")

    def _others(query):
        return query.where(Employee.id != exclude_id) if exclude_id is not None else query

    if email is not None:
        taken = await db.execute(_others(select(Employee.id).where(Employee.email == email)))
        if taken.first() is not None:
            raise ConflictError("Employee with this email already exists")

    if user_id is not None:
        linked = await db.execute(_others(select(Employee.id).where(Employee.user_id == user_id)))
        if linked.first() is not None:
            raise ConflictError("User is already linked to another employee")


# ── Lists & reports ─────────────────────────────────────────────────
@router.get("", response_model=list[EmployeeRead])
async def list_employees(
    skip: int = 0,
    limit: int = Query(default=50, le=500),
    search: str | None = None,
    department_id: int | None = None,
    is_active: bool | None = True,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> list[Employee]:
    query = select(Employee).order_by(Employee.name).offset(skip).limit(limit)
    if search:
        # Escape SQL LIKE metacharacters to prevent wildcard injection
        safe_search = search.replace("%", r"\%").replace("_", r"\_")
        pattern = f"%{safe_search}%"
        query = query.where(
            or_(
                Employee.name.ilike(pattern, escape="\\"),
                Employee.email.ilike(pattern, escape="\\"),
                Employee.designation.ilike(pattern, escape="\\"),
            )
        )
    if department_id is not None:
        query = query.where(Employee.department_id == department_id)
    if is_active is not None:
        query = query.where(Employee.is_active.is_(is_active))
    result = await db.execute(query)
    return list(result.scalars().all())


@router.get("/stats", response_model=EmployeeStats)
async def employee_stats(
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> EmployeeStats:
    total = (await db.execute(select(func.count(Employee.id)))).scalar_one()
    active = (
        await db.execute(select(func.count(Employee.id)).where(Employee.is_active.is_(True)))
    ).scalar_one()

    by_department = await db.execute(
        select(Department.name, func.count(Employee.id))
        .join(Employee, Employee.department_id == Department.id)
        .where(Employee.is_active.is_(True))
        .group_by(Department.name)
        .order_by(Department.name)
    )
    by_designation = await db.execute(
        select(Employee.designation, func.count(Employee.id))
        .where(Employee.is_active.is_(True))
        .group_by(Employee.designation)
        .order_by(Employee.designation)
    )
    salaries = [
        Decimal(s)
        for s in (
            await db.execute(select(Employee.salary).where(Employee.is_active.is_(True)))
        ).scalars()
    ]

    return EmployeeStats(
        total=total,
        active=active,
        inactive=total - active,
        by_department=[EmployeeCountByGroup(name=n, count=c) for n, c in by_department.all()],
        by_designation=[EmployeeCountByGroup(name=n, count=c) for n, c in by_designation.all()],
        salary=SalaryRange(
            minimum=quantize(min(salaries)) if salaries else ZERO,
            maximum=quantize(max(salaries)) if salaries else ZERO,
            average=quantize(sum(salaries) / len(salaries)) if salaries else ZERO,
        ),
    )


@router.get("/profile", response_model=EmployeeRead)
async def my_profile(employee: Employee = Depends(get_current_employee)) -> Employee:
    return employee


@router.get("/department/{department_id}", response_model=list[EmployeeRead])
async def employees_by_department(
    department_id: int,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> list[Employee]:
    if await db.get(Department, department_id) is None:
        raise NotFoundError("Department not found")
    result = await db.execute(
        select(Employee)
        .where(Employee.department_id == department_id, Employee.is_active.is_(True))
        .order_by(Employee.name)
    )
    return list(result.scalars().all())


# ── Employee CRUD ───────────────────────────────────────────────────
@router.post("", response_model=EmployeeRead, status_code=201)
async def create_employee(
    body: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> Employee:
    await _check_references(
        db, email=body.email, department_id=body.department_id, user_id=body.user_id
    )
    employee = Employee(**body.model_dump())
    db.add(employee)
    await db.commit()
    await db.refresh(employee)
    logger.info("Created employee %s (%s)", employee.name, employee.email)
    return employee


@router.get("/{employee_id}", response_model=EmployeeRead)
async def get_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Employee:
    await ensure_owner_or_staff(db, current_user, employee_id)
    return await _get_employee(db, employee_id)


@router.put("/{employee_id}", response_model=EmployeeRead)
async def update_employee(
    employee_id: int,
    body: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> Employee:
    emp = await _get_employee(db, employee_id)
    # Explicit nulls only clear the optional columns
    changes = {
        k: v
        for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k in NULLABLE_FIELDS
    }
    await _check_references(
        db,
        email=changes.get("email"),
        department_id=changes.get("department_id"),
        user_id=changes.get("user_id"),
        exclude_id=employee_id,
    )

    for field, value in changes.items():
        setattr(emp, field, value)

    await db.commit()
    await db.refresh(emp)
    logger.info("Updated employee %d", employee_id)
    return emp


@router.delete("/{employee_id}", response_model=MessageResponse)
async def delete_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> MessageResponse:
    """Soft-delete (deactivate) an employee. History is preserved."""
    emp = await _get_employee(db, employee_id)
    emp.is_active = False
    await db.commit()
    logger.info("Soft-deleted employee %d (%s)", employee_id, emp.name)
    return MessageResponse(message=f"Employee '{emp.name}' deactivated")


@router.put("/{employee_id}/reactivate", response_model=EmployeeRead)
async def reactivate_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> Employee:
    emp = await _get_employee(db, employee_id)
    if emp.is_active:
        raise StateError("Employee is already active")
    emp.is_active = True
    await db.commit()
    await db.refresh(emp)
    logger.info("Reactivated employee %d (%s)", employee_id, emp.name)
    return emp
