"""
Department CRUD endpoints (staff only).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_erp.api.v1.deps import get_db, require_staff
from payroll_erp.core.exceptions import ConflictError, NotFoundError, StateError
from payroll_erp.models.department import Department
from payroll_erp.models.employee import Employee
from payroll_erp.models.user import User
from payroll_erp.schemas.common import MessageResponse
from payroll_erp.schemas.department import (DepartmentCreate, DepartmentDetail,
                                            DepartmentHeadcount,
                                            DepartmentMember, DepartmentRead,
                                            DepartmentStats, DepartmentUpdate)

router = APIRouter(prefix="/departments", tags=["departments"])
logger = logging.getLogger(__name__)


def _like(term: str) -> str:
    # Escape SQL LIKE metacharacters to prevent wildcard injection
    safe = term.replace("%", r"\%").replace("_", r"\_")
    return f"%{safe}%"


async def _get_department(db: AsyncSession, department_id: int) -> Department:
    department = await db.get(Department, department_id)
    if department is None:
        raise NotFoundError("Department not found")
    return department


async def _ensure_unique_name(
    db: AsyncSession, name: str, exclude_id: int | None = None
) -> None:
    query = select(Department.id).where(func.lower(Department.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Department.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise ConflictError("Department with this name already exists")


async def _active_headcount(db: AsyncSession, department_id: int) -> int:
    result = await db.execute(
        select(func.count(Employee.id)).where(
            Employee.department_id == department_id, Employee.is_active.is_(True)
        )
    )
    return result.scalar_one()


@router.get("", response_model=list[DepartmentRead])
async def list_departments(
    skip: int = 0,
    limit: int = Query(default=50, le=500),
    search: str | None = None,
    is_active: bool | None = None,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> list[Department]:
    query = select(Department).order_by(Department.name).offset(skip).limit(limit)
    if search:
        pattern = _like(search)
        query = query.where(
            or_(
                Department.name.ilike(pattern, escape="\\"),
                Department.description.ilike(pattern, escape="\\"),
            )
        )
    if is_active is not None:
        query = query.where(Department.is_active.is_(is_active))
    result = await db.execute(query)
    return list(result.scalars().all())


@router.get("/stats", response_model=DepartmentStats)
async def department_stats(
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> DepartmentStats:
    departments = list((await db.execute(select(Department).order_by(Department.name))).scalars().all())
    counts = dict(
        (
            await db.execute(
                select(Employee.department_id, func.count(Employee.id))
                .where(Employee.is_active.is_(True))
                .group_by(Employee.department_id)
            )
        ).all()
    )
    active = sum(1 for d in departments if d.is_active)
    return DepartmentStats(
        total=len(departments),
        active=active,
        inactive=len(departments) - active,
        headcount=[
            DepartmentHeadcount(id=d.id, name=d.name, employee_count=counts.get(d.id, 0))
            for d in departments
            if d.is_active
        ],
    )


@router.get("/{department_id}", response_model=DepartmentDetail)
async def get_department(
    department_id: int,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> DepartmentDetail:
    department = await _get_department(db, department_id)
    members = await db.execute(
        select(Employee)
        .where(Employee.department_id == department_id, Employee.is_active.is_(True))
        .order_by(Employee.name)
    )
    detail = DepartmentDetail.model_validate(department)
    detail.employees = [DepartmentMember.model_validate(e) for e in members.scalars().all()]
    return detail


@router.post("", response_model=DepartmentRead, status_code=201)
async def create_department(
    body: DepartmentCreate,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> Department:
    await _ensure_unique_name(db, body.name)
    department = Department(**body.model_dump())
    db.add(department)
    await db.commit()
    await db.refresh(department)
    logger.info("Created department %s", department.name)
    return department


@router.put("/{department_id}", response_model=DepartmentRead)
async def update_department(
    department_id: int,
    body: DepartmentUpdate,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> Department:
    department = await _get_department(db, department_id)
    changes = {
        k: v
        for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k == "description"
    }
    if "name" in changes:
        await _ensure_unique_name(db, changes["name"], exclude_id=department_id)

    for field, value in changes.items():
        setattr(department, field, value)

    await db.commit()
    await db.refresh(department)
    logger.info("Updated department %d", department_id)
    return department


@router.delete("/{department_id}", response_model=MessageResponse)
async def delete_department(
    department_id: int,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> MessageResponse:
    """Soft-delete a department that has no active employees."""
    department = await _get_department(db, department_id)
    if await _active_headcount(db, department_id):
        raise StateError("Cannot delete department with active employees")

    department.is_active = False
    await db.commit()
    logger.info("Deactivated department %d (%s)", department_id, department.name)
    return MessageResponse(message=f"Department '{department.name}' deactivated")
