"""
FastAPI dependencies — database session, auth guards and ownership checks.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_erp.core.exceptions import NotFoundError
from payroll_erp.core.security import ACCESS, decode_token
from payroll_erp.db.session import Database
from payroll_erp.models.employee import Employee
from payroll_erp.models.user import User

# auto_error=False so the cookie can be checked when the header is missing
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


# ── Database session ────────────────────────────────────────────────
def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with get_database(request).session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode JWT from Header OR Cookie, look up user."""
    # Priority: Header > Cookie
    final_token = token
    if not final_token and access_token:
        # Cookies are set as "Bearer <token>"
        final_token = access_token.removeprefix("Bearer ")

    credentials_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not final_token:
        raise credentials_exc

    payload = decode_token(final_token, ACCESS)
    if payload is None or payload.get("sub") is None:
        raise credentials_exc

    result = await db.execute(select(User).where(User.id == int(payload["sub"])))
    user = result.scalar_one_or_none()
    if user is None:
        raise credentials_exc
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Reject inactive accounts."""
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user account")
    return current_user


async def require_admin(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Only allow admin role to proceed."""
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user


async def require_staff(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Admin or HR."""
    if not current_user.is_staff:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin or HR privileges required",
        )
    return current_user


# ── Employee linkage ────────────────────────────────────────────────
async def find_linked_employee(db: AsyncSession, user: User) -> Employee | None:
    result = await db.execute(select(Employee).where(Employee.user_id == user.id))
    return result.scalar_one_or_none()


async def get_current_employee(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Employee:
    """The employee record linked to the signed-in account."""
    employee = await find_linked_employee(db, current_user)
    if employee is None:
        raise NotFoundError("No employee profile is linked to this account")
    return employee


async def ensure_owner_or_staff(db: AsyncSession, user: User, employee_id: int) -> None:
    """Raise 403 unless *user* is staff or is linked to *employee_id*."""
    if user.is_staff:
        return
    employee = await find_linked_employee(db, user)
    if employee is None or employee.id != employee_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )
