"""
Shared test fixtures for the payroll ERP test suite.

Every test gets a fresh in-memory aiosqlite database wrapped in the same
``Database`` class the application uses, and its own app instance.
"""

import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
# CORS fix (JSON format)
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["TIMEZONE_OFFSET"] = "+00:00"

from datetime import date
from decimal import Decimal

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from payroll_erp.api.v1.deps import get_current_active_user
from payroll_erp.core.security import get_password_hash
from payroll_erp.db.session import Database
from payroll_erp.main import create_app
from payroll_erp.models import Department, Employee, User

PASSWORD = "secret123"
# Hash once; bcrypt is deliberately slow
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture
async def database() -> AsyncGenerator[Database, None]:
    """A fresh in-memory database with all tables created."""
    db = Database(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with database.session_factory() as session:
        yield session


@pytest.fixture
async def users(database: Database) -> dict[str, User]:
    """One account per role."""
    async with database.session_factory() as session:
        accounts = {
            "admin": User(name="Admin User", email="admin@example.com", role="admin"),
            "hr": User(name="Hr User", email="hr@example.com", role="hr"),
            "employee": User(name="Plain Employee", email="employee@example.com", role="employee"),
        }
        for user in accounts.values():
            user.hashed_password = PASSWORD_HASH
            session.add(user)
        await session.commit()
        return accounts


@pytest.fixture
def acting_user(users: dict[str, User]) -> dict[str, User]:
    """Mutable holder of the user the auth override returns (admin by default)."""
    return {"user": users["admin"]}


@pytest.fixture
def login_as(acting_user: dict[str, User]):
    def _switch(user: User) -> None:
        acting_user["user"] = user

    return _switch


# ── Apps & clients ──────────────────────────────────────────────────
@pytest.fixture
def app(database: Database, acting_user: dict[str, User]) -> FastAPI:
    application = create_app(database)

    async def _override_get_current_active_user() -> User:
        return acting_user["user"]

    application.dependency_overrides[get_current_active_user] = _override_get_current_active_user
    return application


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app with auth overridden."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def raw_client(database: Database, users: dict[str, User]) -> AsyncGenerator[AsyncClient, None]:
    """A client without auth overrides, for exercising real tokens and cookies."""
    transport = ASGITransport(app=create_app(database))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ── Domain data ─────────────────────────────────────────────────────
@pytest.fixture
async def department(db_session: AsyncSession) -> Department:
    dept = Department(name="Engineering", description="Builds things")
    db_session.add(dept)
    await db_session.commit()
    return dept


@pytest.fixture
def make_employee(db_session: AsyncSession, department: Department):
    """Factory inserting an active employee straight into the database."""

    async def _make(
        name: str = "Alice Smith",
        salary: str = "3000.00",
        *,
        email: str | None = None,
        user: User | None = None,
        is_active: bool = True,
    ) -> Employee:
        emp = Employee(
            name=name,
            email=email or f"{name.lower().replace(' ', '.')}@example.com",
            designation="Engineer",
            salary=Decimal(salary),
            joining_date=date(2023, 1, 1),
            department_id=department.id,
            user_id=user.id if user is not None else None,
            is_active=is_active,
        )
        db_session.add(emp)
        await db_session.commit()
        return emp

    return _make
