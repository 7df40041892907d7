"""
Employee model — the anchor of every attendance, leave and payroll row.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (Boolean, Column, Date, DateTime, ForeignKey, Integer,
                        Numeric, String)

from payroll_erp.db.base import Base


class Employee(Base):
    __tablename__ = "employees"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    phone: str | None = Column(String(20), nullable=True)  # type: ignore[assignment]
    address: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    designation: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    salary: Decimal = Column(Numeric(10, 2), nullable=False)  # type: ignore[assignment]  # monthly
    joining_date: date | None = Column(Date, nullable=True)  # type: ignore[assignment]
    department_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("departments.id"), nullable=False, index=True
    )
    user_id: int | None = Column(  # type: ignore[assignment]
        Integer, ForeignKey("users.id"), unique=True, nullable=True
    )
    is_active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
