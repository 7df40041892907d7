"""
Attendance model — one row per employee per calendar day.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal

from sqlalchemy import (Boolean, Column, Date, DateTime, ForeignKey, Index,
                        Integer, Numeric, String, Time, UniqueConstraint)

from payroll_erp.db.base import Base

ATTENDANCE_STATUSES = ("present", "absent", "late", "half_day")


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="uq_attendance_emp_date"),
        Index("ix_attendance_employee_date", "employee_id", "date"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_id: int = Column(Integer, ForeignKey("employees.id"), nullable=False)  # type: ignore[assignment]
    date: date = Column(Date, nullable=False, index=True)  # type: ignore[assignment]
    check_in: time | None = Column(Time, nullable=True)  # type: ignore[assignment]
    check_out: time | None = Column(Time, nullable=True)  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False, default="absent")  # type: ignore[assignment]
    # present | absent | late | half_day
    working_hours: Decimal | None = Column(Numeric(4, 2), nullable=True)  # type: ignore[assignment]
    is_late: bool = Column(Boolean, default=False, nullable=False)  # type: ignore[assignment]
    late_minutes: int | None = Column(Integer, nullable=True)  # type: ignore[assignment]
    overtime_hours: Decimal | None = Column(Numeric(4, 2), nullable=True)  # type: ignore[assignment]
    notes: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
