"""
Payroll model — one record per employee per (month, year) period.

Lifecycle: pending -> paid (terminal) | cancelled.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (Column, Date, DateTime, ForeignKey, Integer, Numeric,
                        String, Text, UniqueConstraint)

from payroll_erp.db.base import Base

PAYROLL_STATUSES = ("pending", "paid", "cancelled")


class Payroll(Base):
    __tablename__ = "payrolls"
    __table_args__ = (
        UniqueConstraint("employee_id", "month", "year", name="uq_payroll_emp_period"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_id: int = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)  # type: ignore[assignment]
    month: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    year: int = Column(Integer, nullable=False)  # type: ignore[assignment]

    # Caller-supplied figures
    base_salary: Decimal = Column(Numeric(10, 2), nullable=False)  # type: ignore[assignment]
    bonus: Decimal = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))  # type: ignore[assignment]
    overtime: Decimal = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))  # type: ignore[assignment]
    allowances: Decimal = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))  # type: ignore[assignment]
    deductions: Decimal = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))  # type: ignore[assignment]

    # Derived at generation time only
    leave_deductions: Decimal = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))  # type: ignore[assignment]
    attendance_bonus: Decimal = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))  # type: ignore[assignment]
    total_pay: Decimal = Column(Numeric(10, 2), nullable=False)  # type: ignore[assignment]

    status: str = Column(String(20), nullable=False, default="pending", index=True)  # type: ignore[assignment]
    notes: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    payment_date: date | None = Column(Date, nullable=True)  # type: ignore[assignment]
    generated_by: int | None = Column(Integer, ForeignKey("users.id"), nullable=True)  # type: ignore[assignment]
    generated_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    paid_by: int | None = Column(Integer, ForeignKey("users.id"), nullable=True)  # type: ignore[assignment]
    paid_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
