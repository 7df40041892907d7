"""
LeaveRequest model — an inclusive date range of requested absence.

Lifecycle: pending -> approved | rejected (both terminal). Editable and
deletable only while pending.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (Column, Date, DateTime, ForeignKey, Index, Integer,
                        String, Text)

from payroll_erp.db.base import Base

LEAVE_TYPES = ("sick", "vacation", "personal", "maternity", "paternity", "emergency", "other")
LEAVE_STATUSES = ("pending", "approved", "rejected")
BLOCKING_STATUSES = ("pending", "approved")


class LeaveRequest(Base):
    __tablename__ = "leaves"
    __table_args__ = (
        Index("ix_leaves_employee_range", "employee_id", "start_date", "end_date"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_id: int = Column(Integer, ForeignKey("employees.id"), nullable=False)  # type: ignore[assignment]
    start_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    end_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    reason: str = Column(Text, nullable=False)  # type: ignore[assignment]
    leave_type: str = Column(String(20), nullable=False, default="personal")  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False, default="pending", index=True)  # type: ignore[assignment]
    total_days: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    approved_by: int | None = Column(Integer, ForeignKey("users.id"), nullable=True)  # type: ignore[assignment]
    approved_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    rejection_reason: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    notes: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
