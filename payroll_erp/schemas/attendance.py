"""Pydantic schemas for daily Attendance records."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field, field_serializer, field_validator

from payroll_erp.core.exceptions import ValidationError as ClockError
from payroll_erp.models.attendance import ATTENDANCE_STATUSES
from payroll_erp.services.attendance import parse_clock


def _check_status(v: str | None) -> str | None:
    if v is not None and v not in ATTENDANCE_STATUSES:
        raise ValueError(f"Status must be one of: {', '.join(ATTENDANCE_STATUSES)}")
    return v


def _clock(v: object) -> object:
    """Accept "HH:MM" strings or time values, kept at minute granularity."""
    if isinstance(v, str):
        try:
            return parse_clock(v)
        except ClockError as exc:
            raise ValueError(exc.message) from None
    if isinstance(v, dt.time):
        return v.replace(second=0, microsecond=0)
    return v


class AttendanceCreate(BaseModel):
    employee_id: int
    date: dt.date
    check_in: dt.time | None = None
    check_out: dt.time | None = None
    status: str = "present"
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("status")
    @classmethod
    def _status(cls, v: str) -> str:
        return _check_status(v)

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _minutes(cls, v: object) -> object:
        return _clock(v)


class AttendanceUpdate(BaseModel):
    check_in: dt.time | None = None
    check_out: dt.time | None = None
    status: str | None = None
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("status")
    @classmethod
    def _status(cls, v: str | None) -> str | None:
        return _check_status(v)

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _minutes(cls, v: object) -> object:
        return _clock(v)


class CheckRequest(BaseModel):
    notes: str | None = Field(default=None, max_length=500)


class AttendanceRead(BaseModel):
    id: int
    employee_id: int
    date: dt.date
    check_in: dt.time | None
    check_out: dt.time | None
    status: str
    working_hours: Decimal | None
    is_late: bool
    late_minutes: int | None
    overtime_hours: Decimal | None
    notes: str | None
    created_at: dt.datetime | None

    model_config = {"from_attributes": True}

    @field_serializer("check_in", "check_out")
    def _hhmm(self, v: dt.time | None) -> str | None:
        return v.strftime("%H:%M") if v is not None else None


class TodayStatus(BaseModel):
    date: dt.date
    status: str  # record status, or "not_marked"
    attendance: AttendanceRead | None = None


class MonthlySummary(BaseModel):
    employee_id: int
    month: int
    year: int
    total_days: int
    present: int
    absent: int
    late: int
    half_day: int
    total_working_hours: Decimal
    average_working_hours: Decimal


class AttendanceStats(BaseModel):
    month: int
    year: int
    total_records: int
    by_status: dict[str, int]
    late_arrivals: int
    average_working_hours: Decimal
