"""Pydantic schemas for LeaveRequest."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from payroll_erp.models.leave import LEAVE_TYPES


def _check_type(v: str | None) -> str | None:
    if v is not None and v not in LEAVE_TYPES:
        raise ValueError(f"Leave type must be one of: {', '.join(LEAVE_TYPES)}")
    return v


class LeaveCreate(BaseModel):
    # Omitted by employees applying for themselves
    employee_id: int | None = None
    start_date: date
    end_date: date
    reason: str
    leave_type: str = "personal"
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("reason")
    @classmethod
    def _reason(cls, v: str) -> str:
        v = v.strip()
        if not 10 <= len(v) <= 1000:
            raise ValueError("Reason must be between 10 and 1000 characters")
        return v

    @field_validator("leave_type")
    @classmethod
    def _type(cls, v: str) -> str:
        return _check_type(v)


class LeaveUpdate(BaseModel):
    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = None
    leave_type: str | None = None
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("reason")
    @classmethod
    def _reason(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not 10 <= len(v) <= 1000:
            raise ValueError("Reason must be between 10 and 1000 characters")
        return v

    @field_validator("leave_type")
    @classmethod
    def _type(cls, v: str | None) -> str | None:
        return _check_type(v)


class LeaveApprove(BaseModel):
    notes: str | None = Field(default=None, max_length=500)


class LeaveReject(BaseModel):
    rejection_reason: str

    @field_validator("rejection_reason")
    @classmethod
    def _reason(cls, v: str) -> str:
        v = v.strip()
        if not 10 <= len(v) <= 500:
            raise ValueError("Rejection reason must be between 10 and 500 characters")
        return v


class LeaveRead(BaseModel):
    id: int
    employee_id: int
    start_date: date
    end_date: date
    reason: str
    leave_type: str
    status: str
    total_days: int
    approved_by: int | None
    approved_at: datetime | None
    rejection_reason: str | None
    notes: str | None
    created_at: datetime | None

    model_config = {"from_attributes": True}


class LeaveStats(BaseModel):
    month: int
    year: int
    total_requests: int
    by_status: dict[str, int]
    by_type: dict[str, int]
    average_approved_days: Decimal
