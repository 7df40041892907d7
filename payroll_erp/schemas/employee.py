"""Pydantic schemas for Employee."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from payroll_erp.schemas.common import Money


class EmployeeBase(BaseModel):
    name: str
    email: str
    phone: str | None = Field(default=None, min_length=10, max_length=20)
    address: str | None = Field(default=None, max_length=500)
    designation: str
    salary: Money
    joining_date: date | None = None
    department_id: int
    user_id: int | None = None

    @field_validator("name", "designation")
    @classmethod
    def _length(cls, v: str) -> str:
        v = v.strip()
        if not 2 <= len(v) <= 100:
            raise ValueError("Must be between 2 and 100 characters")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Please provide a valid email")
        return v


class EmployeeCreate(EmployeeBase):
    pass


class EmployeeUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = Field(default=None, min_length=10, max_length=20)
    address: str | None = Field(default=None, max_length=500)
    designation: str | None = None
    salary: Money | None = None
    joining_date: date | None = None
    department_id: int | None = None
    user_id: int | None = None

    @field_validator("name", "designation")
    @classmethod
    def _length(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not 2 <= len(v) <= 100:
            raise ValueError("Must be between 2 and 100 characters")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Please provide a valid email")
        return v


class EmployeeRead(BaseModel):
    id: int
    name: str
    email: str
    phone: str | None
    address: str | None
    designation: str
    salary: Decimal
    joining_date: date | None
    department_id: int
    user_id: int | None
    is_active: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}


class EmployeeCountByGroup(BaseModel):
    name: str
    count: int


class SalaryRange(BaseModel):
    minimum: Decimal
    maximum: Decimal
    average: Decimal


class EmployeeStats(BaseModel):
    total: int
    active: int
    inactive: int
    by_department: list[EmployeeCountByGroup]
    by_designation: list[EmployeeCountByGroup]
    salary: SalaryRange
