"""Pydantic schemas for Payroll generation, updates and reporting."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from payroll_erp.core.config import settings
from payroll_erp.schemas.common import Money


def _check_year(v: int) -> int:
    if not settings.PAYROLL_MIN_YEAR <= v <= settings.PAYROLL_MAX_YEAR:
        raise ValueError(
            f"Year must be between {settings.PAYROLL_MIN_YEAR} and {settings.PAYROLL_MAX_YEAR}"
        )
    return v


class PayrollPeriod(BaseModel):
    month: int = Field(ge=1, le=12)
    year: int

    @field_validator("year")
    @classmethod
    def _year(cls, v: int) -> int:
        return _check_year(v)


class PayrollAdjustments(PayrollPeriod):
    bonus: Money = Decimal("0")
    overtime: Money = Decimal("0")
    allowances: Money = Decimal("0")
    deductions: Money = Decimal("0")


class PayrollCreate(PayrollAdjustments):
    employee_id: int
    base_salary: Money
    notes: str | None = Field(default=None, max_length=1000)


class PayrollBulkCreate(PayrollAdjustments):
    pass


class PayrollUpdate(BaseModel):
    base_salary: Money | None = None
    bonus: Money | None = None
    overtime: Money | None = None
    allowances: Money | None = None
    deductions: Money | None = None
    notes: str | None = Field(default=None, max_length=1000)
    payment_date: date | None = None


class PayrollMarkPaid(BaseModel):
    payment_date: date | None = None


class PayrollCancel(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class PayrollRead(BaseModel):
    id: int
    employee_id: int
    month: int
    year: int
    base_salary: Decimal
    bonus: Decimal
    overtime: Decimal
    allowances: Decimal
    deductions: Decimal
    leave_deductions: Decimal
    attendance_bonus: Decimal
    total_pay: Decimal
    status: str
    notes: str | None
    payment_date: date | None
    generated_by: int | None
    generated_at: datetime | None
    paid_by: int | None
    paid_at: datetime | None

    model_config = {"from_attributes": True}


class BulkPayrollResponse(BaseModel):
    success: bool = True
    message: str
    total_employees: int
    generated: list[PayrollRead]
    errors: list[str]


class PayrollYearSummary(BaseModel):
    employee_id: int
    year: int
    total_records: int
    paid_records: int
    pending_records: int
    total_earnings: Decimal
    total_paid: Decimal
    average_monthly_pay: Decimal
    monthly: list[PayrollRead]


class PayrollStats(BaseModel):
    month: int
    year: int
    total_records: int
    by_status: dict[str, int]
    total_payout: Decimal
    total_paid: Decimal
    average_total_pay: Decimal
