"""Pydantic schemas for Department."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class DepartmentCreate(BaseModel):
    name: str
    description: str | None = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = v.strip()
        if not 2 <= len(v) <= 100:
            raise ValueError("Name must be between 2 and 100 characters")
        return v


class DepartmentUpdate(BaseModel):
    name: str | None = None
    description: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not 2 <= len(v) <= 100:
            raise ValueError("Name must be between 2 and 100 characters")
        return v


class DepartmentRead(BaseModel):
    id: int
    name: str
    description: str | None
    is_active: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}


class DepartmentMember(BaseModel):
    id: int
    name: str
    email: str
    designation: str

    model_config = {"from_attributes": True}


class DepartmentDetail(DepartmentRead):
    employees: list[DepartmentMember] = []


class DepartmentHeadcount(BaseModel):
    id: int
    name: str
    employee_count: int


class DepartmentStats(BaseModel):
    total: int
    active: int
    inactive: int
    headcount: list[DepartmentHeadcount]
