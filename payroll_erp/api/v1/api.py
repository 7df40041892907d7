"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from payroll_erp.api.v1.endpoints import (attendance, auth, departments,
                                          employees, health, leaves, payroll)

api_router = APIRouter()

# Auth (register, login, refresh, own profile, user management)
api_router.include_router(auth.router)

# Organisation
api_router.include_router(departments.router)
api_router.include_router(employees.router)

# Time tracking
api_router.include_router(attendance.router)
api_router.include_router(leaves.router)

# Payroll
api_router.include_router(payroll.router)

# Health
api_router.include_router(health.router)
