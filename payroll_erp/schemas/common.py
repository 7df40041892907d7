"""Generic response bodies shared by several routers."""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field

# Non-negative amount with at most two decimal places
Money = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class HealthResponse(BaseModel):
    status: str
    db: bool
    version: str
