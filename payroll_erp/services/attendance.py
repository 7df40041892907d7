"""
Per-day attendance derivation: working hours, lateness and overtime.

Times are handled at minute granularity ("HH:MM"); seconds are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from decimal import Decimal

from payroll_erp.core.config import settings
from payroll_erp.core.exceptions import InvalidRangeError, ValidationError
from payroll_erp.core.numbers import quantize


@dataclass(frozen=True)
class AttendanceMetrics:
    working_hours: Decimal | None = None
    is_late: bool = False
    late_minutes: int | None = None
    overtime_hours: Decimal | None = None


def parse_clock(value: str) -> time:
    """Parse an ``HH:MM`` (or ``HH:MM:SS``) string."""
    try:
        parsed = time.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid time '{value}', expected HH:MM") from None
    return parsed.replace(second=0, microsecond=0)


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def _hours(minutes: int) -> Decimal:
    return quantize(Decimal(minutes) / Decimal(60))


def derive_lateness(check_in: time, standard_start: time | None = None) -> tuple[bool, int | None]:
    """Return ``(is_late, late_minutes)``; minutes are ``None`` when on time."""
    start = standard_start or settings.standard_start
    delta = _minutes(check_in) - _minutes(start)
    if delta > 0:
        return True, delta
    return False, None


def derive_attendance(
    check_in: time | None,
    check_out: time | None,
    *,
    standard_start: time | None = None,
    standard_hours: int | None = None,
) -> AttendanceMetrics:
    """Derive the computed attendance fields from a check-in/check-out pair.

    Working hours and overtime need both times; lateness only needs the
    check-in. A check-out earlier than the check-in raises
    :class:`InvalidRangeError` instead of yielding negative hours.
    Overtime stays ``None`` unless the day exceeds the standard length.
    """
    if check_in is None:
        return AttendanceMetrics()

    is_late, late_minutes = derive_lateness(check_in, standard_start)
    if check_out is None:
        return AttendanceMetrics(is_late=is_late, late_minutes=late_minutes)

    worked = _minutes(check_out) - _minutes(check_in)
    if worked < 0:
        raise InvalidRangeError("Check-out time must be after check-in time")

    full_day = (standard_hours if standard_hours is not None else settings.STANDARD_WORK_HOURS) * 60
    overtime = _hours(worked - full_day) if worked > full_day else None

    return AttendanceMetrics(
        working_hours=_hours(worked),
        is_late=is_late,
        late_minutes=late_minutes,
        overtime_hours=overtime,
    )
