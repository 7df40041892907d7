"""Tests for the /attendance endpoints."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from payroll_erp.api.v1.endpoints import attendance as attendance_endpoints

ATTENDANCE = "/api/v1/attendance"


@pytest.fixture
def clock(monkeypatch):
    """Pin the local clock used by check-in/out; call with (hour, minute)."""
    current = {"now": datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)}
    monkeypatch.setattr(attendance_endpoints, "_local_now", lambda: current["now"])

    def _set(hour: int, minute: int) -> None:
        current["now"] = current["now"].replace(hour=hour, minute=minute)

    return _set


@pytest.fixture
async def me(make_employee, users, login_as):
    """Act as the employee-role account, linked to an employee record."""
    emp = await make_employee("Plain Employee", user=users["employee"])
    login_as(users["employee"])
    return emp


@pytest.mark.asyncio
async def test_mark_derives_hours(async_client, make_employee):
    """09:30-18:00 is 8.5 hours with 30 late minutes and half an hour of overtime."""
    emp = await make_employee()
    response = await async_client.post(
        ATTENDANCE,
        json={"employee_id": emp.id, "date": "2026-03-10", "check_in": "09:30", "check_out": "18:00"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["check_in"] == "09:30"
    assert data["check_out"] == "18:00"
    assert Decimal(data["working_hours"]) == Decimal("8.50")
    assert data["is_late"] is True
    assert data["late_minutes"] == 30
    assert Decimal(data["overtime_hours"]) == Decimal("0.50")


@pytest.mark.asyncio
async def test_mark_ignores_client_supplied_hours(async_client, make_employee):
    emp = await make_employee()
    response = await async_client.post(
        ATTENDANCE,
        json={
            "employee_id": emp.id,
            "date": "2026-03-10",
            "check_in": "09:00",
            "check_out": "17:00",
            "working_hours": "12.00",
        },
    )
    data = response.json()
    assert Decimal(data["working_hours"]) == Decimal("8.00")
    assert data["overtime_hours"] is None


@pytest.mark.asyncio
async def test_mark_twice_same_day_conflicts(async_client, make_employee):
    emp = await make_employee()
    body = {"employee_id": emp.id, "date": "2026-03-10", "status": "absent"}
    assert (await async_client.post(ATTENDANCE, json=body)).status_code == 201
    response = await async_client.post(ATTENDANCE, json=body)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_checkout_before_checkin_rejected(async_client, make_employee):
    emp = await make_employee()
    response = await async_client.post(
        ATTENDANCE,
        json={"employee_id": emp.id, "date": "2026-03-10", "check_in": "18:00", "check_out": "09:00"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_range"
    assert (await async_client.get(ATTENDANCE)).json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"status": "vacation"}, {"check_in": "25:61"}])
async def test_mark_rejects_bad_values(async_client, make_employee, payload):
    emp = await make_employee()
    body = {"employee_id": emp.id, "date": "2026-03-10", **payload}
    assert (await async_client.post(ATTENDANCE, json=body)).status_code == 422


@pytest.mark.asyncio
async def test_update_rederives(async_client, make_employee):
    emp = await make_employee()
    created = (
        await async_client.post(
            ATTENDANCE,
            json={"employee_id": emp.id, "date": "2026-03-10", "check_in": "09:00", "check_out": "17:00"},
        )
    ).json()

    response = await async_client.put(f"{ATTENDANCE}/{created['id']}", json={"check_out": "19:15"})
    assert response.status_code == 200
    assert Decimal(response.json()["working_hours"]) == Decimal("10.25")
    assert Decimal(response.json()["overtime_hours"]) == Decimal("2.25")

    bad = await async_client.put(f"{ATTENDANCE}/{created['id']}", json={"check_out": "08:00"})
    assert bad.status_code == 400
    still = await async_client.get(f"{ATTENDANCE}/{created['id']}")
    assert still.json()["check_out"] == "19:15"


# ── Self-service ────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_check_in_and_out(async_client, me, clock):
    clock(9, 15)
    status = await async_client.get(f"{ATTENDANCE}/today")
    assert status.json()["status"] == "not_marked"

    checked_in = await async_client.post(f"{ATTENDANCE}/check-in")
    assert checked_in.status_code == 200
    assert checked_in.json()["late_minutes"] == 15
    assert checked_in.json()["working_hours"] is None

    clock(17, 45)
    checked_out = await async_client.post(f"{ATTENDANCE}/check-out")
    assert checked_out.status_code == 200
    data = checked_out.json()
    assert Decimal(data["working_hours"]) == Decimal("8.50")
    assert Decimal(data["overtime_hours"]) == Decimal("0.50")

    status = await async_client.get(f"{ATTENDANCE}/today")
    assert status.json()["status"] == "present"
    assert status.json()["attendance"]["id"] == data["id"]


@pytest.mark.asyncio
async def test_double_check_in_conflicts(async_client, me, clock):
    assert (await async_client.post(f"{ATTENDANCE}/check-in")).status_code == 200
    response = await async_client.post(f"{ATTENDANCE}/check-in")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_check_out_requires_check_in(async_client, me, clock):
    response = await async_client.post(f"{ATTENDANCE}/check-out")
    assert response.status_code == 400
    assert response.json()["error"] == "state_error"


@pytest.mark.asyncio
async def test_check_in_without_profile(async_client, users, login_as, department, clock):
    login_as(users["employee"])
    response = await async_client.post(f"{ATTENDANCE}/check-in")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_employee_cannot_mark_or_list(async_client, me):
    body = {"employee_id": me.id, "date": "2026-03-10"}
    assert (await async_client.post(ATTENDANCE, json=body)).status_code == 403
    assert (await async_client.get(ATTENDANCE)).status_code == 403


# ── Reports ─────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_monthly_summary_and_stats(async_client, make_employee):
    emp = await make_employee()
    rows = [
        ("2026-03-02", "09:00", "17:00", "present"),
        ("2026-03-03", "09:20", "17:20", "late"),
        ("2026-03-04", None, None, "absent"),
    ]
    for day, check_in, check_out, status in rows:
        body = {"employee_id": emp.id, "date": day, "status": status}
        if check_in:
            body.update(check_in=check_in, check_out=check_out)
        assert (await async_client.post(ATTENDANCE, json=body)).status_code == 201

    summary = await async_client.get(f"{ATTENDANCE}/monthly/{emp.id}/3/2026")
    assert summary.status_code == 200
    data = summary.json()
    assert (data["total_days"], data["present"], data["late"], data["absent"]) == (3, 1, 1, 1)
    assert Decimal(data["total_working_hours"]) == Decimal("16.00")
    assert Decimal(data["average_working_hours"]) == Decimal("8.00")

    stats = await async_client.get(f"{ATTENDANCE}/stats", params={"month": 3, "year": 2026})
    assert stats.json()["late_arrivals"] == 1
    assert stats.json()["total_records"] == 3


@pytest.mark.asyncio
async def test_monthly_summary_rejects_bad_period(async_client, make_employee):
    emp = await make_employee()
    response = await async_client.get(f"{ATTENDANCE}/monthly/{emp.id}/13/2026")
    assert response.status_code == 400
