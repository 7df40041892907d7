"""Tests for employee CRUD endpoints."""

from decimal import Decimal

import pytest
from httpx import AsyncClient

EMPLOYEES = "/api/v1/employees"


def _employee(department_id: int, **overrides) -> dict:
    body = {
        "name": "Bob Jones",
        "email": "bob@example.com",
        "designation": "Developer",
        "salary": "4200.00",
        "joining_date": "2024-02-01",
        "department_id": department_id,
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_create_employee(async_client: AsyncClient, department):
    """POST /employees should create a new active employee."""
    resp = await async_client.post(EMPLOYEES, json=_employee(department.id))
    assert resp.status_code == 201
    data = resp.json()
    assert data["name"] == "Bob Jones"
    assert Decimal(data["salary"]) == Decimal("4200.00")
    assert data["is_active"] is True
    assert data["id"] is not None


@pytest.mark.asyncio
async def test_create_duplicate_email_rejected(async_client: AsyncClient, department):
    """Creating two employees with the same email should fail."""
    await async_client.post(EMPLOYEES, json=_employee(department.id))
    resp = await async_client.post(EMPLOYEES, json=_employee(department.id, name="Other Bob"))
    assert resp.status_code == 409
    assert "already exists" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_create_in_unknown_department(async_client: AsyncClient, department):
    resp = await async_client.post(EMPLOYEES, json=_employee(999))
    assert resp.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [{"salary": "-5"}, {"email": "not-an-email"}, {"name": "B"}, {"phone": "123"}],
)
async def test_create_rejects_invalid_fields(async_client: AsyncClient, department, overrides):
    resp = await async_client.post(EMPLOYEES, json=_employee(department.id, **overrides))
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_user_can_only_be_linked_once(async_client: AsyncClient, department, users):
    first = await async_client.post(
        EMPLOYEES, json=_employee(department.id, user_id=users["employee"].id)
    )
    assert first.status_code == 201
    second = await async_client.post(
        EMPLOYEES,
        json=_employee(department.id, email="x@example.com", user_id=users["employee"].id),
    )
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_list_employees_pagination(async_client: AsyncClient, make_employee):
    """GET /employees with skip/limit should paginate."""
    for i in range(5):
        await make_employee(f"Person {i}")
    resp = await async_client.get(f"{EMPLOYEES}?skip=2&limit=2")
    assert resp.status_code == 200
    assert [e["name"] for e in resp.json()] == ["Person 2", "Person 3"]


@pytest.mark.asyncio
async def test_search_escapes_wildcards(async_client: AsyncClient, make_employee):
    await make_employee("Alice Smith")
    await make_employee("Bob Jones")
    resp = await async_client.get(EMPLOYEES, params={"search": "smith"})
    assert [e["name"] for e in resp.json()] == ["Alice Smith"]
    resp = await async_client.get(EMPLOYEES, params={"search": "%"})
    assert resp.json() == []


@pytest.mark.asyncio
async def test_get_employee_not_found(async_client: AsyncClient, department):
    """Requesting a non-existent employee should return 404."""
    resp = await async_client.get(f"{EMPLOYEES}/9999")
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_update_employee(async_client: AsyncClient, make_employee):
    """PUT /employees/{id} should update employee details."""
    emp = await make_employee("Old Name")
    resp = await async_client.put(
        f"{EMPLOYEES}/{emp.id}", json={"name": "New Name", "salary": "5000.00"}
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "New Name"
    assert Decimal(data["salary"]) == Decimal("5000.00")


@pytest.mark.asyncio
async def test_update_ignores_null_for_required_fields(async_client: AsyncClient, make_employee):
    emp = await make_employee()
    resp = await async_client.put(f"{EMPLOYEES}/{emp.id}", json={"designation": None, "phone": None})
    assert resp.status_code == 200
    assert resp.json()["designation"] == "Engineer"


@pytest.mark.asyncio
async def test_delete_and_reactivate(async_client: AsyncClient, make_employee):
    """DELETE /employees/{id} should soft-delete; reactivation restores it."""
    emp = await make_employee("Del Me")
    resp = await async_client.delete(f"{EMPLOYEES}/{emp.id}")
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    listed = await async_client.get(EMPLOYEES)
    assert "Del Me" not in [e["name"] for e in listed.json()]
    inactive = await async_client.get(EMPLOYEES, params={"is_active": False})
    assert [e["name"] for e in inactive.json()] == ["Del Me"]

    back = await async_client.put(f"{EMPLOYEES}/{emp.id}/reactivate")
    assert back.status_code == 200
    assert back.json()["is_active"] is True
    again = await async_client.put(f"{EMPLOYEES}/{emp.id}/reactivate")
    assert again.status_code == 400


@pytest.mark.asyncio
async def test_stats(async_client: AsyncClient, make_employee):
    await make_employee("Ann Lee", salary="2000.00")
    await make_employee("Ben Ray", salary="4000.00")
    await make_employee("Gone Away", salary="9000.00", is_active=False)

    data = (await async_client.get(f"{EMPLOYEES}/stats")).json()
    assert (data["total"], data["active"], data["inactive"]) == (3, 2, 1)
    assert data["by_department"] == [{"name": "Engineering", "count": 2}]
    assert Decimal(data["salary"]["average"]) == Decimal("3000.00")
    assert Decimal(data["salary"]["maximum"]) == Decimal("4000.00")


# ── Access control ──────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_employee_sees_own_record_only(async_client: AsyncClient, make_employee, users, login_as):
    mine = await make_employee("Plain Employee", user=users["employee"])
    other = await make_employee("Someone Else")
    login_as(users["employee"])

    assert (await async_client.get(f"{EMPLOYEES}/profile")).json()["id"] == mine.id
    assert (await async_client.get(f"{EMPLOYEES}/{mine.id}")).status_code == 200
    assert (await async_client.get(f"{EMPLOYEES}/{other.id}")).status_code == 403
    assert (await async_client.get(EMPLOYEES)).status_code == 403
    assert (await async_client.delete(f"{EMPLOYEES}/{other.id}")).status_code == 403


@pytest.mark.asyncio
async def test_profile_without_link(async_client: AsyncClient, users, login_as, department):
    login_as(users["hr"])
    resp = await async_client.get(f"{EMPLOYEES}/profile")
    assert resp.status_code == 404
