"""
Staff account administration tests.

Verifies:
1. Admin-only access
2. Create / detail / list with a one-time temporary password
3. Update: optimistic lock, self role change, last-admin protection,
   duplicate email, field-level audit diff
4. Password reset records history and invalidates the old password
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import update

from conftest import ADMIN_PASSWORD, STAFF_PASSWORD, create_staff, login
from library_staff.domain.staff import Staff
from library_staff.models.staff import StaffRecord
from library_staff.repositories.password_history import SqlPasswordHistoryRepository
from library_staff.repositories.staff import SqlStaffRepository
from library_staff.services.password_policy import policy_violations
from library_staff.use_cases.staff_accounts import UpdateStaffHandler


async def _backdate(session_factory, staff: Staff, seconds: int = 5) -> None:
    """Push updated_at into the past so same-second edits cannot mask a conflict."""
    async with session_factory() as session:
        await session.execute(
            update(StaffRecord)
            .where(StaffRecord.id == staff.id.value)
            .values(updated_at=datetime.now(timezone.utc) - timedelta(seconds=seconds))
        )
        await session.commit()


async def _detail(client: AsyncClient, staff_id: str) -> dict:
    response = await client.get(f"/api/staff/accounts/{staff_id}")
    assert response.status_code == 200, response.text
    return response.json()["data"]


def _update_body(detail: dict, **changes) -> dict:
    body = {k: detail[k] for k in ("name", "email", "role", "updated_at")}
    body.update(changes)
    return body


# ── Access ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_staff_cannot_use_admin_endpoints(staff_client: AsyncClient, staff_member):
    for method, path in [
        ("GET", "/api/staff/accounts"),
        ("GET", f"/api/staff/accounts/{staff_member.id.value}"),
        ("POST", f"/api/staff/accounts/{staff_member.id.value}/reset-password"),
    ]:
        response = await staff_client.request(method, path)
        assert response.status_code == 403, path
        assert response.json()["error"]["code"] == "AUTHZ_PERMISSION_DENIED"


@pytest.mark.asyncio
async def test_admin_endpoints_require_login(async_client: AsyncClient):
    response = await async_client.get("/api/staff/accounts")
    assert response.status_code == 401


# ── Create / read ───────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_create_staff(admin_client: AsyncClient, admin, client_factory, audit_sink):
    response = await admin_client.post(
        "/api/staff/accounts",
        json={"name": " New Hire ", "email": "New.Hire@Library.example.com", "role": "staff"},
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["staff"]["email"] == "new.hire@library.example.com"
    assert body["staff"]["name"] == "New Hire"
    assert body["staff"]["role"] == "staff"
    temporary = body["temporary_password"]
    assert policy_violations(temporary) == []

    # The temporary password works exactly as issued.
    client = client_factory()
    assert (await login(client, "new.hire@library.example.com", temporary)).status_code == 200

    # It is not shown again.
    detail = await _detail(admin_client, body["staff"]["id"])
    assert "temporary_password" not in detail
    assert detail["is_locked"] is False

    created = audit_sink.of("staff_created")
    assert created[0].actor_id == admin.id.value


@pytest.mark.asyncio
async def test_create_duplicate_email(admin_client: AsyncClient, staff_member):
    response = await admin_client.post(
        "/api/staff/accounts",
        json={"name": "Copy", "email": staff_member.email.value.upper(), "role": "staff"},
    )
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "DUPLICATE_EMAIL"


@pytest.mark.asyncio
async def test_create_rejects_bad_input(admin_client: AsyncClient):
    bad_email = await admin_client.post(
        "/api/staff/accounts", json={"name": "X", "email": "nope", "role": "staff"}
    )
    assert bad_email.json()["error"]["code"] == "INVALID_EMAIL"
    bad_name = await admin_client.post(
        "/api/staff/accounts",
        json={"name": "\x00\x01", "email": "ok@library.example.com", "role": "staff"},
    )
    assert bad_name.json()["error"]["code"] == "INVALID_STAFF_NAME"
    bad_role = await admin_client.post(
        "/api/staff/accounts",
        json={"name": "X", "email": "ok@library.example.com", "role": "owner"},
    )
    assert bad_role.status_code == 422
    assert bad_role.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_detail_marks_current_user(admin_client: AsyncClient, admin, staff_member):
    assert (await _detail(admin_client, admin.id.value))["is_current_user"] is True
    other = await _detail(admin_client, staff_member.id.value)
    assert other["is_current_user"] is False
    assert other["role"] == "staff"
    assert other["created_at"] and other["updated_at"]


@pytest.mark.asyncio
async def test_detail_not_found(admin_client: AsyncClient):
    response = await admin_client.get("/api/staff/accounts/01ARZ3NDEKTSV4RRFFQ69G5FAV")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "STAFF_NOT_FOUND"


@pytest.mark.asyncio
async def test_list_is_paginated_newest_first(admin_client: AsyncClient, session_factory, admin):
    for n in range(3):
        await create_staff(session_factory, email=f"member{n}@library.example.com")

    response = await admin_client.get("/api/staff/accounts", params={"per_page": 2})
    assert response.status_code == 200
    body = response.json()
    assert body["meta"] == {"current_page": 1, "last_page": 2, "per_page": 2, "total": 4}
    assert [s["email"] for s in body["data"]] == [
        "member2@library.example.com",
        "member1@library.example.com",
    ]

    page_two = (await admin_client.get("/api/staff/accounts", params={"page": 2, "per_page": 2})).json()
    assert [s["email"] for s in page_two["data"]] == [
        "member0@library.example.com",
        admin.email.value,
    ]


# ── Update ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_update_staff(admin_client: AsyncClient, staff_member, session_factory, audit_sink):
    await _backdate(session_factory, staff_member)
    detail = await _detail(admin_client, staff_member.id.value)

    response = await admin_client.put(
        f"/api/staff/accounts/{staff_member.id.value}",
        json=_update_body(detail, name="Renamed", email="renamed@library.example.com"),
    )
    assert response.status_code == 200, response.text
    staff = response.json()["staff"]
    assert staff["name"] == "Renamed"
    assert staff["email"] == "renamed@library.example.com"
    assert staff["updated_at"] != detail["updated_at"]

    changes = audit_sink.of("staff_updated")[0].details["changes"]
    assert changes == {
        "name": {"old": "Test Staff", "new": "Renamed"},
        "email": {"old": staff_member.email.value, "new": "renamed@library.example.com"},
    }


@pytest.mark.asyncio
async def test_stale_updated_at_is_conflict(admin_client: AsyncClient, staff_member, session_factory):
    await _backdate(session_factory, staff_member)
    detail = await _detail(admin_client, staff_member.id.value)

    first = await admin_client.put(
        f"/api/staff/accounts/{staff_member.id.value}", json=_update_body(detail, name="First")
    )
    assert first.status_code == 200

    # Second editor still holds the value read before the first save.
    second = await admin_client.put(
        f"/api/staff/accounts/{staff_member.id.value}", json=_update_body(detail, name="Second")
    )
    assert second.status_code == 409
    assert second.json()["error"]["code"] == "OPTIMISTIC_LOCK_CONFLICT"
    assert (await _detail(admin_client, staff_member.id.value))["name"] == "First"


@pytest.mark.asyncio
async def test_back_to_back_updates_in_same_second(db_session, staff_member, admin, audit_sink):
    """Two saves inside one second still produce distinguishable updated_at values."""
    handler = UpdateStaffHandler(SqlStaffRepository(db_session), db_session, audit_sink)
    stored = await SqlStaffRepository(db_session).get(staff_member.id)

    first = await handler.handle(
        staff_member.id.value, "One", stored.email.value, "staff", stored.updated_at, admin.id.value
    )
    assert first.is_ok
    stale = await handler.handle(
        staff_member.id.value, "Two", stored.email.value, "staff", stored.updated_at, admin.id.value
    )
    assert stale.error.code == "OPTIMISTIC_LOCK_CONFLICT"
    assert int(first.value.updated_at.timestamp()) > int(stored.updated_at.timestamp())


@pytest.mark.asyncio
async def test_update_not_found(admin_client: AsyncClient):
    response = await admin_client.put(
        "/api/staff/accounts/01ARZ3NDEKTSV4RRFFQ69G5FAV",
        json={
            "name": "Ghost",
            "email": "ghost@library.example.com",
            "role": "staff",
            "updated_at": datetime.now(timezone.utc).isoformat(),
        },
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_admin_cannot_change_own_role(admin_client: AsyncClient, admin, session_factory):
    # A second admin exists, so only the self-change rule can apply.
    await create_staff(session_factory, email="second.admin@library.example.com", is_admin=True)
    detail = await _detail(admin_client, admin.id.value)

    response = await admin_client.put(
        f"/api/staff/accounts/{admin.id.value}", json=_update_body(detail, role="staff")
    )
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "SELF_ROLE_CHANGE"


@pytest.mark.asyncio
async def test_admin_may_edit_own_name(admin_client: AsyncClient, admin, session_factory):
    await _backdate(session_factory, admin)
    detail = await _detail(admin_client, admin.id.value)

    response = await admin_client.put(
        f"/api/staff/accounts/{admin.id.value}", json=_update_body(detail, name="Chief Librarian")
    )
    assert response.status_code == 200, response.text


@pytest.mark.asyncio
async def test_last_admin_cannot_be_demoted(db_session, admin, audit_sink):
    acting = await SqlStaffRepository(db_session).get(admin.id)
    handler = UpdateStaffHandler(SqlStaffRepository(db_session), db_session, audit_sink)

    # Actor differs from the target so the self-change rule does not fire first.
    result = await handler.handle(
        admin.id.value, acting.name.value, acting.email.value, "staff", acting.updated_at, "someone-else"
    )
    assert not result.is_ok
    assert result.error.code == "LAST_ADMIN_PROTECTION"


@pytest.mark.asyncio
async def test_admin_can_be_demoted_when_another_exists(
    admin_client: AsyncClient, session_factory, audit_sink
):
    other = await create_staff(
        session_factory, email="deputy@library.example.com", name="Deputy", is_admin=True
    )
    await _backdate(session_factory, other)
    detail = await _detail(admin_client, other.id.value)

    response = await admin_client.put(
        f"/api/staff/accounts/{other.id.value}", json=_update_body(detail, role="staff")
    )
    assert response.status_code == 200, response.text
    assert response.json()["staff"]["role"] == "staff"
    assert audit_sink.of("staff_updated")[0].details["changes"] == {
        "role": {"old": "admin", "new": "staff"}
    }


@pytest.mark.asyncio
async def test_promote_staff_to_admin(admin_client: AsyncClient, staff_member, session_factory):
    await _backdate(session_factory, staff_member)
    detail = await _detail(admin_client, staff_member.id.value)
    response = await admin_client.put(
        f"/api/staff/accounts/{staff_member.id.value}", json=_update_body(detail, role="admin")
    )
    assert response.status_code == 200
    assert response.json()["staff"]["role"] == "admin"


@pytest.mark.asyncio
async def test_update_duplicate_email(admin_client: AsyncClient, staff_member, admin, session_factory):
    await _backdate(session_factory, staff_member)
    detail = await _detail(admin_client, staff_member.id.value)
    response = await admin_client.put(
        f"/api/staff/accounts/{staff_member.id.value}",
        json=_update_body(detail, email=admin.email.value),
    )
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "DUPLICATE_EMAIL"


@pytest.mark.asyncio
async def test_keeping_own_email_is_not_duplicate(admin_client: AsyncClient, staff_member, session_factory):
    await _backdate(session_factory, staff_member)
    detail = await _detail(admin_client, staff_member.id.value)
    response = await admin_client.put(
        f"/api/staff/accounts/{staff_member.id.value}",
        json=_update_body(detail, email=detail["email"].upper()),
    )
    assert response.status_code == 200


# ── Reset password ──────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_reset_password(
    admin_client: AsyncClient, staff_member, session_factory, client_factory, audit_sink
):
    response = await admin_client.post(f"/api/staff/accounts/{staff_member.id.value}/reset-password")
    assert response.status_code == 200
    temporary = response.json()["temporary_password"]
    assert len(temporary) == 16

    client = client_factory()
    assert (await login(client, staff_member.email.value, STAFF_PASSWORD)).status_code == 401
    assert (await login(client, staff_member.email.value, temporary)).status_code == 200

    async with session_factory() as session:
        history = await SqlPasswordHistoryRepository(session).find_recent(staff_member.id, 5)
    assert history[0].matches(temporary)
    assert audit_sink.of("password_reset")[0].target_id == staff_member.id.value


@pytest.mark.asyncio
async def test_reset_password_not_found(admin_client: AsyncClient):
    response = await admin_client.post("/api/staff/accounts/01ARZ3NDEKTSV4RRFFQ69G5FAV/reset-password")
    assert response.status_code == 404
