import base64
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

import slipboard.db.session as db_session_module
from slipboard.auth.security import create_access_token
from slipboard.core.config import settings
from slipboard.db.session import get_db
from slipboard.main import app

from factories import PDF, link, make_class, make_school, make_slot, make_student, make_user


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


async def _setup(db: AsyncSession):
    teacher = await make_user(db, "teacher", "Ms Reed")
    school = await make_school(db)
    cls = await make_class(db, school, teacher)
    guardian = await make_user(db, "parent", "Gail One")
    student = await make_student(db, cls, "Sam One")
    await link(db, student, guardian, cls)
    return teacher, school, cls, guardian, student


@pytest.mark.asyncio
async def test_create_event_sign_and_download(client: AsyncClient, db_session: AsyncSession, login) -> None:
    teacher, school, cls, guardian, student = await _setup(db_session)
    start = datetime.now(timezone.utc) + timedelta(days=3)

    login(teacher)
    response = await client.post(
        "/api/v1/events",
        json={
            "school_id": str(school.id),
            "class_id": str(cls.id),
            "title": "Farm visit",
            "start_at": start.isoformat(),
            "end_at": (start + timedelta(hours=5)).isoformat(),
            "visibility": "class",
            "requires_obligation_form": True,
            "cost": "12.50",
        },
    )
    assert response.status_code == 201
    body = response.json()
    assert body["fan_out"] == {"created": 1, "skipped": 0, "failed": 0}
    event_id = body["event_id"]

    response = await client.put(f"/api/v1/events/{event_id}/form", json={"form_pdf": _b64(b"%PDF blank")})
    assert response.status_code == 204

    login(guardian)
    response = await client.get("/api/v1/dashboard/inbox")
    assert response.status_code == 200
    [item] = response.json()
    assert item["event_title"] == "Farm visit"
    assert item["status"] == "unread"
    assert item["has_obligation_form"] is True
    slip_id = item["obligation_id"]

    response = await client.post(
        f"/api/v1/obligations/{slip_id}/sign",
        json={"form_pdf": _b64(PDF), "payment_method": "cash"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "signed"

    response = await client.post(
        f"/api/v1/obligations/{slip_id}/sign",
        json={"form_pdf": _b64(PDF), "payment_method": "cash"},
    )
    assert response.status_code == 409

    response = await client.get(f"/api/v1/obligations/{slip_id}/document")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content == PDF

    login(teacher)
    response = await client.put(f"/api/v1/obligations/{slip_id}/cash-received", json={"received": True})
    assert response.status_code == 200
    assert response.json()["cash_received_at"] is not None

    response = await client.post("/api/v1/dashboard/event-status", json={"event_ids": [event_id]})
    assert response.status_code == 200
    [status] = response.json()
    assert status["counts"] == {"total": 1, "signed": 1, "pending": 0}
    assert status["students"][0]["cash_received"] is True


@pytest.mark.asyncio
async def test_role_guards(client: AsyncClient, db_session: AsyncSession, login) -> None:
    teacher, school, cls, guardian, student = await _setup(db_session)

    login(guardian)
    response = await client.post("/api/v1/interviews/slots", json={"class_id": str(cls.id), "windows": []})
    assert response.status_code == 403

    login(teacher)
    response = await client.get("/api/v1/dashboard/inbox")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_slot_claim_conflict_over_http(client: AsyncClient, db_session: AsyncSession, login) -> None:
    teacher, school, cls, guardian, student = await _setup(db_session)
    other_parent = await make_user(db_session, "parent", "Gus Two")
    await link(db_session, student, other_parent, cls)
    slot_a = await make_slot(db_session, cls, hours_from_now=24)
    slot_b = await make_slot(db_session, cls, hours_from_now=25)

    login(guardian)
    response = await client.post(f"/api/v1/interviews/slots/{slot_a.id}/claim", json={"student_id": str(student.id)})
    assert response.status_code == 200

    login(other_parent)
    response = await client.post(f"/api/v1/interviews/slots/{slot_b.id}/claim", json={"student_id": str(student.id)})
    assert response.status_code == 409
    assert response.json()["detail"] == "This child already has a slot in this class"

    login(teacher)
    response = await client.get(f"/api/v1/interviews/classes/{cls.id}/slots")
    assert response.status_code == 200
    claimed = [s for s in response.json() if s["is_claimed"]]
    assert [s["guardian_name"] for s in claimed] == ["Gail One"]


@pytest.mark.asyncio
async def test_unknown_slip_is_not_found(client: AsyncClient, db_session: AsyncSession, login) -> None:
    teacher, school, cls, guardian, student = await _setup(db_session)

    login(guardian)
    response = await client.post(
        "/api/v1/obligations/00000000-0000-0000-0000-000000000001/unsign",
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_bearer_token_is_verified(client: AsyncClient, db_session: AsyncSession) -> None:
    teacher, school, cls, guardian, student = await _setup(db_session)
    token = create_access_token(subject={"sub": str(guardian.id), "role": "parent", "email": guardian.email})

    response = await client.get("/api/v1/dashboard/inbox", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json() == []

    response = await client.get("/api/v1/dashboard/inbox", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_missing_database_is_service_unavailable(
    client: AsyncClient, db_session: AsyncSession, login, monkeypatch
) -> None:
    teacher, *_ = await _setup(db_session)
    app.dependency_overrides.pop(get_db, None)
    monkeypatch.setattr(settings, "database_url", None)
    monkeypatch.setattr(db_session_module, "_sessionmaker", None)

    login(teacher)
    response = await client.get("/api/v1/interviews/slots")

    assert response.status_code == 503
    assert response.json()["detail"] == "Database not configured"
