"""
Tests for application-level endpoints and demo data seeding.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from ticketing.db.seed import DEMO_PASSWORD, seed_database
from ticketing.models import Event, GeneralEvent, User


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["cache"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_metrics_exposed(client: AsyncClient):
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "reservation_attempts_total" in response.text


@pytest.mark.asyncio
async def test_request_id_header(client: AsyncClient):
    response = await client.get("/")
    assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_seed_database_is_idempotent(db_session):
    added = await seed_database(db_session)
    assert added == {
        "users": 4,
        "stadiums": 2,
        "sports": 2,
        "teams": 4,
        "events": 2,
        "general_events": 2,
    }

    assert await seed_database(db_session) == {}
    users = await db_session.execute(select(func.count()).select_from(User))
    assert users.scalar_one() == 4


@pytest.mark.asyncio
async def test_seeded_accounts_can_log_in_and_reserve(client: AsyncClient, db_session):
    await seed_database(db_session)

    login = await client.post("/api/v1/auth/login", json={"email": "student@app.com", "password": DEMO_PASSWORD})
    assert login.status_code == 200
    headers = {"Authorization": f"Bearer {login.json()['data']['access_token']}"}

    me = (await client.get("/api/v1/users/me", headers=headers)).json()["data"]
    general_event = (await db_session.execute(select(GeneralEvent).limit(1))).scalar_one()
    response = await client.post(
        "/api/v1/general-reservations/",
        json={"event_id": str(general_event.id), "student_id": me["id"]},
        headers=headers,
    )
    assert response.status_code == 201

    events = (await db_session.execute(select(func.count()).select_from(Event))).scalar_one()
    assert events == 2


@pytest.mark.asyncio
async def test_incoming_request_id_is_kept(client: AsyncClient):
    response = await client.get("/", headers={"X-Request-ID": "gateway-42"})
    assert response.headers["X-Request-ID"] == "gateway-42"
