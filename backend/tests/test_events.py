"""
Tests for sport event endpoints, including cascading cancellation.
"""

import uuid
from datetime import datetime, timezone, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import Select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.models import Reservation, UserRole
from ticketing.services.notification_service import RESERVATION_CANCELLED


def _window(days: int = 30) -> tuple[str, str]:
    start = datetime.now(timezone.utc) + timedelta(days=days)
    return start.isoformat(), (start + timedelta(hours=2)).isoformat()


def _payload(sport, teams, stadium, **overrides) -> dict:
    start, end = _window()
    payload = {
        "name": "Derby Day",
        "description": "Local derby",
        "start_datetime": start,
        "end_datetime": end,
        "sport_id": str(sport.id),
        "team_one_id": str(teams[0].id),
        "team_two_id": str(teams[1].id),
        "stadium_id": str(stadium.id),
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_event(client: AsyncClient, headers_for, organizer, sport, teams, stadium):
    """Organizer can create an event; seats come from the stadium."""
    response = await client.post(
        "/api/v1/events/",
        json=_payload(sport, teams, stadium),
        headers=headers_for(organizer),
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["name"] == "Derby Day"
    assert data["organizer_id"] == str(organizer.id)
    assert data["is_active"] is True
    assert data["stadium"]["name"] == "Campus Arena"
    assert data["team_one"]["name"] == "Lions"
    assert data["capacity"] == 100
    assert data["available_seats"] == 100  # All seats available initially


@pytest.mark.asyncio
async def test_admin_creates_event_for_organizer(client: AsyncClient, headers_for, admin, organizer, sport, teams, stadium):
    response = await client.post(
        "/api/v1/events/",
        json=_payload(sport, teams, stadium, organizer_id=str(organizer.id)),
        headers=headers_for(admin),
    )
    assert response.status_code == 201
    assert response.json()["data"]["organizer_id"] == str(organizer.id)


@pytest.mark.asyncio
async def test_create_event_unauthenticated(client: AsyncClient, sport, teams, stadium):
    """Unauthenticated request returns 401."""
    response = await client.post("/api/v1/events/", json=_payload(sport, teams, stadium))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_student_cannot_create_event(client: AsyncClient, headers_for, student, sport, teams, stadium):
    response = await client.post(
        "/api/v1/events/",
        json=_payload(sport, teams, stadium),
        headers=headers_for(student),
    )
    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"


@pytest.mark.asyncio
async def test_create_event_end_before_start(client: AsyncClient, headers_for, organizer, sport, teams, stadium):
    start, end = _window()
    response = await client.post(
        "/api/v1/events/",
        json=_payload(sport, teams, stadium, start_datetime=end, end_datetime=start),
        headers=headers_for(organizer),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_request"


@pytest.mark.asyncio
async def test_create_event_same_team_twice(client: AsyncClient, headers_for, organizer, sport, teams, stadium):
    response = await client.post(
        "/api/v1/events/",
        json=_payload(sport, teams, stadium, team_two_id=str(teams[0].id)),
        headers=headers_for(organizer),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_event_unknown_stadium(client: AsyncClient, headers_for, organizer, sport, teams, stadium):
    response = await client.post(
        "/api/v1/events/",
        json=_payload(sport, teams, stadium, stadium_id=str(uuid.uuid4())),
        headers=headers_for(organizer),
    )
    assert response.status_code == 404
    assert response.json()["message"] == "Stadium not found"


@pytest.mark.asyncio
async def test_get_event(client: AsyncClient, headers_for, student, sport_event):
    response = await client.get(f"/api/v1/events/{sport_event.id}", headers=headers_for(student))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == str(sport_event.id)
    assert data["sport"]["name"] == "Football"
    assert data["reserved_seats"] == 0


@pytest.mark.asyncio
async def test_get_nonexistent_event(client: AsyncClient, headers_for, student):
    response = await client.get(f"/api/v1/events/{uuid.uuid4()}", headers=headers_for(student))
    assert response.status_code == 404
    assert response.json()["message"] == "Event not found"


@pytest.mark.asyncio
async def test_list_events_active_only(client: AsyncClient, headers_for, admin, student, make_sport_event):
    kept = await make_sport_event(name="Kept Match")
    dropped = await make_sport_event(name="Dropped Match")
    await client.delete(f"/api/v1/events/{dropped.id}", headers=headers_for(admin))

    everything = await client.get("/api/v1/events/", headers=headers_for(student))
    assert {e["name"] for e in everything.json()["data"]} == {"Kept Match", "Dropped Match"}

    active = await client.get("/api/v1/events/?active_only=true", headers=headers_for(student))
    assert [e["id"] for e in active.json()["data"]] == [str(kept.id)]


@pytest.mark.asyncio
async def test_list_events_by_organizer(client: AsyncClient, headers_for, make_user, organizer, student, make_sport_event):
    other = await make_user(UserRole.ORGANIZER)
    mine = await make_sport_event()
    await make_sport_event(organizer_id=other.id)

    response = await client.get(f"/api/v1/events/organizer/{organizer.id}", headers=headers_for(student))
    assert response.status_code == 200
    assert [e["id"] for e in response.json()["data"]] == [str(mine.id)]


@pytest.mark.asyncio
async def test_list_events_unknown_organizer(client: AsyncClient, headers_for, student):
    response = await client.get(f"/api/v1/events/organizer/{uuid.uuid4()}", headers=headers_for(student))
    assert response.status_code == 404
    assert response.json()["message"] == "Organizer not found"


@pytest.mark.asyncio
async def test_availability_reflects_reservations(client: AsyncClient, headers_for, student, sport_event):
    await client.post(
        "/api/v1/reservations/",
        json={"event_id": str(sport_event.id), "student_id": str(student.id)},
        headers=headers_for(student),
    )
    response = await client.get(f"/api/v1/events/{sport_event.id}/availability", headers=headers_for(student))
    assert response.status_code == 200
    assert response.json()["data"] == {
        "event_id": str(sport_event.id),
        "capacity": 100,
        "reserved_seats": 1,
        "available_seats": 99,
    }


@pytest.mark.asyncio
async def test_update_event_moves_stadium(client: AsyncClient, headers_for, organizer, sport, teams, sport_event, make_stadium):
    bigger = await make_stadium(name="Grand Bowl", capacity=500)
    response = await client.put(
        f"/api/v1/events/{sport_event.id}",
        json=_payload(sport, teams, bigger, name="Derby Moved"),
        headers=headers_for(organizer),
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Derby Moved"
    assert data["stadium"]["id"] == str(bigger.id)
    assert data["capacity"] == 500


@pytest.mark.asyncio
async def test_update_event_rejects_stadium_below_reservations(
    client: AsyncClient, headers_for, organizer, student, other_student, sport, teams, sport_event, make_stadium
):
    for person in (student, other_student):
        await client.post(
            "/api/v1/reservations/",
            json={"event_id": str(sport_event.id), "student_id": str(person.id)},
            headers=headers_for(person),
        )
    tiny = await make_stadium(name="Tiny Field", capacity=1)

    response = await client.put(
        f"/api/v1/events/{sport_event.id}",
        json=_payload(sport, teams, tiny),
        headers=headers_for(organizer),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_other_organizer_cannot_update(client: AsyncClient, headers_for, make_user, sport, teams, stadium, sport_event):
    intruder = await make_user(UserRole.ORGANIZER)
    response = await client.put(
        f"/api/v1/events/{sport_event.id}",
        json=_payload(sport, teams, stadium),
        headers=headers_for(intruder),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_cancel_event_cascades(client: AsyncClient, headers_for, make_user, organizer, sport_event, notifier):
    """3 active + 1 already cancelled: all 4 end cancelled, only 3 get mail."""
    students = [await make_user(UserRole.STUDENT) for _ in range(4)]
    reservation_ids = []
    for person in students:
        response = await client.post(
            "/api/v1/reservations/",
            json={"event_id": str(sport_event.id), "student_id": str(person.id)},
            headers=headers_for(person),
        )
        reservation_ids.append(response.json()["data"]["id"])
    await client.delete(f"/api/v1/reservations/{reservation_ids[0]}", headers=headers_for(students[0]))

    response = await client.delete(f"/api/v1/events/{sport_event.id}", headers=headers_for(organizer))
    assert response.status_code == 200
    assert response.json()["data"] is True

    event = await client.get(f"/api/v1/events/{sport_event.id}", headers=headers_for(organizer))
    assert event.json()["data"]["is_active"] is False

    reservations = await client.get(f"/api/v1/reservations/event/{sport_event.id}", headers=headers_for(organizer))
    assert len(reservations.json()["data"]) == 4
    assert all(r["is_cancelled"] for r in reservations.json()["data"])

    cancelled_mail = [m for m in notifier.sent if m.subject == RESERVATION_CANCELLED]
    assert len(cancelled_mail) == 4  # one from the direct cancel, three from the cascade
    assert sorted(m.to for m in cancelled_mail) == sorted(s.email for s in students)


@pytest.mark.asyncio
async def test_cancel_event_rolls_back_when_reservations_cannot_load(
    client: AsyncClient, headers_for, organizer, student, sport_event, monkeypatch
):
    await client.post(
        "/api/v1/reservations/",
        json={"event_id": str(sport_event.id), "student_id": str(student.id)},
        headers=headers_for(student),
    )
    execute = AsyncSession.execute

    async def execute_failing_reservation_load(self, statement, *args, **kwargs):
        if isinstance(statement, Select) and statement.column_descriptions[0]["entity"] is Reservation:
            raise OperationalError("SELECT reservations", {}, ConnectionError("connection reset"))
        return await execute(self, statement, *args, **kwargs)

    monkeypatch.setattr(AsyncSession, "execute", execute_failing_reservation_load)
    response = await client.delete(f"/api/v1/events/{sport_event.id}", headers=headers_for(organizer))
    monkeypatch.undo()

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "reservation_load_failed"

    event = await client.get(f"/api/v1/events/{sport_event.id}", headers=headers_for(organizer))
    assert event.json()["data"]["is_active"] is True
    assert event.json()["data"]["reserved_seats"] == 1


@pytest.mark.asyncio
async def test_cancel_nonexistent_event(client: AsyncClient, headers_for, organizer):
    response = await client.delete(f"/api/v1/events/{uuid.uuid4()}", headers=headers_for(organizer))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_student_cannot_cancel_event(client: AsyncClient, headers_for, student, sport_event):
    response = await client.delete(f"/api/v1/events/{sport_event.id}", headers=headers_for(student))
    assert response.status_code == 403
