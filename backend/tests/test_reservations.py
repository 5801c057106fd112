"""
Tests for reservation endpoints: creation, cancellation and listings.
"""

import uuid

import pytest
from httpx import AsyncClient

from ticketing.services.notification_service import RESERVATION_CANCELLED, RESERVATION_CREATED


async def _reserve(client, headers, event_id, student_id, path="/api/v1/reservations/"):
    return await client.post(
        path,
        json={"event_id": str(event_id), "student_id": str(student_id)},
        headers=headers,
    )


@pytest.mark.asyncio
async def test_reserve_seat(client: AsyncClient, headers_for, student, sport_event, notifier):
    """Successful reservation returns the seat and mails the student."""
    response = await _reserve(client, headers_for(student), sport_event.id, student.id)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["event_id"] == str(sport_event.id)
    assert data["student_id"] == str(student.id)
    assert data["is_cancelled"] is False
    assert data["seat_number"].startswith("CA")

    [mail] = notifier.to(student.email)
    assert mail.subject == RESERVATION_CREATED
    assert data["seat_number"] in mail.body


@pytest.mark.asyncio
async def test_reserve_unauthenticated(client: AsyncClient, student, sport_event):
    """Unauthenticated reservation returns 401."""
    response = await _reserve(client, {}, sport_event.id, student.id)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_student_cannot_reserve_for_another(client: AsyncClient, headers_for, student, other_student, sport_event):
    response = await _reserve(client, headers_for(student), sport_event.id, other_student.id)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_organizer_reserves_for_student(client: AsyncClient, headers_for, organizer, student, sport_event):
    response = await _reserve(client, headers_for(organizer), sport_event.id, student.id)
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_reserve_unknown_student(client: AsyncClient, headers_for, admin, sport_event):
    response = await _reserve(client, headers_for(admin), sport_event.id, uuid.uuid4())
    assert response.status_code == 404
    assert response.json()["message"] == "Student not found"


@pytest.mark.asyncio
async def test_organizer_cannot_hold_a_seat(client: AsyncClient, headers_for, organizer, sport_event):
    response = await _reserve(client, headers_for(organizer), sport_event.id, organizer.id)
    assert response.status_code == 404
    assert response.json()["message"] == "Student not found"
    assert response.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_reserve_unknown_event(client: AsyncClient, headers_for, student):
    response = await _reserve(client, headers_for(student), uuid.uuid4(), student.id)
    assert response.status_code == 404
    assert response.json()["message"] == "Event not found"


@pytest.mark.asyncio
async def test_duplicate_reservation(client: AsyncClient, headers_for, student, sport_event):
    """Same student reserving the same event twice returns 409."""
    first = await _reserve(client, headers_for(student), sport_event.id, student.id)
    assert first.status_code == 201

    second = await _reserve(client, headers_for(student), sport_event.id, student.id)
    assert second.status_code == 409
    assert second.json()["error"] == "already_exists"


@pytest.mark.asyncio
async def test_sold_out(client: AsyncClient, headers_for, student, other_student, make_general_event):
    event = await make_general_event(capacity=1)
    path = "/api/v1/general-reservations/"
    assert (await _reserve(client, headers_for(student), event.id, student.id, path)).status_code == 201

    response = await _reserve(client, headers_for(other_student), event.id, other_student.id, path)
    assert response.status_code == 409
    assert response.json()["error"] == "no_seats_available"


@pytest.mark.asyncio
async def test_cancel_twice_is_soft_failure(client: AsyncClient, headers_for, student, sport_event, notifier):
    created = await _reserve(client, headers_for(student), sport_event.id, student.id)
    reservation_id = created.json()["data"]["id"]

    first = await client.delete(f"/api/v1/reservations/{reservation_id}", headers=headers_for(student))
    assert first.status_code == 200
    assert first.json()["success"] is True
    assert first.json()["data"]["is_cancelled"] is True

    second = await client.delete(f"/api/v1/reservations/{reservation_id}", headers=headers_for(student))
    assert second.status_code == 200
    assert second.json()["success"] is False
    assert second.json()["message"] == "Reservation already cancelled"
    assert second.json()["data"]["is_cancelled"] is True

    subjects = [m.subject for m in notifier.to(student.email)]
    assert subjects == [RESERVATION_CREATED, RESERVATION_CANCELLED]


@pytest.mark.asyncio
async def test_cancel_unknown_reservation(client: AsyncClient, headers_for, student):
    response = await client.delete(f"/api/v1/reservations/{uuid.uuid4()}", headers=headers_for(student))
    assert response.status_code == 404
    assert response.json()["message"] == "Reservation not found"


@pytest.mark.asyncio
async def test_student_cannot_cancel_someone_elses(client: AsyncClient, headers_for, student, other_student, sport_event):
    created = await _reserve(client, headers_for(student), sport_event.id, student.id)
    reservation_id = created.json()["data"]["id"]

    response = await client.delete(f"/api/v1/reservations/{reservation_id}", headers=headers_for(other_student))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_rebook_after_cancel(client: AsyncClient, headers_for, student, sport_event):
    created = await _reserve(client, headers_for(student), sport_event.id, student.id)
    await client.delete(f"/api/v1/reservations/{created.json()['data']['id']}", headers=headers_for(student))

    again = await _reserve(client, headers_for(student), sport_event.id, student.id)
    assert again.status_code == 201

    listing = await client.get(f"/api/v1/reservations/student/{student.id}", headers=headers_for(student))
    assert len(listing.json()["data"]) == 2
    active = await client.get(
        f"/api/v1/reservations/student/{student.id}?active_only=true", headers=headers_for(student)
    )
    assert [r["id"] for r in active.json()["data"]] == [again.json()["data"]["id"]]


@pytest.mark.asyncio
async def test_list_by_event(client: AsyncClient, headers_for, organizer, student, other_student, sport_event):
    for person in (student, other_student):
        await _reserve(client, headers_for(person), sport_event.id, person.id)

    response = await client.get(f"/api/v1/reservations/event/{sport_event.id}", headers=headers_for(organizer))
    assert response.status_code == 200
    assert {r["student_id"] for r in response.json()["data"]} == {str(student.id), str(other_student.id)}


@pytest.mark.asyncio
async def test_list_by_unknown_event(client: AsyncClient, headers_for, organizer):
    response = await client.get(f"/api/v1/reservations/event/{uuid.uuid4()}", headers=headers_for(organizer))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_student_cannot_list_others(client: AsyncClient, headers_for, student, other_student):
    response = await client.get(f"/api/v1/reservations/student/{other_student.id}", headers=headers_for(student))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_domains_are_separate(client: AsyncClient, headers_for, student, sport_event):
    """A sport event id is unknown to the general reservation endpoints."""
    response = await _reserve(
        client, headers_for(student), sport_event.id, student.id, "/api/v1/general-reservations/"
    )
    assert response.status_code == 404
