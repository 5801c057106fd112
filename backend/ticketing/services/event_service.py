"""
Event lifecycle shared by both domains (get, list, cancel) plus the
sport-event specific create/update. General events live in
general_event_service.

Cancelling an event is terminal and cascades: the event is deactivated and
every active reservation is soft-cancelled in the same transaction, then
each affected student is notified.
"""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.exceptions import (
    EntityNotFoundError,
    EntityType,
    InvalidRequestError,
    PermissionDeniedError,
    ReservationLoadError,
)
from ticketing.core.logging import get_logger
from ticketing.core.metrics import event_cancellations, record_cancellation
from ticketing.models.event import Event
from ticketing.models.user import User, UserRole
from ticketing.models.venue import Sport, Stadium, Team
from ticketing.schemas.event import EventCreate, EventUpdate
from ticketing.schemas.venue import SportResponse, StadiumResponse, TeamResponse
from ticketing.services import reservation_service
from ticketing.services.notification_service import Notifier
from ticketing.services.reservation_service import SPORT_DOMAIN, ReservableDomain

logger = get_logger(__name__)


def validate_time_window(start, end) -> None:
    if end <= start:
        raise InvalidRequestError("Event end time must be after its start time")


async def ensure_organizer(db: AsyncSession, organizer_id: uuid.UUID) -> User:
    organizer = await db.get(User, organizer_id)
    if organizer is None:
        raise EntityNotFoundError(EntityType.ORGANIZER)
    return organizer


def resolve_organizer_id(current_user: User, requested: Optional[uuid.UUID]) -> uuid.UUID:
    """Admins may act for any organizer; organizers only for themselves."""
    if requested is None or current_user.role == UserRole.ORGANIZER.value:
        return current_user.id
    return requested


async def ensure_capacity_covers_reservations(
    db: AsyncSession,
    domain: ReservableDomain,
    event_id: uuid.UUID,
    capacity: int,
) -> None:
    reserved = await reservation_service.count_active_reservations(db, domain, event_id)
    if capacity < reserved:
        raise InvalidRequestError(
            f"Capacity {capacity} is lower than the {reserved} active reservations"
        )


# --------------------------------------------------------------------------
# Shared reads
# --------------------------------------------------------------------------

async def list_events(db: AsyncSession, domain: ReservableDomain, active_only: bool = False) -> list:
    model = domain.event_model
    query = select(model)
    if active_only:
        query = query.where(model.is_active.is_(True))
    result = await db.execute(query.order_by(model.start_datetime.asc()))
    return list(result.scalars().all())


async def list_events_by_organizer(db: AsyncSession, domain: ReservableDomain, organizer_id: uuid.UUID) -> list:
    await ensure_organizer(db, organizer_id)
    model = domain.event_model
    result = await db.execute(
        select(model)
        .where(model.organizer_id == organizer_id)
        .order_by(model.start_datetime.asc())
    )
    return list(result.scalars().all())


async def with_availability(db: AsyncSession, domain: ReservableDomain, events: list) -> list[dict]:
    """Attach capacity / reserved / available seat counts to each event."""
    counts = await reservation_service.count_active_by_event(db, domain, [e.id for e in events])
    payloads = []
    for event in events:
        capacity = domain.capacity_of(event)
        reserved = counts.get(event.id, 0)
        payload = {
            column.key: getattr(event, column.key)
            for column in event.__mapper__.column_attrs
        }
        payload.update(
            capacity=capacity,
            reserved_seats=reserved,
            available_seats=max(capacity - reserved, 0),
        )
        if domain is SPORT_DOMAIN:
            payload.update(
                sport=SportResponse.model_validate(event.sport),
                team_one=TeamResponse.model_validate(event.team_one),
                team_two=TeamResponse.model_validate(event.team_two),
                stadium=StadiumResponse.model_validate(event.stadium),
            )
        payloads.append(payload)
    return payloads


# --------------------------------------------------------------------------
# Cancellation (cascading)
# --------------------------------------------------------------------------

async def cancel_event(
    db: AsyncSession,
    domain: ReservableDomain,
    event_id: uuid.UUID,
    notifier: Notifier,
) -> dict:
    """
    Deactivate an event and soft-cancel all of its reservations.
    Already cancelled reservations are skipped without error.
    """
    model = domain.reservation_model
    try:
        if not await reservation_service.claim_event(db, domain, event_id, is_active=False):
            raise EntityNotFoundError(EntityType.EVENT)
        event = await reservation_service.get_event(db, domain, event_id, refresh=True)

        try:
            result = await db.execute(select(model).where(model.event_id == event_id))
            reservations = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("event_cancel_reservation_load_failed", event_id=str(event_id), error=str(e))
            raise ReservationLoadError() from e

        cancelled_students = []
        skipped = 0
        for reservation in reservations:
            if reservation.is_cancelled:
                record_cancellation(domain.name, False)
                skipped += 1
                continue
            if await reservation_service.mark_cancelled(db, domain, reservation.id):
                cancelled_students.append(reservation.student_id)
            else:
                skipped += 1

        # The flips bypassed the identity map; reload what this session holds
        await db.execute(
            select(model)
            .where(model.event_id == event_id)
            .execution_options(populate_existing=True)
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    event_cancellations.labels(domain=domain.name).inc()
    logger.info(
        "event_cancelled",
        domain=domain.name,
        event_id=str(event_id),
        reservations_cancelled=len(cancelled_students),
        reservations_already_cancelled=skipped,
    )
    await reservation_service.notify_cancellations(db, notifier, event.name, cancelled_students)
    return {
        "event_id": event_id,
        "reservations_cancelled": len(cancelled_students),
        "reservations_already_cancelled": skipped,
    }


# --------------------------------------------------------------------------
# Sport events
# --------------------------------------------------------------------------

async def _ensure_fixture(db: AsyncSession, data) -> None:
    """Stadium, sport and both teams must exist; the teams must differ."""
    if data.team_one_id == data.team_two_id:
        raise InvalidRequestError("An event needs two different teams")
    if await db.get(Stadium, data.stadium_id) is None:
        raise EntityNotFoundError(EntityType.STADIUM)
    if await db.get(Sport, data.sport_id) is None:
        raise EntityNotFoundError(EntityType.SPORT)
    for team_id in (data.team_one_id, data.team_two_id):
        if await db.get(Team, team_id) is None:
            raise EntityNotFoundError(EntityType.TEAM)


async def create_event(db: AsyncSession, event_data: EventCreate, organizer_id: uuid.UUID) -> Event:
    validate_time_window(event_data.start_datetime, event_data.end_datetime)
    await ensure_organizer(db, organizer_id)
    await _ensure_fixture(db, event_data)

    event = Event(
        name=event_data.name,
        description=event_data.description,
        start_datetime=event_data.start_datetime,
        end_datetime=event_data.end_datetime,
        sport_id=event_data.sport_id,
        team_one_id=event_data.team_one_id,
        team_two_id=event_data.team_two_id,
        stadium_id=event_data.stadium_id,
        organizer_id=organizer_id,
        is_active=True,
    )
    db.add(event)
    await db.flush()
    # Reload through a query so the selectin relationships come along
    event = await reservation_service.get_event(db, SPORT_DOMAIN, event.id, refresh=True)

    logger.info("event_created", domain=SPORT_DOMAIN.name, event_id=str(event.id), name=event.name)
    return event


async def update_event(db: AsyncSession, event_id: uuid.UUID, event_data: EventUpdate) -> Event:
    validate_time_window(event_data.start_datetime, event_data.end_datetime)
    await _ensure_fixture(db, event_data)

    if not await reservation_service.claim_event(db, SPORT_DOMAIN, event_id):
        raise EntityNotFoundError(EntityType.EVENT)
    event = await reservation_service.get_event(db, SPORT_DOMAIN, event_id, refresh=True)

    stadium = await db.get(Stadium, event_data.stadium_id)
    await ensure_capacity_covers_reservations(db, SPORT_DOMAIN, event_id, stadium.capacity)

    event.name = event_data.name
    event.description = event_data.description
    event.start_datetime = event_data.start_datetime
    event.end_datetime = event_data.end_datetime
    event.sport_id = event_data.sport_id
    event.team_one_id = event_data.team_one_id
    event.team_two_id = event_data.team_two_id
    event.stadium_id = event_data.stadium_id
    await db.flush()
    event = await reservation_service.get_event(db, SPORT_DOMAIN, event_id, refresh=True)

    logger.info("event_updated", domain=SPORT_DOMAIN.name, event_id=str(event_id))
    return event


def ensure_can_manage(user: User, event) -> None:
    """Organizers manage their own events; admins manage all of them."""
    if user.role == UserRole.ORGANIZER.value and event.organizer_id != user.id:
        raise PermissionDeniedError("Only the event's organizer can change it")
