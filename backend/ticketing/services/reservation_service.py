"""
Reservation service with capacity-bounded, duplicate-free seat issuance.

One implementation serves both reservable domains. A `ReservableDomain`
names the event/reservation models and how capacity and the seat-label
prefix are derived:

  - sport events: capacity and label prefix come from the stadium
  - general events: capacity and label prefix come from the event itself

CONCURRENCY STRATEGY: Claim the event row, then check-then-insert
=================================================================

Problem:
  Availability is computed live as capacity - count(active reservations).
  Two students asking for the last seat both count N-1, both insert.
  Result: Overbooking.

Solution:
  Every reservation write starts with

    UPDATE <events> SET version = version + 1 WHERE id = :event_id

  inside the operation's transaction. On PostgreSQL this takes the event's
  row lock, on SQLite the database write lock; either way a second creator
  for the same event blocks until the first commits, then counts the
  committed rows. The count, the duplicate check, seat-label generation and
  the INSERT all run under that lock and commit together.

  The partial unique index on (student_id, event_id) WHERE NOT is_cancelled
  is the final safety net against duplicate active bookings.

Cancellation is a conditional UPDATE ... WHERE NOT is_cancelled; the row
count tells whether this call did the flip, so a concurrent double cancel
yields exactly one cancellation (and one e-mail).

E-mail goes out after commit under the best-effort policy in
notification_service.
"""

import random
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.exceptions import (
    EntityAlreadyExistsError,
    EntityNotFoundError,
    EntityType,
    EventNotActiveError,
    NoSeatsAvailableError,
)
from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_cancellation, record_reservation_attempt, reservation_latency
from ticketing.models.event import Event, GeneralEvent
from ticketing.models.reservation import GeneralReservation, Reservation
from ticketing.models.user import User, UserRole
from ticketing.services.notification_service import (
    RESERVATION_CANCELLED,
    RESERVATION_CREATED,
    Notifier,
    notify,
    reservation_cancelled_body,
    reservation_created_body,
)

logger = get_logger(__name__)

SEAT_NUMBER_RANGE = range(100, 1000)
ALREADY_RESERVED_MESSAGE = "You already reserved a seat for this event"


@dataclass(frozen=True)
class ReservableDomain:
    name: str
    event_model: type
    reservation_model: type
    capacity_of: Callable[[Any], int]
    label_source_of: Callable[[Any], str]


SPORT_DOMAIN = ReservableDomain(
    name="sport",
    event_model=Event,
    reservation_model=Reservation,
    capacity_of=lambda event: event.stadium.capacity,
    label_source_of=lambda event: event.stadium.name,
)

GENERAL_DOMAIN = ReservableDomain(
    name="general",
    event_model=GeneralEvent,
    reservation_model=GeneralReservation,
    capacity_of=lambda event: event.capacity,
    label_source_of=lambda event: event.name,
)


@dataclass
class CancellationResult:
    reservation: Any
    cancelled: bool


# --------------------------------------------------------------------------
# Queries
# --------------------------------------------------------------------------

async def count_active_reservations(db: AsyncSession, domain: ReservableDomain, event_id: uuid.UUID) -> int:
    model = domain.reservation_model
    result = await db.execute(
        select(func.count())
        .select_from(model)
        .where(model.event_id == event_id, model.is_cancelled.is_(False))
    )
    return result.scalar_one()


async def count_active_by_event(
    db: AsyncSession,
    domain: ReservableDomain,
    event_ids: Iterable[uuid.UUID],
) -> dict[uuid.UUID, int]:
    """Active reservation counts for many events in one query."""
    ids = list(event_ids)
    if not ids:
        return {}
    model = domain.reservation_model
    result = await db.execute(
        select(model.event_id, func.count())
        .where(model.event_id.in_(ids), model.is_cancelled.is_(False))
        .group_by(model.event_id)
    )
    counts = {event_id: 0 for event_id in ids}
    counts.update({event_id: count for event_id, count in result.all()})
    return counts


async def has_active_reservation(
    db: AsyncSession,
    domain: ReservableDomain,
    student_id: uuid.UUID,
    event_id: uuid.UUID,
) -> bool:
    model = domain.reservation_model
    result = await db.execute(
        select(model.id).where(
            model.student_id == student_id,
            model.event_id == event_id,
            model.is_cancelled.is_(False),
        ).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def get_event(db: AsyncSession, domain: ReservableDomain, event_id: uuid.UUID, refresh: bool = False):
    model = domain.event_model
    query = select(model).where(model.id == event_id)
    if refresh:
        query = query.execution_options(populate_existing=True)
    event = (await db.execute(query)).scalar_one_or_none()
    if event is None:
        raise EntityNotFoundError(EntityType.EVENT)
    return event


async def get_availability(db: AsyncSession, domain: ReservableDomain, event_id: uuid.UUID) -> dict:
    event = await get_event(db, domain, event_id)
    capacity = domain.capacity_of(event)
    reserved = await count_active_reservations(db, domain, event_id)
    return {
        "event_id": event.id,
        "capacity": capacity,
        "reserved_seats": reserved,
        "available_seats": max(capacity - reserved, 0),
    }


async def get_reservation(db: AsyncSession, domain: ReservableDomain, reservation_id: uuid.UUID):
    model = domain.reservation_model
    result = await db.execute(select(model).where(model.id == reservation_id))
    reservation = result.scalar_one_or_none()
    if reservation is None:
        raise EntityNotFoundError(EntityType.RESERVATION)
    return reservation


async def list_reservations_by_event(
    db: AsyncSession,
    domain: ReservableDomain,
    event_id: uuid.UUID,
    active_only: bool = False,
) -> list:
    model = domain.reservation_model
    query = select(model).where(model.event_id == event_id)
    if active_only:
        query = query.where(model.is_cancelled.is_(False))
    result = await db.execute(query.order_by(model.created_at.asc()))
    return list(result.scalars().all())


async def list_reservations_by_student(
    db: AsyncSession,
    domain: ReservableDomain,
    student_id: uuid.UUID,
    active_only: bool = False,
) -> list:
    model = domain.reservation_model
    query = select(model).where(model.student_id == student_id)
    if active_only:
        query = query.where(model.is_cancelled.is_(False))
    result = await db.execute(query.order_by(model.created_at.asc()))
    return list(result.scalars().all())


# --------------------------------------------------------------------------
# Seat labels
# --------------------------------------------------------------------------

def seat_prefix(source: str) -> str:
    return (source or "")[:2].upper().ljust(2, "X")


async def next_seat_number(
    db: AsyncSession,
    domain: ReservableDomain,
    event,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Pick a seat label not held by any active reservation of the event.
    Must run while the event is claimed, otherwise two callers can pick
    the same free number.
    """
    model = domain.reservation_model
    prefix = seat_prefix(domain.label_source_of(event))
    result = await db.execute(
        select(model.seat_number).where(model.event_id == event.id, model.is_cancelled.is_(False))
    )
    used = set()
    for label in result.scalars():
        suffix = label[len(prefix):]
        if label.startswith(prefix) and suffix.isdigit():
            used.add(int(suffix))

    free = [number for number in SEAT_NUMBER_RANGE if number not in used]
    if free:
        number = (rng or random).choice(free)
    else:
        number = max(max(used), SEAT_NUMBER_RANGE.stop - 1) + 1
    return f"{prefix}{number}"


# --------------------------------------------------------------------------
# Writes
# --------------------------------------------------------------------------

async def claim_event(db: AsyncSession, domain: ReservableDomain, event_id: uuid.UUID, **values) -> bool:
    """
    Bump the event version (plus any extra column values) and report
    whether the event exists. Holds the event lock until commit/rollback.
    """
    model = domain.event_model
    result = await db.execute(
        update(model)
        .where(model.id == event_id)
        .values(version=model.version + 1, **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


async def mark_cancelled(db: AsyncSession, domain: ReservableDomain, reservation_id: uuid.UUID) -> bool:
    """Flip is_cancelled if still active. True only for the call that flipped it."""
    model = domain.reservation_model
    result = await db.execute(
        update(model)
        .where(model.id == reservation_id, model.is_cancelled.is_(False))
        .values(is_cancelled=True)
        .execution_options(synchronize_session=False)
    )
    cancelled = result.rowcount > 0
    record_cancellation(domain.name, cancelled)
    return cancelled


async def _insert_reservation(
    db: AsyncSession,
    domain: ReservableDomain,
    student_id: uuid.UUID,
    event_id: uuid.UUID,
    rng: Optional[random.Random],
):
    # Concurrent creators for this event queue on this statement until commit
    if not await claim_event(db, domain, event_id):
        record_reservation_attempt(domain.name, "not_found")
        raise EntityNotFoundError(EntityType.EVENT)

    event = await get_event(db, domain, event_id, refresh=True)
    if not event.is_active:
        record_reservation_attempt(domain.name, "inactive")
        raise EventNotActiveError()

    capacity = domain.capacity_of(event)
    reserved = await count_active_reservations(db, domain, event_id)
    if capacity - reserved <= 0:
        logger.warning(
            "reservation_failed_no_seats",
            domain=domain.name,
            event_id=str(event_id),
            capacity=capacity,
            reserved=reserved,
        )
        record_reservation_attempt(domain.name, "no_seats")
        raise NoSeatsAvailableError()

    if await has_active_reservation(db, domain, student_id, event_id):
        record_reservation_attempt(domain.name, "duplicate")
        raise EntityAlreadyExistsError(ALREADY_RESERVED_MESSAGE)

    reservation = domain.reservation_model(
        event_id=event_id,
        student_id=student_id,
        seat_number=await next_seat_number(db, domain, event, rng),
        is_cancelled=False,
    )
    db.add(reservation)
    try:
        await db.flush()
    except IntegrityError:
        record_reservation_attempt(domain.name, "duplicate")
        raise EntityAlreadyExistsError(ALREADY_RESERVED_MESSAGE)
    await db.refresh(reservation)
    return event, reservation


async def create_reservation(
    db: AsyncSession,
    domain: ReservableDomain,
    student_id: uuid.UUID,
    event_id: uuid.UUID,
    notifier: Notifier,
    rng: Optional[random.Random] = None,
):
    """
    Issue one seat of `event_id` to `student_id`.

    Checks, in order: student exists, event exists (and is active), a seat
    is free, the student holds no active reservation for the event.
    """
    with reservation_latency.labels(domain=domain.name).time():
        student = await db.get(User, student_id)
        # Only student accounts hold seats
        if student is None or student.role != UserRole.STUDENT.value:
            record_reservation_attempt(domain.name, "not_found")
            raise EntityNotFoundError(EntityType.STUDENT)

        try:
            event, reservation = await _insert_reservation(db, domain, student_id, event_id, rng)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    record_reservation_attempt(domain.name, "created")
    logger.info(
        "reservation_created",
        domain=domain.name,
        reservation_id=str(reservation.id),
        event_id=str(event_id),
        student_id=str(student_id),
        seat_number=reservation.seat_number,
    )
    await notify(
        notifier,
        student.email,
        RESERVATION_CREATED,
        reservation_created_body(event.name, reservation.seat_number),
    )
    return reservation


async def cancel_reservation(
    db: AsyncSession,
    domain: ReservableDomain,
    reservation_id: uuid.UUID,
    notifier: Notifier,
) -> CancellationResult:
    """
    Soft-cancel a reservation. Cancelling an already cancelled reservation
    is not an error: the result comes back with cancelled=False and no
    e-mail is sent.
    """
    reservation = await get_reservation(db, domain, reservation_id)
    if reservation.is_cancelled:
        record_cancellation(domain.name, False)
        logger.info("reservation_cancel_noop", domain=domain.name, reservation_id=str(reservation_id))
        return CancellationResult(reservation=reservation, cancelled=False)

    try:
        cancelled = await mark_cancelled(db, domain, reservation_id)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    reservation = await get_reservation_fresh(db, domain, reservation_id)
    if not cancelled:
        logger.info("reservation_cancel_noop", domain=domain.name, reservation_id=str(reservation_id))
        return CancellationResult(reservation=reservation, cancelled=False)

    logger.info(
        "reservation_cancelled",
        domain=domain.name,
        reservation_id=str(reservation_id),
        event_id=str(reservation.event_id),
    )
    event = await get_event(db, domain, reservation.event_id)
    await notify_cancellations(db, notifier, event.name, [reservation.student_id])
    return CancellationResult(reservation=reservation, cancelled=True)


async def get_reservation_fresh(db: AsyncSession, domain: ReservableDomain, reservation_id: uuid.UUID):
    model = domain.reservation_model
    result = await db.execute(
        select(model).where(model.id == reservation_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def notify_cancellations(
    db: AsyncSession,
    notifier: Notifier,
    event_name: str,
    student_ids: list[uuid.UUID],
) -> None:
    if not student_ids:
        return
    result = await db.execute(select(User.id, User.email).where(User.id.in_(set(student_ids))))
    emails = dict(result.all())
    for student_id in student_ids:
        email = emails.get(student_id)
        if email is None:
            logger.warning("notification_skipped_unknown_student", student_id=str(student_id))
            continue
        await notify(notifier, email, RESERVATION_CANCELLED, reservation_cancelled_body(event_name))
