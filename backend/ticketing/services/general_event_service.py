"""
General event create/update. Reads and cancellation are shared with sport
events in event_service.
"""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.exceptions import EntityNotFoundError, EntityType
from ticketing.core.logging import get_logger
from ticketing.models.event import GeneralEvent
from ticketing.schemas.event import GeneralEventCreate, GeneralEventUpdate
from ticketing.services import reservation_service
from ticketing.services.event_service import (
    ensure_capacity_covers_reservations,
    ensure_organizer,
    validate_time_window,
)
from ticketing.services.reservation_service import GENERAL_DOMAIN

logger = get_logger(__name__)

_ADDRESS_FIELDS = ("address_line1", "address_line2", "city", "state", "zip_code")


async def create_general_event(
    db: AsyncSession,
    event_data: GeneralEventCreate,
    organizer_id: uuid.UUID,
) -> GeneralEvent:
    validate_time_window(event_data.start_datetime, event_data.end_datetime)
    await ensure_organizer(db, organizer_id)

    event = GeneralEvent(
        name=event_data.name,
        description=event_data.description,
        start_datetime=event_data.start_datetime,
        end_datetime=event_data.end_datetime,
        capacity=event_data.capacity,
        organizer_id=organizer_id,
        is_active=True,
        **{field: getattr(event_data, field) for field in _ADDRESS_FIELDS},
    )
    db.add(event)
    await db.flush()
    await db.refresh(event)

    logger.info(
        "event_created",
        domain=GENERAL_DOMAIN.name,
        event_id=str(event.id),
        name=event.name,
        capacity=event.capacity,
    )
    return event


async def update_general_event(
    db: AsyncSession,
    event_id: uuid.UUID,
    event_data: GeneralEventUpdate,
) -> GeneralEvent:
    validate_time_window(event_data.start_datetime, event_data.end_datetime)

    # Claimed so a concurrent reservation cannot slip in above the new capacity
    if not await reservation_service.claim_event(db, GENERAL_DOMAIN, event_id):
        raise EntityNotFoundError(EntityType.EVENT)
    event = await reservation_service.get_event(db, GENERAL_DOMAIN, event_id, refresh=True)
    await ensure_capacity_covers_reservations(db, GENERAL_DOMAIN, event_id, event_data.capacity)

    event.name = event_data.name
    event.description = event_data.description
    event.start_datetime = event_data.start_datetime
    event.end_datetime = event_data.end_datetime
    event.capacity = event_data.capacity
    for field in _ADDRESS_FIELDS:
        setattr(event, field, getattr(event_data, field))
    await db.flush()
    await db.refresh(event)

    logger.info("event_updated", domain=GENERAL_DOMAIN.name, event_id=str(event_id))
    return event
