"""
Sport event endpoints. The active listing is cached in Redis; single-event
reads and availability always hit the database.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.logging import get_logger
from ticketing.core.security import get_current_user, require_organizer
from ticketing.db.session import get_db
from ticketing.models.user import User
from ticketing.schemas.common import ServiceResponse
from ticketing.schemas.event import Availability, EventCreate, EventResponse, EventUpdate
from ticketing.services import event_service, reservation_service
from ticketing.services.cache_service import (
    get_cache_generation,
    get_cached_active_events,
    invalidate_event_cache,
    set_cached_active_events,
)
from ticketing.services.notification_service import Notifier, get_notifier
from ticketing.services.reservation_service import SPORT_DOMAIN, ReservableDomain

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


async def render_events(db: AsyncSession, domain: ReservableDomain, events: list, schema: type[BaseModel]) -> list:
    payloads = await event_service.with_availability(db, domain, events)
    return [schema.model_validate(payload) for payload in payloads]


async def list_with_cache(db: AsyncSession, domain: ReservableDomain, active_only: bool, schema: type[BaseModel]) -> list:
    """
    Active listings are served from Redis when possible.
    Cache is invalidated by every event or reservation write of the domain.
    """
    generation = await get_cache_generation(domain.name) if active_only else None
    if generation is not None:
        cached = await get_cached_active_events(domain.name, generation)
        if cached is not None:
            logger.info("events_list_cache_hit", domain=domain.name)
            return [schema.model_validate(item) for item in cached]

    events = await event_service.list_events(db, domain, active_only)
    rendered = await render_events(db, domain, events, schema)

    if generation is not None:
        await set_cached_active_events(domain.name, generation, [item.model_dump(mode="json") for item in rendered])
    return rendered


@router.get("/", response_model=ServiceResponse[list[EventResponse]])
async def list_events_endpoint(
    active_only: bool = Query(False),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    events = await list_with_cache(db, SPORT_DOMAIN, active_only, EventResponse)
    return ServiceResponse(data=events, message="Successfully retrieved events")


@router.post("/", response_model=ServiceResponse[EventResponse], status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    current_user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    organizer_id = event_service.resolve_organizer_id(current_user, event_data.organizer_id)
    event = await event_service.create_event(db, event_data, organizer_id)
    [rendered] = await render_events(db, SPORT_DOMAIN, [event], EventResponse)
    # Bump the listing generation only once the write is visible to readers
    await db.commit()
    await invalidate_event_cache(SPORT_DOMAIN.name)
    return ServiceResponse(data=rendered, message="Successfully created event")


@router.get("/organizer/{organizer_id}", response_model=ServiceResponse[list[EventResponse]])
async def list_organizer_events(
    organizer_id: uuid.UUID,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    events = await event_service.list_events_by_organizer(db, SPORT_DOMAIN, organizer_id)
    rendered = await render_events(db, SPORT_DOMAIN, events, EventResponse)
    return ServiceResponse(data=rendered, message="Successfully retrieved events")


@router.get("/{event_id}", response_model=ServiceResponse[EventResponse])
async def get_event_endpoint(
    event_id: uuid.UUID,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    event = await reservation_service.get_event(db, SPORT_DOMAIN, event_id)
    [rendered] = await render_events(db, SPORT_DOMAIN, [event], EventResponse)
    return ServiceResponse(data=rendered, message="Successfully retrieved event")


@router.get("/{event_id}/availability", response_model=ServiceResponse[Availability])
async def get_availability_endpoint(
    event_id: uuid.UUID,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    availability = await reservation_service.get_availability(db, SPORT_DOMAIN, event_id)
    return ServiceResponse(data=availability, message="Successfully retrieved availability")


@router.put("/{event_id}", response_model=ServiceResponse[EventResponse])
async def update_event_endpoint(
    event_id: uuid.UUID,
    event_data: EventUpdate,
    current_user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    event_service.ensure_can_manage(current_user, await reservation_service.get_event(db, SPORT_DOMAIN, event_id))
    event = await event_service.update_event(db, event_id, event_data)
    [rendered] = await render_events(db, SPORT_DOMAIN, [event], EventResponse)
    await db.commit()
    await invalidate_event_cache(SPORT_DOMAIN.name)
    return ServiceResponse(data=rendered, message="Successfully updated event")


@router.delete("/{event_id}", response_model=ServiceResponse[bool])
async def cancel_event_endpoint(
    event_id: uuid.UUID,
    current_user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Cancel the event and every reservation made for it."""
    event_service.ensure_can_manage(current_user, await reservation_service.get_event(db, SPORT_DOMAIN, event_id))
    await event_service.cancel_event(db, SPORT_DOMAIN, event_id, notifier)
    await invalidate_event_cache(SPORT_DOMAIN.name)
    return ServiceResponse(data=True, message="Successfully cancelled event")
