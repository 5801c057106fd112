"""
General event endpoints. Same surface as sport events, with the capacity
and address stored on the event itself.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.api.routes.events import list_with_cache, render_events
from ticketing.core.security import get_current_user, require_organizer
from ticketing.db.session import get_db
from ticketing.models.user import User
from ticketing.schemas.common import ServiceResponse
from ticketing.schemas.event import Availability, GeneralEventCreate, GeneralEventResponse, GeneralEventUpdate
from ticketing.services import event_service, general_event_service, reservation_service
from ticketing.services.cache_service import invalidate_event_cache
from ticketing.services.notification_service import Notifier, get_notifier
from ticketing.services.reservation_service import GENERAL_DOMAIN

router = APIRouter(prefix="/general-events", tags=["General Events"])


@router.get("/", response_model=ServiceResponse[list[GeneralEventResponse]])
async def list_general_events(
    active_only: bool = Query(False),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    events = await list_with_cache(db, GENERAL_DOMAIN, active_only, GeneralEventResponse)
    return ServiceResponse(data=events, message="Successfully retrieved all general events")


@router.post("/", response_model=ServiceResponse[GeneralEventResponse], status_code=status.HTTP_201_CREATED)
async def create_general_event(
    event_data: GeneralEventCreate,
    current_user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    organizer_id = event_service.resolve_organizer_id(current_user, event_data.organizer_id)
    event = await general_event_service.create_general_event(db, event_data, organizer_id)
    [rendered] = await render_events(db, GENERAL_DOMAIN, [event], GeneralEventResponse)
    # Bump the listing generation only once the write is visible to readers
    await db.commit()
    await invalidate_event_cache(GENERAL_DOMAIN.name)
    return ServiceResponse(data=rendered, message="Successfully created general event")


@router.get("/organizer/{organizer_id}", response_model=ServiceResponse[list[GeneralEventResponse]])
async def list_organizer_general_events(
    organizer_id: uuid.UUID,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    events = await event_service.list_events_by_organizer(db, GENERAL_DOMAIN, organizer_id)
    rendered = await render_events(db, GENERAL_DOMAIN, events, GeneralEventResponse)
    return ServiceResponse(data=rendered, message="Successfully retrieved general events")


@router.get("/{event_id}", response_model=ServiceResponse[GeneralEventResponse])
async def get_general_event(
    event_id: uuid.UUID,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    event = await reservation_service.get_event(db, GENERAL_DOMAIN, event_id)
    [rendered] = await render_events(db, GENERAL_DOMAIN, [event], GeneralEventResponse)
    return ServiceResponse(data=rendered, message="Successfully retrieved event")


@router.get("/{event_id}/availability", response_model=ServiceResponse[Availability])
async def get_general_availability(
    event_id: uuid.UUID,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    availability = await reservation_service.get_availability(db, GENERAL_DOMAIN, event_id)
    return ServiceResponse(data=availability, message="Successfully retrieved availability")


@router.put("/{event_id}", response_model=ServiceResponse[GeneralEventResponse])
async def update_general_event(
    event_id: uuid.UUID,
    event_data: GeneralEventUpdate,
    current_user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    event_service.ensure_can_manage(current_user, await reservation_service.get_event(db, GENERAL_DOMAIN, event_id))
    event = await general_event_service.update_general_event(db, event_id, event_data)
    [rendered] = await render_events(db, GENERAL_DOMAIN, [event], GeneralEventResponse)
    await db.commit()
    await invalidate_event_cache(GENERAL_DOMAIN.name)
    return ServiceResponse(data=rendered, message="Successfully updated general event")


@router.delete("/{event_id}", response_model=ServiceResponse[bool])
async def cancel_general_event(
    event_id: uuid.UUID,
    current_user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Cancel the event and every reservation made for it."""
    event_service.ensure_can_manage(current_user, await reservation_service.get_event(db, GENERAL_DOMAIN, event_id))
    await event_service.cancel_event(db, GENERAL_DOMAIN, event_id, notifier)
    await invalidate_event_cache(GENERAL_DOMAIN.name)
    return ServiceResponse(data=True, message="Successfully cancelled event")
