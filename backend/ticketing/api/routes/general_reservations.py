"""
General event reservation endpoints, mirroring the sport reservations.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.api.routes.reservations import cancel, ensure_self_or_staff, reserve
from ticketing.core.security import get_current_user
from ticketing.db.session import get_db
from ticketing.models.user import User
from ticketing.schemas.common import ServiceResponse
from ticketing.schemas.reservation import ReservationCreate, ReservationResponse
from ticketing.services import reservation_service
from ticketing.services.notification_service import Notifier, get_notifier
from ticketing.services.reservation_service import GENERAL_DOMAIN

router = APIRouter(prefix="/general-reservations", tags=["General Reservations"])


@router.post("/", response_model=ServiceResponse[ReservationResponse], status_code=status.HTTP_201_CREATED)
async def create_general_reservation(
    payload: ReservationCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    return await reserve(db, GENERAL_DOMAIN, payload, current_user, notifier)


@router.delete("/{reservation_id}", response_model=ServiceResponse[ReservationResponse])
async def cancel_general_reservation(
    reservation_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    return await cancel(db, GENERAL_DOMAIN, reservation_id, current_user, notifier)


@router.get("/event/{event_id}", response_model=ServiceResponse[list[ReservationResponse]])
async def list_general_event_reservations(
    event_id: uuid.UUID,
    active_only: bool = Query(False),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await reservation_service.get_event(db, GENERAL_DOMAIN, event_id)
    reservations = await reservation_service.list_reservations_by_event(db, GENERAL_DOMAIN, event_id, active_only)
    return ServiceResponse(
        data=[ReservationResponse.model_validate(r) for r in reservations],
        message="Reservations found successfully",
    )


@router.get("/student/{student_id}", response_model=ServiceResponse[list[ReservationResponse]])
async def list_general_student_reservations(
    student_id: uuid.UUID,
    active_only: bool = Query(False),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ensure_self_or_staff(current_user, student_id)
    reservations = await reservation_service.list_reservations_by_student(db, GENERAL_DOMAIN, student_id, active_only)
    return ServiceResponse(
        data=[ReservationResponse.model_validate(r) for r in reservations],
        message="Reservations found successfully",
    )
