"""
Sport event reservation endpoints.

Students reserve and cancel for themselves; admins and organizers may act
for any student.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.exceptions import PermissionDeniedError
from ticketing.core.security import get_current_user
from ticketing.db.session import get_db
from ticketing.models.user import User, UserRole
from ticketing.schemas.common import ServiceResponse
from ticketing.schemas.reservation import ReservationCreate, ReservationResponse
from ticketing.services import reservation_service
from ticketing.services.cache_service import invalidate_event_cache
from ticketing.services.notification_service import Notifier, get_notifier
from ticketing.services.reservation_service import SPORT_DOMAIN, ReservableDomain

router = APIRouter(prefix="/reservations", tags=["Reservations"])

ALREADY_CANCELLED_MESSAGE = "Reservation already cancelled"


def ensure_self_or_staff(user: User, student_id: uuid.UUID) -> None:
    if user.role == UserRole.STUDENT.value and user.id != student_id:
        raise PermissionDeniedError("Students can only manage their own reservations")


async def reserve(
    db: AsyncSession,
    domain: ReservableDomain,
    payload: ReservationCreate,
    current_user: User,
    notifier: Notifier,
) -> ServiceResponse:
    ensure_self_or_staff(current_user, payload.student_id)
    reservation = await reservation_service.create_reservation(
        db, domain, payload.student_id, payload.event_id, notifier
    )
    await invalidate_event_cache(domain.name)
    return ServiceResponse(
        data=ReservationResponse.model_validate(reservation),
        message="Reservation created successfully",
    )


async def cancel(
    db: AsyncSession,
    domain: ReservableDomain,
    reservation_id: uuid.UUID,
    current_user: User,
    notifier: Notifier,
) -> ServiceResponse:
    """Cancelling twice is a soft failure: 200 with success=False."""
    reservation = await reservation_service.get_reservation(db, domain, reservation_id)
    ensure_self_or_staff(current_user, reservation.student_id)

    outcome = await reservation_service.cancel_reservation(db, domain, reservation_id, notifier)
    data = ReservationResponse.model_validate(outcome.reservation)
    if not outcome.cancelled:
        return ServiceResponse(data=data, message=ALREADY_CANCELLED_MESSAGE, success=False)

    await invalidate_event_cache(domain.name)
    return ServiceResponse(data=data, message="Reservation cancelled successfully")


@router.post("/", response_model=ServiceResponse[ReservationResponse], status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: ReservationCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Reserve a seat for a student.

    - 404 if the student or event does not exist
    - 409 if the event is cancelled, sold out, or already reserved by the student
    """
    return await reserve(db, SPORT_DOMAIN, payload, current_user, notifier)


@router.delete("/{reservation_id}", response_model=ServiceResponse[ReservationResponse])
async def cancel_reservation(
    reservation_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    return await cancel(db, SPORT_DOMAIN, reservation_id, current_user, notifier)


@router.get("/event/{event_id}", response_model=ServiceResponse[list[ReservationResponse]])
async def list_event_reservations(
    event_id: uuid.UUID,
    active_only: bool = Query(False),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await reservation_service.get_event(db, SPORT_DOMAIN, event_id)
    reservations = await reservation_service.list_reservations_by_event(db, SPORT_DOMAIN, event_id, active_only)
    return ServiceResponse(
        data=[ReservationResponse.model_validate(r) for r in reservations],
        message="Reservations found successfully",
    )


@router.get("/student/{student_id}", response_model=ServiceResponse[list[ReservationResponse]])
async def list_student_reservations(
    student_id: uuid.UUID,
    active_only: bool = Query(False),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ensure_self_or_staff(current_user, student_id)
    reservations = await reservation_service.list_reservations_by_student(db, SPORT_DOMAIN, student_id, active_only)
    return ServiceResponse(
        data=[ReservationResponse.model_validate(r) for r in reservations],
        message="Reservations found successfully",
    )
