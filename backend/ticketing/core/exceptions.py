"""
Service-layer error taxonomy.

Every error is an HTTPException so FastAPI can map it to a status code,
and carries a machine-readable ``kind`` that the application handler puts
into the response envelope. Services raise these at the point of
detection; nothing in the service layer retries them.
"""

from enum import Enum
from typing import Optional

from fastapi import HTTPException, status


class EntityType(str, Enum):
    USER = "User"
    STUDENT = "Student"
    ORGANIZER = "Organizer"
    EVENT = "Event"
    RESERVATION = "Reservation"
    STADIUM = "Stadium"
    SPORT = "Sport"
    TEAM = "Team"


class ServiceError(HTTPException):
    kind: str = "service_error"
    status_code_default: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(status_code=status_code or self.status_code_default, detail=message)
        self.message = message


class EntityNotFoundError(ServiceError):
    kind = "not_found"
    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, entity_type: EntityType):
        super().__init__(f"{entity_type.value} not found")
        self.entity_type = entity_type


class EntityAlreadyExistsError(ServiceError):
    kind = "already_exists"
    status_code_default = status.HTTP_409_CONFLICT


class NoSeatsAvailableError(ServiceError):
    kind = "no_seats_available"
    status_code_default = status.HTTP_409_CONFLICT

    def __init__(self):
        super().__init__("No seats available for this event")


class EventNotActiveError(ServiceError):
    kind = "event_not_active"
    status_code_default = status.HTTP_409_CONFLICT

    def __init__(self):
        super().__init__("Event has been cancelled")


class ReservationLoadError(ServiceError):
    kind = "reservation_load_failed"
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self):
        super().__init__("Failed to load reservations for cancellation")


class InvalidRequestError(ServiceError):
    kind = "invalid_request"


class PermissionDeniedError(ServiceError):
    kind = "forbidden"
    status_code_default = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "You are not allowed to perform this action"):
        super().__init__(message)
