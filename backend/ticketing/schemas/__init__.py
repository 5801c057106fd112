from ticketing.schemas.common import ServiceResponse, ErrorResponse
from ticketing.schemas.user import UserCreate, UserUpdate, UserResponse, UserLogin, Token
from ticketing.schemas.event import (
    EventCreate, EventUpdate, EventResponse,
    GeneralEventCreate, GeneralEventUpdate, GeneralEventResponse, Availability,
)
from ticketing.schemas.reservation import ReservationCreate, ReservationResponse

__all__ = [
    "ServiceResponse", "ErrorResponse",
    "UserCreate", "UserUpdate", "UserResponse", "UserLogin", "Token",
    "EventCreate", "EventUpdate", "EventResponse",
    "GeneralEventCreate", "GeneralEventUpdate", "GeneralEventResponse", "Availability",
    "ReservationCreate", "ReservationResponse",
]
