from ticketing.models.user import User, UserRole
from ticketing.models.venue import Stadium, Sport, Team
from ticketing.models.event import Event, GeneralEvent
from ticketing.models.reservation import Reservation, GeneralReservation

__all__ = [
    "User", "UserRole",
    "Stadium", "Sport", "Team",
    "Event", "GeneralEvent",
    "Reservation", "GeneralReservation",
]
