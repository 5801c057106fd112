"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from ticketing.api.routes import (
    auth,
    events,
    general_events,
    general_reservations,
    reservations,
    users,
    venues,
)

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(venues.stadiums)
api_router.include_router(venues.sports)
api_router.include_router(venues.teams)
api_router.include_router(events.router)
api_router.include_router(general_events.router)
api_router.include_router(reservations.router)
api_router.include_router(general_reservations.router)
