"""
Pydantic schemas for sport events and general events.
"""

import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from ticketing.schemas.common import Address
from ticketing.schemas.venue import StadiumResponse, SportResponse, TeamResponse


class EventBase(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    description: str = Field("", max_length=1000)
    start_datetime: datetime
    end_datetime: datetime


class EventCreate(EventBase):
    sport_id: uuid.UUID
    team_one_id: uuid.UUID
    team_two_id: uuid.UUID
    stadium_id: uuid.UUID
    # Admins may create events on behalf of an organizer
    organizer_id: Optional[uuid.UUID] = None


class EventUpdate(EventBase):
    sport_id: uuid.UUID
    team_one_id: uuid.UUID
    team_two_id: uuid.UUID
    stadium_id: uuid.UUID


class GeneralEventCreate(EventBase, Address):
    capacity: int = Field(..., gt=0, le=500000)
    organizer_id: Optional[uuid.UUID] = None


class GeneralEventUpdate(EventBase, Address):
    capacity: int = Field(..., gt=0, le=500000)


class Availability(BaseModel):
    event_id: uuid.UUID
    capacity: int
    reserved_seats: int
    available_seats: int


class EventResponse(EventBase):
    id: uuid.UUID
    is_active: bool
    organizer_id: uuid.UUID
    sport: SportResponse
    team_one: TeamResponse
    team_two: TeamResponse
    stadium: StadiumResponse
    capacity: int
    reserved_seats: int
    available_seats: int
    created_at: datetime


class GeneralEventResponse(EventBase, Address):
    id: uuid.UUID
    is_active: bool
    organizer_id: uuid.UUID
    capacity: int
    reserved_seats: int
    available_seats: int
    created_at: datetime
