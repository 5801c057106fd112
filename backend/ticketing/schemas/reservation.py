"""
Pydantic schemas for reservation request/response validation.
The same shapes serve sport and general reservations.
"""

import uuid
from datetime import datetime
from pydantic import BaseModel


class ReservationCreate(BaseModel):
    event_id: uuid.UUID
    student_id: uuid.UUID


class ReservationResponse(BaseModel):
    id: uuid.UUID
    event_id: uuid.UUID
    student_id: uuid.UUID
    seat_number: str
    is_cancelled: bool
    created_at: datetime

    model_config = {"from_attributes": True}
