"""
Pydantic schemas for stadiums, sports and teams.
"""

import uuid
from pydantic import BaseModel, Field

from ticketing.schemas.common import Address


class StadiumCreate(Address):
    name: str = Field(..., min_length=3, max_length=100)
    capacity: int = Field(..., gt=0, le=500000)


class StadiumResponse(Address):
    id: uuid.UUID
    name: str
    capacity: int

    model_config = {"from_attributes": True}


class SportCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: str = Field("", max_length=1000)


class SportResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str

    model_config = {"from_attributes": True}


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    sport_id: uuid.UUID


class TeamResponse(BaseModel):
    id: uuid.UUID
    name: str
    sport_id: uuid.UUID

    model_config = {"from_attributes": True}
