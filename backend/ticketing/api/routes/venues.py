"""
Catalog endpoints for stadiums, sports and teams. Reads need a login,
writes need an admin.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.security import get_current_user, require_admin
from ticketing.db.session import get_db
from ticketing.models.user import User
from ticketing.schemas.common import ServiceResponse
from ticketing.schemas.venue import (
    SportCreate,
    SportResponse,
    StadiumCreate,
    StadiumResponse,
    TeamCreate,
    TeamResponse,
)
from ticketing.services import venue_service
from ticketing.services.cache_service import invalidate_event_cache
from ticketing.services.reservation_service import SPORT_DOMAIN

stadiums = APIRouter(prefix="/stadiums", tags=["Stadiums"])
sports = APIRouter(prefix="/sports", tags=["Sports"])
teams = APIRouter(prefix="/teams", tags=["Teams"])


@stadiums.get("/", response_model=ServiceResponse[list[StadiumResponse]])
async def list_stadiums(_: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    items = await venue_service.list_stadiums(db)
    return ServiceResponse(data=[StadiumResponse.model_validate(s) for s in items], message="Successfully retrieved stadiums")


@stadiums.post("/", response_model=ServiceResponse[StadiumResponse], status_code=status.HTTP_201_CREATED)
async def create_stadium(payload: StadiumCreate, _: User = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    stadium = await venue_service.create_stadium(db, payload)
    return ServiceResponse(data=StadiumResponse.model_validate(stadium), message="Successfully created stadium")


@stadiums.get("/{stadium_id}", response_model=ServiceResponse[StadiumResponse])
async def get_stadium(stadium_id: uuid.UUID, _: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    stadium = await venue_service.get_stadium(db, stadium_id)
    return ServiceResponse(data=StadiumResponse.model_validate(stadium), message="Successfully retrieved stadium")


@stadiums.put("/{stadium_id}", response_model=ServiceResponse[StadiumResponse])
async def update_stadium(
    stadium_id: uuid.UUID,
    payload: StadiumCreate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    stadium = await venue_service.update_stadium(db, stadium_id, payload)
    # Stadium capacity is the capacity of its sport events
    await db.commit()
    await invalidate_event_cache(SPORT_DOMAIN.name)
    return ServiceResponse(data=StadiumResponse.model_validate(stadium), message="Successfully updated stadium")


@sports.get("/", response_model=ServiceResponse[list[SportResponse]])
async def list_sports(_: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    items = await venue_service.list_sports(db)
    return ServiceResponse(data=[SportResponse.model_validate(s) for s in items], message="Successfully retrieved sports")


@sports.post("/", response_model=ServiceResponse[SportResponse], status_code=status.HTTP_201_CREATED)
async def create_sport(payload: SportCreate, _: User = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    sport = await venue_service.create_sport(db, payload)
    return ServiceResponse(data=SportResponse.model_validate(sport), message="Successfully created sport")


@sports.get("/{sport_id}", response_model=ServiceResponse[SportResponse])
async def get_sport(sport_id: uuid.UUID, _: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    sport = await venue_service.get_sport(db, sport_id)
    return ServiceResponse(data=SportResponse.model_validate(sport), message="Successfully retrieved sport")


@sports.put("/{sport_id}", response_model=ServiceResponse[SportResponse])
async def update_sport(
    sport_id: uuid.UUID,
    payload: SportCreate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    sport = await venue_service.update_sport(db, sport_id, payload)
    return ServiceResponse(data=SportResponse.model_validate(sport), message="Successfully updated sport")


@teams.get("/", response_model=ServiceResponse[list[TeamResponse]])
async def list_teams(_: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    items = await venue_service.list_teams(db)
    return ServiceResponse(data=[TeamResponse.model_validate(t) for t in items], message="Successfully retrieved teams")


@teams.post("/", response_model=ServiceResponse[TeamResponse], status_code=status.HTTP_201_CREATED)
async def create_team(payload: TeamCreate, _: User = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    team = await venue_service.create_team(db, payload)
    return ServiceResponse(data=TeamResponse.model_validate(team), message="Successfully created team")


@teams.get("/{team_id}", response_model=ServiceResponse[TeamResponse])
async def get_team(team_id: uuid.UUID, _: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    team = await venue_service.get_team(db, team_id)
    return ServiceResponse(data=TeamResponse.model_validate(team), message="Successfully retrieved team")


@teams.put("/{team_id}", response_model=ServiceResponse[TeamResponse])
async def update_team(
    team_id: uuid.UUID,
    payload: TeamCreate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    team = await venue_service.update_team(db, team_id, payload)
    return ServiceResponse(data=TeamResponse.model_validate(team), message="Successfully updated team")
