"""
Catalog CRUD for stadiums, sports and teams.
"""

import uuid

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.exceptions import (
    EntityAlreadyExistsError,
    EntityNotFoundError,
    EntityType,
    InvalidRequestError,
)
from ticketing.core.logging import get_logger
from ticketing.models.event import Event
from ticketing.models.reservation import Reservation
from ticketing.models.venue import Sport, Stadium, Team
from ticketing.schemas.venue import SportCreate, StadiumCreate, TeamCreate

logger = get_logger(__name__)


async def _get_or_404(db: AsyncSession, model, entity_id: uuid.UUID, entity_type: EntityType):
    instance = await db.get(model, entity_id)
    if instance is None:
        raise EntityNotFoundError(entity_type)
    return instance


async def _list(db: AsyncSession, model) -> list:
    result = await db.execute(select(model).order_by(model.name.asc()))
    return list(result.scalars().all())


# Stadiums

async def list_stadiums(db: AsyncSession) -> list[Stadium]:
    return await _list(db, Stadium)


async def get_stadium(db: AsyncSession, stadium_id: uuid.UUID) -> Stadium:
    return await _get_or_404(db, Stadium, stadium_id, EntityType.STADIUM)


async def create_stadium(db: AsyncSession, data: StadiumCreate) -> Stadium:
    stadium = Stadium(**data.model_dump())
    db.add(stadium)
    await db.flush()
    await db.refresh(stadium)
    logger.info("stadium_created", stadium_id=str(stadium.id), capacity=stadium.capacity)
    return stadium


async def _busiest_active_event_at(db: AsyncSession, stadium_id: uuid.UUID) -> int:
    """Largest active reservation count among the stadium's active events."""
    per_event = (
        select(func.count().label("reserved"))
        .select_from(Reservation)
        .join(Event, Event.id == Reservation.event_id)
        .where(
            Event.stadium_id == stadium_id,
            Event.is_active.is_(True),
            Reservation.is_cancelled.is_(False),
        )
        .group_by(Reservation.event_id)
        .subquery()
    )
    result = await db.execute(select(func.coalesce(func.max(per_event.c.reserved), 0)))
    return result.scalar_one()


async def _claim_active_events_at(db: AsyncSession, stadium_id: uuid.UUID) -> None:
    """
    Take the same event claims sport reservations take, so no reservation
    can commit between counting and shrinking the stadium.
    """
    await db.execute(
        update(Event)
        .where(Event.stadium_id == stadium_id, Event.is_active.is_(True))
        .values(version=Event.version + 1)
        .execution_options(synchronize_session=False)
    )


async def update_stadium(db: AsyncSession, stadium_id: uuid.UUID, data: StadiumCreate) -> Stadium:
    stadium = await get_stadium(db, stadium_id)
    if data.capacity < stadium.capacity:
        await _claim_active_events_at(db, stadium_id)
        reserved = await _busiest_active_event_at(db, stadium_id)
        if data.capacity < reserved:
            raise InvalidRequestError(
                f"Capacity {data.capacity} is lower than the {reserved} active reservations of an event at this stadium"
            )
    for field, value in data.model_dump().items():
        setattr(stadium, field, value)
    await db.flush()
    await db.refresh(stadium)
    logger.info("stadium_updated", stadium_id=str(stadium_id))
    return stadium


# Sports

async def list_sports(db: AsyncSession) -> list[Sport]:
    return await _list(db, Sport)


async def get_sport(db: AsyncSession, sport_id: uuid.UUID) -> Sport:
    return await _get_or_404(db, Sport, sport_id, EntityType.SPORT)


async def _ensure_sport_name_free(db: AsyncSession, name: str, exclude_id: uuid.UUID | None = None) -> None:
    query = select(Sport.id).where(func.lower(Sport.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Sport.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise EntityAlreadyExistsError(f"Sport {name} already exists")


async def create_sport(db: AsyncSession, data: SportCreate) -> Sport:
    await _ensure_sport_name_free(db, data.name)
    sport = Sport(name=data.name, description=data.description)
    db.add(sport)
    await db.flush()
    await db.refresh(sport)
    logger.info("sport_created", sport_id=str(sport.id), name=sport.name)
    return sport


async def update_sport(db: AsyncSession, sport_id: uuid.UUID, data: SportCreate) -> Sport:
    sport = await get_sport(db, sport_id)
    await _ensure_sport_name_free(db, data.name, exclude_id=sport_id)
    sport.name = data.name
    sport.description = data.description
    await db.flush()
    await db.refresh(sport)
    return sport


# Teams

async def list_teams(db: AsyncSession) -> list[Team]:
    return await _list(db, Team)


async def get_team(db: AsyncSession, team_id: uuid.UUID) -> Team:
    return await _get_or_404(db, Team, team_id, EntityType.TEAM)


async def create_team(db: AsyncSession, data: TeamCreate) -> Team:
    await get_sport(db, data.sport_id)
    team = Team(name=data.name, sport_id=data.sport_id)
    db.add(team)
    await db.flush()
    await db.refresh(team)
    logger.info("team_created", team_id=str(team.id), name=team.name)
    return team


async def update_team(db: AsyncSession, team_id: uuid.UUID, data: TeamCreate) -> Team:
    team = await get_team(db, team_id)
    await get_sport(db, data.sport_id)
    team.name = data.name
    team.sport_id = data.sport_id
    await db.flush()
    await db.refresh(team)
    return team
