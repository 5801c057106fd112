"""
Demo data for local development, loaded at startup when SEED_DATA=true.

Each table is only seeded while it is empty, so restarting the app never
duplicates rows. All seeded accounts share the password "password".
"""

import uuid
from datetime import datetime, time, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.logging import get_logger
from ticketing.core.security import hash_password
from ticketing.models import Event, GeneralEvent, Sport, Stadium, Team, User, UserRole

logger = get_logger(__name__)

DEMO_PASSWORD = "password"

_ADDRESS = {"address_line1": "456 Main Street", "city": "New York", "state": "New York", "zip_code": "10001"}


def _seed_id(n: int) -> uuid.UUID:
    return uuid.UUID(int=n)


def _window(days_ahead: int) -> tuple[datetime, datetime]:
    day = datetime.now(timezone.utc).date() + timedelta(days=days_ahead)
    start = datetime.combine(day, time(15, 30), tzinfo=timezone.utc)
    return start, start + timedelta(hours=3)


async def _is_empty(db: AsyncSession, model) -> bool:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one() == 0


def _users() -> list[User]:
    hashed = hash_password(DEMO_PASSWORD)
    people = [
        (1, "Super Admin", "superadmin@app.com", UserRole.SUPER_ADMIN),
        (2, "Campus Admin", "admin@app.com", UserRole.ADMIN),
        (3, "Event Organizer", "organizer@app.com", UserRole.ORGANIZER),
        (4, "First Student", "student@app.com", UserRole.STUDENT),
    ]
    return [
        User(
            id=_seed_id(n),
            name=name,
            email=email,
            hashed_password=hashed,
            role=role.value,
            is_active=True,
            **_ADDRESS,
        )
        for n, name, email, role in people
    ]


def _stadiums() -> list[Stadium]:
    return [
        Stadium(id=_seed_id(1), name="Stadium 1", capacity=1000, **_ADDRESS),
        Stadium(id=_seed_id(2), name="Stadium 2", capacity=2000, **_ADDRESS),
    ]


def _sports() -> list[Sport]:
    return [
        Sport(id=_seed_id(1), name="Sport 1", description="Description 1"),
        Sport(id=_seed_id(2), name="Sport 2", description="Description 2"),
    ]


def _teams() -> list[Team]:
    return [
        Team(id=_seed_id(1), name="Team 1", sport_id=_seed_id(1)),
        Team(id=_seed_id(2), name="Team 2", sport_id=_seed_id(1)),
        Team(id=_seed_id(3), name="Team 3", sport_id=_seed_id(2)),
        Team(id=_seed_id(4), name="Team 4", sport_id=_seed_id(2)),
    ]


def _events() -> list[Event]:
    events = []
    for n, (sport, team_one, team_two, stadium) in enumerate([(1, 1, 2, 1), (2, 3, 4, 2)], start=1):
        start, end = _window(n - 1)
        events.append(Event(
            id=_seed_id(n),
            name=f"Event {n}",
            description=f"Description {n}",
            start_datetime=start,
            end_datetime=end,
            sport_id=_seed_id(sport),
            team_one_id=_seed_id(team_one),
            team_two_id=_seed_id(team_two),
            stadium_id=_seed_id(stadium),
            organizer_id=_seed_id(3),
        ))
    return events


def _general_events() -> list[GeneralEvent]:
    events = []
    for n in (1, 2):
        start, end = _window(n - 1)
        events.append(GeneralEvent(
            id=_seed_id(n),
            name=f"General Event {n}",
            description=f"General Description {n}",
            start_datetime=start,
            end_datetime=end,
            capacity=1000,
            organizer_id=_seed_id(3),
            **_ADDRESS,
        ))
    return events


# Ordered so that foreign keys always point at rows seeded earlier
_SEEDERS = [
    (User, _users),
    (Stadium, _stadiums),
    (Sport, _sports),
    (Team, _teams),
    (Event, _events),
    (GeneralEvent, _general_events),
]


async def seed_database(db: AsyncSession) -> dict[str, int]:
    """Insert demo rows into empty tables. Returns rows added per table."""
    added = {}
    for model, build in _SEEDERS:
        if not await _is_empty(db, model):
            continue
        rows = build()
        db.add_all(rows)
        await db.flush()
        added[model.__tablename__] = len(rows)
    await db.commit()
    logger.info("database_seeded", **added)
    return added
