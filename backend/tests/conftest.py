"""
Pytest fixtures for test database, client, and authentication.

Every test gets a fresh schema. TEST_DATABASE_URL selects the database;
the default is an in-memory SQLite database shared through a single
connection. Fixture rows are committed and then detached, so a rollback
inside a service under test never expires them.
"""

import os

# Configure the app before it is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SEED_DATA", "false")

from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from ticketing.main import app
from ticketing.db.base import Base
from ticketing.db.session import get_db
from ticketing.core.security import create_access_token, hash_password
from ticketing.models import Event, GeneralEvent, Sport, Stadium, Team, User, UserRole
from ticketing.services.notification_service import InMemoryNotifier, get_notifier

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
PASSWORD = "testpassword123"


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


async def _create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _drop_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


async def persist(session: AsyncSession, *objects):
    """Commit rows, load their server defaults and detach them."""
    session.add_all(objects)
    await session.commit()
    for obj in objects:
        await session.refresh(obj)
        session.expunge(obj)
    return objects[0] if len(objects) == 1 else objects


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    if _is_sqlite(TEST_DATABASE_URL):
        engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    else:
        engine = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)
    await _create_schema(engine)
    yield engine
    await _drop_schema(engine)


@pytest_asyncio.fixture
async def concurrent_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """
    Engine handing out one real connection per session, so concurrent
    sessions contend for locks the way separate requests do.
    """
    if _is_sqlite(TEST_DATABASE_URL):
        url = f"sqlite+aiosqlite:///{tmp_path / 'concurrency.db'}"
        engine = create_async_engine(url, poolclass=NullPool, connect_args={"timeout": 30})
    else:
        engine = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)
    await _create_schema(engine)
    yield engine
    await _drop_schema(engine)


@pytest_asyncio.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def notifier() -> InMemoryNotifier:
    return InMemoryNotifier()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, notifier: InMemoryNotifier) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB and mail dependencies."""

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# --------------------------------------------------------------------------
# Users and auth
# --------------------------------------------------------------------------

@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession):
    """Factory creating users; e-mails default to <name>@example.com."""
    counter = {"n": 0}

    async def _make(role: UserRole = UserRole.STUDENT, email: str | None = None, is_active: bool = True) -> User:
        counter["n"] += 1
        user = User(
            name=f"{role.value.title()} {counter['n']}",
            email=email or f"{role.value}{counter['n']}@example.com",
            hashed_password=hash_password(PASSWORD),
            role=role.value,
            is_active=is_active,
        )
        return await persist(db_session, user)

    return _make


@pytest_asyncio.fixture
async def admin(make_user) -> User:
    return await make_user(UserRole.ADMIN, email="admin@example.com")


@pytest_asyncio.fixture
async def organizer(make_user) -> User:
    return await make_user(UserRole.ORGANIZER, email="organizer@example.com")


@pytest_asyncio.fixture
async def student(make_user) -> User:
    return await make_user(UserRole.STUDENT, email="student@example.com")


@pytest_asyncio.fixture
async def other_student(make_user) -> User:
    return await make_user(UserRole.STUDENT, email="other@example.com")


@pytest_asyncio.fixture
async def headers_for():
    """Authorization headers with a Bearer token for the given user."""

    def _headers(user: User) -> dict:
        token = create_access_token(data={"sub": str(user.id), "role": user.role})
        return {"Authorization": f"Bearer {token}"}

    return _headers


# --------------------------------------------------------------------------
# Venues and events
# --------------------------------------------------------------------------

def event_window(days_ahead: int = 30) -> tuple[datetime, datetime]:
    start = datetime.now(timezone.utc) + timedelta(days=days_ahead)
    return start, start + timedelta(hours=2)


@pytest_asyncio.fixture
async def make_stadium(db_session: AsyncSession):
    async def _make(name: str = "Campus Arena", capacity: int = 100) -> Stadium:
        return await persist(db_session, Stadium(name=name, capacity=capacity, city="Springfield"))

    return _make


@pytest_asyncio.fixture
async def stadium(make_stadium) -> Stadium:
    return await make_stadium()


@pytest_asyncio.fixture
async def sport(db_session: AsyncSession) -> Sport:
    return await persist(db_session, Sport(name="Football", description="Association football"))


@pytest_asyncio.fixture
async def teams(db_session: AsyncSession, sport: Sport) -> tuple[Team, Team]:
    return await persist(
        db_session,
        Team(name="Lions", sport_id=sport.id),
        Team(name="Tigers", sport_id=sport.id),
    )


@pytest_asyncio.fixture
async def make_sport_event(db_session: AsyncSession, organizer: User, sport: Sport, teams, stadium: Stadium):
    async def _make(stadium_id=None, **overrides) -> Event:
        start, end = event_window()
        values = dict(
            name="Lions vs Tigers",
            description="Season opener",
            start_datetime=start,
            end_datetime=end,
            sport_id=sport.id,
            team_one_id=teams[0].id,
            team_two_id=teams[1].id,
            stadium_id=stadium_id or stadium.id,
            organizer_id=organizer.id,
        )
        values.update(overrides)
        return await persist(db_session, Event(**values))

    return _make


@pytest_asyncio.fixture
async def sport_event(make_sport_event) -> Event:
    return await make_sport_event()


@pytest_asyncio.fixture
async def make_general_event(db_session: AsyncSession, organizer: User):
    async def _make(capacity: int = 10, **overrides) -> GeneralEvent:
        start, end = event_window()
        values = dict(
            name="Spring Concert",
            description="Open air concert",
            start_datetime=start,
            end_datetime=end,
            capacity=capacity,
            organizer_id=organizer.id,
            city="Springfield",
        )
        values.update(overrides)
        return await persist(db_session, GeneralEvent(**values))

    return _make


@pytest_asyncio.fixture
async def general_event(make_general_event) -> GeneralEvent:
    return await make_general_event(capacity=10)
