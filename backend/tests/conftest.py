"""
Pytest fixtures for test database, client, and authentication.

Each test gets its own in-memory SQLite database (override with
TEST_DATABASE_URL to run against Postgres) and a client whose get_db
dependency yields the same session the fixtures write through.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")

from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from courtshare.main import app
from courtshare.db.base import Base
from courtshare.db.session import build_engine, build_sessionmaker, get_db
from courtshare.core.config import get_settings
from courtshare.models.court import Court
from courtshare.models.user import User
from courtshare.schemas.reservation import ReservationCreate
from courtshare.services.reservation_service import create_reservation

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

# A Saturday in June: Pacific Daylight Time, UTC-7, so 08:00 local is 15:00Z
BOOKING_DAY = date(2030, 6, 15)


def utc(hour: int, minute: int = 0, day: date = BOOKING_DAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def parse_instant(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def create_access_token(data: dict, expires_delta: timedelta = timedelta(minutes=30)) -> str:
    """Stand-in for the external identity layer that issues session tokens."""
    settings = get_settings()
    claims = {**data, "exp": datetime.now(timezone.utc) + expires_delta}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    engine = build_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = build_sessionmaker(engine)
    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Factory for independent sessions, each on its own connection.

    An in-memory SQLite database lives on a single shared connection, so it is
    swapped for a file database here.
    """
    url = TEST_DATABASE_URL
    if url in ("sqlite+aiosqlite://", "sqlite+aiosqlite:///:memory:"):
        url = f"sqlite+aiosqlite:///{tmp_path / 'race.db'}"

    engine = build_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield build_sessionmaker(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _add_user(db_session: AsyncSession, email: str, name: str) -> User:
    user = User(email=email, name=name)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def owner(db_session: AsyncSession) -> User:
    return await _add_user(db_session, "dana@example.com", "Dana Whitfield")


@pytest_asyncio.fixture
async def player(db_session: AsyncSession) -> User:
    return await _add_user(db_session, "b@example.com", "Bo Player")


@pytest_asyncio.fixture
async def outsider(db_session: AsyncSession) -> User:
    return await _add_user(db_session, "c@example.com", "Cam Outsider")


@pytest_asyncio.fixture
async def owner_headers(owner: User) -> dict:
    return headers_for(owner)


@pytest_asyncio.fixture
async def player_headers(player: User) -> dict:
    return headers_for(player)


@pytest_asyncio.fixture
async def outsider_headers(outsider: User) -> dict:
    return headers_for(outsider)


@pytest_asyncio.fixture
async def court(db_session: AsyncSession) -> Court:
    court = Court(
        name="Golden Gate Park",
        description="Six outdoor hard courts",
        city="San Francisco",
        latitude=37.7694,
        longitude=-122.4862,
    )
    db_session.add(court)
    await db_session.commit()
    await db_session.refresh(court)
    return court


@pytest_asyncio.fixture
async def reservation(db_session: AsyncSession, owner: User, player: User, court: Court):
    """10:00-11:00 local on BOOKING_DAY, owned by Dana, with Bo as participant."""
    return await create_reservation(
        db_session,
        owner,
        ReservationCreate(
            court_id=court.id,
            start_time=utc(17),
            end_time=utc(18),
            participant_emails=[player.email],
            slot_minutes=60,
        ),
    )
