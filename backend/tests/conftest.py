"""
Pytest fixtures for the test database, client and seeded events.

Each test gets its own SQLite file (aiosqlite), so concurrent sessions in
the race tests behave like separate connections to a real database.
"""

import os

# Must be set before boxoffice modules read their settings
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("DB_CREATE_TABLES", "false")

from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import NullPool

from boxoffice.core.concurrency import KeyedLocks
from boxoffice.db.session import Database
from boxoffice.main import app, configure_state
from boxoffice.models import Event, Venue
from boxoffice.services.interfaces import FixedOutcomeGateway
from boxoffice.services.seed_service import build_venue


@pytest_asyncio.fixture(scope="function")
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """Fresh schema per test, dropped afterwards."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'boxoffice_test.db'}", poolclass=NullPool)
    await db.create_all()
    yield db
    await db.drop_all()
    await db.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as session:
        yield session


@pytest.fixture
def event_locks() -> KeyedLocks:
    return KeyedLocks()


@pytest.fixture
def booking_locks() -> KeyedLocks:
    return KeyedLocks()


@pytest.fixture
def gateway() -> FixedOutcomeGateway:
    """Approves every charge instantly. Flip `approve` to force declines."""
    return FixedOutcomeGateway(approve=True)


@pytest_asyncio.fixture(scope="function")
async def client(database: Database, gateway: FixedOutcomeGateway) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app wired to the test database and gateway."""
    configure_state(app, database, gateway)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def make_event(
    db: AsyncSession,
    *,
    name: str = "Test Concert",
    category: str = "Concert",
    rows: int = 5,
    seats_per_row: int = 10,
    base_price: str = "50.00",
    premium_price: str = None,
    vip_price: str = None,
    days_ahead: int = 30,
    city: str = "Test City",
) -> Event:
    """Venue with a full seat grid plus one active event in it."""
    venue = build_venue(f"{name} Hall", "1 Test Street", city, rows, seats_per_row)
    db.add(venue)
    await db.flush()
    event = Event(
        venue_id=venue.id,
        name=name,
        description=f"{name} description",
        category=category,
        date=datetime.now(timezone.utc) + timedelta(days=days_ahead),
        base_price=Decimal(base_price),
        premium_price=Decimal(premium_price) if premium_price else None,
        vip_price=Decimal(vip_price) if vip_price else None,
    )
    db.add(event)
    await db.commit()
    # Reload so the joined venue relationship is populated
    return await db.get(Event, event.id, populate_existing=True)


def seat_ids_by_label(venue: Venue) -> dict:
    """{"A1": seat_id, ...} for readable test selections."""
    return {f"{seat.row_label}{seat.seat_number}": seat.id for seat in venue.seats}


@pytest.fixture
def event_factory(db_session: AsyncSession):
    """Create extra events in the test session: `await event_factory(name=...)`."""
    async def create(**kwargs) -> Event:
        return await make_event(db_session, **kwargs)
    return create


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession) -> Event:
    """Active event in a 7x10 venue. Rows A-B vip, C-E premium, F-G standard."""
    return await make_event(db_session, rows=7, premium_price="80.00", vip_price="120.00")


@pytest_asyncio.fixture
async def seats(db_session: AsyncSession, test_event: Event) -> dict:
    venue = await db_session.get(Venue, test_event.venue_id)
    await db_session.refresh(venue, ["seats"])
    return seat_ids_by_label(venue)
