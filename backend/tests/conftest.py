"""
Pytest fixtures for test database, client, and seeded counters/tickets.

Each test gets its own SQLite file so that concurrent sessions really are
separate connections. Redis is disabled; the engine's change hook is
exercised with recording hooks instead.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from queuedesk.main import app
from queuedesk.db.base import Base
from queuedesk.db.session import get_db
from queuedesk.models.counter import Counter
from queuedesk.models.status import TicketStatus
from queuedesk.models.ticket import Ticket

BASE_TIME = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'queuedesk_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get a fresh session on the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_counter(session_factory):
    """Insert a counter directly, bypassing the engine."""

    async def _make_counter(
        name: str = "Counter A",
        max_queue: int = 5,
        current_queue: int = 0,
        is_active: bool = True,
        deleted: bool = False,
    ) -> Counter:
        async with session_factory() as session:
            counter = Counter(
                name=name,
                max_queue=max_queue,
                current_queue=current_queue,
                is_active=is_active,
                deleted_at=BASE_TIME if deleted else None,
            )
            session.add(counter)
            await session.commit()
            return counter

    return _make_counter


@pytest.fixture
def make_ticket(session_factory):
    """Insert a ticket with an explicit status; `minute` orders created_at."""

    async def _make_ticket(
        counter: Counter,
        number: int,
        status: TicketStatus = TicketStatus.WAITING,
        minute: int | None = None,
    ) -> Ticket:
        async with session_factory() as session:
            ticket = Ticket(
                counter_id=counter.id,
                number=number,
                status=status,
                created_at=BASE_TIME + timedelta(minutes=number if minute is None else minute),
            )
            session.add(ticket)
            await session.commit()
            return ticket

    return _make_ticket


@pytest.fixture
def recorded_changes() -> list[str]:
    return []


@pytest.fixture
def recording_hook(recorded_changes):
    async def _hook(tag: str) -> None:
        recorded_changes.append(tag)

    return _hook


@pytest.fixture
def fetch(session_factory):
    """Read a row back through a fresh session."""

    async def _fetch(model, pk):
        async with session_factory() as session:
            return await session.get(model, pk)

    return _fetch
