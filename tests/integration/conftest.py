import os
import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from app.core.database import Base
from app.domain.users.models import User, UserRole
from app.domain.events.models import Event
from datetime import date
from decimal import Decimal

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(TEST_DATABASE_URL, pool_size=10)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.execute(text("DROP TABLE IF EXISTS tickets, orders, events, users CASCADE"))
    await engine.dispose()


@pytest_asyncio.fixture
async def seeded(session_factory):
    """One organizer, two attendees and an event with a single seat left."""
    async with session_factory() as db:
        organizer = User(email="org@example.com", name="Org", role=UserRole.ORGANIZER)
        alice = User(email="alice@example.com", name="Alice", role=UserRole.ATTENDEE)
        bob = User(email="bob@example.com", name="Bob", role=UserRole.ATTENDEE)
        db.add_all([organizer, alice, bob])
        await db.flush()
        event = Event(
            organizer_id=organizer.id,
            title="Art Gallery Opening",
            event_date=date(2027, 3, 8),
            location="Modern Art Gallery",
            price=Decimal("25.00"),
            capacity=1,
            available_tickets=1
        )
        db.add(event)
        await db.commit()
        return {"organizer": organizer, "alice": alice, "bob": bob, "event": event}
