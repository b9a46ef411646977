from datetime import date
from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession
from .models import Event
from app.core.pagination import paginate


async def get_event_by_id(db: AsyncSession, event_id: int) -> Event | None:
    stmt = select(Event).where(Event.id == event_id)
    result = await db.execute(stmt)
    return result.scalars().first()


async def get_available_tickets(db: AsyncSession, event_id: int) -> int | None:
    return await db.scalar(select(Event.available_tickets).where(Event.id == event_id))


def reserve_stmt(event_id: int, quantity: int):
    """Check-and-decrement in one statement; no row comes back when capacity is short."""
    return (
        update(Event)
        .where(Event.id == event_id, Event.available_tickets >= quantity)
        .values(available_tickets=Event.available_tickets - quantity)
        .returning(Event)
        .execution_options(populate_existing=True)
    )


async def reserve_tickets(db: AsyncSession, event_id: int, quantity: int) -> Event | None:
    return await db.scalar(reserve_stmt(event_id, quantity))


def compare_and_set_stmt(event_id: int, observed: int, new_value: int):
    return (
        update(Event)
        .where(Event.id == event_id, Event.available_tickets == observed)
        .values(available_tickets=new_value)
        .returning(Event.id)
        .execution_options(synchronize_session=False)
    )


async def compare_and_set_available(db: AsyncSession, event_id: int, observed: int, new_value: int) -> bool:
    updated = await db.scalar(compare_and_set_stmt(event_id, observed, new_value))
    return updated is not None


async def list_events(
        db: AsyncSession,
        page: int,
        page_size: int,
        *,
        organizer_id: int | None = None,
        search: str | None = None,
        category: str | None = None,
        location: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
) -> tuple[list[Event], int]:
    stmt = select(Event)
    where = []

    if organizer_id is not None:
        where.append(Event.organizer_id == organizer_id)
    if search:
        pattern = f"%{search}%"
        where.append(or_(Event.title.ilike(pattern), Event.description.ilike(pattern)))
    if category:
        where.append(Event.category == category)
    if location:
        where.append(Event.location == location)
    if date_from is not None:
        where.append(Event.event_date >= date_from)
    if date_to is not None:
        where.append(Event.event_date <= date_to)

    items, total = await paginate(
        db,
        base_stmt=stmt,
        page=page,
        page_size=page_size,
        where=where,
        order_by=[Event.event_date, Event.event_time, Event.id],
        count_by=Event.id
    )

    return items, total


async def create_event(db: AsyncSession, data: dict) -> Event:
    event = Event(**data)
    db.add(event)
    return event


async def update_event(event: Event, data: dict) -> Event:
    for key, value in data.items():
        setattr(event, key, value)
    return event


async def delete_event(db: AsyncSession, event: Event) -> None:
    await db.delete(event)
