import logging
from sqlalchemy.ext.asyncio import AsyncSession
from app.domain.events.models import Event
from app.domain.events.schemas import EventCreateDTO, EventUpdateDTO, EventReadDTO, PublicEventsQueryDTO, \
    OrganizerEventsQueryDTO
from app.domain.users.models import User
from app.domain.booking.crud import has_orders_for_event
from app.core.pagination import PageDTO
from app.core.auditing import AuditSpan
from app.domain.events import crud
from app.domain.exceptions import EventNotFound, InvalidInput, Conflict

logger = logging.getLogger(__name__)


def _validate_date_range(query: PublicEventsQueryDTO) -> None:
    if query.date_from and query.date_to and query.date_to < query.date_from:
        raise InvalidInput(
            "date_to must not be before date_from",
            ctx={"date_from": query.date_from, "date_to": query.date_to}
        )


async def get_event(db: AsyncSession, event_id: int) -> Event:
    event = await crud.get_event_by_id(db, event_id)
    if not event:
        raise EventNotFound("Event not found", ctx={"event_id": event_id})
    return event


async def list_events(db: AsyncSession, query: PublicEventsQueryDTO) -> PageDTO[EventReadDTO]:
    _validate_date_range(query)
    events, total = await crud.list_events(
        db,
        page=query.page,
        page_size=query.page_size,
        search=query.search,
        category=query.category,
        location=query.location,
        date_from=query.date_from,
        date_to=query.date_to
    )

    return PageDTO[EventReadDTO](
        items=[EventReadDTO.model_validate(event) for event in events],
        total=total,
        page=query.page,
        page_size=query.page_size
    )


async def list_organizer_events(
        db: AsyncSession,
        organizer: User,
        query: OrganizerEventsQueryDTO
) -> PageDTO[EventReadDTO]:
    events, total = await crud.list_events(
        db,
        page=query.page,
        page_size=query.page_size,
        organizer_id=organizer.id,
        search=query.search
    )

    return PageDTO[EventReadDTO](
        items=[EventReadDTO.model_validate(event) for event in events],
        total=total,
        page=query.page,
        page_size=query.page_size
    )


async def create_event(db: AsyncSession, organizer: User, schema: EventCreateDTO) -> Event:
    async with AuditSpan(scope="EVENT", action="CREATE", object_type="event") as span:
        data = schema.model_dump()
        data["organizer_id"] = organizer.id
        data["available_tickets"] = data["capacity"]

        event = await crud.create_event(db, data)
        await db.flush()
        await db.refresh(event)

        span.object_id = event.id
        span.event_id = event.id
        logger.info("Event created event_id=%s organizer_id=%s capacity=%s", event.id, organizer.id, event.capacity)
        return event


async def update_event(db: AsyncSession, event: Event, schema: EventUpdateDTO) -> Event:
    """Already issued tickets and orders keep their snapshots; only the live record changes."""
    data = schema.model_dump(exclude_unset=True)
    async with AuditSpan(
        scope="EVENT",
        action="UPDATE",
        object_type="event",
        object_id=event.id,
        event_id=event.id,
        meta={"fields": sorted(data)}
    ):
        if not data:
            return event

        for field in ("title", "event_date", "location", "price"):
            if field in data and data[field] is None:
                raise InvalidInput(f"{field} cannot be null", ctx={"field": field})

        await crud.update_event(event, data)
        await db.flush()
        await db.refresh(event)
        return event


async def delete_event(db: AsyncSession, event: Event) -> None:
    async with AuditSpan(scope="EVENT", action="DELETE", object_type="event", object_id=event.id, event_id=event.id):
        if await has_orders_for_event(db, event.id):
            raise Conflict("Event has registrations and cannot be deleted", ctx={"event_id": event.id})

        await crud.delete_event(db, event)
        await db.flush()
        logger.info("Event deleted event_id=%s", event.id)
