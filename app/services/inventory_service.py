import logging
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.auditing import AuditSpan
from app.domain.events import crud as events_crud
from app.domain.booking import crud as booking_crud
from app.domain.events.models import Event
from app.domain.events.schemas import InventoryReportDTO
from app.domain.exceptions import EventNotFound, CapacityExceeded, InvalidInput, Conflict

logger = logging.getLogger(__name__)


async def try_reserve(db: AsyncSession, event_id: int, quantity: int) -> Event:
    """
    Take `quantity` tickets off the event's counter.
    - Atomic conditional UPDATE: the decrement only applies while available_tickets >= quantity
    - Concurrent reservations on one event serialize on the row lock, the loser sees no row
    - Returns the event as it is after the decrement
    """
    if quantity < 1:
        raise InvalidInput("Quantity must be at least 1", ctx={"event_id": event_id, "quantity": quantity})

    event = await events_crud.reserve_tickets(db, event_id, quantity)
    if event is not None:
        return event

    available = await events_crud.get_available_tickets(db, event_id)
    if available is None:
        raise EventNotFound("Event not found", ctx={"event_id": event_id})

    logger.info("Capacity exceeded event_id=%s requested=%s available=%s", event_id, quantity, available)
    raise CapacityExceeded(
        "Not enough tickets available",
        ctx={"event_id": event_id, "requested": quantity, "available": available}
    )


async def _build_report(db: AsyncSession, event: Event) -> InventoryReportDTO:
    issued = await booking_crud.sum_issued_quantity(db, event.id)
    ticket_count = await booking_crud.count_tickets_for_event(db, event.id)
    expected_available = event.capacity - issued
    return InventoryReportDTO(
        event_id=event.id,
        capacity=event.capacity,
        available_tickets=event.available_tickets,
        issued_tickets=issued,
        ticket_count=ticket_count,
        expected_available=expected_available,
        consistent=(event.available_tickets == expected_available and ticket_count == issued),
        oversold=issued > event.capacity,
    )


async def get_inventory(db: AsyncSession, event: Event) -> InventoryReportDTO:
    return await _build_report(db, event)


async def reconcile_inventory(db: AsyncSession, event: Event, *, repair: bool = False) -> InventoryReportDTO:
    """
    Compare the counter with what was actually issued (completed orders).
    With repair=True a leaked counter is restored through a compare-and-swap on the observed value,
    so a registration that commits in between makes the repair fail instead of clobbering it.
    """
    async with AuditSpan(
        scope="INVENTORY",
        action="RECONCILE",
        object_type="event",
        object_id=event.id,
        event_id=event.id,
        meta={"repair": repair}
    ) as span:
        report = await _build_report(db, event)
        span.meta["consistent"] = report.consistent

        if report.available_tickets == report.expected_available:
            return report

        logger.warning(
            "Inventory mismatch event_id=%s capacity=%s available=%s issued=%s",
            event.id, report.capacity, report.available_tickets, report.issued_tickets
        )
        if not repair or report.oversold:
            return report

        swapped = await events_crud.compare_and_set_available(
            db, event.id, observed=report.available_tickets, new_value=report.expected_available
        )
        if not swapped:
            raise Conflict(
                "Inventory changed during reconciliation, retry",
                ctx={"event_id": event.id, "observed": report.available_tickets}
            )

        await db.refresh(event)
        logger.info(
            "Inventory repaired event_id=%s available %s -> %s",
            event.id, report.available_tickets, report.expected_available
        )
        span.meta["repaired"] = True
        return report.model_copy(update={
            "available_tickets": report.expected_available,
            "consistent": report.ticket_count == report.issued_tickets,
            "repaired": True,
        })
