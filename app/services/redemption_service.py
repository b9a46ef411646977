import logging
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.auditing import AuditSpan
from app.domain.booking import crud
from app.domain.booking.models import Ticket, TicketStatus, ensure_transition
from app.domain.events.crud import get_event_by_id
from app.domain.users.models import User
from app.domain.exceptions import CodeNotFound, TicketNotFound, Forbidden, InternalError

logger = logging.getLogger(__name__)


async def _is_event_organizer(db: AsyncSession, user: User, event_id: int) -> bool:
    event = await get_event_by_id(db, event_id)
    return event is not None and event.organizer_id == user.id


async def _transition(db: AsyncSession, ticket: Ticket, target: TicketStatus, **values) -> Ticket:
    updated = await crud.transition_ticket(db, ticket.id, target, **values)
    if updated is not None:
        return updated

    # the guard did not match: somebody else moved the ticket first, report what it is now
    current = await crud.get_ticket_status(db, ticket.id)
    if current is None:
        raise TicketNotFound("Ticket not found", ctx={"ticket_id": ticket.id})
    ensure_transition(current, target, ticket_id=ticket.id)
    raise InternalError("Ticket status update did not apply", ctx={"ticket_id": ticket.id})


async def redeem_ticket(db: AsyncSession, code: str, scanner: User | None = None) -> Ticket:
    """
    Check a ticket in by its redemption code.
    - valid -> used exactly once, even when two gates scan the same code at the same time
    - replays get AlreadyUsed, cancelled tickets get TicketCancelled, unknown codes CodeNotFound
    - a scanner, when given, must organize the ticket's event
    """
    async with AuditSpan(scope="CHECK_IN", action="REDEEM_TICKET", object_type="ticket") as span:
        ticket = await crud.get_ticket_by_code(db, code)
        if not ticket:
            raise CodeNotFound("Invalid redemption code")

        span.object_id = ticket.id
        span.ticket_id = ticket.id
        span.event_id = ticket.event_id
        span.order_id = ticket.order_id

        if scanner is not None and not await _is_event_organizer(db, scanner, ticket.event_id):
            raise Forbidden(
                "Not allowed to check in tickets for this event",
                ctx={"event_id": ticket.event_id, "reason": "organizer_mismatch"}
            )

        now = datetime.now(timezone.utc)
        redeemed = await _transition(db, ticket, TicketStatus.USED, check_in_date=now)

        logger.info("Ticket redeemed ticket_id=%s event_id=%s", redeemed.id, redeemed.event_id)
        return redeemed


async def cancel_ticket(db: AsyncSession, ticket_id: int, actor: User) -> Ticket:
    """
    valid -> cancelled, by the ticket holder or the event's organizer.
    The event's counter is left alone: available_tickets only ever moves down through issuance.
    """
    async with AuditSpan(
        scope="CHECK_IN",
        action="CANCEL_TICKET",
        object_type="ticket",
        object_id=ticket_id,
        ticket_id=ticket_id
    ) as span:
        ticket = await crud.get_ticket_by_id(db, ticket_id)
        if not ticket:
            raise TicketNotFound("Ticket not found", ctx={"ticket_id": ticket_id})

        span.event_id = ticket.event_id
        span.order_id = ticket.order_id

        if ticket.user_id != actor.id and not await _is_event_organizer(db, actor, ticket.event_id):
            # holders of other tickets must not learn that this id exists
            raise TicketNotFound("Ticket not found", ctx={"ticket_id": ticket_id})

        cancelled = await _transition(db, ticket, TicketStatus.CANCELLED)

        logger.info("Ticket cancelled ticket_id=%s by user_id=%s", ticket_id, actor.id)
        return cancelled
