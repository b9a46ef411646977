import logging
from datetime import datetime, timezone
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.auditing import AuditSpan
from app.core.config import MAX_TICKETS_PER_ORDER
from app.core.security import generate_redemption_code
from app.domain.booking.models import Order, Ticket, TicketStatus
from app.domain.events.models import Event
from app.domain.users.models import User
from app.domain.users.crud import get_user_by_id
from app.domain.exceptions import UserNotFound, InvalidInput, InternalError
from app.services import inventory_service, order_service

logger = logging.getLogger(__name__)


def _validate_quantity(quantity: int) -> None:
    if quantity < 1 or quantity > MAX_TICKETS_PER_ORDER:
        raise InvalidInput(
            f"Quantity must be between 1 and {MAX_TICKETS_PER_ORDER}",
            ctx={"quantity": quantity, "max": MAX_TICKETS_PER_ORDER}
        )


async def _require_user(db: AsyncSession, user_id: int) -> User:
    user = await get_user_by_id(user_id, db)
    if not user:
        raise UserNotFound("User not found", ctx={"user_id": user_id})
    return user


def _mint_ticket(event: Event, user: User, now: datetime) -> Ticket:
    return Ticket(
        event_id=event.id,
        user_id=user.id,
        event_title=event.title,
        event_date=event.event_date,
        event_time=event.event_time,
        event_location=event.location,
        holder_name=user.name,
        holder_email=user.email,
        code=generate_redemption_code(),
        status=TicketStatus.VALID,
        purchase_date=now,
        check_in_date=None
    )


def mint_tickets(event: Event, user: User, quantity: int, now: datetime) -> list[Ticket]:
    tickets = [_mint_ticket(event, user, now) for _ in range(quantity)]
    if len({t.code for t in tickets}) != len(tickets):
        raise InternalError("Redemption code collision", ctx={"event_id": event.id})
    return tickets


async def issue_tickets(db: AsyncSession, user_id: int, event_id: int, quantity: int = 1) -> Order:
    """
    Register a user for an event: reserve capacity, mint tickets, record the order
    - All or nothing: reservation, tickets and order share one savepoint
    - A failure after the counter was decremented rolls the decrement back with everything else
    - Overselling is prevented by the conditional UPDATE in inventory_service.try_reserve
    """
    async with AuditSpan(
        scope="REGISTRATION",
        action="ISSUE_TICKETS",
        object_type="order",
        event_id=event_id,
        meta={"quantity": quantity}
    ) as span:
        _validate_quantity(quantity)
        user = await _require_user(db, user_id)

        async with db.begin_nested():
            event = await inventory_service.try_reserve(db, event_id, quantity)

            now = datetime.now(timezone.utc)
            tickets = mint_tickets(event, user, quantity, now)
            order = order_service.build_order(event, user, quantity, tickets, now)
            db.add(order)
            try:
                await db.flush()
            except IntegrityError as e:
                logger.exception("Persisting order failed event_id=%s user_id=%s", event_id, user_id)
                raise InternalError("Could not complete registration", ctx={"event_id": event_id}) from e

        logger.info(
            "Issued %s ticket(s) order_id=%s event_id=%s user_id=%s available_left=%s",
            quantity, order.id, event_id, user_id, event.available_tickets
        )
        span.object_id = order.id
        span.order_id = order.id
        span.meta["available_left"] = event.available_tickets
        return order
