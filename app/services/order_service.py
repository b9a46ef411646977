from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.pagination import PageDTO
from app.domain.booking import crud
from app.domain.booking.models import Order, OrderStatus, Ticket
from app.domain.booking.schemas import OrderSummaryDTO, UserOrdersQueryDTO
from app.domain.events.models import Event
from app.domain.users.models import User
from app.domain.exceptions import OrderNotFound

CENT = Decimal("0.01")


def order_total(unit_price: Decimal, quantity: int) -> Decimal:
    return (Decimal(unit_price) * quantity).quantize(CENT, rounding=ROUND_HALF_UP)


def build_order(event: Event, user: User, quantity: int, tickets: list[Ticket], now: datetime) -> Order:
    """Pure composition of an issued registration: snapshots of event and user, the total, the tickets."""
    return Order(
        user_id=user.id,
        event_id=event.id,
        user_name=user.name,
        user_email=user.email,
        event_title=event.title,
        event_date=event.event_date,
        event_time=event.event_time,
        event_location=event.location,
        unit_price=event.price,
        quantity=quantity,
        total_amount=order_total(event.price, quantity),
        status=OrderStatus.COMPLETED,
        created_at=now,
        tickets=list(tickets)
    )


async def list_user_orders(db: AsyncSession, user: User, query: UserOrdersQueryDTO) -> PageDTO[OrderSummaryDTO]:
    orders, total = await crud.list_orders_for_user(
        db,
        user.id,
        page=query.page,
        page_size=query.page_size,
        status=query.status,
        event_id=query.event_id
    )
    return PageDTO[OrderSummaryDTO](
        items=[OrderSummaryDTO.model_validate(o) for o in orders],
        total=total,
        page=query.page,
        page_size=query.page_size
    )


async def get_user_order(db: AsyncSession, user: User, order_id: int) -> Order:
    order = await crud.get_order_for_user(db, order_id, user.id)
    if not order:
        raise OrderNotFound("Order not found", ctx={"order_id": order_id})
    return order
