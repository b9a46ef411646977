from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.pagination import paginate
from .models import Order, OrderStatus, Ticket, TicketStatus, sources_for


async def get_ticket_by_code(db: AsyncSession, code: str) -> Ticket | None:
    stmt = select(Ticket).where(Ticket.code == code)
    result = await db.execute(stmt)
    return result.scalars().first()


async def get_ticket_by_id(db: AsyncSession, ticket_id: int) -> Ticket | None:
    stmt = select(Ticket).where(Ticket.id == ticket_id)
    result = await db.execute(stmt)
    return result.scalars().first()


async def get_ticket_status(db: AsyncSession, ticket_id: int) -> TicketStatus | None:
    return await db.scalar(select(Ticket.status).where(Ticket.id == ticket_id))


def transition_ticket_stmt(ticket_id: int, target: TicketStatus, **values):
    """
    Guarded status change. The WHERE clause only matches while the ticket is in a status
    from which `target` is reachable, so of two concurrent writers at most one gets a row back.
    """
    return (
        update(Ticket)
        .where(Ticket.id == ticket_id, Ticket.status.in_(sources_for(target)))
        .values(status=target, **values)
        .returning(Ticket)
        .execution_options(populate_existing=True)
    )


async def transition_ticket(db: AsyncSession, ticket_id: int, target: TicketStatus, **values) -> Ticket | None:
    return await db.scalar(transition_ticket_stmt(ticket_id, target, **values))


async def list_tickets_for_user(
        db: AsyncSession,
        user_id: int,
        *,
        status: TicketStatus | None = None,
        event_id: int | None = None
) -> list[Ticket]:
    stmt = select(Ticket).where(Ticket.user_id == user_id)
    if status is not None:
        stmt = stmt.where(Ticket.status == status)
    if event_id is not None:
        stmt = stmt.where(Ticket.event_id == event_id)
    stmt = stmt.order_by(Ticket.purchase_date.desc(), Ticket.id.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_tickets_for_event(db: AsyncSession, event_id: int) -> int:
    total = await db.scalar(select(func.count(Ticket.id)).where(Ticket.event_id == event_id))
    return int(total or 0)


async def sum_issued_quantity(db: AsyncSession, event_id: int) -> int:
    total = await db.scalar(
        select(func.coalesce(func.sum(Order.quantity), 0))
        .where(Order.event_id == event_id, Order.status == OrderStatus.COMPLETED)
    )
    return int(total or 0)


async def has_orders_for_event(db: AsyncSession, event_id: int) -> bool:
    exists = await db.scalar(select(select(Order.id).where(Order.event_id == event_id).exists()))
    return bool(exists)


async def get_order_for_user(db: AsyncSession, order_id: int, user_id: int) -> Order | None:
    stmt = select(Order).where(Order.id == order_id, Order.user_id == user_id)
    result = await db.execute(stmt)
    return result.scalars().first()


async def list_orders_for_user(
        db: AsyncSession,
        user_id: int,
        page: int,
        page_size: int,
        *,
        status: OrderStatus | None = None,
        event_id: int | None = None,
) -> tuple[list[Order], int]:
    where = [Order.user_id == user_id]
    if status is not None:
        where.append(Order.status == status)
    if event_id is not None:
        where.append(Order.event_id == event_id)

    return await paginate(
        db,
        base_stmt=select(Order),
        page=page,
        page_size=page_size,
        where=where,
        order_by=[Order.created_at.desc(), Order.id.desc()],
        count_by=Order.id
    )
