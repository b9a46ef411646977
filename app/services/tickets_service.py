from sqlalchemy.ext.asyncio import AsyncSession
from app.domain.booking import crud
from app.domain.booking.models import Ticket
from app.domain.booking.schemas import UserTicketsQueryDTO
from app.domain.users.models import User
from app.domain.exceptions import TicketNotFound


async def list_user_tickets(db: AsyncSession, user: User, query: UserTicketsQueryDTO) -> list[Ticket]:
    return await crud.list_tickets_for_user(db, user.id, status=query.status, event_id=query.event_id)


async def get_user_ticket(db: AsyncSession, user: User, ticket_id: int) -> Ticket:
    ticket = await crud.get_ticket_by_id(db, ticket_id)
    if not ticket or ticket.user_id != user.id:
        raise TicketNotFound("Ticket not found", ctx={"ticket_id": ticket_id})
    return ticket
