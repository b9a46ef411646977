from typing import Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.dependencies.auth import ANY_USER, ORGANIZER
from app.domain.users.models import User
from app.domain.booking.schemas import UserTicketsQueryDTO, TicketReadDTO, ScanRequestDTO, ScanResultDTO
from app.services import tickets_service, redemption_service


router = APIRouter(prefix="/tickets", tags=["tickets"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    response_model=list[TicketReadDTO]
)
async def list_my_tickets(
        db: db_dependency,
        user: Annotated[User, Depends(ANY_USER)],
        query: Annotated[UserTicketsQueryDTO, Depends()]
):
    return await tickets_service.list_user_tickets(db, user, query)


@router.post(
    "/scan",
    status_code=status.HTTP_200_OK,
    response_model=ScanResultDTO
)
async def scan_ticket(
        schema: ScanRequestDTO,
        db: db_dependency,
        user: Annotated[User, Depends(ORGANIZER)]
):
    ticket = await redemption_service.redeem_ticket(db, schema.code, scanner=user)
    return ScanResultDTO(
        success=True,
        message="Ticket scanned successfully",
        ticket=TicketReadDTO.model_validate(ticket)
    )


@router.get(
    "/{ticket_id}",
    status_code=status.HTTP_200_OK,
    response_model=TicketReadDTO
)
async def get_my_ticket(ticket_id: int, db: db_dependency, user: Annotated[User, Depends(ANY_USER)]):
    return await tickets_service.get_user_ticket(db, user, ticket_id)


@router.post(
    "/{ticket_id}/cancel",
    status_code=status.HTTP_200_OK,
    response_model=TicketReadDTO
)
async def cancel_ticket(ticket_id: int, db: db_dependency, user: Annotated[User, Depends(ANY_USER)]):
    return await redemption_service.cancel_ticket(db, ticket_id, user)
