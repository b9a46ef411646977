from fastapi import APIRouter, Body, Depends, Response, status
from typing import Annotated
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.dependencies.auth import ANY_USER
from app.domain.users.models import User
from app.domain.booking.schemas import RegisterRequestDTO, OrderReadDTO
from app.services import issuance_service


router = APIRouter(prefix="/events/{event_id}", tags=["booking"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=OrderReadDTO
)
async def register(
        event_id: int,
        db: db_dependency,
        user: Annotated[User, Depends(ANY_USER)],
        response: Response,
        schema: Annotated[RegisterRequestDTO | None, Body()] = None,
):
    quantity = schema.quantity if schema else 1
    order = await issuance_service.issue_tickets(db, user_id=user.id, event_id=event_id, quantity=quantity)
    response.headers["Location"] = f"/orders/{order.id}"
    return order
