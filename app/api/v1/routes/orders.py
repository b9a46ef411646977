from typing import Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.dependencies.auth import ANY_USER
from app.core.pagination import PageDTO
from app.domain.users.models import User
from app.domain.booking.schemas import UserOrdersQueryDTO, OrderSummaryDTO, OrderReadDTO
from app.services import order_service

router = APIRouter(prefix="/orders", tags=["orders"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.get(
    "",
    response_model=PageDTO[OrderSummaryDTO],
    status_code=status.HTTP_200_OK
)
async def list_my_orders(
        db: db_dependency,
        user: Annotated[User, Depends(ANY_USER)],
        query: Annotated[UserOrdersQueryDTO, Depends()]
):
    return await order_service.list_user_orders(db, user, query)


@router.get(
    "/{order_id}",
    response_model=OrderReadDTO,
    status_code=status.HTTP_200_OK
)
async def get_my_order(order_id: int, db: db_dependency, user: Annotated[User, Depends(ANY_USER)]):
    return await order_service.get_user_order(db, user, order_id)
