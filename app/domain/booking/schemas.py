from datetime import datetime, date, time
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator
from app.core.config import MAX_TICKETS_PER_ORDER
from app.core.utils.text_utils import strip_text
from app.domain.booking.models import OrderStatus, TicketStatus


class RegisterRequestDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    quantity: int = Field(default=1, ge=1, le=MAX_TICKETS_PER_ORDER)


class ScanRequestDTO(BaseModel):
    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    code: str = Field(min_length=1, max_length=256, validation_alias=AliasChoices("code", "qrCode"))

    _strip_code = field_validator("code", mode="before")(strip_text)


class TicketReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    event_id: int
    user_id: int
    event_title: str
    event_date: date
    event_time: time | None
    event_location: str
    holder_name: str
    holder_email: str
    code: str
    status: TicketStatus
    purchase_date: datetime
    check_in_date: datetime | None


class ScanResultDTO(BaseModel):
    success: bool
    message: str
    ticket: TicketReadDTO


class OrderSummaryDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    event_id: int
    event_title: str
    event_date: date
    quantity: int
    unit_price: Decimal
    total_amount: Decimal
    status: OrderStatus
    created_at: datetime


class OrderReadDTO(OrderSummaryDTO):
    user_name: str
    user_email: str
    event_time: time | None
    event_location: str
    tickets: list[TicketReadDTO] = Field(default_factory=list)


class UserOrdersQueryDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    status: OrderStatus | None = None
    event_id: int | None = Field(default=None, ge=1)
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=200)


class UserTicketsQueryDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    status: TicketStatus | None = None
    event_id: int | None = Field(default=None, ge=1)
