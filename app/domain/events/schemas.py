from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import date, datetime, time
from decimal import Decimal
from app.core.utils.text_utils import strip_text
from app.domain.users.schemas import UserSnapshotDTO


class EventCreateDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    title: str = Field(min_length=3, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    event_date: date
    event_time: time | None = None
    location: str = Field(min_length=2, max_length=200)
    address: str | None = Field(default=None, max_length=300)
    category: str | None = Field(default=None, max_length=50)
    image_url: str | None = Field(default=None, max_length=2000)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    capacity: int = Field(ge=1, le=1_000_000)

    _strip_title = field_validator("title", mode="before")(strip_text)
    _strip_desc = field_validator("description", mode="before")(strip_text)
    _strip_location = field_validator("location", mode="before")(strip_text)
    _strip_address = field_validator("address", mode="before")(strip_text)
    _strip_category = field_validator("category", mode="before")(strip_text)


class EventUpdateDTO(BaseModel):
    """Capacity and the ticket counter are deliberately absent: both are fixed once the event exists."""
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=3, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    event_date: date | None = None
    event_time: time | None = None
    location: str | None = Field(default=None, min_length=2, max_length=200)
    address: str | None = Field(default=None, max_length=300)
    category: str | None = Field(default=None, max_length=50)
    image_url: str | None = Field(default=None, max_length=2000)
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)

    _strip_title = field_validator("title", mode="before")(strip_text)
    _strip_desc = field_validator("description", mode="before")(strip_text)
    _strip_location = field_validator("location", mode="before")(strip_text)
    _strip_address = field_validator("address", mode="before")(strip_text)
    _strip_category = field_validator("category", mode="before")(strip_text)


class EventReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None
    event_date: date
    event_time: time | None
    location: str
    address: str | None
    category: str | None
    image_url: str | None
    price: Decimal
    capacity: int
    available_tickets: int
    organizer: UserSnapshotDTO
    created_at: datetime
    updated_at: datetime


class PublicEventsQueryDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=200)
    search: str | None = None
    category: str | None = None
    location: str | None = None
    date_from: date | None = None
    date_to: date | None = None


class OrganizerEventsQueryDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=200)
    search: str | None = None


class InventoryReportDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    event_id: int
    capacity: int
    available_tickets: int
    issued_tickets: int
    ticket_count: int
    expected_available: int
    consistent: bool
    oversold: bool
    repaired: bool = False
