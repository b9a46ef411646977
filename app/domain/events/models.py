from sqlalchemy.orm import mapped_column, Mapped, relationship
from sqlalchemy import Identity, Text, Integer, ForeignKey, CheckConstraint, Numeric, Date, Time, TIMESTAMP, func
from app.core.database import Base
from datetime import date, datetime, time
from decimal import Decimal


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    organizer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete='RESTRICT'),
        nullable=False,
        index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    event_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    location: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, server_default="0")
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    # decremented only through inventory_service.try_reserve, restored only by reconcile_inventory
    available_tickets: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    organizer: Mapped['User'] = relationship(lazy='selectin')

    __table_args__ = (
        CheckConstraint("price >= 0", name="chk_event_price_nonneg"),
        CheckConstraint("capacity >= 0", name="chk_event_capacity_nonneg"),
        CheckConstraint("available_tickets >= 0", name="chk_event_available_nonneg"),
        CheckConstraint("available_tickets <= capacity", name="chk_event_available_le_capacity"),
    )

    @property
    def sold_tickets(self) -> int:
        return self.capacity - self.available_tickets
