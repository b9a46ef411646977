from app.core.database import Base
from enum import Enum
from decimal import Decimal
from datetime import datetime, date, time
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from sqlalchemy import Identity, Text, ForeignKey, Numeric, Integer, Date, Time, TIMESTAMP, func, \
    Enum as SQLEnum, CheckConstraint
from app.domain.exceptions import InvalidTransition, AlreadyUsed, TicketCancelled


class OrderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TicketStatus(str, Enum):
    VALID = "valid"
    USED = "used"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: dict[TicketStatus, frozenset[TicketStatus]] = {
    TicketStatus.VALID: frozenset({TicketStatus.USED, TicketStatus.CANCELLED}),
    TicketStatus.USED: frozenset(),
    TicketStatus.CANCELLED: frozenset(),
}


def can_transition(current: TicketStatus, target: TicketStatus) -> bool:
    return TicketStatus(target) in ALLOWED_TRANSITIONS[TicketStatus(current)]


def sources_for(target: TicketStatus) -> list[TicketStatus]:
    """Statuses a ticket may be in for `target` to be reachable; used as the UPDATE guard."""
    return [src for src, targets in ALLOWED_TRANSITIONS.items() if target in targets]


def ensure_transition(current: TicketStatus, target: TicketStatus, *, ticket_id: int | None = None) -> None:
    current = TicketStatus(current)
    target = TicketStatus(target)
    if can_transition(current, target):
        return

    ctx = {"ticket_id": ticket_id, "status": current, "target_status": target}
    if current == TicketStatus.USED:
        raise AlreadyUsed("Ticket already used", ctx=ctx)
    if current == TicketStatus.CANCELLED:
        raise TicketCancelled("Ticket cancelled", ctx=ctx)
    raise InvalidTransition(f"Cannot change ticket status from {current.value} to {target.value}", ctx=ctx)


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    # user_id/event_id are historical references, not foreign keys
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    event_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    user_name: Mapped[str] = mapped_column(Text, nullable=False)
    user_email: Mapped[str] = mapped_column(Text, nullable=False)
    event_title: Mapped[str] = mapped_column(Text, nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    event_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    event_location: Mapped[str] = mapped_column(Text, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus, name="order_status", values_callable=_enum_values),
        nullable=False,
        default=OrderStatus.COMPLETED
    )
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    tickets: Mapped[list["Ticket"]] = relationship(
        back_populates="order",
        lazy="selectin",
        order_by="Ticket.id",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="chk_order_quantity_pos"),
        CheckConstraint("total_amount >= 0", name="chk_order_total_nonneg"),
    )


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="RESTRICT"), nullable=False, index=True)
    event_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    event_title: Mapped[str] = mapped_column(Text, nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    event_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    event_location: Mapped[str] = mapped_column(Text, nullable=False)
    holder_name: Mapped[str] = mapped_column(Text, nullable=False)
    holder_email: Mapped[str] = mapped_column(Text, nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    status: Mapped[TicketStatus] = mapped_column(
        SQLEnum(TicketStatus, name="ticket_status", values_callable=_enum_values),
        nullable=False,
        default=TicketStatus.VALID,
        index=True
    )
    purchase_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    check_in_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    order: Mapped["Order"] = relationship(back_populates="tickets", lazy="selectin")

    __table_args__ = (
        CheckConstraint(
            "(status = 'used') = (check_in_date IS NOT NULL)",
            name="chk_ticket_check_in_matches_status"
        ),
    )

    @validates("status")
    def _validate_status(self, key, value):
        current = self.__dict__.get("status")
        if current is not None and current != value:
            ensure_transition(current, value, ticket_id=self.__dict__.get("id"))
        return value
