from .users.models import User, UserRole
from .events.models import Event
from .booking.models import Order, OrderStatus, Ticket, TicketStatus

__all__ = (
    "User", "UserRole", "Event", "Order", "OrderStatus", "Ticket", "TicketStatus"
)
