from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Identity, Text, text, TIMESTAMP, Enum as SQLEnum
from app.core.database import Base
from datetime import datetime, timezone
import enum


class UserRole(str, enum.Enum):
    ATTENDEE = "attendee"
    ORGANIZER = "organizer"


class User(Base):
    """Local mirror of an identity provider account; credentials live with the provider."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Identity(always=False), primary_key=True)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.ATTENDEE
    )
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True),
                                                 default=lambda: datetime.now(timezone.utc),
                                                 server_default=text("timezone('utc', now())"),
                                                 nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
