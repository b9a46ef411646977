from fastapi import Depends
from typing import Annotated
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.dependencies.auth import ORGANIZER
from app.domain.users.models import User
from app.domain.events.models import Event
from app.domain.events import crud
from app.domain.exceptions import EventNotFound, Forbidden


async def _ensure_event_owner(event_id: int, db: AsyncSession, user: User) -> Event:
    event = await crud.get_event_by_id(db, event_id)
    if not event:
        raise EventNotFound("Event not found", ctx={"event_id": event_id})

    if event.organizer_id != user.id:
        raise Forbidden("Not allowed", ctx={"event_id": event_id, "reason": "organizer_mismatch"})

    return event


async def require_event_owner(
        event_id: int,
        db: Annotated[AsyncSession, Depends(get_db)],
        user: Annotated[User, Depends(ORGANIZER)]
) -> Event:
    return await _ensure_event_owner(event_id, db, user)
