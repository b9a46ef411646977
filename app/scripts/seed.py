import asyncio
from datetime import date, time
from decimal import Decimal
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import SEED_ORGANIZER_EMAIL, SEED_ATTENDEE_EMAIL
from app.core.database import AsyncSessionLocal
from app.core.security import create_access_token
from app.domain.users.crud import get_user_by_email
from app.domain.users.models import User, UserRole
from app.domain.events.models import Event


SAMPLE_EVENTS = [
    {
        "title": "Tech Conference 2027",
        "description": "Keynotes from industry leaders, hands-on workshops and networking opportunities.",
        "event_date": date(2027, 3, 15),
        "event_time": time(9, 0),
        "location": "San Francisco Convention Center",
        "address": "747 Howard St, San Francisco, CA 94103",
        "category": "Technology",
        "price": Decimal("299.00"),
        "capacity": 500,
    },
    {
        "title": "Music Festival Summer 2027",
        "description": "A weekend of music across multiple stages, with food trucks and art installations.",
        "event_date": date(2027, 6, 20),
        "event_time": time(14, 0),
        "location": "Central Park",
        "address": "New York, NY 10024",
        "category": "Music",
        "price": Decimal("89.00"),
        "capacity": 2000,
    },
    {
        "title": "Startup Networking Event",
        "description": "Meet fellow entrepreneurs, investors and industry professionals.",
        "event_date": date(2027, 2, 28),
        "event_time": time(18, 0),
        "location": "Innovation Hub",
        "address": "123 Innovation Dr, Austin, TX 78701",
        "category": "Business",
        "price": Decimal("0.00"),
        "capacity": 150,
    },
    {
        "title": "Food & Wine Festival",
        "description": "Gourmet food and wines from local restaurants and wineries, with live cooking demonstrations.",
        "event_date": date(2027, 4, 12),
        "event_time": time(12, 0),
        "location": "Waterfront Plaza",
        "address": "456 Harbor Blvd, Seattle, WA 98101",
        "category": "Food",
        "price": Decimal("65.00"),
        "capacity": 300,
    },
    {
        "title": "Art Gallery Opening",
        "description": "Opening night of a contemporary exhibition featuring emerging local artists.",
        "event_date": date(2027, 3, 8),
        "event_time": time(19, 0),
        "location": "Modern Art Gallery",
        "address": "789 Art St, Chicago, IL 60614",
        "category": "Arts",
        "price": Decimal("25.00"),
        "capacity": 100,
    },
    {
        "title": "Fitness Bootcamp Weekend",
        "description": "Weekend bootcamp with professional trainers. All fitness levels welcome.",
        "event_date": date(2027, 5, 18),
        "event_time": time(8, 0),
        "location": "Fitness Center Pro",
        "address": "321 Fitness Ave, Los Angeles, CA 90210",
        "category": "Sports",
        "price": Decimal("150.00"),
        "capacity": 50,
    },
]


async def seed_user(db: AsyncSession, email: str, name: str, role: UserRole) -> User:
    user = await get_user_by_email(email, db)
    if not user:
        user = User(email=email, name=name, role=role)
        db.add(user)
        await db.flush()
    return user


async def seed_events(db: AsyncSession, organizer: User) -> int:
    existing = set(await db.scalars(select(Event.title).where(Event.organizer_id == organizer.id)))
    created = 0
    for data in SAMPLE_EVENTS:
        if data["title"] in existing:
            continue
        db.add(Event(**data, organizer_id=organizer.id, available_tickets=data["capacity"]))
        created += 1
    await db.flush()
    return created


async def main():
    async with AsyncSessionLocal() as db:
        organizer = await seed_user(db, SEED_ORGANIZER_EMAIL, "Demo Organizer", UserRole.ORGANIZER)
        attendee = await seed_user(db, SEED_ATTENDEE_EMAIL, "Demo Attendee", UserRole.ATTENDEE)
        created = await seed_events(db, organizer)
        await db.commit()

    print(f"Events created: {created}")
    for user in (organizer, attendee):
        token = create_access_token(user.id, role=user.role.value, email=user.email, name=user.name)
        print(f"{user.role.value} {user.email}: {token}")


if __name__ == "__main__":
    asyncio.run(main())
