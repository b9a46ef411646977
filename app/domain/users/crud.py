from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from .models import User, UserRole


async def get_user_by_email(email: str, db: AsyncSession) -> User | None:
    stmt = select(User).where(User.email == email)
    result = await db.execute(stmt)
    return result.scalars().first()


async def get_user_by_id(user_id: int, db: AsyncSession) -> User | None:
    stmt = select(User).where(User.id == user_id)
    result = await db.execute(stmt)
    return result.scalars().first()


def upsert_user_stmt(user_id: int, *, email: str, name: str, role: UserRole):
    return (
        insert(User)
        .values(id=user_id, email=email, name=name, role=role)
        .on_conflict_do_nothing()
    )


async def upsert_user_from_claims(
        db: AsyncSession,
        user_id: int,
        *,
        email: str,
        name: str,
        role: UserRole
) -> User | None:
    """
    Creates the local mirror row of an identity-provider user on first sight.
    A concurrent insert of the same subject loses quietly and the winner's row is returned.
    """
    await db.execute(upsert_user_stmt(user_id, email=email, name=name, role=role))
    return await get_user_by_id(user_id, db)
