from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from typing import Annotated
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.security import decode_access_token
from app.domain.users.models import User, UserRole
from app.domain.users.crud import get_user_by_id, upsert_user_from_claims
from app.domain.auth.schemas import TokenPayload
from app.domain.exceptions import Unauthorized, Forbidden
from app.core.ctx import AUTH_ROLE_CTX, AUTH_USER_ID_CTX


# tokenUrl points at the external identity provider; this service never issues tokens itself
oauth2_bearer = OAuth2PasswordBearer(tokenUrl="/auth/login")


async def get_token_payload(token: Annotated[str, Depends(oauth2_bearer)]) -> TokenPayload:
    try:
        raw_payload = decode_access_token(token)
    except JWTError:
        raise Unauthorized("Invalid authentication credentials", ctx={"reason": "invalid_token"})

    if raw_payload.get("typ") != "access":
        raise Unauthorized("Invalid token type", ctx={"reason": "invalid_type"})
    try:
        return TokenPayload.model_validate(raw_payload)
    except ValidationError:
        raise Unauthorized("Invalid authentication credentials", ctx={"reason": "invalid_claims"})


def get_current_user_with_roles(*allowed_roles: UserRole):
    allowed = set(allowed_roles)

    async def _inner(payload: Annotated[TokenPayload, Depends(get_token_payload)],
                     db: Annotated[AsyncSession, Depends(get_db)]) -> User:
        try:
            user_id = int(payload.sub)
        except ValueError:
            raise Unauthorized("Invalid subject", ctx={"reason": "invalid_claims"})

        user = await get_user_by_id(user_id, db)
        if user is None:
            if not payload.email:
                raise Unauthorized("User not provisioned", ctx={"reason": "missing_claims", "user_id": payload.sub})
            user = await upsert_user_from_claims(
                db,
                user_id,
                email=payload.email,
                name=payload.name or payload.email,
                role=payload.role
            )
        if user is None or not user.is_active:
            raise Unauthorized("User not found", ctx={"user_id": payload.sub})

        AUTH_ROLE_CTX.set(payload.role.value)
        AUTH_USER_ID_CTX.set(user.id)

        if allowed and payload.role not in allowed:
            raise Forbidden(
                "Permission denied",
                ctx={"required": sorted(r.value for r in allowed), "user_role": payload.role}
            )
        return user
    return _inner


ANY_USER = get_current_user_with_roles()
ORGANIZER = get_current_user_with_roles(UserRole.ORGANIZER)
