from pydantic import BaseModel, ConfigDict
from typing import Literal
from app.domain.users.models import UserRole


class TokenPayload(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sub: str
    role: UserRole
    iat: int
    nbf: int | None = None
    exp: int
    jti: str | None = None
    typ: Literal["access", "refresh"] | None = None
    iss: str | None = None
    aud: str | list[str] | None = None
    email: str | None = None
    name: str | None = None
