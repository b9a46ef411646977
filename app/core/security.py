import secrets, uuid
from datetime import timedelta, datetime, timezone
from jose import jwt
from .config import SECRET_KEY, ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, JWT_ISSUER, JWT_AUDIENCE, \
    REDEMPTION_CODE_BYTES


def generate_redemption_code() -> str:
    return secrets.token_urlsafe(REDEMPTION_CODE_BYTES)


def decode_access_token(token: str) -> dict:
    return jwt.decode(
        token,
        SECRET_KEY,
        algorithms=[ALGORITHM],
        issuer=JWT_ISSUER,
        audience=JWT_AUDIENCE,
        options={"verify_aud": True, "leeway": 5}
    )


def create_access_token(subject: str | int, *, role: str, email: str | None = None, name: str | None = None) -> str:
    """Mint a token the way the identity provider does; used for local development only."""
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(subject),
        "role": role,
        "iat": int(now.timestamp()),
        "nbf": int(now.timestamp()),
        "exp": int(expire.timestamp()),
        "jti": str(uuid.uuid4()),
        "typ": "access",
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE
    }
    if email:
        payload["email"] = email
    if name:
        payload["name"] = name
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)
