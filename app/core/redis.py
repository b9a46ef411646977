import redis.asyncio as redis
from app.core.config import REDIS_URL


async def create_redis(url: str | None = REDIS_URL) -> redis.Redis | None:
    if not url:
        return None
    return redis.from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
        health_check_interval=30,
        retry_on_timeout=True,
        socket_connect_timeout=10,
        socket_timeout=None,
        socket_keepalive=True
    )
