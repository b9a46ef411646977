import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from app.api.exceptions import register_error_handler
from app.api.v1.routes import events, booking, tickets, orders
from app.core.config import LOG_LEVEL
from app.core.middleware.http_ctx import HttpContextMiddleware
from app.core.redis import create_redis


logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    r = await create_redis()
    app.state.redis = r
    if r is None:
        logger.info("REDIS_URL not set, audit records will not be published")
    try:
        yield
    finally:
        if r is not None:
            await r.aclose()


app = FastAPI(title="Ticketing", lifespan=lifespan)
app.add_middleware(HttpContextMiddleware, request_id_header="X-Request-ID")
register_error_handler(app)
app.include_router(events.router)
app.include_router(booking.router)
app.include_router(tickets.router)
app.include_router(orders.router)
