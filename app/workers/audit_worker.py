import os
import json
import asyncio
import signal
import socket
import logging
import redis.asyncio as redis
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy import text, bindparam
from sqlalchemy.dialects.postgresql import JSONB, INET
from sqlalchemy.exc import SQLAlchemyError
from app.core.config import DATABASE_URL, AUDIT_STREAM, AUDIT_GROUP, AUDIT_BATCH, AUDIT_BLOCK_MS, LOG_LEVEL
from app.core.redis import create_redis


logger = logging.getLogger("audit.worker")

CLAIM_INTERVAL_S = 30
CLAIM_MIN_IDLE_MS = 60000

INSERT_AUDIT = text("""
    INSERT INTO audit.audit_logs
    (request_id, scope, action, actor_user_id, actor_role, actor_ip, route,
     object_type, object_id, event_id, order_id, ticket_id, status, reason, meta)
    VALUES
    (:request_id, :scope, :action, :actor_user_id, :actor_role, :actor_ip, :route,
     :object_type, :object_id, :event_id, :order_id, :ticket_id, :status, :reason, :meta)
""").bindparams(
    bindparam("actor_ip", type_=INET),
    bindparam("meta", type_=JSONB),
)


def parse_payload(raw_json: str | None) -> dict:
    payload = json.loads(raw_json) if raw_json else {}
    if not isinstance(payload, dict):
        raise ValueError("payload is not a JSON object")
    if not payload.get("scope") or not payload.get("action"):
        raise ValueError("missing required fields: scope/action")
    return payload


def params_from_payload(payload: dict) -> dict:
    status = (payload.get("status") or "SUCCESS").upper()
    return {
        "request_id": payload.get("request_id"),
        "scope": payload["scope"],
        "action": payload["action"],
        "actor_user_id": payload.get("actor_user_id"),
        "actor_role": payload.get("actor_role"),
        "actor_ip": payload.get("actor_ip"),
        "route": payload.get("route"),
        "object_type": payload.get("object_type"),
        "object_id": payload.get("object_id"),
        "event_id": payload.get("event_id"),
        "order_id": payload.get("order_id"),
        "ticket_id": payload.get("ticket_id"),
        "status": "SUCCESS" if status == "SUCCESS" else "FAIL",
        "reason": payload.get("reason"),
        "meta": dict(payload.get("meta") or {}),
    }


async def _ensure_group(r: redis.Redis) -> None:
    try:
        await r.xgroup_create(
            name=AUDIT_STREAM,
            groupname=AUDIT_GROUP,
            id="$",
            mkstream=True,
        )
        logger.info("XGROUP created stream=%s group=%s", AUDIT_STREAM, AUDIT_GROUP)
    except redis.ResponseError as e:
        if "BUSYGROUP" in str(e):
            logger.info("XGROUP already exists stream=%s group=%s", AUDIT_STREAM, AUDIT_GROUP)
        else:
            raise


async def store_entries(db: AsyncSession, r: redis.Redis, entries: list) -> int:
    """Inserts a batch of stream entries; acks stored and malformed ones, leaves DB failures pending."""
    stored = 0
    for msg_id, fields in entries:
        try:
            payload = parse_payload(fields.get("json"))
        except ValueError as e:
            logger.warning("Invalid payload; dropping id=%s err=%s", msg_id, e)
            await r.xack(AUDIT_STREAM, AUDIT_GROUP, msg_id)
            continue

        try:
            async with db.begin_nested():
                await db.execute(INSERT_AUDIT, params_from_payload(payload))
        except SQLAlchemyError:
            logger.exception("DB insert failed; keeping id=%s in PEL", msg_id)
            continue

        await r.xack(AUDIT_STREAM, AUDIT_GROUP, msg_id)
        stored += 1
    return stored


async def run() -> None:
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    r = await create_redis()
    if r is None:
        raise SystemExit("REDIS_URL is required for the audit worker")
    await _ensure_group(r)

    engine = create_async_engine(DATABASE_URL, pool_pre_ping=True)
    session = async_sessionmaker(bind=engine, expire_on_commit=False)

    stop = asyncio.Event()

    def _graceful(*_):
        stop.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _graceful)
        except NotImplementedError:
            pass

    consumer = f"{socket.gethostname()}-{os.getpid()}"
    logger.info(
        "Audit worker started | stream=%s group=%s consumer=%s batch=%d block_ms=%d",
        AUDIT_STREAM, AUDIT_GROUP, consumer, AUDIT_BATCH, AUDIT_BLOCK_MS,
    )

    last_claim = loop.time()

    try:
        while not stop.is_set():
            resp = await r.xreadgroup(
                groupname=AUDIT_GROUP,
                consumername=consumer,
                streams={AUDIT_STREAM: ">"},
                count=AUDIT_BATCH,
                block=AUDIT_BLOCK_MS,
            )
            if resp:
                async with session() as db:
                    async with db.begin():
                        await store_entries(db, r, resp[0][1])

            now = loop.time()
            if now - last_claim > CLAIM_INTERVAL_S:
                last_claim = now
                try:
                    _, msgs, _ = await r.xautoclaim(
                        name=AUDIT_STREAM,
                        groupname=AUDIT_GROUP,
                        consumername=consumer,
                        min_idle_time=CLAIM_MIN_IDLE_MS,
                        start_id="0",
                        count=100,
                    )
                    if msgs:
                        logger.info("XAUTOCLAIM: retrying %d pending messages", len(msgs))
                        async with session() as db:
                            async with db.begin():
                                await store_entries(db, r, msgs)
                except (redis.RedisError, SQLAlchemyError):
                    logger.exception("XAUTOCLAIM failed")
    finally:
        logger.info("Shutting down audit worker...")
        await r.aclose()
        await engine.dispose()
        logger.info("Audit worker stopped.")


if __name__ == "__main__":
    asyncio.run(run())
