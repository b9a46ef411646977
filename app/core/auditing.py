import json
import logging
import time
from datetime import timezone, datetime
from typing import Any, Mapping
from redis.exceptions import RedisError
from app.core.config import AUDIT_STREAM
from app.core.ctx import get_redis, get_request_id, get_route, get_actor_id, get_actor_role, get_client_ip
from app.domain.exceptions import AppError

logger = logging.getLogger("app.audit")


class AuditStatus:
    SUCCESS = "SUCCESS"
    FAIL = "FAIL"


async def audit_emit(
    *,
    scope: str,
    action: str,
    status: str,
    object_type: str | None = None,
    object_id: int | None = None,
    event_id: int | None = None,
    order_id: int | None = None,
    ticket_id: int | None = None,
    reason: str | None = None,
    meta: Mapping[str, Any] | None = None
) -> str | None:
    r = get_redis()
    if not r:
        return None

    payload = {
        "request_id": get_request_id(),
        "scope": scope,
        "action": action,
        "status": status,
        "actor_user_id": get_actor_id(),
        "actor_role": get_actor_role(),
        "actor_ip": get_client_ip(),
        "route": get_route(),
        "object_type": object_type,
        "object_id": object_id,
        "event_id": event_id,
        "order_id": order_id,
        "ticket_id": ticket_id,
        "reason": reason,
        "meta": dict(meta or {}),
    }
    try:
        return await r.xadd(AUDIT_STREAM, {"json": json.dumps(payload, default=str)})
    except RedisError:
        # best effort
        logger.warning("Audit emit failed scope=%s action=%s status=%s", scope, action, status, exc_info=True)
        return None


def _reason_from_exception(exception: BaseException | None) -> str | None:
    if exception is None:
        return None
    if isinstance(exception, AppError):
        return f"{type(exception).__name__}: {exception}"
    return type(exception).__name__


class AuditSpan:
    def __init__(self, *, scope: str, action: str,
                 object_type: str | None = None, object_id: int | None = None,
                 event_id: int | None = None, order_id: int | None = None,
                 ticket_id: int | None = None, meta: Mapping[str, Any] | None = None):
        self.scope = scope
        self.action = action
        self.object_type = object_type
        self.object_id = object_id
        self.event_id = event_id
        self.order_id = order_id
        self.ticket_id = ticket_id
        self.meta = dict(meta or {})
        self._t0 = 0.0

    async def __aenter__(self):
        self._t0 = time.perf_counter()
        started = datetime.now(timezone.utc)
        self.meta.setdefault("occurred_at", started.isoformat(timespec="milliseconds").replace("+00:00", "Z"))
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.meta["duration_ms"] = int((time.perf_counter() - self._t0) * 1000)
        status = AuditStatus.FAIL if exc else AuditStatus.SUCCESS
        await audit_emit(
            scope=self.scope, action=self.action, status=status,
            object_type=self.object_type, object_id=self.object_id,
            event_id=self.event_id, order_id=self.order_id, ticket_id=self.ticket_id,
            reason=_reason_from_exception(exc), meta=self.meta
        )
        return False
