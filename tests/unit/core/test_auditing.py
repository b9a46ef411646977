import json
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from app.core import auditing
from app.core.ctx import REDIS_CTX, REQUEST_ID_CTX, AUTH_ROLE_CTX
from app.domain.exceptions import AlreadyUsed


@pytest.fixture
def redis_client(mocker):
    client = mocker.Mock()
    client.xadd = mocker.AsyncMock(return_value="1-0")
    token = REDIS_CTX.set(client)
    yield client
    REDIS_CTX.reset(token)


def _payload(redis_client) -> dict:
    fields = redis_client.xadd.await_args.args[1]
    return json.loads(fields["json"])


@pytest.mark.asyncio
async def test_audit_emit_without_redis_is_noop():
    assert await auditing.audit_emit(scope="X", action="Y", status=auditing.AuditStatus.SUCCESS) is None


@pytest.mark.asyncio
async def test_audit_span_success_records_ids_and_context(redis_client):
    REQUEST_ID_CTX.set("req-1")
    AUTH_ROLE_CTX.set("organizer")

    async with auditing.AuditSpan(scope="CHECK_IN", action="REDEEM_TICKET", object_type="ticket") as span:
        span.ticket_id = 7
        span.event_id = 10

    payload = _payload(redis_client)
    assert payload["status"] == "SUCCESS"
    assert payload["ticket_id"] == 7
    assert payload["event_id"] == 10
    assert payload["request_id"] == "req-1"
    assert payload["actor_role"] == "organizer"
    assert payload["reason"] is None
    assert "duration_ms" in payload["meta"]


@pytest.mark.asyncio
async def test_audit_span_failure_records_reason_and_reraises(redis_client):
    with pytest.raises(AlreadyUsed):
        async with auditing.AuditSpan(scope="CHECK_IN", action="REDEEM_TICKET"):
            raise AlreadyUsed("Ticket already used")

    payload = _payload(redis_client)
    assert payload["status"] == "FAIL"
    assert payload["reason"] == "AlreadyUsed: Ticket already used"


@pytest.mark.asyncio
async def test_audit_span_hides_message_of_unexpected_errors(redis_client):
    with pytest.raises(RuntimeError):
        async with auditing.AuditSpan(scope="REGISTRATION", action="ISSUE_TICKETS"):
            raise RuntimeError("dsn=postgres://secret")

    assert _payload(redis_client)["reason"] == "RuntimeError"


@pytest.mark.asyncio
async def test_audit_emit_swallows_redis_errors(redis_client):
    redis_client.xadd.side_effect = RedisConnectionError("down")

    result = await auditing.audit_emit(scope="X", action="Y", status=auditing.AuditStatus.FAIL)

    assert result is None
