import json
import pytest
from sqlalchemy.exc import OperationalError
from app.workers import audit_worker


def _entry(msg_id: str, payload) -> tuple[str, dict]:
    return msg_id, {"json": json.dumps(payload)}


@pytest.fixture
def redis_client(mocker):
    client = mocker.Mock()
    client.xack = mocker.AsyncMock()
    return client


@pytest.fixture
def db(mocker):
    session = mocker.Mock()
    session.begin_nested = mocker.MagicMock()
    session.execute = mocker.AsyncMock()
    return session


def test_params_from_payload_defaults():
    params = audit_worker.params_from_payload({"scope": "CHECK_IN", "action": "REDEEM_TICKET", "status": "weird"})

    assert params["status"] == "FAIL"
    assert params["meta"] == {}
    assert params["ticket_id"] is None


@pytest.mark.parametrize("raw", ["[]", json.dumps({"scope": "X"}), None])
def test_parse_payload_rejects_malformed_entries(raw):
    with pytest.raises(ValueError):
        audit_worker.parse_payload(raw)


@pytest.mark.asyncio
async def test_store_entries_inserts_and_acks(db, redis_client):
    entries = [_entry("1-0", {"scope": "CHECK_IN", "action": "REDEEM_TICKET", "status": "SUCCESS", "ticket_id": 7})]

    stored = await audit_worker.store_entries(db, redis_client, entries)

    assert stored == 1
    params = db.execute.await_args.args[1]
    assert params["ticket_id"] == 7
    redis_client.xack.assert_awaited_once_with(audit_worker.AUDIT_STREAM, audit_worker.AUDIT_GROUP, "1-0")


@pytest.mark.asyncio
async def test_store_entries_acks_and_drops_malformed(db, redis_client):
    stored = await audit_worker.store_entries(db, redis_client, [("2-0", {"json": "not json"})])

    assert stored == 0
    db.execute.assert_not_awaited()
    redis_client.xack.assert_awaited_once()


@pytest.mark.asyncio
async def test_store_entries_keeps_failed_inserts_pending(db, redis_client):
    db.execute.side_effect = OperationalError("INSERT", {}, Exception("db down"))
    entries = [_entry("3-0", {"scope": "INVENTORY", "action": "RECONCILE"})]

    stored = await audit_worker.store_entries(db, redis_client, entries)

    assert stored == 0
    redis_client.xack.assert_not_awaited()
