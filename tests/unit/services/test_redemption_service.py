import pytest
import time_machine
from datetime import datetime, timezone
from app.services import redemption_service
from app.domain.booking.models import TicketStatus
from app.domain.exceptions import CodeNotFound, AlreadyUsed, TicketCancelled, TicketNotFound, Forbidden, \
    InternalError
from tests.helper import create_user


def _ticket(mocker, **kwargs):
    defaults = {"id": 7, "event_id": 10, "order_id": 3, "user_id": 1, "status": TicketStatus.VALID}
    defaults.update(kwargs)
    return mocker.Mock(**defaults)


def _patch_lookup(mocker, ticket, by="code"):
    return mocker.patch(
        f"app.services.redemption_service.crud.get_ticket_by_{by}",
        new=mocker.AsyncMock(return_value=ticket)
    )


def _patch_event(mocker, organizer_id=99):
    event = mocker.Mock(id=10, organizer_id=organizer_id)
    return mocker.patch("app.services.redemption_service.get_event_by_id", new=mocker.AsyncMock(return_value=event))


@time_machine.travel("2026-10-01 18:30:00", tick=False)
@pytest.mark.asyncio
async def test_redeem_ticket_marks_valid_ticket_used(mocker, auditspan_stub):
    ticket = _ticket(mocker)
    redeemed = _ticket(mocker, status=TicketStatus.USED)
    _patch_lookup(mocker, ticket)
    _patch_event(mocker, organizer_id=99)
    transition = mocker.patch(
        "app.services.redemption_service.crud.transition_ticket",
        new=mocker.AsyncMock(return_value=redeemed)
    )
    db = mocker.Mock()
    scanner = create_user(mocker, user_id=99)

    result = await redemption_service.redeem_ticket(db, "abc", scanner=scanner)

    assert result is redeemed
    transition.assert_awaited_once_with(
        db, 7, TicketStatus.USED, check_in_date=datetime(2026, 10, 1, 18, 30, tzinfo=timezone.utc)
    )
    span = auditspan_stub[0]
    assert (span.ticket_id, span.event_id, span.order_id) == (7, 10, 3)


@pytest.mark.asyncio
async def test_redeem_ticket_unknown_code_raises_code_not_found(mocker):
    _patch_lookup(mocker, None)
    transition = mocker.patch("app.services.redemption_service.crud.transition_ticket", new=mocker.AsyncMock())

    with pytest.raises(CodeNotFound) as e:
        await redemption_service.redeem_ticket(mocker.Mock(), "nope")

    assert str(e.value) == "Invalid redemption code"
    transition.assert_not_awaited()


@pytest.mark.asyncio
async def test_redeem_ticket_replay_raises_already_used(mocker):
    _patch_lookup(mocker, _ticket(mocker, status=TicketStatus.USED))
    mocker.patch("app.services.redemption_service.crud.transition_ticket", new=mocker.AsyncMock(return_value=None))
    mocker.patch(
        "app.services.redemption_service.crud.get_ticket_status",
        new=mocker.AsyncMock(return_value=TicketStatus.USED)
    )

    with pytest.raises(AlreadyUsed) as e:
        await redemption_service.redeem_ticket(mocker.Mock(), "abc")

    assert str(e.value) == "Ticket already used"


@pytest.mark.asyncio
async def test_redeem_ticket_lost_race_reports_status_seen_after_the_guard(mocker):
    # loaded as valid, but another gate flipped it before our guarded UPDATE ran
    _patch_lookup(mocker, _ticket(mocker, status=TicketStatus.VALID))
    mocker.patch("app.services.redemption_service.crud.transition_ticket", new=mocker.AsyncMock(return_value=None))
    mocker.patch(
        "app.services.redemption_service.crud.get_ticket_status",
        new=mocker.AsyncMock(return_value=TicketStatus.USED)
    )

    with pytest.raises(AlreadyUsed):
        await redemption_service.redeem_ticket(mocker.Mock(), "abc")


@pytest.mark.asyncio
async def test_redeem_cancelled_ticket_raises_ticket_cancelled(mocker):
    _patch_lookup(mocker, _ticket(mocker, status=TicketStatus.CANCELLED))
    mocker.patch("app.services.redemption_service.crud.transition_ticket", new=mocker.AsyncMock(return_value=None))
    mocker.patch(
        "app.services.redemption_service.crud.get_ticket_status",
        new=mocker.AsyncMock(return_value=TicketStatus.CANCELLED)
    )

    with pytest.raises(TicketCancelled):
        await redemption_service.redeem_ticket(mocker.Mock(), "abc")


@pytest.mark.asyncio
async def test_redeem_when_guard_misses_but_status_still_valid_raises_internal_error(mocker):
    _patch_lookup(mocker, _ticket(mocker))
    mocker.patch("app.services.redemption_service.crud.transition_ticket", new=mocker.AsyncMock(return_value=None))
    mocker.patch(
        "app.services.redemption_service.crud.get_ticket_status",
        new=mocker.AsyncMock(return_value=TicketStatus.VALID)
    )

    with pytest.raises(InternalError):
        await redemption_service.redeem_ticket(mocker.Mock(), "abc")


@pytest.mark.asyncio
async def test_redeem_ticket_by_other_organizer_raises_forbidden(mocker):
    _patch_lookup(mocker, _ticket(mocker))
    _patch_event(mocker, organizer_id=99)
    transition = mocker.patch("app.services.redemption_service.crud.transition_ticket", new=mocker.AsyncMock())

    with pytest.raises(Forbidden):
        await redemption_service.redeem_ticket(mocker.Mock(), "abc", scanner=create_user(mocker, user_id=50))

    transition.assert_not_awaited()


@pytest.mark.asyncio
async def test_cancel_ticket_by_holder(mocker):
    ticket = _ticket(mocker, user_id=1)
    cancelled = _ticket(mocker, user_id=1, status=TicketStatus.CANCELLED)
    _patch_lookup(mocker, ticket, by="id")
    event_lookup = _patch_event(mocker)
    transition = mocker.patch(
        "app.services.redemption_service.crud.transition_ticket",
        new=mocker.AsyncMock(return_value=cancelled)
    )
    db = mocker.Mock()

    result = await redemption_service.cancel_ticket(db, 7, create_user(mocker, user_id=1))

    assert result is cancelled
    transition.assert_awaited_once_with(db, 7, TicketStatus.CANCELLED)
    event_lookup.assert_not_awaited()


@pytest.mark.asyncio
async def test_cancel_ticket_by_event_organizer(mocker):
    _patch_lookup(mocker, _ticket(mocker, user_id=1), by="id")
    _patch_event(mocker, organizer_id=99)
    transition = mocker.patch(
        "app.services.redemption_service.crud.transition_ticket",
        new=mocker.AsyncMock(return_value=_ticket(mocker, status=TicketStatus.CANCELLED))
    )

    await redemption_service.cancel_ticket(mocker.Mock(), 7, create_user(mocker, user_id=99))

    transition.assert_awaited_once()


@pytest.mark.asyncio
async def test_cancel_ticket_by_stranger_hides_ticket(mocker):
    _patch_lookup(mocker, _ticket(mocker, user_id=1), by="id")
    _patch_event(mocker, organizer_id=99)
    transition = mocker.patch("app.services.redemption_service.crud.transition_ticket", new=mocker.AsyncMock())

    with pytest.raises(TicketNotFound):
        await redemption_service.cancel_ticket(mocker.Mock(), 7, create_user(mocker, user_id=2))

    transition.assert_not_awaited()


@pytest.mark.asyncio
async def test_cancel_used_ticket_raises_already_used(mocker):
    _patch_lookup(mocker, _ticket(mocker, user_id=1, status=TicketStatus.USED), by="id")
    mocker.patch("app.services.redemption_service.crud.transition_ticket", new=mocker.AsyncMock(return_value=None))
    mocker.patch(
        "app.services.redemption_service.crud.get_ticket_status",
        new=mocker.AsyncMock(return_value=TicketStatus.USED)
    )

    with pytest.raises(AlreadyUsed):
        await redemption_service.cancel_ticket(mocker.Mock(), 7, create_user(mocker, user_id=1))
