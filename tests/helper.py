from datetime import date, time
from decimal import Decimal


def db_with_scalars_first(mocker, value):
    res = mocker.Mock()
    res.scalars.return_value.first.return_value = value
    db = mocker.Mock()
    db.execute = mocker.AsyncMock(return_value=res)
    return db, res


def db_with_scalar(mocker, value):
    db = mocker.Mock()
    db.scalar = mocker.AsyncMock(return_value=value)
    return db


def db_with_savepoint(mocker):
    """Session mock whose begin_nested() works as an async context manager, like AsyncSession's."""
    db = mocker.Mock()
    db.begin_nested = mocker.MagicMock()
    db.flush = mocker.AsyncMock()
    db.refresh = mocker.AsyncMock()
    db.add = mocker.Mock()
    return db


def create_user(mocker, user_id: int = 1, name: str = "Ada Lovelace", email: str = "ada@example.com"):
    user = mocker.Mock(id=user_id, email=email)
    user.name = name
    return user


def create_event(mocker, event_id: int = 10, *, price="50.00", capacity: int = 100, available: int = 100,
                 organizer_id: int = 99):
    event = mocker.Mock(
        id=event_id,
        organizer_id=organizer_id,
        title="Tech Conference",
        event_date=date(2027, 3, 15),
        event_time=time(9, 0),
        location="Convention Center",
        price=Decimal(price),
        capacity=capacity,
        available_tickets=available,
    )
    return event
