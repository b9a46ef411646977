import pytest
from datetime import date
from decimal import Decimal
from pydantic import ValidationError
from app.domain.events.schemas import EventCreateDTO, EventUpdateDTO


def _create(**overrides):
    data = {
        "title": " Art Gallery Opening ",
        "description": "   ",
        "event_date": date(2027, 3, 8),
        "location": " Modern Art Gallery ",
        "category": " Arts ",
        "price": Decimal("25.00"),
        "capacity": 100,
    }
    data.update(overrides)
    return EventCreateDTO(**data)


def test_event_create_trims_text_and_blanks_become_none():
    dto = _create()

    assert dto.title == "Art Gallery Opening"
    assert dto.location == "Modern Art Gallery"
    assert dto.category == "Arts"
    assert dto.description is None


@pytest.mark.parametrize("overrides", [
    {"capacity": 0},
    {"price": Decimal("-1")},
    {"price": Decimal("1.005")},
    {"title": "   "},
    {"location": ""},
])
def test_event_create_rejects_invalid_values(overrides):
    with pytest.raises(ValidationError):
        _create(**overrides)


def test_event_update_has_no_capacity_field():
    with pytest.raises(ValidationError):
        EventUpdateDTO(capacity=10)


def test_event_update_tracks_only_sent_fields():
    dto = EventUpdateDTO(price=Decimal("10"))

    assert dto.model_dump(exclude_unset=True) == {"price": Decimal("10")}
