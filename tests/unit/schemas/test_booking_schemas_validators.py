import pytest
from pydantic import ValidationError
from app.domain.booking.schemas import RegisterRequestDTO, ScanRequestDTO, UserTicketsQueryDTO
from app.domain.booking.models import TicketStatus


def test_register_request_defaults_to_single_ticket():
    assert RegisterRequestDTO().quantity == 1


@pytest.mark.parametrize("quantity", [0, -2, 11])
def test_register_request_rejects_quantity_out_of_range(quantity):
    with pytest.raises(ValidationError):
        RegisterRequestDTO(quantity=quantity)


def test_register_request_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        RegisterRequestDTO(quantity=1, price="0")


@pytest.mark.parametrize("payload", [{"code": "  abc-123  "}, {"qrCode": "abc-123"}])
def test_scan_request_accepts_code_and_qr_code_alias_trimmed(payload):
    dto = ScanRequestDTO.model_validate(payload)

    assert dto.code == "abc-123"


@pytest.mark.parametrize("payload", [{"code": "   "}, {}])
def test_scan_request_blank_or_missing_code_fails_validation(payload):
    with pytest.raises(ValidationError):
        ScanRequestDTO.model_validate(payload)


def test_tickets_query_parses_lowercase_status():
    assert UserTicketsQueryDTO(status="used").status == TicketStatus.USED


def test_tickets_query_rejects_unknown_status():
    with pytest.raises(ValidationError):
        UserTicketsQueryDTO(status="refunded")
