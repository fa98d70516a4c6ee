"""Unit tests for request schema validation."""

import pytest
from pydantic import ValidationError

from vrms.schemas.customer import FindOrCreateCustomerRequest
from vrms.schemas.promotion import ClaimRequest
from tests.fakes import new_id


def _claim(**overrides):
    values = {
        "promotion_id": new_id(),
        "property_id": new_id(),
        "guest_name": "Jane Guest",
        "guest_email": "guest@example.com",
        "guest_phone": "+15550100",
    }
    values.update(overrides)
    return ClaimRequest(**values)


def test_claim_email_is_lowercased_and_stripped():
    assert _claim(guest_email="  Jane.Guest@Example.COM ").guest_email == "jane.guest@example.com"


@pytest.mark.parametrize(
    "email",
    [
        "guest@example..com",
        "guest@-bad-.com",
        "a..b@example.com",
        "guest@example",
        "guest example@example.com",
        "",
    ],
)
def test_claim_rejects_malformed_email(email):
    with pytest.raises(ValidationError):
        _claim(guest_email=email)


def test_claim_rejects_blank_name_and_phone():
    with pytest.raises(ValidationError):
        _claim(guest_name="   ")
    with pytest.raises(ValidationError):
        _claim(guest_phone="")


def test_claim_rejects_non_uuid_ids():
    with pytest.raises(ValidationError):
        _claim(promotion_id="promo-1")


def test_customer_request_email():
    request = FindOrCreateCustomerRequest(email="Walkin@Example.com", property_id=new_id())
    assert request.email == "walkin@example.com"
    with pytest.raises(ValidationError):
        FindOrCreateCustomerRequest(email="walkin@example..com", property_id=new_id())


def test_customer_request_rejects_unknown_source():
    with pytest.raises(ValidationError):
        FindOrCreateCustomerRequest(email="a@example.com", property_id=new_id(), source="fax")
