import pytest
from fastapi import HTTPException

from models.user import AdminBankDetails
from utils.validators import (
    raise_form_errors,
    validate_bank_details,
    validate_category_name,
    validate_fee_fields,
    validate_size_tier,
)


def test_valid_fee_fields_have_no_errors():
    assert validate_fee_fields(1000, None, 0.08, 0.2) == {}
    assert validate_fee_fields(0, 10, 0, 0) == {}


@pytest.mark.parametrize("max_price", [1000, 999])
def test_max_price_must_exceed_min_price(max_price):
    errors = validate_fee_fields(1000, max_price, 0.08, 0.2)
    assert errors == {"maxPrice": "Maximum price must be greater than minimum price."}


def test_negative_values_are_rejected():
    errors = validate_fee_fields(-1, None, -0.1, -0.2)
    assert set(errors) == {"minPrice", "buyerProtectionRate", "handlingRate"}


def test_rates_are_fractions():
    errors = validate_fee_fields(0, None, 8, 0.2)
    assert "buyerProtectionRate" in errors


def test_category_name_rules():
    assert validate_category_name("  Phones ") == "Phones"

    for bad in ["", "   ", "a.b", "$where"]:
        with pytest.raises(HTTPException) as exc:
            validate_category_name(bad)
        assert exc.value.status_code == 400
        assert "name" in exc.value.detail["errors"]


def test_raise_form_errors_is_noop_without_errors():
    raise_form_errors({})


def test_size_tier_open_ended_skips_max_price():
    config = {"minPrice": 10000, "maxPrice": None, "buyerProtectionRate": 0.095, "handlingRate": 0.3}
    assert validate_size_tier("X-Large", config, open_ended=True) == []
    assert validate_size_tier("X-Large", config, open_ended=False) == [
        "X-Large Maximum Price must be greater than Minimum Price."
    ]


def test_nigerian_account_needs_ten_digits():
    data = AdminBankDetails(country="Nigeria", bank_code="058", account_number="12345")
    assert validate_bank_details(data) == {"accountNumber": "Enter a valid 10-digit account number."}

    data = AdminBankDetails(country="Nigeria", bank_code="058", account_number="0123456789")
    assert validate_bank_details(data) == {}


def test_uk_account_needs_iban_and_bank_name():
    data = AdminBankDetails(country="United Kingdom", iban="gb12", bank_name="")
    assert set(validate_bank_details(data)) == {"iban", "bankName"}

    data = AdminBankDetails(country="United Kingdom", iban="GB29NWBK60161331926819", bank_name="NatWest")
    assert validate_bank_details(data) == {}
