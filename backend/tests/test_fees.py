import math

import pytest

from models.fees import CategoryFeeConfig
from utils.fees import (
    calculate_fees,
    default_fee_config,
    estimate_fees,
    parse_price,
    representative_price,
    resolve_fee_config,
)

CONFIGS = [
    CategoryFeeConfig(min_price=0, max_price=None, buyer_protection_rate=0, handling_rate=0),
    CategoryFeeConfig(min_price=1000, max_price=None, buyer_protection_rate=0.08, handling_rate=0.20),
    CategoryFeeConfig(min_price=50, max_price=5000, buyer_protection_rate=0.095, handling_rate=0.39),
    CategoryFeeConfig(min_price=10, max_price=20, buyer_protection_rate=1, handling_rate=1),
]
PRICES = [0.01, 1, 150, 999.99, 1000, 25000.5]


@pytest.mark.parametrize("config", CONFIGS)
@pytest.mark.parametrize("price", PRICES)
def test_total_is_price_plus_both_fees(price, config):
    fees = calculate_fees(price, config)

    expected = price + price * config.buyer_protection_rate + price * config.handling_rate
    assert math.isclose(fees.total_estimated_price, expected)
    assert math.isclose(fees.buyer_protection_fee, price * config.buyer_protection_rate)
    assert math.isclose(fees.handling_fee, price * config.handling_rate)


@pytest.mark.parametrize("config", CONFIGS)
def test_seller_earnings_ignore_rates(config):
    assert calculate_fees(1234.5, config).seller_earnings == 1234.5


def test_representative_price_is_minimum_valid_variant():
    assert representative_price([float("nan"), -5, 200, 150]) == 150


def test_representative_price_accepts_numeric_strings():
    assert representative_price(["300", " 120.5 ", "abc", ""]) == 120.5


def test_no_valid_variant_prices_gives_zeros():
    fees = estimate_fees("Phones", {}, variant_prices=[float("nan"), -5, "abc", None, 0])

    assert fees.price == 0
    assert fees.buyer_protection_fee == 0
    assert fees.handling_fee == 0
    assert fees.total_estimated_price == 0
    assert fees.seller_earnings == 0
    assert fees.below_min_price is False


def test_below_min_price_flags_reduced_visibility():
    config = CategoryFeeConfig(min_price=1000, buyer_protection_rate=0.08, handling_rate=0.2)

    assert calculate_fees(500, config).below_min_price is True
    assert calculate_fees(1000, config).below_min_price is False


def test_unknown_category_uses_defaults():
    config = resolve_fee_config("Gadgets", {"Phones": {"minPrice": 5, "buyerProtectionRate": 0.5, "handlingRate": 0.5}})
    assert config == default_fee_config()

    fees = estimate_fees("Gadgets", {}, price=100)
    assert math.isclose(fees.buyer_protection_fee, 8)
    assert math.isclose(fees.handling_fee, 20)
    assert fees.below_min_price is True


def test_known_category_uses_its_rates():
    table = {"Phones": {"minPrice": 50, "maxPrice": None, "buyerProtectionRate": 0.1, "handlingRate": 0.05}}

    fees = estimate_fees("Phones", table, price="200")

    assert fees.category == "Phones"
    assert math.isclose(fees.total_estimated_price, 230)
    assert fees.below_min_price is False


def test_malformed_fee_entry_falls_back_to_defaults():
    table = {"Phones": {"minPrice": -1, "buyerProtectionRate": "lots"}}
    assert resolve_fee_config("Phones", table) == default_fee_config()


def test_variants_take_precedence_over_base_price():
    fees = estimate_fees(None, None, price=10_000, variant_prices=[400, 300])
    assert fees.price == 300


@pytest.mark.parametrize("value", [None, True, False, "", "  ", "abc", 0, -1, float("inf"), float("nan")])
def test_parse_price_rejects_invalid(value):
    assert parse_price(value) is None


def test_breakdown_serializes_camel_case():
    data = calculate_fees(100).model_dump(by_alias=True)
    assert set(data) == {
        "category",
        "price",
        "buyerProtectionFee",
        "handlingFee",
        "totalEstimatedPrice",
        "sellerEarnings",
        "belowMinPrice",
    }
