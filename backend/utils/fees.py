import logging
import math
from typing import Iterable, Optional

from pydantic import ValidationError

from config.constants import DEFAULT_CATEGORY_FEE
from models.fees import CategoryFeeConfig, FeeBreakdown

logger = logging.getLogger(__name__)


def default_fee_config() -> CategoryFeeConfig:
    return CategoryFeeConfig.model_validate(DEFAULT_CATEGORY_FEE)


def parse_price(value) -> Optional[float]:
    """
    Returns the value as a positive finite float, or None.
    Accepts numbers and numeric strings; bools are not prices.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    try:
        price = float(value)
    except (TypeError, ValueError):
        return None

    if not math.isfinite(price) or price <= 0:
        return None

    return price


def representative_price(prices: Iterable) -> Optional[float]:
    """
    Minimum valid variant price.
    The cheapest variant keeps the seller's fee exposure conservative.
    """
    valid = [p for p in (parse_price(v) for v in prices) if p is not None]
    return min(valid) if valid else None


def resolve_fee_config(category: Optional[str], fee_table: Optional[dict]) -> CategoryFeeConfig:
    entry = (fee_table or {}).get(category) if category else None
    if not entry:
        return default_fee_config()

    try:
        return CategoryFeeConfig.model_validate(entry)
    except ValidationError:
        logger.warning("Invalid fee config for category %r, using defaults", category)
        return default_fee_config()


def calculate_fees(
    price,
    config: Optional[CategoryFeeConfig] = None,
    category: Optional[str] = None,
) -> FeeBreakdown:
    price = parse_price(price)
    if price is None:
        return FeeBreakdown(category=category)

    config = config or default_fee_config()

    buyer_protection_fee = price * config.buyer_protection_rate
    handling_fee = price * config.handling_rate

    return FeeBreakdown(
        category=category,
        price=price,
        buyer_protection_fee=buyer_protection_fee,
        handling_fee=handling_fee,
        total_estimated_price=price + buyer_protection_fee + handling_fee,
        seller_earnings=price,
        below_min_price=price < config.min_price,
    )


def estimate_fees(
    category: Optional[str],
    fee_table: Optional[dict],
    price=None,
    variant_prices: Optional[Iterable] = None,
) -> FeeBreakdown:
    variant_prices = list(variant_prices or [])
    if variant_prices:
        price = representative_price(variant_prices)

    config = resolve_fee_config(category, fee_table)
    return calculate_fees(price, config, category=category)
