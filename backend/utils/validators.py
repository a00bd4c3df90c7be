import math
import re

from fastapi import HTTPException

ACCOUNT_NUMBER_REGEX = re.compile(r"^\d{10}$")
IBAN_REGEX = re.compile(r"^[A-Z]{2}\d{2}[A-Z0-9]{1,30}$")


def raise_form_errors(errors: dict, message: str = "Please fix the form errors."):
    if errors:
        raise HTTPException(
            status_code=400,
            detail={"message": message, "errors": errors},
        )


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)


# -------------------------------
# Category / fee fields
# -------------------------------

def validate_category_name(name: str | None, label: str = "Category") -> str:
    name = (name or "").strip()
    if not name:
        raise_form_errors({"name": f"{label} name is required."})

    # names double as document ids and field names in the fee table
    if "." in name or name.startswith("$"):
        raise_form_errors({"name": f"{label} name cannot contain '.' or start with '$'."})

    return name


def validate_fee_fields(
    min_price,
    max_price,
    buyer_protection_rate,
    handling_rate,
) -> dict:
    errors = {}

    if not _is_number(min_price) or min_price < 0:
        errors["minPrice"] = "Minimum price cannot be negative."

    if max_price is not None:
        if not _is_number(max_price):
            errors["maxPrice"] = "Maximum price must be a number."
        elif math.isfinite(max_price) and _is_number(min_price) and max_price <= min_price:
            errors["maxPrice"] = "Maximum price must be greater than minimum price."

    if not _is_number(buyer_protection_rate) or buyer_protection_rate < 0:
        errors["buyerProtectionRate"] = "Buyer protection rate cannot be negative."
    elif buyer_protection_rate > 1:
        errors["buyerProtectionRate"] = "Buyer protection rate must be a fraction between 0 and 1."

    if not _is_number(handling_rate) or handling_rate < 0:
        errors["handlingRate"] = "Handling rate cannot be negative."
    elif handling_rate > 1:
        errors["handlingRate"] = "Handling rate must be a fraction between 0 and 1."

    return errors


def validate_size_tier(tier: str, config: dict, open_ended: bool) -> list:
    """Legacy size-tier table: strictly positive values."""
    errors = []

    if not _is_number(config.get("buyerProtectionRate")) or config["buyerProtectionRate"] <= 0:
        errors.append(f"{tier} Buyer Protection Rate must be greater than 0.")
    if not _is_number(config.get("handlingRate")) or config["handlingRate"] <= 0:
        errors.append(f"{tier} Handling Rate must be greater than 0.")
    if not _is_number(config.get("minPrice")) or config["minPrice"] <= 0:
        errors.append(f"{tier} Minimum Price must be greater than 0.")

    if not open_ended:
        max_price = config.get("maxPrice")
        if not _is_number(max_price) or max_price <= (config.get("minPrice") or 0):
            errors.append(f"{tier} Maximum Price must be greater than Minimum Price.")

    return errors


# -------------------------------
# Bank details
# -------------------------------

def validate_bank_details(data) -> dict:
    errors = {}

    if data.country == "Nigeria":
        if not data.bank_code:
            errors["bankCode"] = "Select a bank."
        if not ACCOUNT_NUMBER_REGEX.match(data.account_number or ""):
            errors["accountNumber"] = "Enter a valid 10-digit account number."
    else:
        if not IBAN_REGEX.match(data.iban or ""):
            errors["iban"] = "Enter a valid IBAN."
        if not (data.bank_name or "").strip():
            errors["bankName"] = "Enter a bank name."

    return errors
