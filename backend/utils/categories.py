import logging
from datetime import datetime

from fastapi import HTTPException
from pymongo.errors import DuplicateKeyError

from config.constants import (
    CATEGORY_FEES_DOC_ID,
    DEFAULT_CATEGORY_FEE,
    DEFAULT_SIZE_TIER_FEES,
    OPEN_ENDED_SIZE_TIER,
    SIZE_TIER_FEES_DOC_ID,
)
from models.fees import CategoryFeeInput
from utils.fees import resolve_fee_config
from utils.validators import (
    raise_form_errors,
    validate_category_name,
    validate_fee_fields,
    validate_size_tier,
)

logger = logging.getLogger(__name__)

# ==============================
# Reads
# ==============================

async def list_category_names(db) -> list:
    names = [doc["_id"] async for doc in db.categories.find({}, {"_id": 1})]
    return sorted(names)


async def get_fee_table(db, create: bool = False) -> dict:
    """
    Category fee table. Readers get {} when it is missing; admin fee edits
    pass create=True to seed the document.
    """
    doc = await db.feeConfigurations.find_one({"_id": CATEGORY_FEES_DOC_ID})
    if doc is None:
        if not create:
            return {}
        try:
            await db.feeConfigurations.insert_one({"_id": CATEGORY_FEES_DOC_ID})
        except DuplicateKeyError:
            # another admin session created it first
            pass
        return {}

    doc.pop("_id", None)
    return doc


async def get_subcategories(db, category: str) -> list:
    doc = await db.customSubcategories.find_one({"_id": category})
    return (doc or {}).get("subcategories", [])


async def get_sub_subcategories(db, category: str) -> dict:
    doc = await db.customSubSubcategories.find_one({"_id": category})
    return (doc or {}).get("subSubcategories", {})


async def load_catalog(db) -> list:
    names = await list_category_names(db)
    fee_table = await get_fee_table(db)

    catalog = []
    for name in names:
        catalog.append({
            "name": name,
            "fees": resolve_fee_config(name, fee_table).to_document(),
            "hasCustomFees": name in fee_table,
            "subcategories": await get_subcategories(db, name),
            "subSubcategories": await get_sub_subcategories(db, name),
        })

    return catalog


async def require_category(db, name: str) -> dict:
    category = await db.categories.find_one({"_id": name})
    if not category:
        raise HTTPException(404, "Category not found")
    return category


# ==============================
# Fee merging / validation
# ==============================

def merge_fee_input(data: CategoryFeeInput, base: dict | None) -> dict:
    """
    Blank form fields keep the base value (stored config or defaults).
    """
    base = base or DEFAULT_CATEGORY_FEE
    entered = data.model_dump(
        by_alias=True,
        exclude_none=True,
        include=set(CategoryFeeInput.model_fields),
    )

    merged = {
        "minPrice": base.get("minPrice", DEFAULT_CATEGORY_FEE["minPrice"]),
        "maxPrice": base.get("maxPrice"),
        "buyerProtectionRate": base.get("buyerProtectionRate", DEFAULT_CATEGORY_FEE["buyerProtectionRate"]),
        "handlingRate": base.get("handlingRate", DEFAULT_CATEGORY_FEE["handlingRate"]),
    }
    merged.update(entered)

    raise_form_errors(validate_fee_fields(
        merged["minPrice"],
        merged["maxPrice"],
        merged["buyerProtectionRate"],
        merged["handlingRate"],
    ))

    return merged


# ==============================
# Writes
# ==============================
# Category and fee entry are two separate, sequential writes with no
# transaction: a failure in between leaves a category on default fees.

async def _write_category(db, name: str):
    await db.categories.update_one(
        {"_id": name},
        {
            "$set": {"name": name},
            "$setOnInsert": {"createdAt": datetime.utcnow()},
        },
        upsert=True,
    )


async def _write_fee_entry(db, name: str, fees: dict):
    await db.feeConfigurations.update_one(
        {"_id": CATEGORY_FEES_DOC_ID},
        {"$set": {name: fees}},
        upsert=True,
    )


async def add_category(db, name: str, data: CategoryFeeInput) -> dict:
    name = validate_category_name(name)

    if await db.categories.find_one({"_id": name}):
        raise HTTPException(409, "Category already exists.")

    fees = merge_fee_input(data, DEFAULT_CATEGORY_FEE)

    await _write_category(db, name)
    await _write_fee_entry(db, name, fees)

    return {"name": name, "fees": fees}


async def upsert_category_fees(db, name: str, data: CategoryFeeInput) -> dict:
    name = validate_category_name(name)

    fee_table = await get_fee_table(db, create=True)
    fees = merge_fee_input(data, fee_table.get(name))

    await _write_category(db, name)
    await _write_fee_entry(db, name, fees)

    return {"name": name, "fees": fees}


async def rename_category(db, old_name: str, new_name: str, data: CategoryFeeInput) -> dict:
    await require_category(db, old_name)
    new_name = validate_category_name(new_name)

    if new_name == old_name:
        return await upsert_category_fees(db, old_name, data)

    if await db.categories.find_one({"_id": new_name}):
        raise HTTPException(409, "Category name already exists.")

    fee_table = await get_fee_table(db, create=True)
    fees = merge_fee_input(data, fee_table.get(old_name))

    await _write_category(db, new_name)
    await db.categories.delete_one({"_id": old_name})

    await db.feeConfigurations.update_one(
        {"_id": CATEGORY_FEES_DOC_ID},
        {"$set": {new_name: fees}, "$unset": {old_name: ""}},
        upsert=True,
    )

    for collection in (db.customSubcategories, db.customSubSubcategories):
        doc = await collection.find_one({"_id": old_name})
        if doc:
            doc["_id"] = new_name
            await collection.replace_one({"_id": new_name}, doc, upsert=True)
            await collection.delete_one({"_id": old_name})

    return {"name": new_name, "previousName": old_name, "fees": fees}


async def delete_category(db, name: str) -> dict:
    await require_category(db, name)

    await db.categories.delete_one({"_id": name})
    await db.feeConfigurations.update_one(
        {"_id": CATEGORY_FEES_DOC_ID},
        {"$unset": {name: ""}},
    )
    await db.customSubcategories.delete_one({"_id": name})
    await db.customSubSubcategories.delete_one({"_id": name})

    return {"name": name}


async def add_subcategory(db, category: str, name: str) -> list:
    await require_category(db, category)
    name = validate_category_name(name, "Subcategory")

    existing = await get_subcategories(db, category)
    if name in existing:
        raise HTTPException(409, "Subcategory already exists.")

    updated = existing + [name]
    await db.customSubcategories.update_one(
        {"_id": category},
        {"$set": {"subcategories": updated}},
        upsert=True,
    )
    return updated


async def add_sub_subcategory(db, category: str, subcategory: str, name: str) -> dict:
    await require_category(db, category)
    name = validate_category_name(name, "Sub-subcategory")

    if subcategory not in await get_subcategories(db, category):
        raise HTTPException(404, "Subcategory not found")

    existing = await get_sub_subcategories(db, category)
    if name in existing.get(subcategory, []):
        raise HTTPException(409, "Sub-subcategory already exists.")

    updated = {**existing, subcategory: existing.get(subcategory, []) + [name]}
    await db.customSubSubcategories.update_one(
        {"_id": category},
        {"$set": {"subSubcategories": updated}},
        upsert=True,
    )
    return updated


# ==============================
# Ordering / icons
# ==============================

async def get_category_order(db) -> list:
    names = await list_category_names(db)
    doc = await db.settings.find_one({"_id": "categoryOrder"})
    saved = [n for n in (doc or {}).get("order", []) if n in names]

    # categories added after the last sort go to the end
    return saved + [n for n in names if n not in saved]


async def set_category_order(db, order: list) -> list:
    names = set(await list_category_names(db))
    unknown = [n for n in order if n not in names]
    if unknown:
        raise HTTPException(400, f"Unknown categories: {', '.join(unknown)}")

    await db.settings.update_one(
        {"_id": "categoryOrder"},
        {"$set": {"order": order}},
        upsert=True,
    )
    return await get_category_order(db)


async def set_category_icon(db, category: str, icon: str | None) -> dict:
    await require_category(db, category)

    if icon:
        update = {"$set": {f"icons.{category}": icon}}
    else:
        update = {"$unset": {f"icons.{category}": ""}}

    await db.settings.update_one({"_id": "categoryIcons"}, update, upsert=True)
    doc = await db.settings.find_one({"_id": "categoryIcons"})
    return (doc or {}).get("icons", {})


# ==============================
# Legacy size-tier table
# ==============================

async def get_size_tier_fees(db) -> dict:
    doc = await db.feeConfigurations.find_one({"_id": SIZE_TIER_FEES_DOC_ID})
    if not doc:
        return dict(DEFAULT_SIZE_TIER_FEES)

    doc.pop("_id", None)
    return doc


async def save_size_tier_fees(db, tiers: dict) -> dict:
    current = await get_size_tier_fees(db)

    merged = {}
    errors = []
    for tier, data in tiers.items():
        if tier not in DEFAULT_SIZE_TIER_FEES:
            errors.append(f"Unknown size tier: {tier}.")
            continue
        config = {**current.get(tier, DEFAULT_SIZE_TIER_FEES[tier]), **data.model_dump(by_alias=True, exclude_none=True)}
        errors.extend(validate_size_tier(tier, config, tier == OPEN_ENDED_SIZE_TIER))
        merged[tier] = config

    if errors:
        raise HTTPException(400, detail={"message": "Please fix the form errors.", "errors": errors})

    updated = {**current, **merged}
    await db.feeConfigurations.replace_one(
        {"_id": SIZE_TIER_FEES_DOC_ID},
        updated,
        upsert=True,
    )
    return updated
