from fastapi import APIRouter, Depends, HTTPException
from datetime import date, datetime
from pymongo.errors import DuplicateKeyError

from config.constants import (
    DEFAULT_MINIMUM_PURCHASE,
    DEFAULT_SHIPPING_PERCENTAGE,
    MAX_TRENDING_ITEMS,
    TRENDING_CATEGORIES,
)
from database import get_db
from models.storefront import (
    CarouselSlide,
    DailyDeal,
    FeaturedProductCreate,
    MinimumPurchase,
    ShippingFee,
    TrendingItemCreate,
)
from utils.audit import log_audit
from utils.fees import parse_price
from utils.mongo import id_filter, serialize_doc
from utils.security import require_role
from utils.validators import raise_form_errors

router = APIRouter(prefix="/admin", tags=["Storefront"])


def _parse_date(value: str):
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


async def _approved_product(db, product_id: str):
    """Approved product by id, or None."""
    if not product_id:
        return None
    product = await db.products.find_one(id_filter(product_id))
    if not product or product.get("status") != "approved":
        return None
    return product


# =====================================================
# CAROUSEL SLIDES
# =====================================================

@router.get("/carousel")
async def list_slides(admin=Depends(require_role("admin")), db=Depends(get_db)):
    slides = [serialize_doc(s) async for s in db.carouselSlides.find({}).sort("_id", 1)]
    return {"slides": slides}


def _slide_fields(data: CarouselSlide) -> dict:
    if not data.desktop or not data.tablet or not data.mobile:
        raise HTTPException(400, "All media fields are required.")

    return {
        "desktop": data.desktop,
        "tablet": data.tablet,
        "mobile": data.mobile,
        "updatedAt": datetime.utcnow(),
    }


@router.post("/carousel")
async def create_slide(
    data: CarouselSlide,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    slide = _slide_fields(data)
    result = await db.carouselSlides.insert_one(slide)

    await log_audit(db, admin, "CAROUSEL_SLIDE_CREATED", metadata={"slide_id": str(result.inserted_id)})
    return {"message": "Slide saved", "slide": serialize_doc({"_id": result.inserted_id, **slide})}


@router.put("/carousel/{slide_id}")
async def update_slide(
    slide_id: str,
    data: CarouselSlide,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    existing = await db.carouselSlides.find_one(id_filter(slide_id))
    if not existing:
        raise HTTPException(404, "Slide not found")

    slide = _slide_fields(data)
    await db.carouselSlides.update_one({"_id": existing["_id"]}, {"$set": slide})

    await log_audit(db, admin, "CAROUSEL_SLIDE_UPDATED", metadata={"slide_id": slide_id})
    return {"message": "Slide saved", "slide": serialize_doc({"_id": existing["_id"], **slide})}


@router.delete("/carousel/{slide_id}")
async def delete_slide(
    slide_id: str,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    result = await db.carouselSlides.delete_one(id_filter(slide_id))
    if result.deleted_count == 0:
        raise HTTPException(404, "Slide not found")

    await log_audit(db, admin, "CAROUSEL_SLIDE_DELETED", metadata={"slide_id": slide_id})
    return {"message": "Slide deleted"}


# =====================================================
# DAILY DEALS
# =====================================================

async def validate_deal(db, data: DailyDeal) -> dict:
    errors = {}

    if not data.product_id:
        errors["productId"] = "Please select a product."
    else:
        product = await db.products.find_one(id_filter(data.product_id))
        if not product:
            errors["productId"] = "Product not found."
        elif product.get("status") != "approved":
            errors["productId"] = "Only approved products can be featured."

    discount = parse_price(data.discount)
    if discount is None or discount > 100:
        errors["discount"] = "Discount must be between 0 and 100%."

    start = _parse_date(data.start_date) if data.start_date else None
    end = _parse_date(data.end_date) if data.end_date else None

    if not data.start_date:
        errors["startDate"] = "Start date is required."
    elif start is None:
        errors["startDate"] = "Start date is invalid."

    if not data.end_date:
        errors["endDate"] = "End date is required."
    elif end is None:
        errors["endDate"] = "End date is invalid."
    elif start and end < start:
        errors["endDate"] = "End date must be after start date."

    raise_form_errors(errors, "Please fix form errors.")

    return {
        "productId": data.product_id,
        "discount": discount / 100,
        "startDate": data.start_date,
        "endDate": data.end_date,
    }


@router.get("/deals")
async def list_deals(admin=Depends(require_role("admin")), db=Depends(get_db)):
    deals = []
    async for d in db.dailyDeals.find({}).sort("startDate", 1):
        deal = serialize_doc(d)
        deal["discountPercent"] = round(d.get("discount", 0) * 100, 2)
        deals.append(deal)
    return {"deals": deals}


@router.post("/deals")
async def create_deal(
    data: DailyDeal,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    deal = await validate_deal(db, data)
    deal["createdAt"] = datetime.utcnow()

    result = await db.dailyDeals.insert_one(deal)
    deal_id = str(result.inserted_id)

    await log_audit(db, admin, "DAILY_DEAL_CREATED", metadata={"deal_id": deal_id, "product_id": deal["productId"]})
    return {"message": "Deal added successfully!", "deal": serialize_doc({"_id": result.inserted_id, **deal})}


@router.put("/deals/{deal_id}")
async def update_deal(
    deal_id: str,
    data: DailyDeal,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    existing = await db.dailyDeals.find_one(id_filter(deal_id))
    if not existing:
        raise HTTPException(404, "Deal not found")

    deal = await validate_deal(db, data)
    deal["createdAt"] = existing.get("createdAt", datetime.utcnow())
    await db.dailyDeals.replace_one({"_id": existing["_id"]}, deal)

    await log_audit(db, admin, "DAILY_DEAL_UPDATED", metadata={"deal_id": deal_id, "product_id": deal["productId"]})
    return {"message": "Deal updated successfully!", "deal": serialize_doc({"_id": existing["_id"], **deal})}


@router.delete("/deals/{deal_id}")
async def delete_deal(
    deal_id: str,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    result = await db.dailyDeals.delete_one(id_filter(deal_id))
    if result.deleted_count == 0:
        raise HTTPException(404, "Deal not found")

    await log_audit(db, admin, "DAILY_DEAL_DELETED", metadata={"deal_id": deal_id})
    return {"message": "Deal deleted successfully!"}


# =====================================================
# FEATURED PRODUCTS
# =====================================================

async def _active_bump(db, product_id: str, now: datetime):
    return await db.productBumps.find_one(
        {"productId": product_id, "expiry": {"$gt": now}},
        sort=[("expiry", -1)],
    )


async def _with_bump_state(db, row: dict, product_id: str, now: datetime) -> dict:
    bump = await _active_bump(db, product_id, now)
    row["isBumped"] = bump is not None
    row["bumpExpiry"] = bump["expiry"].isoformat() if bump else None
    row["bumpDuration"] = bump.get("duration") if bump else None
    return row


@router.get("/featured")
async def list_featured(admin=Depends(require_role("admin")), db=Depends(get_db)):
    now = datetime.utcnow()

    featured = []
    async for f in db.featuredProducts.find({}).sort("addedAt", -1):
        product = await db.products.find_one(id_filter(f["productId"]))
        row = serialize_doc(f)
        row["product"] = serialize_doc(product) if product else None
        featured.append(await _with_bump_state(db, row, f["productId"], now))

    # approved products an admin can still feature
    taken = {f["productId"] for f in featured}
    available = []
    async for p in db.products.find({"status": "approved"}).sort("createdAt", -1).limit(200):
        if str(p["_id"]) not in taken:
            available.append(await _with_bump_state(db, serialize_doc(p), str(p["_id"]), now))

    return {"featured": featured, "available": available}


@router.post("/featured")
async def add_featured(
    data: FeaturedProductCreate,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    product = await _approved_product(db, data.product_id)
    if not product:
        raise HTTPException(400, "Only approved products can be added to the storefront.")

    product_id = str(product["_id"])
    if await db.featuredProducts.find_one({"productId": product_id}):
        raise HTTPException(409, "Product is already on the storefront.")

    entry = {"productId": product_id, "addedBy": admin.get("uid"), "addedAt": datetime.utcnow()}
    try:
        result = await db.featuredProducts.insert_one(entry)
    except DuplicateKeyError:
        raise HTTPException(409, "Product is already on the storefront.")

    await log_audit(db, admin, "FEATURED_PRODUCT_ADDED", metadata={"product_id": product_id})
    return {"message": "Product added to storefront!", "featured": serialize_doc({"_id": result.inserted_id, **entry})}


@router.delete("/featured/{featured_id}")
async def remove_featured(
    featured_id: str,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    result = await db.featuredProducts.delete_one(id_filter(featured_id))
    if result.deleted_count == 0:
        raise HTTPException(404, "Featured product not found")

    await log_audit(db, admin, "FEATURED_PRODUCT_REMOVED", metadata={"featured_id": featured_id})
    return {"message": "Product removed from storefront!"}


# =====================================================
# TRENDING ITEMS
# =====================================================

@router.get("/trending")
async def list_trending(admin=Depends(require_role("admin")), db=Depends(get_db)):
    trending = {category: [] for category in TRENDING_CATEGORIES}

    async for t in db.trendingItems.find({"category": {"$in": list(TRENDING_CATEGORIES)}}).sort("addedAt", 1):
        product = await db.products.find_one(id_filter(t["productId"]))
        row = serialize_doc(t)
        row["productName"] = product.get("name") if product else "Unknown Product"
        trending[t["category"]].append(row)

    return {"trending": trending}


@router.post("/trending")
async def add_trending(
    data: TrendingItemCreate,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    if data.category not in TRENDING_CATEGORIES:
        raise HTTPException(400, f"Trending category must be one of: {', '.join(TRENDING_CATEGORIES)}.")

    product = await _approved_product(db, data.product_id)
    if not product:
        raise HTTPException(400, "Only approved products can be trending.")

    if await db.trendingItems.count_documents({"category": data.category}) >= MAX_TRENDING_ITEMS:
        raise HTTPException(
            400,
            f"Cannot add more to trending {data.category}. Maximum {MAX_TRENDING_ITEMS} items reached.",
        )

    item = {"productId": str(product["_id"]), "category": data.category, "addedAt": datetime.utcnow()}
    result = await db.trendingItems.insert_one(item)

    await log_audit(
        db,
        admin,
        "TRENDING_ITEM_ADDED",
        metadata={"product_id": item["productId"], "category": data.category},
    )
    return {
        "message": f"Added to trending {data.category}!",
        "item": {**serialize_doc({"_id": result.inserted_id, **item}), "productName": product.get("name")},
    }


@router.delete("/trending/{item_id}")
async def remove_trending(
    item_id: str,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    result = await db.trendingItems.delete_one(id_filter(item_id))
    if result.deleted_count == 0:
        raise HTTPException(404, "Trending item not found")

    await log_audit(db, admin, "TRENDING_ITEM_REMOVED", metadata={"item_id": item_id})
    return {"message": "Removed from trending items!"}


# =====================================================
# SETTINGS
# =====================================================

@router.get("/settings/minimum-purchase")
async def get_minimum_purchase(admin=Depends(require_role("admin")), db=Depends(get_db)):
    doc = await db.settings.find_one({"_id": "minimumPurchase"})
    return {"amount": (doc or {}).get("amount", DEFAULT_MINIMUM_PURCHASE)}


@router.put("/settings/minimum-purchase")
async def set_minimum_purchase(
    data: MinimumPurchase,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    if data.amount <= 0:
        raise HTTPException(400, "Minimum Purchase Amount must be greater than zero.")

    await db.settings.update_one(
        {"_id": "minimumPurchase"},
        {"$set": {"amount": data.amount}},
        upsert=True,
    )

    await log_audit(db, admin, "MINIMUM_PURCHASE_UPDATED", metadata={"amount": data.amount})
    return {"message": "Minimum Purchase Amount updated successfully.", "amount": data.amount}


@router.get("/settings/shipping-fee")
async def get_shipping_fee(admin=Depends(require_role("admin")), db=Depends(get_db)):
    doc = await db.settings.find_one({"_id": "shippingFees"})
    fraction = (doc or {}).get("additionalPercentage")
    if not isinstance(fraction, (int, float)):
        fraction = DEFAULT_SHIPPING_PERCENTAGE / 100
    return {"additionalPercentage": fraction, "percentage": round(fraction * 100, 1)}


@router.put("/settings/shipping-fee")
async def set_shipping_fee(
    data: ShippingFee,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    if data.percentage < 0 or data.percentage > 100:
        raise HTTPException(400, "Additional Shipping Fee must be between 0 and 100.")

    fraction = data.percentage / 100
    await db.settings.update_one(
        {"_id": "shippingFees"},
        {"$set": {"additionalPercentage": fraction}},
        upsert=True,
    )

    await log_audit(db, admin, "SHIPPING_FEE_UPDATED", metadata={"percentage": data.percentage})
    return {"message": "Additional Shipping Fee updated successfully.", "additionalPercentage": fraction}
