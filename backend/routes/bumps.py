from fastapi import APIRouter, Depends, HTTPException
from datetime import datetime, timedelta

from config.constants import BUMP_DURATIONS
from database import get_db
from models.product import BumpRequest
from utils.audit import log_audit
from utils.guards import assert_owner
from utils.mongo import id_filter, serialize_doc
from utils.security import require_role

router = APIRouter(tags=["Bumps"])


# =========================
# SELLER: BUMP A PRODUCT
# =========================

@router.post("/seller/products/{product_id}/bump")
async def bump_product(
    product_id: str,
    data: BumpRequest,
    seller=Depends(require_role("seller")),
    db=Depends(get_db),
):
    product = await db.products.find_one(id_filter(product_id))
    if not product:
        raise HTTPException(404, "Product not found")

    assert_owner(product, seller)

    now = datetime.utcnow()
    expiry = product.get("bumpExpiry")
    if product.get("isBumped") and expiry and expiry > now:
        raise HTTPException(400, "This product is already bumped")

    plan = BUMP_DURATIONS[data.duration]
    expiry = now + timedelta(days=plan["days"])

    bump = {
        "productId": str(product["_id"]),
        "sellerId": seller["uid"],
        "duration": data.duration,
        "amount": plan["amount"],
        "bumpedAt": now,
        "expiry": expiry,
    }
    result = await db.productBumps.insert_one(bump)

    await db.products.update_one(
        {"_id": product["_id"]},
        {"$set": {"isBumped": True, "bumpExpiry": expiry}},
    )

    await log_audit(
        db,
        seller,
        "PRODUCT_BUMPED",
        metadata={"product_id": bump["productId"], "duration": data.duration, "amount": plan["amount"]},
    )

    return {
        "message": "Product bumped successfully",
        "bump": serialize_doc({"_id": result.inserted_id, **bump}),
    }


# =========================
# ADMIN: BUMPED PRODUCTS
# =========================

@router.get("/admin/bumps")
async def list_bumps(
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    now = datetime.utcnow()

    bumps = []
    async for b in db.productBumps.find({}).sort("bumpedAt", -1).limit(200):
        row = serialize_doc(b)
        row["active"] = b.get("expiry") is not None and b["expiry"] > now
        bumps.append(row)

    return {"count": len(bumps), "bumps": bumps}
