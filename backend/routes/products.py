from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from datetime import datetime
from typing import List, Optional

from config.constants import ADMIN_DRAFT_KEYS, SELLER_DRAFT_KEYS
from database import get_db
from models.product import ProductEdit, ProductStatusUpdate, VariantCreate
from utils.audit import log_audit
from utils.guards import assert_owner, parse_object_id
from utils.mongo import id_filter, serialize_doc
from utils.product_upload import (
    edit_product,
    fee_fields,
    parse_product_form,
    price_product,
    submit_product,
)
from utils.security import require_role
from utils.validators import raise_form_errors

router = APIRouter(tags=["Products"])


# =========================
# SELLER UPLOAD
# =========================

@router.post("/seller/products")
async def upload_product(
    product: str = Form(...),
    images: Optional[List[UploadFile]] = File(None),
    videos: Optional[List[UploadFile]] = File(None),
    variant_images: Optional[List[UploadFile]] = File(None, alias="variantImages"),
    seller=Depends(require_role("seller")),
    db=Depends(get_db),
):
    form = parse_product_form(product)

    result = await submit_product(
        db,
        form=form,
        images=images or [],
        videos=videos or [],
        variant_images=variant_images or [],
        actor=seller,
        seller_id=seller["uid"],
        draft_keys=SELLER_DRAFT_KEYS,
    )

    return {"message": "Product uploaded successfully", **result}


@router.get("/seller/products")
async def my_products(
    seller=Depends(require_role("seller")),
    db=Depends(get_db),
):
    cursor = db.products.find({"sellerId": seller["uid"]}).sort("createdAt", -1)
    products = [serialize_doc(p) async for p in cursor]
    return {"count": len(products), "products": products}


# =========================
# SELLER EDIT
# =========================

@router.put("/seller/products/{product_id}")
async def update_product(
    product_id: str,
    data: ProductEdit,
    seller=Depends(require_role("seller")),
    db=Depends(get_db),
):
    product = await db.products.find_one(id_filter(product_id))
    if not product:
        raise HTTPException(404, "Product not found")

    assert_owner(product, seller)

    update = await edit_product(db, product, data, seller)

    return {"message": "Product updated successfully!", "product": serialize_doc({"_id": product["_id"], **update})}


# =========================
# ADMIN UPLOAD (ON BEHALF OF A SELLER)
# =========================

@router.post("/admin/products")
async def upload_product_for_seller(
    product: str = Form(...),
    images: Optional[List[UploadFile]] = File(None),
    videos: Optional[List[UploadFile]] = File(None),
    variant_images: Optional[List[UploadFile]] = File(None, alias="variantImages"),
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    form = parse_product_form(product)

    if not form.seller_id:
        raise_form_errors({"sellerId": "Select a seller."})

    seller = await db.sellers.find_one({"_id": form.seller_id})
    if not seller:
        raise_form_errors({"sellerId": "Seller not found."})

    result = await submit_product(
        db,
        form=form,
        images=images or [],
        videos=videos or [],
        variant_images=variant_images or [],
        actor=admin,
        seller_id=form.seller_id,
        draft_keys=ADMIN_DRAFT_KEYS,
    )

    await log_audit(
        db,
        admin,
        "PRODUCT_UPLOADED_FOR_SELLER",
        metadata={"product_id": result["id"], "seller_id": form.seller_id},
    )

    return {"message": "Product uploaded successfully", **result}


# =========================
# ADMIN MODERATION
# =========================

@router.get("/admin/products")
async def list_products(
    status: Optional[str] = None,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    query = {}
    if status:
        query["status"] = status

    cursor = db.products.find(query).sort("createdAt", -1).limit(200)
    products = [serialize_doc(p) async for p in cursor]
    return {"count": len(products), "products": products}


@router.post("/admin/products/{product_id}/status")
async def set_product_status(
    product_id: str,
    data: ProductStatusUpdate,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    oid = parse_object_id(product_id, "product_id")

    result = await db.products.update_one(
        {"_id": oid},
        {"$set": {
            "status": data.status,
            "statusReason": data.reason,
            "reviewedBy": admin.get("uid"),
            "reviewedAt": datetime.utcnow(),
        }},
    )
    if result.matched_count == 0:
        raise HTTPException(404, "Product not found")

    await log_audit(
        db,
        admin,
        f"PRODUCT_{data.status.upper()}",
        metadata={"product_id": product_id, "reason": data.reason},
    )

    return {"message": f"Product {data.status}", "status": data.status}


@router.post("/admin/products/{product_id}/variants")
async def add_variant(
    product_id: str,
    data: VariantCreate,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    oid = parse_object_id(product_id, "product_id")

    product = await db.products.find_one({"_id": oid})
    if not product:
        raise HTTPException(404, "Product not found")

    variant = data.model_dump(by_alias=True)
    variants = product.get("variants", []) + [variant]

    # stored price and fees follow the cheapest variant
    fees = await price_product(db, product.get("category"), price=product.get("price"), variants=variants)

    await db.products.update_one(
        {"_id": oid},
        {
            "$push": {"variants": variant},
            "$set": {
                **fee_fields(fees),
                "stock": sum(v.get("stock") or 0 for v in variants),
            },
        },
    )

    await log_audit(db, admin, "PRODUCT_VARIANT_ADDED", metadata={"product_id": product_id})

    return {
        "message": "Variant added successfully!",
        "variant": variant,
        "fees": fees.model_dump(by_alias=True),
    }
