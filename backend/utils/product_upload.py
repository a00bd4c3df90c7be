import asyncio
import logging
import math
from datetime import datetime
from typing import List, Sequence

from fastapi import HTTPException, UploadFile
from pydantic import ValidationError

from config.constants import (
    MAX_COLOR_NAME_LENGTH,
    MAX_IMAGE_SIZE,
    MAX_IMAGES,
    MAX_VIDEO_SIZE,
    MAX_VARIANT_IMAGES,
    MAX_VIDEOS,
    SIZED_CATEGORIES,
)
from config.env import CLOUDINARY_FOLDER
from models.product import ProductEdit, ProductForm
from utils.categories import get_fee_table, list_category_names
from utils.cloudinary import upload_media
from utils.drafts import DraftStore
from utils.fees import estimate_fees, parse_price, representative_price
from utils.notifications import push_notification
from utils.validators import raise_form_errors

logger = logging.getLogger(__name__)


def parse_product_form(raw: str) -> ProductForm:
    try:
        return ProductForm.model_validate_json(raw)
    except ValidationError as e:
        errors = {
            ".".join(str(part) for part in err["loc"]) or "product": err["msg"]
            for err in e.errors()
        }
        raise HTTPException(
            status_code=400,
            detail={"message": "Please fix the form errors.", "errors": errors},
        )


def parse_count(value):
    """Whole number >= 0, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0 or number != int(number):
        return None
    return int(number)


# ======================================================
# VALIDATION
# ======================================================

def _media_errors(files: Sequence[UploadFile], kind: str, max_size: int) -> str | None:
    for f in files:
        if not (f.content_type or "").startswith(f"{kind}/"):
            return f"Only {kind} files are allowed."
        size = getattr(f, "size", None)
        if size is not None and size > max_size:
            return f"Each {kind} must be {max_size // (1024 * 1024)}MB or smaller."
    return None


def validate_product_form(
    form: ProductForm,
    categories: Sequence[str],
    images: Sequence[UploadFile],
    videos: Sequence[UploadFile],
    variant_images: Sequence[UploadFile] = (),
) -> dict:
    errors = {}

    if not form.seller_name.strip():
        errors["sellerName"] = "Please enter your full name."
    if not form.name.strip():
        errors["name"] = "Product name is required."

    if form.variants:
        for i, variant in enumerate(form.variants):
            if parse_price(variant.price) is None:
                errors[f"variant{i}_price"] = "Enter a valid price greater than 0."
            if parse_count(variant.stock) is None:
                errors[f"variant{i}_stock"] = "Enter a valid stock quantity (0 or more)."
            if len(variant.color) > MAX_COLOR_NAME_LENGTH:
                errors[f"variant{i}_color"] = f"Color name must be {MAX_COLOR_NAME_LENGTH} characters or less."
            if variant.image_count > MAX_VARIANT_IMAGES:
                errors[f"variant{i}_images"] = f"You can upload a maximum of {MAX_VARIANT_IMAGES} images per variant."
    else:
        if parse_price(form.price) is None:
            errors["price"] = "Enter a valid price greater than 0."
        if parse_count(form.stock) is None:
            errors["stock"] = "Enter a valid stock quantity (0 or more)."

    if not form.category or form.category not in categories:
        errors["category"] = "Select a valid category."

    if len(images) == 0:
        errors["images"] = "At least one image is required."
    elif len(images) > MAX_IMAGES:
        errors["images"] = f"Maximum {MAX_IMAGES} images allowed."
    else:
        media_error = _media_errors(images, "image", MAX_IMAGE_SIZE)
        if media_error:
            errors["images"] = media_error

    if len(videos) > MAX_VIDEOS:
        errors["videos"] = f"Maximum {MAX_VIDEOS} video allowed."
    else:
        media_error = _media_errors(videos, "video", MAX_VIDEO_SIZE)
        if media_error:
            errors["videos"] = media_error

    expected = sum(v.image_count for v in form.variants)
    if expected != len(variant_images):
        errors["variantImages"] = "Variant images do not match the variants they belong to."
    else:
        media_error = _media_errors(variant_images, "image", MAX_IMAGE_SIZE)
        if media_error:
            errors["variantImages"] = media_error

    delivery_days = parse_count(form.delivery_days)
    if not delivery_days:
        errors["deliveryDays"] = "Enter a valid number of delivery days (greater than 0)."

    label = SIZED_CATEGORIES.get(form.category)
    if label and form.subcategory and not form.sizes:
        errors["sizes"] = f"Select or enter at least one size for {label} products."

    too_long = [c for c in form.colors if len(c) > MAX_COLOR_NAME_LENGTH]
    if too_long:
        errors["colors"] = f"Color name must be {MAX_COLOR_NAME_LENGTH} characters or less."

    return errors


# ======================================================
# UPLOAD FAN-OUT
# ======================================================

async def upload_all(files: Sequence[UploadFile], folder: str, is_video: bool = False) -> List[str]:
    """
    Concurrent uploads, joined. The first failure propagates and the
    submission is abandoned; files that already reached the host stay there.
    """
    return list(await asyncio.gather(*[
        asyncio.to_thread(upload_media, f.file, folder, is_video)
        for f in files
    ]))


def split_variant_urls(variants, urls: Sequence[str]) -> List[List[str]]:
    """Hands out uploaded variant image URLs by each variant's image_count."""
    groups, start = [], 0
    for variant in variants:
        groups.append(list(urls[start:start + variant.image_count]))
        start += variant.image_count
    return groups


# ======================================================
# FEES ON STORED PRODUCTS
# ======================================================

def fee_fields(fees) -> dict:
    return {
        "price": fees.price,
        "buyerProtectionFee": fees.buyer_protection_fee,
        "handlingFee": fees.handling_fee,
        "totalEstimatedPrice": fees.total_estimated_price,
        "sellerEarnings": fees.seller_earnings,
        "belowMinPrice": fees.below_min_price,
    }


async def price_product(db, category: str, price=None, variants: Sequence[dict] = ()):
    """
    Breakdown for a stored product. Variants with a valid price decide it
    (cheapest wins); otherwise the product's own price.
    """
    fee_table = await get_fee_table(db)
    variant_prices = [v.get("price") for v in variants]
    if representative_price(variant_prices) is not None:
        return estimate_fees(category, fee_table, variant_prices=variant_prices)
    return estimate_fees(category, fee_table, price=price)


# ======================================================
# SUBMISSION
# ======================================================

async def submit_product(
    db,
    *,
    form: ProductForm,
    images: Sequence[UploadFile],
    videos: Sequence[UploadFile],
    actor: dict,
    seller_id: str,
    draft_keys: Sequence[str],
    variant_images: Sequence[UploadFile] = (),
) -> dict:
    categories = await list_category_names(db)

    errors = validate_product_form(form, categories, images, videos, variant_images)
    raise_form_errors(errors)

    fee_table = await get_fee_table(db)
    if form.variants:
        fees = estimate_fees(form.category, fee_table, variant_prices=[v.price for v in form.variants])
        stock = sum(parse_count(v.stock) for v in form.variants)
    else:
        fees = estimate_fees(form.category, fee_table, price=form.price)
        stock = parse_count(form.stock)

    folder = f"{CLOUDINARY_FOLDER}/products/{seller_id}"

    try:
        image_urls, video_urls, variant_urls = await asyncio.gather(
            upload_all(images, folder),
            upload_all(videos, folder, is_video=True),
            upload_all(variant_images, folder),
        )
    except HTTPException as e:
        logger.error("Product upload aborted for seller %s: %s", seller_id, e.detail)
        raise

    if not image_urls:
        raise HTTPException(502, "At least one image URL is required.")

    variant_image_groups = split_variant_urls(form.variants, variant_urls)

    product = {
        "sellerName": form.seller_name.strip(),
        "name": form.name.strip(),
        "description": form.description or "",
        "stock": stock,
        "category": form.category,
        "subcategory": form.subcategory or "",
        "subSubcategory": form.sub_subcategory or "",
        "colors": form.colors,
        "sizes": form.sizes,
        "condition": form.condition or "New",
        "productUrl": form.product_url or "",
        "imageUrls": image_urls,
        "videoUrls": video_urls,
        "tags": form.tags,
        "variants": [
            {
                "color": v.color,
                "size": v.size,
                "price": parse_price(v.price),
                "stock": parse_count(v.stock),
                "imageUrls": urls,
            }
            for v, urls in zip(form.variants, variant_image_groups)
        ],
        "sellerId": seller_id,
        "seller": {"name": form.seller_name.strip(), "id": seller_id},
        "uploadedBy": actor.get("uid"),
        "createdAt": datetime.utcnow(),
        "reviews": [],
        **fee_fields(fees),
        "manualSize": form.manual_size or "",
        "deliveryDays": parse_count(form.delivery_days),
        "location": form.location.model_dump(),
        "status": "pending",
    }

    result = await db.products.insert_one(product)

    await DraftStore(db).clear_draft(actor["uid"], draft_keys)

    await push_notification(
        db,
        type="product_upload",
        message=f"New product uploaded: {product['name']}",
        details={"product_id": str(result.inserted_id), "seller_id": seller_id},
    )

    logger.info("Product %s uploaded for seller %s", result.inserted_id, seller_id)

    return {
        "id": str(result.inserted_id),
        "imageUrls": image_urls,
        "videoUrls": video_urls,
        "variantImageUrls": variant_image_groups,
        "fees": fees.model_dump(by_alias=True),
    }


# ======================================================
# SELLER EDIT
# ======================================================

def validate_product_edit(data: ProductEdit) -> dict:
    errors = {}

    if not data.name.strip():
        errors["name"] = "Product name is required."

    if data.variants:
        for i, variant in enumerate(data.variants):
            if parse_price(variant.price) is None:
                errors[f"variant{i}_price"] = "Enter a valid price greater than 0."
            if parse_count(variant.stock) is None:
                errors[f"variant{i}_stock"] = "Enter a valid stock quantity (0 or more)."
            if len(variant.color) > MAX_COLOR_NAME_LENGTH:
                errors[f"variant{i}_color"] = f"Color name must be {MAX_COLOR_NAME_LENGTH} characters or less."
            if len(variant.image_urls) > MAX_VARIANT_IMAGES:
                errors[f"variant{i}_images"] = f"You can upload a maximum of {MAX_VARIANT_IMAGES} images per variant."
    else:
        if parse_price(data.price) is None:
            errors["price"] = "Enter a valid price greater than 0."
        if parse_count(data.stock) is None:
            errors["stock"] = "Enter a valid stock quantity (0 or more)."

    if not data.image_urls:
        errors["imageUrls"] = "At least one image is required."
    elif len(data.image_urls) > MAX_IMAGES:
        errors["imageUrls"] = f"Maximum {MAX_IMAGES} images allowed."

    if len(data.video_urls) > MAX_VIDEOS:
        errors["videoUrls"] = f"Maximum {MAX_VIDEOS} video allowed."

    if any(len(c) > MAX_COLOR_NAME_LENGTH for c in data.colors):
        errors["colors"] = f"Color name must be {MAX_COLOR_NAME_LENGTH} characters or less."

    return errors


async def edit_product(db, product: dict, data: ProductEdit, seller: dict) -> dict:
    raise_form_errors(validate_product_edit(data))

    variants = [
        {
            "color": v.color,
            "size": v.size,
            "price": parse_price(v.price),
            "stock": parse_count(v.stock),
            "imageUrls": v.image_urls,
        }
        for v in data.variants
    ]

    fees = await price_product(db, product.get("category"), price=data.price, variants=variants)
    stock = sum(v["stock"] for v in variants) if variants else parse_count(data.stock)

    update = {
        "name": data.name.strip(),
        "description": data.description,
        "stock": stock,
        "imageUrls": data.image_urls,
        "videoUrls": data.video_urls,
        "colors": data.colors,
        "variants": variants,
        **fee_fields(fees),
        "updatedAt": datetime.utcnow(),
    }

    await db.products.update_one({"_id": product["_id"]}, {"$set": update})

    product_id = str(product["_id"])
    await push_notification(
        db,
        type="product_edit",
        message=f'Product "{update["name"]}" (ID: {product_id}) edited by seller {seller["uid"]}',
        details={"product_id": product_id, "seller_id": seller["uid"]},
    )

    logger.info("Product %s edited by seller %s", product_id, seller["uid"])

    return update
