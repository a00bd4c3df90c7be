from fastapi import APIRouter, Depends

from database import get_db
from models.fees import (
    CategoryCreate,
    CategoryFeeInput,
    CategoryIconUpdate,
    CategoryOrderUpdate,
    CategoryRename,
    FeeEstimateRequest,
    SizeTierFees,
    SubcategoryCreate,
)
from utils import categories as store
from utils.audit import log_audit
from utils.fees import estimate_fees
from utils.security import get_current_user, require_role

router = APIRouter(tags=["Categories"])


# =====================================================
# PUBLIC / SELLER READS
# =====================================================

@router.get("/categories")
async def list_categories(db=Depends(get_db)):
    return {
        "categories": await store.load_catalog(db),
        "order": await store.get_category_order(db),
    }


@router.post("/fees/estimate")
async def fee_estimate(
    data: FeeEstimateRequest,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    fee_table = await store.get_fee_table(db)
    breakdown = estimate_fees(
        data.category,
        fee_table,
        price=data.price,
        variant_prices=data.variant_prices,
    )
    return breakdown.model_dump(by_alias=True)


# =====================================================
# ADMIN: CATEGORIES + FEES
# =====================================================

@router.post("/admin/categories")
async def create_category(
    data: CategoryCreate,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    result = await store.add_category(db, data.name, data)

    await log_audit(db, admin, "CATEGORY_CREATED", metadata=result)

    return {"message": "Category added successfully!", **result}


@router.put("/admin/categories/{name}/fees")
async def update_category_fees(
    name: str,
    data: CategoryFeeInput,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    result = await store.upsert_category_fees(db, name, data)

    await log_audit(db, admin, "CATEGORY_FEES_UPDATED", metadata=result)

    return {"message": "Category fees updated", **result}


@router.patch("/admin/categories/{name}")
async def edit_category(
    name: str,
    data: CategoryRename,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    result = await store.rename_category(db, name, data.new_name, data)

    await log_audit(db, admin, "CATEGORY_EDITED", metadata=result)

    return {"message": "Category updated successfully!", **result}


@router.delete("/admin/categories/{name}")
async def remove_category(
    name: str,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    result = await store.delete_category(db, name)

    await log_audit(db, admin, "CATEGORY_DELETED", metadata=result)

    return {"message": "Category deleted successfully!", **result}


@router.post("/admin/categories/{name}/subcategories")
async def create_subcategory(
    name: str,
    data: SubcategoryCreate,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    subcategories = await store.add_subcategory(db, name, data.name)
    return {"message": f'Subcategory "{data.name.strip()}" added!', "subcategories": subcategories}


@router.post("/admin/categories/{name}/subcategories/{subcategory}")
async def create_sub_subcategory(
    name: str,
    subcategory: str,
    data: SubcategoryCreate,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    sub_subcategories = await store.add_sub_subcategory(db, name, subcategory, data.name)
    return {
        "message": f'Sub-subcategory "{data.name.strip()}" added!',
        "subSubcategories": sub_subcategories,
    }


# =====================================================
# ADMIN: ORDER + ICONS
# =====================================================

@router.put("/admin/categories-order")
async def save_category_order(
    data: CategoryOrderUpdate,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    order = await store.set_category_order(db, data.order)
    return {"message": "Category order saved", "order": order}


@router.put("/admin/categories/{name}/icon")
async def save_category_icon(
    name: str,
    data: CategoryIconUpdate,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    icons = await store.set_category_icon(db, name, data.icon)
    return {"message": "Category icon saved", "icons": icons}


# =====================================================
# ADMIN: LEGACY SIZE-TIER FEES
# =====================================================

@router.get("/admin/fees/size-tiers")
async def size_tier_fees(
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    return await store.get_size_tier_fees(db)


@router.put("/admin/fees/size-tiers")
async def update_size_tier_fees(
    data: SizeTierFees,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    tiers = await store.save_size_tier_fees(db, data.tiers)

    await log_audit(db, admin, "SIZE_TIER_FEES_UPDATED", metadata={"tiers": list(data.tiers)})

    return {"message": "Fee configurations updated successfully!", "tiers": tiers}
