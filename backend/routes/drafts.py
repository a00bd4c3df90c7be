from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from config.constants import ADMIN_DRAFT_KEYS, SELLER_DRAFT_KEYS
from database import get_db
from utils.drafts import DraftStore
from utils.security import require_role

router = APIRouter(tags=["Drafts"])


def _check_key(key: str, allowed) -> str:
    if key not in allowed:
        raise HTTPException(404, "Unknown draft key")
    return key


# ======================================================
# SELLER DRAFTS
# ======================================================

@router.get("/seller/drafts/{key}")
async def load_seller_draft(
    key: str,
    seller=Depends(require_role("seller")),
    db=Depends(get_db),
):
    _check_key(key, SELLER_DRAFT_KEYS)
    return {"key": key, "state": await DraftStore(db).load_draft(seller["uid"], key)}


@router.put("/seller/drafts/{key}")
async def save_seller_draft(
    key: str,
    state: Any = Body(...),
    seller=Depends(require_role("seller")),
    db=Depends(get_db),
):
    _check_key(key, SELLER_DRAFT_KEYS)
    await DraftStore(db).save_draft(seller["uid"], key, state)
    return {"message": "Draft saved", "key": key}


@router.delete("/seller/drafts")
async def clear_seller_drafts(
    seller=Depends(require_role("seller")),
    db=Depends(get_db),
):
    cleared = await DraftStore(db).clear_draft(seller["uid"], SELLER_DRAFT_KEYS)
    return {"message": "Drafts cleared", "cleared": cleared}


@router.delete("/seller/drafts/{key}")
async def clear_seller_draft(
    key: str,
    seller=Depends(require_role("seller")),
    db=Depends(get_db),
):
    _check_key(key, SELLER_DRAFT_KEYS)
    cleared = await DraftStore(db).clear_draft(seller["uid"], [key])
    return {"message": "Draft cleared", "cleared": cleared}


# ======================================================
# ADMIN DRAFTS
# ======================================================

@router.get("/admin/drafts/{key}")
async def load_admin_draft(
    key: str,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    _check_key(key, ADMIN_DRAFT_KEYS)
    return {"key": key, "state": await DraftStore(db).load_draft(admin["uid"], key)}


@router.put("/admin/drafts/{key}")
async def save_admin_draft(
    key: str,
    state: Any = Body(...),
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    _check_key(key, ADMIN_DRAFT_KEYS)
    await DraftStore(db).save_draft(admin["uid"], key, state)
    return {"message": "Draft saved", "key": key}


@router.delete("/admin/drafts/{key}")
async def clear_admin_draft(
    key: str,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    _check_key(key, ADMIN_DRAFT_KEYS)
    cleared = await DraftStore(db).clear_draft(admin["uid"], [key])
    return {"message": "Draft cleared", "cleared": cleared}
