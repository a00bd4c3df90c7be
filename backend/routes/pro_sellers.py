from fastapi import APIRouter, Depends
import asyncio
from typing import Optional

from database import get_db
from models.user import ProSellerDecision
from utils import backend_api
from utils.audit import log_audit
from utils.security import bearer_token, require_role

router = APIRouter(prefix="/admin/pro-sellers", tags=["Pro Sellers"])


@router.get("")
async def list_pro_sellers(
    status: Optional[str] = None,
    admin=Depends(require_role("admin")),
    token: str = Depends(bearer_token),
):
    pro_sellers = await asyncio.to_thread(backend_api.fetch_pro_sellers, token=token)

    if status:
        pro_sellers = [p for p in pro_sellers if p.get("status") == status]

    return {"count": len(pro_sellers), "proSellers": pro_sellers}


@router.post("/{pro_seller_id}/decision")
async def decide_pro_seller(
    pro_seller_id: str,
    data: ProSellerDecision,
    admin=Depends(require_role("admin")),
    token: str = Depends(bearer_token),
    db=Depends(get_db),
):
    response = await asyncio.to_thread(
        backend_api.approve_pro_seller,
        pro_seller_id=pro_seller_id,
        approve=data.approve,
        token=token,
    )

    await log_audit(
        db,
        admin,
        "PRO_SELLER_APPROVED" if data.approve else "PRO_SELLER_REJECTED",
        metadata={"pro_seller_id": pro_seller_id},
    )

    return {
        "message": response.get("message") or ("Pro seller approved" if data.approve else "Pro seller rejected"),
        "proSellerId": pro_seller_id,
        "approved": data.approve,
    }
