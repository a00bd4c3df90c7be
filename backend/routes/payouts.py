from fastapi import APIRouter, Depends, HTTPException
import asyncio
import logging
from typing import Optional

from database import get_db
from models.user import AdminBankDetails, PayoutAction
from utils import backend_api
from utils.audit import log_audit
from utils.mongo import id_filter, serialize_doc
from utils.security import require_role
from utils.validators import raise_form_errors, validate_bank_details

router = APIRouter(prefix="/admin", tags=["Payouts"])
logger = logging.getLogger(__name__)


async def _find_transaction(db, transaction_id: str):
    return await db.transactions.find_one(id_filter(transaction_id))


# =====================================================
# TRANSACTIONS
# =====================================================

@router.get("/transactions")
async def list_transactions(
    status: Optional[str] = None,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    query = {}
    if status:
        query["status"] = status

    cursor = db.transactions.find(query).sort("createdAt", -1).limit(200)
    rows = [serialize_doc(t) async for t in cursor]

    return {"count": len(rows), "transactions": rows}


@router.delete("/transactions/{transaction_id}")
async def remove_transaction(
    transaction_id: str,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    if not transaction_id.strip():
        raise HTTPException(400, "Cannot delete: Missing transaction ID")

    response = await asyncio.to_thread(
        backend_api.delete_transaction,
        transaction_id=transaction_id,
    )

    await log_audit(db, admin, "TRANSACTION_DELETED", metadata={"transaction_id": transaction_id})

    return {"message": response.get("message") or "Transaction deleted", "transactionId": transaction_id}


# =====================================================
# PAYOUT DECISIONS (executed by the backend)
# =====================================================

async def _payout_decision(db, admin, transaction_id: str, data: PayoutAction, approve: bool):
    transaction = await _find_transaction(db, transaction_id)
    seller_id = data.seller_id or (transaction or {}).get("sellerId")

    if not transaction or not seller_id:
        logger.error("Invalid payout data: transaction=%s seller=%s", transaction_id, seller_id)
        raise HTTPException(400, "Invalid transaction or seller ID")

    call = backend_api.approve_payout if approve else backend_api.reject_payout
    response = await asyncio.to_thread(
        call,
        transaction_id=transaction_id,
        seller_id=seller_id,
    )

    action = "PAYOUT_APPROVED" if approve else "PAYOUT_REJECTED"
    await log_audit(
        db,
        admin,
        action,
        metadata={
            "transaction_id": transaction_id,
            "seller_id": seller_id,
            "amount": transaction.get("amount"),
        },
    )

    return {
        "message": "Payout approved" if approve else "Payout rejected",
        "transactionId": transaction_id,
        "backend": response,
    }


@router.post("/payouts/{transaction_id}/approve")
async def approve_payout(
    transaction_id: str,
    data: PayoutAction = PayoutAction(),
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    return await _payout_decision(db, admin, transaction_id, data, approve=True)


@router.post("/payouts/{transaction_id}/reject")
async def reject_payout(
    transaction_id: str,
    data: PayoutAction = PayoutAction(),
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    return await _payout_decision(db, admin, transaction_id, data, approve=False)


# =====================================================
# ADMIN BANK DETAILS
# =====================================================

@router.get("/banks")
async def list_banks(admin=Depends(require_role("admin"))):
    banks = await asyncio.to_thread(backend_api.fetch_banks)
    return {"banks": banks}


@router.post("/bank")
async def save_admin_bank(
    data: AdminBankDetails,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    raise_form_errors(validate_bank_details(data), "Please fix form errors.")

    if data.country == "Nigeria":
        payload = {
            "country": data.country,
            "bankCode": data.bank_code,
            "accountNumber": data.account_number,
        }
    else:
        payload = {
            "country": data.country,
            "iban": data.iban,
            "bankName": data.bank_name,
        }

    await asyncio.to_thread(backend_api.save_admin_bank, payload)

    await log_audit(db, admin, "ADMIN_BANK_UPDATED", metadata={"country": data.country})

    return {"message": "Admin bank details saved!"}
