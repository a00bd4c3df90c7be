import json
import logging
import socket
from urllib import request, error

from fastapi import HTTPException

from config.env import BACKEND_URL, BACKEND_TIMEOUT_SECONDS
from utils.cloudinary import TIMEOUT_MESSAGE, CONNECTION_MESSAGE

logger = logging.getLogger(__name__)


def _error_message(body: bytes, fallback: str) -> str:
    try:
        data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return fallback

    if not isinstance(data, dict):
        return fallback

    message = data.get("error") or data.get("message") or fallback
    details = data.get("details")
    if details:
        if not isinstance(details, str):
            details = json.dumps(details)
        message = f"{message} (Details: {details})"
    return message


def _send(req: request.Request, fallback: str) -> dict:
    try:
        with request.urlopen(req, timeout=BACKEND_TIMEOUT_SECONDS) as resp:
            raw = resp.read()
    except error.HTTPError as e:
        message = _error_message(e.read(), fallback)
        logger.error("Backend %s %s failed with %s: %s", req.get_method(), req.full_url, e.code, message)
        # client errors pass through, anything else is a bad gateway
        raise HTTPException(status_code=e.code if 400 <= e.code < 500 else 502, detail=message)
    except (socket.timeout, TimeoutError):
        logger.error("Backend %s %s timed out", req.get_method(), req.full_url)
        raise HTTPException(status_code=504, detail=TIMEOUT_MESSAGE)
    except error.URLError as e:
        if isinstance(e.reason, (socket.timeout, TimeoutError)):
            logger.error("Backend %s %s timed out", req.get_method(), req.full_url)
            raise HTTPException(status_code=504, detail=TIMEOUT_MESSAGE)
        logger.error("Backend %s %s unreachable: %s", req.get_method(), req.full_url, e.reason)
        raise HTTPException(status_code=503, detail=CONNECTION_MESSAGE)

    if not raw:
        return {}

    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        raise HTTPException(status_code=502, detail=fallback)


def _headers(token: str | None = None) -> dict:
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _post(path: str, payload: dict, fallback: str, token: str | None = None) -> dict:
    req = request.Request(
        url=f"{BACKEND_URL}{path}",
        data=json.dumps(payload).encode("utf-8"),
        headers=_headers(token),
        method="POST",
    )
    return _send(req, fallback)


def _get(path: str, fallback: str, token: str | None = None) -> dict:
    req = request.Request(
        url=f"{BACKEND_URL}{path}",
        headers=_headers(token),
        method="GET",
    )
    return _send(req, fallback)


# =========================
# PAYOUTS
# =========================

def approve_payout(*, transaction_id: str, seller_id: str) -> dict:
    return _post(
        "/approve-payout",
        {"transactionId": transaction_id, "sellerId": seller_id},
        "Failed to approve payout",
    )


def reject_payout(*, transaction_id: str, seller_id: str) -> dict:
    return _post(
        "/reject-payout",
        {"transactionId": transaction_id, "sellerId": seller_id},
        "Failed to reject payout",
    )


def delete_transaction(*, transaction_id: str) -> dict:
    return _post(
        "/delete-transaction",
        {"transactionId": transaction_id},
        "Failed to delete transaction",
    )


# =========================
# BANKS
# =========================

def fetch_banks() -> list:
    data = _get("/fetch-banks", "Failed to fetch bank list.")
    return data if isinstance(data, list) else []


def save_admin_bank(payload: dict) -> dict:
    return _post("/admin-bank", payload, "Failed to save bank details.")


# =========================
# PRO SELLERS
# =========================

def _require_success(data: dict, fallback: str) -> dict:
    if not isinstance(data, dict) or data.get("status") != "success":
        message = data.get("message") if isinstance(data, dict) else None
        raise HTTPException(status_code=502, detail=message or fallback)
    return data


def fetch_pro_sellers(*, token: str) -> list:
    fallback = "Failed to fetch pro seller requests"
    data = _require_success(_get("/api/admin/all-pro-sellers", fallback, token=token), fallback)
    return data.get("proSellers") or []


def approve_pro_seller(*, pro_seller_id: str, approve: bool, token: str) -> dict:
    fallback = "Action failed"
    return _require_success(
        _post(
            "/api/admin/approve-pro-seller",
            {"proSellerId": pro_seller_id, "approve": approve},
            fallback,
            token=token,
        ),
        fallback,
    )
