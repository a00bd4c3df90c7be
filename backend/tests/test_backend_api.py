import io
import json
import socket
from urllib import error

import pytest
from fastapi import HTTPException

from utils import backend_api
from utils.cloudinary import CONNECTION_MESSAGE, TIMEOUT_MESSAGE


class FakeResponse:
    def __init__(self, payload):
        self.body = json.dumps(payload).encode("utf-8")

    def read(self):
        return self.body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def sent(monkeypatch):
    """Captures outgoing requests; set `sent.reply` to a payload or an exception."""

    class Recorder:
        reply = {}
        requests = []

    def fake_urlopen(req, timeout=None):
        Recorder.requests.append(req)
        if isinstance(Recorder.reply, Exception):
            raise Recorder.reply
        return FakeResponse(Recorder.reply)

    Recorder.requests = []
    monkeypatch.setattr(backend_api.request, "urlopen", fake_urlopen)
    return Recorder


def test_approve_payout_posts_ids(sent):
    sent.reply = {"message": "ok"}

    assert backend_api.approve_payout(transaction_id="tx-1", seller_id="seller-1") == {"message": "ok"}

    req = sent.requests[0]
    assert req.get_method() == "POST"
    assert req.full_url.endswith("/approve-payout")
    assert json.loads(req.data) == {"transactionId": "tx-1", "sellerId": "seller-1"}


def test_timeout_maps_to_504(sent):
    sent.reply = socket.timeout("timed out")

    with pytest.raises(HTTPException) as exc:
        backend_api.reject_payout(transaction_id="tx-1", seller_id="seller-1")

    assert exc.value.status_code == 504
    assert exc.value.detail == TIMEOUT_MESSAGE


def test_wrapped_timeout_maps_to_504(sent):
    sent.reply = error.URLError(socket.timeout("timed out"))

    with pytest.raises(HTTPException) as exc:
        backend_api.fetch_banks()

    assert exc.value.status_code == 504


def test_connection_failure_maps_to_503(sent):
    sent.reply = error.URLError(ConnectionRefusedError(111, "Connection refused"))

    with pytest.raises(HTTPException) as exc:
        backend_api.delete_transaction(transaction_id="tx-1")

    assert exc.value.status_code == 503
    assert exc.value.detail == CONNECTION_MESSAGE


def test_server_error_carries_backend_message(sent):
    body = io.BytesIO(json.dumps({"error": "Insufficient balance", "details": "wallet empty"}).encode())
    sent.reply = error.HTTPError("http://backend/approve-payout", 500, "Server Error", None, body)

    with pytest.raises(HTTPException) as exc:
        backend_api.approve_payout(transaction_id="tx-1", seller_id="seller-1")

    assert exc.value.status_code == 502
    assert exc.value.detail == "Insufficient balance (Details: wallet empty)"


def test_client_error_status_passes_through(sent):
    body = io.BytesIO(json.dumps({"message": "Transaction not found"}).encode())
    sent.reply = error.HTTPError("http://backend/delete-transaction", 404, "Not Found", None, body)

    with pytest.raises(HTTPException) as exc:
        backend_api.delete_transaction(transaction_id="tx-1")

    assert exc.value.status_code == 404
    assert exc.value.detail == "Transaction not found"


def test_fetch_banks_ignores_non_list(sent):
    sent.reply = {"unexpected": True}
    assert backend_api.fetch_banks() == []

    sent.reply = [{"name": "Access Bank", "code": "044"}]
    assert backend_api.fetch_banks() == [{"name": "Access Bank", "code": "044"}]


def test_pro_seller_calls_forward_token_and_require_success(sent):
    sent.reply = {"status": "success", "proSellers": [{"id": "p1", "status": "pending"}]}

    assert backend_api.fetch_pro_sellers(token="abc") == [{"id": "p1", "status": "pending"}]
    assert sent.requests[0].get_header("Authorization") == "Bearer abc"

    sent.reply = {"status": "error", "message": "Not allowed"}
    with pytest.raises(HTTPException) as exc:
        backend_api.approve_pro_seller(pro_seller_id="p1", approve=True, token="abc")
    assert exc.value.detail == "Not allowed"
