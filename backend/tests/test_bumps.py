from datetime import datetime, timedelta

import pytest

from workers.bump_expiry_worker import expire_bumps


@pytest.fixture
def product(db, run):
    return run(db.products.insert_one({"name": "Lamp", "sellerId": "seller-1", "status": "approved"})).inserted_id


def test_seller_bumps_own_product(client, seller, product, db, run):
    res = client.post(f"/api/seller/products/{product}/bump", json={"duration": "6d"})

    assert res.status_code == 200
    bump = run(db.productBumps.find_one({}))
    assert bump["productId"] == str(product)
    assert bump["sellerId"] == "seller-1"
    assert bump["amount"] == 900
    assert bump["expiry"] - bump["bumpedAt"] == timedelta(days=6)

    stored = run(db.products.find_one({"_id": product}))
    assert stored["isBumped"] is True
    assert stored["bumpExpiry"] == bump["expiry"]


def test_bump_rejected_while_active(client, seller, product):
    assert client.post(f"/api/seller/products/{product}/bump", json={"duration": "3d"}).status_code == 200

    res = client.post(f"/api/seller/products/{product}/bump", json={"duration": "3d"})
    assert res.status_code == 400


def test_cannot_bump_someone_elses_product(client, seller, db, run):
    other = run(db.products.insert_one({"name": "Chair", "sellerId": "seller-2"})).inserted_id

    res = client.post(f"/api/seller/products/{other}/bump", json={"duration": "3d"})

    assert res.status_code == 403
    assert run(db.productBumps.count_documents({})) == 0


def test_unknown_duration_is_rejected(client, seller, product):
    assert client.post(f"/api/seller/products/{product}/bump", json={"duration": "9d"}).status_code == 422


def test_expire_bumps_clears_only_expired(db, run):
    now = datetime.utcnow()
    run(db.products.insert_many([
        {"_id": "old", "isBumped": True, "bumpExpiry": now - timedelta(minutes=1)},
        {"_id": "live", "isBumped": True, "bumpExpiry": now + timedelta(days=1)},
    ]))

    assert run(expire_bumps(db, now)) == 1

    assert run(db.products.find_one({"_id": "old"}))["isBumped"] is False
    assert "bumpExpiry" not in run(db.products.find_one({"_id": "old"}))
    assert run(db.products.find_one({"_id": "live"}))["isBumped"] is True


def test_expired_bump_can_be_renewed(client, seller, product, db, run):
    run(db.products.update_one(
        {"_id": product},
        {"$set": {"isBumped": True, "bumpExpiry": datetime.utcnow() - timedelta(hours=1)}},
    ))

    assert client.post(f"/api/seller/products/{product}/bump", json={"duration": "3d"}).status_code == 200


def test_admin_lists_bumps_with_active_flag(client, db, run):
    now = datetime.utcnow()
    run(db.productBumps.insert_many([
        {"productId": "p1", "sellerId": "s1", "duration": "3d", "amount": 500, "bumpedAt": now, "expiry": now + timedelta(days=3)},
        {"productId": "p2", "sellerId": "s1", "duration": "3d", "amount": 500, "bumpedAt": now - timedelta(days=5), "expiry": now - timedelta(days=2)},
    ]))

    bumps = client.get("/api/admin/bumps").json()["bumps"]

    assert [(b["productId"], b["active"]) for b in bumps] == [("p1", True), ("p2", False)]
