import pytest
from pymongo.errors import DuplicateKeyError

from utils.drafts import DraftStore
from utils.indexes import ensure_indexes


def test_store_round_trip_is_scoped_per_owner(db, run):
    store = DraftStore(db)

    run(store.save_draft("seller-1", "sellerProductForm", {"name": "Lamp"}))
    run(store.save_draft("seller-1", "sellerProductForm", {"name": "Desk lamp"}))
    run(store.save_draft("seller-2", "sellerProductForm", {"name": "Chair"}))

    assert run(store.load_draft("seller-1", "sellerProductForm")) == {"name": "Desk lamp"}
    assert run(store.load_draft("seller-2", "sellerProductForm")) == {"name": "Chair"}
    assert run(db.drafts.count_documents({})) == 2


def test_clear_only_touches_given_keys(db, run):
    store = DraftStore(db)
    run(store.save_draft("seller-1", "sellerProductForm", {"name": "Lamp"}))
    run(store.save_draft("seller-1", "sellerLocationForm", {"city": "Abuja"}))

    assert run(store.clear_draft("seller-1", ["sellerProductForm"])) == 1
    assert run(store.load_draft("seller-1", "sellerProductForm")) is None
    assert run(store.load_draft("seller-1", "sellerLocationForm")) == {"city": "Abuja"}


def test_seller_draft_routes(client, seller):
    assert client.get("/api/seller/drafts/sellerProductForm").json()["state"] is None

    res = client.put("/api/seller/drafts/sellerProductForm", json={"name": "Lamp", "price": "12"})
    assert res.status_code == 200

    res = client.get("/api/seller/drafts/sellerProductForm")
    assert res.json()["state"] == {"name": "Lamp", "price": "12"}

    client.put("/api/seller/drafts/sellerVariantPreviews", json=["blob:1"])
    res = client.delete("/api/seller/drafts")
    assert res.json()["cleared"] == 2


def test_unknown_draft_key_is_not_found(client, seller):
    assert client.put("/api/seller/drafts/adminProductForm", json={}).status_code == 404


def test_admin_drafts_use_admin_keys(client):
    res = client.put("/api/admin/drafts/adminLocationForm", json={"city": "Lagos"})
    assert res.status_code == 200
    assert client.get("/api/admin/drafts/adminLocationForm").json()["state"] == {"city": "Lagos"}

    assert client.delete("/api/admin/drafts/adminLocationForm").json()["cleared"] == 1
    assert client.get("/api/admin/drafts/sellerProductForm").status_code == 404


def test_indexes_keep_one_draft_per_owner_and_key(db, run):
    run(ensure_indexes(db))
    run(db.drafts.insert_one({"ownerId": "seller-1", "key": "sellerProductForm", "state": {}}))

    with pytest.raises(DuplicateKeyError):
        run(db.drafts.insert_one({"ownerId": "seller-1", "key": "sellerProductForm", "state": {}}))
