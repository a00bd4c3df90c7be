def _new_user(**overrides):
    data = {
        "uid": "uid-42",
        "email": "Grace@Example.com",
        "firstName": "Grace",
        "lastName": "Hopper",
        "role": "seller",
    }
    data.update(overrides)
    return data


def test_create_user_writes_profile_and_notifies(client, db, run):
    res = client.post("/api/admin/users", json=_new_user())

    assert res.status_code == 200
    stored = run(db.users.find_one({"uid": "uid-42"}))
    assert stored["email"] == "grace@example.com"
    assert stored["role"] == "seller"
    assert run(db.admins.count_documents({})) == 0
    assert run(db.notifications.find_one({"type": "user_creation"})) is not None


def test_duplicate_email_conflicts(client):
    client.post("/api/admin/users", json=_new_user())

    res = client.post("/api/admin/users", json=_new_user(uid="uid-43", email="grace@example.com"))
    assert res.status_code == 409


def test_invalid_email_is_rejected(client):
    assert client.post("/api/admin/users", json=_new_user(email="not-an-email")).status_code == 422


def test_admin_role_is_mirrored(client, db, run):
    client.post("/api/admin/users", json=_new_user(role="admin"))
    assert run(db.admins.find_one({"_id": "uid-42"}))["email"] == "grace@example.com"

    res = client.patch("/api/admin/users/uid-42/role", json={"role": "buyer"})
    assert res.status_code == 200
    assert run(db.admins.find_one({"_id": "uid-42"})) is None
    assert run(db.users.find_one({"uid": "uid-42"}))["role"] == "buyer"


def test_role_update_for_unknown_user(client):
    assert client.patch("/api/admin/users/ghost/role", json={"role": "seller"}).status_code == 404


def test_admin_cannot_demote_self(client, db, run):
    run(db.users.insert_one({"uid": "admin-1", "email": "admin@example.com", "role": "admin"}))
    assert client.patch("/api/admin/users/admin-1/role", json={"role": "buyer"}).status_code == 400


def test_listings_and_dashboard(client, db, run):
    run(db.users.insert_many([
        {"uid": "a", "email": "a@x.com", "role": "admin"},
        {"uid": "b", "email": "b@x.com", "role": "seller"},
        {"uid": "c", "email": "c@x.com", "role": "buyer"},
    ]))
    run(db.admins.insert_one({"_id": "a", "email": "a@x.com"}))
    run(db.sellers.insert_one({"_id": "b", "name": "B Store"}))
    run(db.products.insert_many([
        {"name": "1", "status": "approved"},
        {"name": "2", "status": "approved"},
        {"name": "3", "status": "rejected"},
        {"name": "4", "status": "pending"},
    ]))

    assert client.get("/api/admin/users").json()["count"] == 3
    assert [u["uid"] for u in client.get("/api/admin/users", params={"role": "seller"}).json()["users"]] == ["b"]
    assert client.get("/api/admin/admins").json()["count"] == 1
    assert client.get("/api/admin/sellers").json()["sellers"][0]["id"] == "b"

    assert client.get("/api/admin/dashboard").json() == {
        "users": 3,
        "admins": 1,
        "products": 4,
        "approvedProducts": 2,
        "rejectedProducts": 1,
        "pendingProducts": 1,
    }


def test_user_routes_require_admin(client, seller):
    assert client.get("/api/admin/users").status_code == 403


def test_unknown_roles_are_rejected(client, db, run):
    assert client.post("/api/admin/users", json=_new_user(role="superuser")).status_code == 422
    assert run(db.users.count_documents({})) == 0

    run(db.users.insert_one({"uid": "uid-7", "email": "seven@example.com", "role": "buyer"}))
    assert client.patch("/api/admin/users/uid-7/role", json={"role": "owner"}).status_code == 422
