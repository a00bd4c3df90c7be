from fastapi import APIRouter, Depends, HTTPException
from datetime import datetime
from typing import Optional

from database import get_db
from models.user import AdminUserCreate, RoleUpdate, UserRole
from utils.audit import log_audit
from utils.mongo import serialize_doc
from utils.notifications import push_notification
from utils.security import require_role

router = APIRouter(prefix="/admin", tags=["Users"])

PUBLIC_USER_FIELDS = {
    "uid": 1,
    "email": 1,
    "firstName": 1,
    "lastName": 1,
    "role": 1,
    "createdAt": 1,
    "lastActiveAt": 1,
}


async def _mirror_admin(db, user: dict):
    if user.get("role") == UserRole.ADMIN.value:
        await db.admins.update_one(
            {"_id": user["uid"]},
            {"$set": {
                "email": user.get("email"),
                "firstName": user.get("firstName"),
                "lastName": user.get("lastName"),
                "role": UserRole.ADMIN.value,
            }},
            upsert=True,
        )
    else:
        await db.admins.delete_one({"_id": user["uid"]})


# =====================================================
# LISTINGS
# =====================================================

@router.get("/users")
async def list_users(
    role: Optional[UserRole] = None,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    query = {"role": role.value} if role else {}
    cursor = db.users.find(query, PUBLIC_USER_FIELDS).sort("createdAt", -1)
    users = [serialize_doc(u) async for u in cursor]
    return {"count": len(users), "users": users}


@router.get("/admins")
async def list_admins(admin=Depends(require_role("admin")), db=Depends(get_db)):
    admins = [serialize_doc(a) async for a in db.admins.find({})]
    return {"count": len(admins), "admins": admins}


@router.get("/sellers")
async def list_sellers(admin=Depends(require_role("admin")), db=Depends(get_db)):
    sellers = [serialize_doc(s) async for s in db.sellers.find({})]
    return {"count": len(sellers), "sellers": sellers}


# =====================================================
# CREATE / ROLE
# =====================================================

@router.post("/users")
async def create_user(
    data: AdminUserCreate,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    email = data.email.lower()

    if await db.users.find_one({"email": email}):
        raise HTTPException(409, "A user with this email already exists")
    if await db.users.find_one({"uid": data.uid}):
        raise HTTPException(409, "A user with this uid already exists")

    user = {
        "uid": data.uid,
        "email": email,
        "firstName": data.first_name.strip(),
        "lastName": data.last_name.strip(),
        "role": data.role.value,
        "createdAt": datetime.utcnow(),
    }
    await db.users.insert_one(user)
    await _mirror_admin(db, user)

    await push_notification(
        db,
        "user_creation",
        f"New {user['role']} account created: {email}",
        {"uid": data.uid, "role": user["role"]},
    )
    await log_audit(db, admin, "USER_CREATED", metadata={"uid": data.uid, "role": user["role"]})

    return {"message": "User created successfully", "user": serialize_doc(user)}


@router.patch("/users/{uid}/role")
async def update_role(
    uid: str,
    data: RoleUpdate,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    user = await db.users.find_one({"uid": uid})
    if not user:
        raise HTTPException(404, "User not found")

    if uid == admin.get("uid") and data.role != UserRole.ADMIN:
        raise HTTPException(400, "You cannot remove your own admin role")

    await db.users.update_one({"uid": uid}, {"$set": {"role": data.role.value}})
    user["role"] = data.role.value
    await _mirror_admin(db, user)

    await log_audit(
        db,
        admin,
        "USER_ROLE_UPDATED",
        metadata={"uid": uid, "role": data.role.value},
    )

    return {"message": "Role updated", "uid": uid, "role": data.role.value}


# =====================================================
# DASHBOARD
# =====================================================

@router.get("/dashboard")
async def dashboard(admin=Depends(require_role("admin")), db=Depends(get_db)):
    return {
        "users": await db.users.count_documents({}),
        "admins": await db.admins.count_documents({}),
        "products": await db.products.count_documents({}),
        "approvedProducts": await db.products.count_documents({"status": "approved"}),
        "rejectedProducts": await db.products.count_documents({"status": "rejected"}),
        "pendingProducts": await db.products.count_documents({"status": "pending"}),
    }
