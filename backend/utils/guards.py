from fastapi import HTTPException
from bson import ObjectId

# -------------------------------
# ObjectId Guard
# -------------------------------

def parse_object_id(value: str, name: str = "id") -> ObjectId:
    try:
        return ObjectId(value)
    except Exception:
        raise HTTPException(status_code=400, detail=f"Invalid {name}")


# -------------------------------
# Ownership Guard
# -------------------------------

def assert_owner(document: dict, user: dict, field: str = "sellerId"):
    if document.get(field) != user.get("uid"):
        raise HTTPException(
            status_code=403,
            detail="You can only manage your own products",
        )
