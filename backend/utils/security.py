from fastapi import Depends, HTTPException, WebSocket, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from datetime import datetime

from utils.jwt import decode_token
from database import get_db

security = HTTPBearer()


async def _load_user(db, token: str):
    payload = decode_token(token)

    uid = payload.get("sub")

    if not uid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    user = await db.users.find_one({"uid": uid})
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db=Depends(get_db),
):
    user = await _load_user(db, credentials.credentials)

    # Update last activity
    await db.users.update_one(
        {"_id": user["_id"]},
        {"$set": {"lastActiveAt": datetime.utcnow()}}
    )

    return user


def require_role(required_role: str):
    async def checker(user=Depends(get_current_user)):
        if user.get("role") != required_role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return checker


async def bearer_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    # forwarded as-is to the external backend
    return credentials.credentials


async def get_websocket_admin(websocket: WebSocket, db):
    """
    Browsers cannot set headers on websockets, so the token rides in the query string.
    Returns None when the caller is not an admin.
    """
    token = websocket.query_params.get("token")
    if not token:
        return None

    try:
        user = await _load_user(db, token)
    except HTTPException:
        return None

    if user.get("role") != "admin":
        return None

    return user
