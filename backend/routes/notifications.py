from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
import asyncio
import logging

from database import get_db
from utils.mongo import serialize_doc
from utils.security import get_websocket_admin, require_role
from utils.subscriptions import LIVE_FEEDS, watch_feed

router = APIRouter(tags=["Notifications"])
logger = logging.getLogger(__name__)

LIVE_ERROR_MESSAGE = "Error receiving real-time updates."


# =========================
# NOTIFICATION FEED
# =========================

@router.get("/admin/notifications")
async def list_notifications(
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    cursor = db.notifications.find({}).sort("createdAt", -1).limit(200)
    notifications = [serialize_doc(n) async for n in cursor]
    return {"count": len(notifications), "notifications": notifications}


@router.delete("/admin/notifications")
async def clear_notifications(
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    result = await db.notifications.delete_many({})
    return {"message": "Notifications cleared", "cleared": result.deleted_count}


# =========================
# LIVE FEEDS
# =========================

async def _drain(websocket: WebSocket):
    # returns once the client goes away
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass


@router.websocket("/live/{feed}")
async def live_feed(websocket: WebSocket, feed: str, db=Depends(get_db)):
    if feed not in LIVE_FEEDS:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    admin = await get_websocket_admin(websocket, db)
    if not admin:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    async def on_snapshot(rows):
        await websocket.send_json({"type": "snapshot", "feed": feed, "data": rows})

    async def on_error(error):
        await websocket.send_json({"type": "error", "feed": feed, "message": LIVE_ERROR_MESSAGE})

    subscription = watch_feed(db, feed, on_snapshot, on_error)
    finished = asyncio.create_task(subscription.wait())
    receiver = asyncio.create_task(_drain(websocket))

    try:
        done, _ = await asyncio.wait({finished, receiver}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        subscription.cancel()
        receiver.cancel()
        await subscription.wait()

    if receiver not in done:
        # subscription ended on its own (error already reported)
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)

    logger.info("Live feed %s closed for %s", feed, admin.get("uid"))
