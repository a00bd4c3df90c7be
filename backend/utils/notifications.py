from datetime import datetime

async def push_notification(
    db,
    type: str,
    message: str,
    details: dict | None = None,
):
    """
    Admin notification feed entry.
    """
    await db.notifications.insert_one({
        "type": type,
        "message": message,
        "details": details or {},
        "createdAt": datetime.utcnow(),
    })
