import logging
from datetime import datetime

logger = logging.getLogger(__name__)


async def log_audit(
    db,
    actor: dict,
    action: str,
    metadata: dict | None = None
):
    """
    Append-only trail of panel writes. `actor` is the authenticated user document.
    """
    entry = {
        "actorId": actor.get("uid"),
        "actorRole": actor.get("role"),
        "actorEmail": actor.get("email"),
        "action": action,
        "metadata": metadata or {},
        "createdAt": datetime.utcnow(),
    }

    await db.audit_logs.insert_one(entry)
    logger.info("%s by %s", action, entry["actorId"])
