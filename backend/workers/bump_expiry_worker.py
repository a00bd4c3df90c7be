import asyncio
import logging
from datetime import datetime

from config.env import BUMP_CHECK_INTERVAL_SECONDS
from database import get_db

logger = logging.getLogger(__name__)


async def expire_bumps(db, now: datetime | None = None) -> int:
    now = now or datetime.utcnow()

    result = await db.products.update_many(
        {"isBumped": True, "bumpExpiry": {"$lte": now}},
        {"$set": {"isBumped": False}, "$unset": {"bumpExpiry": ""}},
    )

    if result.modified_count:
        logger.info("Expired %s product bumps", result.modified_count)

    return result.modified_count


async def bump_expiry_worker():
    db = get_db()

    while True:
        try:
            await expire_bumps(db)
        except Exception:
            logger.exception("BUMP_EXPIRY_ERROR")

        await asyncio.sleep(BUMP_CHECK_INTERVAL_SECONDS)
