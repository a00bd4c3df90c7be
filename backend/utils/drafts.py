from datetime import datetime
from typing import Iterable


class DraftStore:
    """
    Unsubmitted form state, one document per (owner, key).
    Replaces mirroring every keystroke into browser storage.
    """

    def __init__(self, db):
        self.collection = db.drafts

    async def load_draft(self, owner_id: str, key: str):
        doc = await self.collection.find_one({"ownerId": owner_id, "key": key})
        return doc.get("state") if doc else None

    async def save_draft(self, owner_id: str, key: str, state):
        await self.collection.update_one(
            {"ownerId": owner_id, "key": key},
            {
                "$set": {"state": state, "updatedAt": datetime.utcnow()},
                "$setOnInsert": {"createdAt": datetime.utcnow()},
            },
            upsert=True,
        )

    async def clear_draft(self, owner_id: str, keys: Iterable[str]) -> int:
        result = await self.collection.delete_many(
            {"ownerId": owner_id, "key": {"$in": list(keys)}}
        )
        return result.deleted_count
