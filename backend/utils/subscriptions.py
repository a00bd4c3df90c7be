import asyncio
import logging
from typing import Awaitable, Callable, Optional

from utils.mongo import serialize_docs

logger = logging.getLogger(__name__)

SNAPSHOT_LIMIT = 500

# feed name -> (collection, sort)
LIVE_FEEDS = {
    "categories": ("categories", [("_id", 1)]),
    "customSubcategories": ("customSubcategories", [("_id", 1)]),
    "customSubSubcategories": ("customSubSubcategories", [("_id", 1)]),
    "notifications": ("notifications", [("createdAt", -1)]),
    "transactions": ("transactions", [("createdAt", -1)]),
    "products": ("products", [("createdAt", -1)]),
}


class Subscription:
    """
    Cancellable live query.

    Pushes a full snapshot on start and again after every change.
    A failure is logged and reported once through on_error; there is no retry.
    """

    def __init__(
        self,
        name: str,
        fetch_snapshot: Callable[[], Awaitable[list]],
        open_changes: Callable,
        on_snapshot: Callable[[list], Awaitable[None]],
        on_error: Optional[Callable[[Exception], Awaitable[None]]] = None,
    ):
        self.name = name
        self._fetch_snapshot = fetch_snapshot
        self._open_changes = open_changes
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._task: Optional[asyncio.Task] = None

    def start(self) -> "Subscription":
        self._task = asyncio.create_task(self._run())
        return self

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self):
        if self.active:
            self._task.cancel()

    async def wait(self):
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _run(self):
        try:
            await self._on_snapshot(await self._fetch_snapshot())

            async with self._open_changes() as stream:
                async for _ in stream:
                    await self._on_snapshot(await self._fetch_snapshot())

        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Subscription %s failed", self.name)
            if self._on_error:
                try:
                    await self._on_error(e)
                except Exception:
                    logger.exception("Subscription %s error handler failed", self.name)


def watch_collection(
    db,
    collection_name: str,
    on_snapshot,
    on_error=None,
    query: Optional[dict] = None,
    sort: Optional[list] = None,
) -> Subscription:
    collection = db[collection_name]

    async def fetch_snapshot():
        cursor = collection.find(query or {})
        if sort:
            cursor = cursor.sort(sort)
        return serialize_docs(await cursor.to_list(length=SNAPSHOT_LIMIT))

    def open_changes():
        # requires a replica set; standalone servers fail here and report via on_error
        return collection.watch()

    return Subscription(
        collection_name,
        fetch_snapshot,
        open_changes,
        on_snapshot,
        on_error,
    ).start()


def watch_feed(db, feed: str, on_snapshot, on_error=None) -> Subscription:
    collection_name, sort = LIVE_FEEDS[feed]
    return watch_collection(db, collection_name, on_snapshot, on_error, sort=sort)
