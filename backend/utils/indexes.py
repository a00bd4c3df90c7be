import logging

from pymongo import ASCENDING, DESCENDING
from pymongo.errors import OperationFailure

logger = logging.getLogger(__name__)

# IndexOptionsConflict / IndexKeySpecsConflict
_CONFLICT_CODES = {85, 86}


async def _create_index_safe(collection, keys, **kwargs):
    """
    Create index; when an index on the same key pattern exists under another
    name or with other options, drop it and recreate.
    """
    try:
        await collection.create_index(keys, **kwargs)
        return
    except OperationFailure as e:
        if getattr(e, "code", None) not in _CONFLICT_CODES:
            raise

    desired_key = list(keys)
    async for idx in collection.list_indexes():
        name = idx.get("name")
        if list(idx.get("key", {}).items()) == desired_key and name != kwargs.get("name"):
            logger.warning("Dropping conflicting index %s on %s", name, collection.name)
            await collection.drop_index(name)

    await collection.create_index(keys, **kwargs)


async def ensure_indexes(db):
    # Users
    await _create_index_safe(
        db.users,
        [("uid", ASCENDING)],
        name="users_uid_unique_idx",
        unique=True,
    )
    await _create_index_safe(
        db.users,
        [("email", ASCENDING)],
        name="users_email_unique_idx",
        unique=True,
        sparse=True,
    )

    # Drafts: one per owner and key
    await _create_index_safe(
        db.drafts,
        [("ownerId", ASCENDING), ("key", ASCENDING)],
        name="drafts_owner_key_unique_idx",
        unique=True,
    )

    # Products
    await _create_index_safe(
        db.products,
        [("sellerId", ASCENDING), ("createdAt", DESCENDING)],
        name="products_seller_created_idx",
    )
    await _create_index_safe(
        db.products,
        [("status", ASCENDING), ("createdAt", DESCENDING)],
        name="products_status_created_idx",
    )
    await _create_index_safe(
        db.products,
        [("isBumped", ASCENDING), ("bumpExpiry", ASCENDING)],
        name="products_bump_expiry_idx",
    )

    # Bumps
    await _create_index_safe(
        db.productBumps,
        [("productId", ASCENDING), ("bumpedAt", DESCENDING)],
        name="product_bumps_product_idx",
    )

    # Storefront
    await _create_index_safe(
        db.featuredProducts,
        [("productId", ASCENDING)],
        name="featured_products_product_unique_idx",
        unique=True,
    )
    await _create_index_safe(
        db.trendingItems,
        [("category", ASCENDING), ("addedAt", ASCENDING)],
        name="trending_items_category_idx",
    )

    # Feeds
    await _create_index_safe(
        db.notifications,
        [("createdAt", DESCENDING)],
        name="notifications_created_idx",
    )
    await _create_index_safe(
        db.transactions,
        [("status", ASCENDING), ("createdAt", DESCENDING)],
        name="transactions_status_created_idx",
    )
    await _create_index_safe(
        db.audit_logs,
        [("actorId", ASCENDING), ("createdAt", DESCENDING)],
        name="audit_logs_actor_created_idx",
    )
