# backend/config/constants.py

# -----------------------------
# FEES
# -----------------------------

# Applied silently when a category has no fee entry
DEFAULT_CATEGORY_FEE = {
    "minPrice": 1000,
    "maxPrice": None,               # None = unbounded
    "buyerProtectionRate": 0.08,
    "handlingRate": 0.20,
}

CATEGORY_FEES_DOC_ID = "categoryFees"
SIZE_TIER_FEES_DOC_ID = "defaultFees"

# Legacy size-tier table (admin "Edit Seller Fees")
DEFAULT_SIZE_TIER_FEES = {
    "Small": {"minPrice": 2000, "maxPrice": 2999, "buyerProtectionRate": 0.08, "handlingRate": 0.20},
    "Medium": {"minPrice": 3000, "maxPrice": 4999, "buyerProtectionRate": 0.085, "handlingRate": 0.12},
    "Large": {"minPrice": 5000, "maxPrice": 9999, "buyerProtectionRate": 0.09, "handlingRate": 0.39},
    "X-Large": {"minPrice": 10000, "maxPrice": None, "buyerProtectionRate": 0.095, "handlingRate": 0.30},
}
OPEN_ENDED_SIZE_TIER = "X-Large"

# -----------------------------
# PRODUCT UPLOAD LIMITS
# -----------------------------

MAX_IMAGES = 8
MAX_VIDEOS = 1
MAX_VARIANT_IMAGES = 4
MAX_IMAGE_SIZE = 5 * 1024 * 1024      # 5MB
MAX_VIDEO_SIZE = 10 * 1024 * 1024     # 10MB
MAX_COLOR_NAME_LENGTH = 20

# Categories where a size must be picked once a subcategory is chosen
SIZED_CATEGORIES = {
    "Clothing": "clothing",
    "Footwear": "footwear",
    "Perfumes": "perfume",
}

# -----------------------------
# STOREFRONT SETTINGS
# -----------------------------

DEFAULT_MINIMUM_PURCHASE = 25000
DEFAULT_SHIPPING_PERCENTAGE = 30      # percent; stored as a fraction

TRENDING_CATEGORIES = ("Fashion", "Gadgets")
MAX_TRENDING_ITEMS = 10                # per trending category

# -----------------------------
# BUMPS
# -----------------------------

BUMP_DURATIONS = {
    "3d": {"days": 3, "amount": 500},
    "6d": {"days": 6, "amount": 900},
}

# =========================================
# DRAFT KEYS (per panel)
# =========================================

SELLER_DRAFT_KEYS = (
    "sellerProductForm",
    "sellerLocationForm",
    "sellerProductImages",
    "sellerProductPreviews",
    "sellerProductVideos",
    "sellerProductVideoPreviews",
    "sellerVariantImages",
    "sellerVariantPreviews",
)

ADMIN_DRAFT_KEYS = (
    "adminProductForm",
    "adminLocationForm",
    "adminProductImages",
    "adminProductPreviews",
    "adminProductVideos",
    "adminProductVideoPreviews",
    "adminVariantImages",
    "adminVariantPreviews",
)
