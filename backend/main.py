from dotenv import load_dotenv
load_dotenv()

import asyncio
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from database import get_db

# ENV
from config.env import ENV, CORS_ALLOWED_ORIGINS, LOG_LEVEL, validate_production_env

# ROUTES
from routes.categories import router as categories_router
from routes.products import router as products_router
from routes.uploads import router as uploads_router
from routes.drafts import router as drafts_router
from routes.payouts import router as payouts_router
from routes.pro_sellers import router as pro_sellers_router
from routes.storefront import router as storefront_router
from routes.bumps import router as bumps_router
from routes.users import router as users_router
from routes.notifications import router as notifications_router

# WORKERS
from utils.indexes import ensure_indexes
from workers.bump_expiry_worker import bump_expiry_worker

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

validate_production_env()
logger.info("ENV: %s", ENV)

app = FastAPI(
    title="Marketplace Panels API",
    version="1.0.0",
    docs_url=None if ENV == "production" else "/docs",
    redoc_url=None if ENV == "production" else "/redoc",
    openapi_url=None if ENV == "production" else "/openapi.json",
)

# -----------------------------
# CORS
# -----------------------------

allowed_origins = [origin.strip() for origin in CORS_ALLOWED_ORIGINS if origin.strip()]
if not allowed_origins:
    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------
# ROUTES
# -----------------------------

app.include_router(categories_router, prefix="/api")
app.include_router(products_router, prefix="/api")
app.include_router(uploads_router, prefix="/api")
app.include_router(drafts_router, prefix="/api")
app.include_router(payouts_router, prefix="/api")
app.include_router(pro_sellers_router, prefix="/api")
app.include_router(storefront_router, prefix="/api")
app.include_router(bumps_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(notifications_router, prefix="/api")

# -----------------------------
# HEALTH CHECKS
# -----------------------------

@app.get("/api/health")
async def health():
    return {"status": "ok"}

@app.get("/api/health/db")
async def health_db():
    db = get_db()
    await db.command("ping")
    return {"status": "mongodb connected"}

# -----------------------------
# STARTUP (INDEXES + WORKERS)
# -----------------------------

@app.on_event("startup")
async def start_background_workers():
    await ensure_indexes(get_db())
    asyncio.create_task(bump_expiry_worker())
