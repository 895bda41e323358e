"""
Rankd API — FastAPI application entry point.

Routers are registered here. Each service lives in app/api/.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.api import placements, rankings
from app.api import taste as taste_api

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Rankd API",
    description="Rank watched movies and shows through head-to-head comparisons.",
    version="0.1.0",
    docs_url="/docs" if settings.ENABLE_DOCS else None,
    redoc_url="/redoc" if settings.ENABLE_DOCS else None,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(rankings.router,   prefix="/rankings",   tags=["rankings"])
app.include_router(placements.router, prefix="/placements", tags=["placements"])
app.include_router(taste_api.router,  prefix="/taste",      tags=["taste"])

logger.info(
    "Rankd API configured (env=%s, metadata backfill %s)",
    settings.APP_ENV,
    "enabled" if settings.backfill_enabled else "disabled",
)


# ── Health check ──────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
def health_check() -> dict:
    """Liveness probe. Returns 200 when the server is up."""
    return {"status": "ok", "version": app.version, "env": settings.APP_ENV}
