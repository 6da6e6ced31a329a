"""
coinvault.api.main — FastAPI application entry point
=====================================================

Run with::

    uvicorn coinvault.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from coinvault.api.deps import get_engine  # noqa: E402
from coinvault.api.routes.admin import router as admin_router  # noqa: E402
from coinvault.api.routes.challenges import router as challenges_router  # noqa: E402
from coinvault.api.routes.rewards import router as rewards_router  # noqa: E402
from coinvault.api.routes.wallet import router as wallet_router  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Allowed CORS origins from CORS_ALLOW_ORIGINS (comma-separated)."""
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]
    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine."""
    engine = get_engine()
    logger.info("Coinvault API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("Coinvault API shutting down")


app = FastAPI(
    title="Coinvault API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount routers
app.include_router(challenges_router, prefix="/api")
app.include_router(rewards_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(wallet_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
