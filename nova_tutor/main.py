"""
Nova Tutor v9.0 - Main Application
FastAPI app. Mounts the tutor router and CORS.
Database initialization on startup.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nova_tutor.config import CORS_ORIGINS, LOG_LEVEL
from nova_tutor.database import init_db

logger = logging.getLogger("nova")


# ─── Lifespan (startup/shutdown) ─────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: logging + DB tables. Shutdown: nothing to clean."""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    logger.info("Initializing database...")
    init_db()

    logger.info("Nova Tutor v9.0.0 ready")
    yield
    logger.info("Shutting down")


# ─── App ─────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="Nova Tutor v9.0",
    description="Socratic math tutor for grades 1-5",
    version="9.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from nova_tutor.routers import tutor  # noqa: E402
app.include_router(tutor.router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": "9.0.0"}
