"""
Nova Tutor v9.0 - Database Engine
SQLAlchemy setup. Works with SQLite (dev) and PostgreSQL (prod).
"""

import logging
import os

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

from nova_tutor.config import DATABASE_URL

logger = logging.getLogger("nova.database")

# Set RESET_DATABASE=true to drop all tables and recreate
RESET_DATABASE = os.getenv("RESET_DATABASE", "false").lower() == "true"


# ─── Engine Setup ────────────────────────────────────────────────────────────

def make_engine(url: str = DATABASE_URL):
    if url.startswith("sqlite"):
        # Single shared connection; usage ledgers are written from timer callbacks too
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, _connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

        return engine

    return create_engine(
        url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        echo=False,
    )


engine = make_engine()


# ─── Session Factory ─────────────────────────────────────────────────────────

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


# ─── Base Class ──────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


# ─── Dependency ──────────────────────────────────────────────────────────────

def get_db():
    """FastAPI dependency: yields a database session, auto-closes."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create all tables. Called once at startup."""
    # Models must be imported so their tables are registered on Base
    from nova_tutor import models  # noqa: F401

    bind = bind or engine
    if RESET_DATABASE:
        logger.warning("RESET_DATABASE=true, dropping all tables!")
        Base.metadata.drop_all(bind=bind)

    Base.metadata.create_all(bind=bind)
