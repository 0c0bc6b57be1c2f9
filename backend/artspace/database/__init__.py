"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.config import settings

logger = logging.getLogger(__name__)

# PostgreSQL in production: keep the pool small and fail fast when exhausted
# so a slow booking write surfaces as an error instead of a pile-up.
_POSTGRES_POOL_KWARGS: dict[str, Any] = {
    "pool_size": 5,
    "max_overflow": 5,
    "pool_timeout": 5,
    "pool_recycle": 300,
    "pool_pre_ping": True,
}

_POSTGRES_CONNECT_ARGS: dict[str, Any] = {
    "connect_timeout": 5,
    "options": "-c statement_timeout=15000",
    "application_name": "artspace_booking",
}


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Pick pool and connect arguments for the dialect in ``db_url``."""
    kwargs: dict[str, Any] = {"echo": settings.sql_echo, "future": True}
    if db_url.startswith("sqlite"):
        # Booking writes run in worker threads (asyncio.to_thread), so the
        # SQLite connection must be shareable across threads.
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in db_url:
            kwargs["poolclass"] = StaticPool
        return kwargs

    kwargs.update(_POSTGRES_POOL_KWARGS)
    kwargs["connect_args"] = dict(_POSTGRES_CONNECT_ARGS)
    return kwargs


db_url = settings.get_database_url()
engine: Engine = create_engine(db_url, **_build_engine_kwargs(db_url))


@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    connection_record.info["connect_time"] = datetime.now()
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Create all tables. Used for local development and the test-suite."""
    # Import models so their tables are registered on Base.metadata
    from .. import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
