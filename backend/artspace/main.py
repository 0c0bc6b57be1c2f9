# backend/artspace/main.py
"""
Artspace booking API application.

Run locally with:
    uvicorn artspace.main:app --reload
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from .core.config import settings
from .core.constants import API_TITLE, API_VERSION, BRAND_NAME
from .database import engine, init_db
from .errors import register_error_handlers
from .routes.v1 import availability as availability_v1
from .routes.v1 import bookings as bookings_v1
from .routes.v1 import health as health_v1
from .routes.v1 import pricing as pricing_v1
from .routes.v1 import prometheus as prometheus_v1
from .routes.v1 import resources as resources_v1

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if settings.environment in ("development", "test"):
        # Local SQLite databases are created on demand
        init_db(engine)
    if settings.redis_url:
        logger.info("Cross-process booking locks enabled via Redis")
    else:
        logger.info("Redis not configured; booking locks are process-local")
    if settings.pending_expiry_enabled:
        logger.info(
            f"Unpaid pending bookings expire after {settings.pending_booking_ttl_minutes} minutes"
        )
    yield
    logger.info(f"{BRAND_NAME} API shutting down...")


def create_app() -> FastAPI:
    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )
    register_error_handlers(app)

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(availability_v1.router, prefix="/availability")
    api_v1.include_router(pricing_v1.router, prefix="/pricing")
    api_v1.include_router(bookings_v1.router, prefix="/bookings")
    api_v1.include_router(resources_v1.router, prefix="/resources")
    app.include_router(api_v1)

    app.include_router(health_v1.router)
    app.include_router(prometheus_v1.router)
    return app


app = create_app()
