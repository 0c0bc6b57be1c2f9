# backend/artspace/core/config.py
import logging
import os
from pathlib import Path
from typing import FrozenSet, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import BRAND_NAME, DEFAULT_CURRENCY, DEFAULT_SLOT_MINUTES, MIN_SLOT_MINUTES


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    app_name: str = BRAND_NAME
    environment: Literal["development", "test", "staging", "production"] = "development"
    log_level: str = Field(default="INFO", description="Root log level for the API process")

    # Persistence
    database_url: str = Field(
        default="sqlite:///./artspace.db",
        description="SQLAlchemy URL for the booking ledger and resource catalog",
    )
    test_database_url: Optional[str] = Field(
        default=None,
        description="Optional override used by the test-suite (defaults to in-memory SQLite)",
    )
    sql_echo: bool = False

    # Redis is optional: without it booking locks are process-local only
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis URL for cross-process booking locks and the Celery broker",
    )
    lock_namespace: str = "artspace"
    booking_lock_ttl_seconds: int = Field(default=30, ge=1)
    booking_lock_wait_seconds: float = Field(
        default=5.0,
        ge=0,
        description="How long a writer waits for a busy resource before giving up",
    )

    # Booking rules
    default_currency: str = DEFAULT_CURRENCY
    default_slot_minutes: int = Field(
        default=DEFAULT_SLOT_MINUTES, ge=MIN_SLOT_MINUTES, le=24 * 60
    )
    max_availability_days: int = Field(
        default=62,
        ge=1,
        description="Largest date range a single availability query may cover",
    )
    pending_booking_ttl_minutes: Optional[int] = Field(
        default=None,
        ge=1,
        description="Cancel unpaid PENDING bookings older than this; unset disables expiry",
    )
    admin_roles: str = Field(
        default="staff,org_admin,super_admin",
        description="Comma-separated roles allowed to manage any booking in their organization",
    )

    # Payment processor callbacks are signed with this shared secret
    payment_webhook_secret: Optional[SecretStr] = Field(
        default=None,
        description="Shared secret for X-Payment-Signature; callbacks are refused while unset",
    )

    # Metrics
    metrics_enabled: bool = True

    is_testing: bool = False  # Set to True when running tests

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("default_currency")
    @classmethod
    def _normalize_currency(cls, value: str) -> str:
        cleaned = (value or "").strip().upper()
        if len(cleaned) != 3:
            raise ValueError("default_currency must be a 3-letter ISO 4217 code")
        return cleaned

    def get_database_url(self) -> str:
        """Return the URL the engine should bind to for the current mode."""
        if self.is_testing or is_running_tests():
            return self.test_database_url or "sqlite+pysqlite:///:memory:"
        return self.database_url

    @property
    def admin_role_set(self) -> FrozenSet[str]:
        return frozenset(part.strip() for part in self.admin_roles.split(",") if part.strip())

    @property
    def pending_expiry_enabled(self) -> bool:
        return self.pending_booking_ttl_minutes is not None


settings = Settings()
