"""Health check response schema."""

from typing import Literal

from .base import StandardizedModel


class HealthResponse(StandardizedModel):
    status: Literal["healthy", "degraded"]
    service: str
    version: str
    environment: str
    timestamp: str
    database: Literal["ok", "unavailable"]
