"""Versioned API routers mounted under /api/v1."""

from . import availability, bookings, health, pricing, prometheus, resources

__all__ = ["availability", "bookings", "health", "pricing", "prometheus", "resources"]
