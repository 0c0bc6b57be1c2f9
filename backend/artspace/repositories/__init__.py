"""
Repository layer for the Artspace booking core.

Repositories own all SQLAlchemy queries; services own transactions.
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .resource_repository import ResourceRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "RepositoryFactory",
    "ResourceRepository",
]
