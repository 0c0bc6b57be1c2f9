# backend/artspace/repositories/factory.py
"""
Repository Factory for the Artspace booking core.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .resource_repository import ResourceRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_resource_repository(db: Session) -> "ResourceRepository":
        """Create repository for the resource catalog."""
        from .resource_repository import ResourceRepository

        return ResourceRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for the booking ledger."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)
