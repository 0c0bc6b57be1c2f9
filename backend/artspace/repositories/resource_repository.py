# backend/artspace/repositories/resource_repository.py
"""
Resource Repository for the Artspace booking core.

Reads of the resource catalog are always scoped to an organization and to
active, bookable resources. ``lock_for_update`` takes a row lock on the
resource when the dialect supports it so booking writes for the same
resource queue behind each other inside the database as well.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..database.session_utils import supports_row_locks
from ..models.resource import Resource
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ResourceRepository(BaseRepository[Resource]):
    """Data access for the resource catalog."""

    def __init__(self, db: Session):
        super().__init__(db, Resource)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            selectinload(Resource.pricing_rules),
            selectinload(Resource.operating_windows),
            selectinload(Resource.blackouts),
        )

    def _scoped(self, organization_id: str) -> Query:
        return self.db.query(Resource).filter(
            Resource.organization_id == organization_id,
            Resource.is_active.is_(True),
            Resource.is_bookable.is_(True),
        )

    def get_bookable_resource(self, organization_id: str, resource_id: str) -> Optional[Resource]:
        """
        Get an active, bookable resource belonging to ``organization_id``.

        Returns:
            The resource or None if it does not exist in this organization
        """
        try:
            query = self._scoped(organization_id).filter(Resource.id == resource_id)
            return self._apply_eager_loading(query).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading resource {resource_id}: {str(e)}")
            raise RepositoryException(f"Failed to load resource: {str(e)}")

    def lock_for_update(self, organization_id: str, resource_id: str) -> Optional[Resource]:
        """
        Load the resource row with ``SELECT ... FOR UPDATE``.

        On SQLite (tests, local dev) this is a plain read; serialization
        there comes from the process-level resource lock.
        """
        try:
            query = self._scoped(organization_id).filter(Resource.id == resource_id)
            if supports_row_locks(self.db):
                query = query.with_for_update(of=Resource)
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking resource {resource_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock resource: {str(e)}")

    def list_for_organization(self, organization_id: str) -> List[Resource]:
        """All bookable resources of an organization, ordered by title."""
        try:
            query = self._scoped(organization_id).order_by(Resource.title)
            return self._apply_eager_loading(query).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing resources for {organization_id}: {str(e)}")
            raise RepositoryException(f"Failed to list resources: {str(e)}")
