"""
Base repository with generic CRUD operations.
"""

import uuid
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from autojournal.models.db import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Generic repository providing CRUD operations for a model."""

    def __init__(self, model: Type[ModelType], session: Session):
        self.model = model
        self.session = session

    def get(self, id: uuid.UUID) -> Optional[ModelType]:
        """
        Get a record by primary key.

        Args:
            id: Record UUID

        Returns:
            Model instance or None
        """
        return self.session.get(self.model, id)

    def get_all(self, limit: Optional[int] = None, offset: int = 0) -> List[ModelType]:
        """
        Get all records with optional pagination.

        Args:
            limit: Maximum number of records to return
            offset: Number of records to skip

        Returns:
            List of model instances
        """
        query = self.session.query(self.model).offset(offset)
        if limit:
            query = query.limit(limit)
        return query.all()

    def create(self, **kwargs: Any) -> ModelType:
        """
        Create and flush a new record.

        Args:
            **kwargs: Model field values

        Returns:
            Created model instance
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        self.session.flush()
        self.session.refresh(instance)
        return instance

    def update(self, id: uuid.UUID, **kwargs: Any) -> Optional[ModelType]:
        """
        Update fields on an existing record.

        Args:
            id: Record UUID
            **kwargs: Field values to set

        Returns:
            Updated model instance or None if not found
        """
        instance = self.get(id)
        if instance is None:
            return None
        for key, value in kwargs.items():
            setattr(instance, key, value)
        self.session.flush()
        self.session.refresh(instance)
        return instance

    def delete(self, id: uuid.UUID) -> bool:
        """
        Delete a record.

        Args:
            id: Record UUID

        Returns:
            True if a record was deleted
        """
        instance = self.get(id)
        if instance is None:
            return False
        self.session.delete(instance)
        self.session.flush()
        return True

    def count(self) -> int:
        """Count all records."""
        return self.session.query(self.model).count()
