"""
Base repository with common CRUD operations.
All repositories should extend this class for database access.
"""
from typing import Generic, TypeVar, Type, Optional, List, Any, Iterable

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common CRUD operations.

    Provides generic database operations that can be reused across all repositories.
    Repositories only flush; the service that owns the mutation commits.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    async def create(self, **kwargs) -> ModelType:
        """
        Create a new record.

        Args:
            **kwargs: Model field values

        Returns:
            Created model instance

        Example:
            ```python
            user = await user_repo.create(external_id="auth|123", email="a@b.c", username="a")
            ```
        """
        instance = self.model(**kwargs)
        self.db.add(instance)
        await self.db.flush()
        await self.db.refresh(instance)
        return instance

    async def get(self, id: str) -> Optional[ModelType]:
        """
        Get a record by ID.

        Args:
            id: Record id

        Returns:
            Model instance or None if not found
        """
        result = await self.db.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def get_many(
        self,
        ids: Iterable[str],
        order_by: Optional[Any] = None
    ) -> List[ModelType]:
        """
        Get multiple records by IDs in one query.

        Args:
            ids: Record ids (duplicates are ignored)
            order_by: Optional SQLAlchemy order_by clause

        Returns:
            List of model instances
        """
        unique_ids = list(set(ids))
        if not unique_ids:
            return []

        query = select(self.model).where(self.model.id.in_(unique_ids))

        if order_by is not None:
            query = query.order_by(order_by)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update(self, instance: ModelType, **kwargs) -> ModelType:
        """
        Patch attributes on a loaded instance and flush.

        Args:
            instance: Loaded model instance
            **kwargs: Fields to update

        Returns:
            The same instance, updated
        """
        for key, value in kwargs.items():
            setattr(instance, key, value)
        await self.db.flush()
        return instance

    async def delete(self, id: str) -> bool:
        """
        Delete a record by ID (hard delete).

        Returns:
            True if deleted, False if not found
        """
        result = await self.db.execute(
            delete(self.model).where(self.model.id == id)
        )
        await self.db.flush()
        return result.rowcount > 0

    async def count(self, **filters) -> int:
        """
        Count records matching equality filters.

        Example:
            ```python
            count = await message_repo.count(conversation_id=conv_id)
            ```
        """
        query = select(func.count()).select_from(self.model)

        for key, value in filters.items():
            if hasattr(self.model, key):
                query = query.where(getattr(self.model, key) == value)

        result = await self.db.execute(query)
        return result.scalar()
