"""
Base Repository - Generic repository with common CRUD operations.

This provides:
1. Generic CRUD operations for all models
2. Type safety with generics
3. Atomic counter updates that never read-modify-write
4. Async database operations
"""

from typing import Any, Dict, Generic, Optional, Type, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dropview.database import Base

# Generic type for any database model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository providing common CRUD operations.

    All specific repositories inherit from this and add their
    model-specific queries.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository with model type and database session.

        Args:
            model: The SQLAlchemy model class (User, Post, etc.)
            db: Async database session
        """
        self.model = model
        self.db = db

    async def create(self, obj_data: Dict[str, Any]) -> ModelType:
        """
        Create a new record.

        Args:
            obj_data: Dictionary of field values

        Returns:
            Created model instance
        """
        db_obj = self.model(**obj_data)
        self.db.add(db_obj)
        await self.db.commit()
        await self.db.refresh(db_obj)
        return db_obj

    async def get(self, id: int, fresh: bool = False) -> Optional[ModelType]:
        """
        Get a single record by ID.

        Args:
            id: Primary key value
            fresh: Reload every attribute even if the object is already
                in the session (use after bulk UPDATE/DELETE statements)

        Returns:
            Model instance or None if not found
        """
        query = select(self.model).where(self.model.id == id)
        if fresh:
            query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def update(self, id: int, obj_data: Dict[str, Any]) -> Optional[ModelType]:
        """
        Update a record by ID.

        Args:
            id: Primary key value
            obj_data: Dictionary of fields to update

        Returns:
            Updated model instance or None if not found
        """
        db_obj = await self.get(id)
        if not db_obj:
            return None

        for field, value in obj_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        await self.db.commit()
        await self.db.refresh(db_obj)
        return db_obj

    async def count(self) -> int:
        """Count every record of the model."""
        result = await self.db.execute(select(func.count(self.model.id)))
        return result.scalar() or 0

    async def exists(self, id: int) -> bool:
        """
        Check if record exists by ID.

        Args:
            id: Primary key value

        Returns:
            True if exists, False otherwise
        """
        result = await self.db.execute(select(self.model.id).where(self.model.id == id))
        return result.first() is not None

    async def increment(self, id: int, field: str, amount: int = 1) -> bool:
        """
        Atomically add ``amount`` to an integer column.

        Issues a single ``UPDATE ... SET field = field + amount`` so that
        concurrent increments never overwrite each other.

        Returns:
            True if a row was updated
        """
        column = getattr(self.model, field)
        result = await self.db.execute(
            update(self.model)
            .where(self.model.id == id)
            .values({field: column + amount})
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount > 0
