"""
Base CRUD operations for SQLAlchemy models.

Provides generic create, read and partial-update operations that can be
inherited and extended by model-specific CRUD classes.

Dependencies: sqlalchemy, uuid
System role: Foundation for all database CRUD operations
"""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gofigure.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """
    Generic base class for CRUD operations.

    Updates are single UPDATE statements touching only the given columns, so
    concurrent writers that own different columns never clobber each other.
    Transactions are committed by the caller.

    Type Parameters:
        ModelT: SQLAlchemy model class inheriting from Base

    Attributes:
        model: The SQLAlchemy model class to operate on
    """

    def __init__(self, model: type[ModelT]) -> None:
        """
        Initialize CRUD with target model.

        Args:
            model: SQLAlchemy model class for database operations
        """
        self.model = model

    async def create(self, session: AsyncSession, **kwargs) -> ModelT:
        """
        Create a new record in the database.

        Args:
            session: Async database session
            **kwargs: Model field values

        Returns:
            Created model instance with generated ID and timestamps
        """
        instance = self.model(**kwargs)
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def get_by_id(self, session: AsyncSession, id: UUID) -> ModelT | None:
        """
        Retrieve a single record by primary key.

        Args:
            session: Async database session
            id: UUID primary key

        Returns:
            Model instance if found, None otherwise
        """
        stmt = select(self.model).where(self.model.id == id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def update_by_id(
        self,
        session: AsyncSession,
        id: UUID,
        **kwargs,
    ) -> ModelT | None:
        """
        Patch a record by primary key.

        Args:
            session: Async database session
            id: UUID primary key
            **kwargs: Fields to update with new values

        Returns:
            Updated model instance if found, None otherwise
        """
        return await self.update_where(session, id, (), **kwargs)

    async def update_where(
        self,
        session: AsyncSession,
        id: UUID,
        conditions: tuple[Any, ...],
        **kwargs,
    ) -> ModelT | None:
        """
        Patch a record only if extra preconditions hold (compare-and-swap).

        Args:
            session: Async database session
            id: UUID primary key
            conditions: Additional WHERE clauses that must all match
            **kwargs: Fields to update with new values

        Returns:
            Updated model instance, or None if the row is missing or a
            precondition did not match
        """
        stmt = (
            update(self.model)
            .where(self.model.id == id, *conditions)
            .values(**kwargs)
            .returning(self.model)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        instance = result.scalar_one_or_none()
        if instance is not None:
            # The identity map may hold a stale copy of this row.
            await session.refresh(instance)
        return instance
