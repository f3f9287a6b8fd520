"""
Base repository.

Shared query helpers for single-primary-key models. Rows are never deleted
through repositories; ledger tables are append-only.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, select
from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository.

    Example:
        class MemberRepository(BaseRepository[Member]):
            def __init__(self, session: AsyncSession):
                super().__init__(Member, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    @property
    def _pk(self) -> ColumnElement[Any]:
        """First primary key column of the model."""
        return self.model.__mapper__.primary_key[0]

    async def get_by_id(self, id: Any) -> ModelType | None:
        """
        Get entity by primary key (identity map first).

        Args:
            id: Primary key value, or a tuple for composite keys

        Returns:
            Entity or None if not found
        """
        return await self.session.get(self.model, id)

    async def get_for_update(self, id: Any) -> ModelType | None:
        """
        Get entity by primary key with a row lock (SELECT ... FOR UPDATE).

        The lock lasts until the caller's transaction ends.

        Args:
            id: Primary key value

        Returns:
            Entity or None if not found
        """
        stmt = select(self.model).where(self._pk == id).with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by(self, **filters: Any) -> ModelType | None:
        """
        Get the first entity matching column filters.

        Args:
            **filters: Column filters

        Returns:
            Entity or None
        """
        stmt = select(self.model).filter_by(**filters).limit(1)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create(self, **data: Any) -> ModelType:
        """
        Add a new entity and flush it so generated keys are populated.

        The caller owns the transaction.

        Args:
            **data: Column values

        Returns:
            Created entity
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def exists(self, **filters: Any) -> bool:
        """
        Check whether any entity matches column filters.

        Args:
            **filters: Column filters

        Returns:
            True if at least one row matches
        """
        criteria = [
            getattr(self.model, name) == value
            for name, value in filters.items()
        ]
        stmt = select(self._pk).where(*criteria).limit(1)
        result = await self.session.execute(stmt)
        return result.first() is not None
