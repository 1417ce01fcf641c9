"""
Base repository.

Reads always repopulate identity-map instances from the database: balances
and statuses are changed by UPDATE statements that bypass loaded objects,
so a cached instance must never stand in for the stored row.

Writes are staged in the session; repositories never commit.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import Update, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Repository over one model.

    Example:
        class UserRepository(BaseRepository[User]):
            def __init__(self, session: AsyncSession):
                super().__init__(User, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        self.model = model
        self.session = session

    async def get_by_id(self, id: Any) -> ModelType | None:
        """Get entity by primary key, fresh from the store."""
        return await self.session.get(
            self.model, id, populate_existing=True
        )

    async def create(self, **data: Any) -> ModelType:
        """
        Stage new entity in the current unit of work.

        Flushed so constraint violations surface here, not committed.

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
        """Check if any row matches the column filters."""
        stmt = select(exists().where(*(
            getattr(self.model, column) == value
            for column, value in filters.items()
        )))
        result = await self.session.execute(stmt)
        return bool(result.scalar())

    async def _apply(self, stmt: Update) -> bool:
        """
        Run an UPDATE without touching loaded instances.

        Args:
            stmt: UPDATE statement, usually with a guard in its WHERE clause

        Returns:
            True if at least one row matched
        """
        result = await self.session.execute(
            stmt.execution_options(synchronize_session=False)
        )
        return result.rowcount > 0
