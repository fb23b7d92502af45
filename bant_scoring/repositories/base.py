from typing import Any, List, Optional, TypeVar

from sqlalchemy import Select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository:
    """Holds the session shared by every repository of a unit of work.

    Nothing here commits: writes are flushed so generated values and
    constraint violations surface early, and the owning
    :class:`ScoringUnitOfWork` decides whether they become durable.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def _add(self, instance: T) -> T:
        self._db.add(instance)
        await self._db.flush()
        return instance

    async def _scalar(self, query: Select) -> Optional[Any]:
        result = await self._db.execute(query)
        return result.scalar_one_or_none()

    async def _scalars(self, query: Select) -> List[Any]:
        result = await self._db.execute(query)
        return list(result.scalars().all())
