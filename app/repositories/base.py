from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession


class BaseRepository:
    """Thin base class that holds the database session.

    Every concrete repository receives an ``AsyncSession`` at
    construction time so that multiple repositories can share the same
    unit-of-work within a single request.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def flush(self) -> None:
        """Flush pending changes without committing."""
        await self._db.flush()

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self._db.commit()

    async def rollback(self) -> None:
        """Roll back the current transaction."""
        await self._db.rollback()


RepoT = TypeVar("RepoT", bound=BaseRepository)


@asynccontextmanager
async def repository_scope(
    session_factory: Callable[..., AsyncSession], repo_cls: Type[RepoT]
) -> AsyncIterator[RepoT]:
    """Yield a repository bound to its own, short-lived session.

    An ``AsyncSession`` must not be shared between concurrently running
    coroutines, so bulk operations and parallel workload reads open one
    scope per item.
    """
    async with session_factory() as session:
        yield repo_cls(session)
