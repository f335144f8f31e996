from typing import Any, List, Optional

from sqlalchemy import select

from app.models.deal import Deal
from app.repositories.base import BaseRepository


class DealRepository(BaseRepository):
    """Encapsulates every SQL query that touches the ``deals`` table."""

    async def get_by_id(self, deal_id: int) -> Optional[Deal]:
        """Return a single deal by primary key, or ``None``."""
        result = await self._db.execute(select(Deal).where(Deal.id == deal_id))
        return result.scalar_one_or_none()

    async def list_all(self) -> List[Deal]:
        result = await self._db.execute(select(Deal).order_by(Deal.id))
        return list(result.scalars().all())

    async def list_by_stage(self, stage: str) -> List[Deal]:
        result = await self._db.execute(
            select(Deal).where(Deal.stage == stage).order_by(Deal.id)
        )
        return list(result.scalars().all())

    async def list_by_owner(self, owner_id: int) -> List[Deal]:
        result = await self._db.execute(
            select(Deal).where(Deal.deal_owner == owner_id).order_by(Deal.id)
        )
        return list(result.scalars().all())

    async def create(self, **kwargs: Any) -> Deal:
        """Insert a new deal and return the model instance."""
        deal = Deal(**kwargs)
        self._db.add(deal)
        await self._db.flush()
        return deal

    async def delete(self, deal: Deal) -> None:
        await self._db.delete(deal)
