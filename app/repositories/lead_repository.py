from typing import Any, List, Optional

from sqlalchemy import select

from app.models.lead import Lead
from app.repositories.base import BaseRepository


class LeadRepository(BaseRepository):
    """Encapsulates every SQL query that touches the ``leads`` table."""

    async def get_by_id(self, lead_id: int) -> Optional[Lead]:
        """Return a single lead by primary key, or ``None``."""
        result = await self._db.execute(select(Lead).where(Lead.id == lead_id))
        return result.scalar_one_or_none()

    async def list_all(self) -> List[Lead]:
        result = await self._db.execute(select(Lead).order_by(Lead.id))
        return list(result.scalars().all())

    async def list_ids(self) -> List[int]:
        result = await self._db.execute(select(Lead.id).order_by(Lead.id))
        return list(result.scalars().all())

    async def list_by_assignee(self, assignee_id: int) -> List[Lead]:
        result = await self._db.execute(
            select(Lead).where(Lead.assigned_to == assignee_id).order_by(Lead.id)
        )
        return list(result.scalars().all())

    async def list_by_score(self) -> List[Lead]:
        """Return all leads, highest score first."""
        result = await self._db.execute(
            select(Lead).order_by(Lead.score.desc(), Lead.id)
        )
        return list(result.scalars().all())

    async def create(self, **kwargs: Any) -> Lead:
        """Insert a new lead and return the model instance."""
        lead = Lead(**kwargs)
        self._db.add(lead)
        await self._db.flush()
        return lead

    async def delete(self, lead: Lead) -> None:
        await self._db.delete(lead)
