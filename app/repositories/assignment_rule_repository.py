from typing import Any, List, Optional

from sqlalchemy import select

from app.models.assignment_rule import AssignmentRule
from app.repositories.base import BaseRepository


class AssignmentRuleRepository(BaseRepository):
    """Encapsulates queries against the ``assignment_rules`` table."""

    async def list_all(self) -> List[AssignmentRule]:
        result = await self._db.execute(
            select(AssignmentRule).order_by(AssignmentRule.priority, AssignmentRule.id)
        )
        return list(result.scalars().all())

    async def get_active_by_entity(self, entity: str) -> List[AssignmentRule]:
        """Active rules for *entity*, lowest priority first.

        ``id`` is the secondary sort key so equal priorities keep their
        creation order.
        """
        result = await self._db.execute(
            select(AssignmentRule)
            .where(
                AssignmentRule.entity == entity,
                AssignmentRule.is_active.is_(True),
            )
            .order_by(AssignmentRule.priority, AssignmentRule.id)
        )
        return list(result.scalars().all())

    async def get_by_id(self, rule_id: int) -> Optional[AssignmentRule]:
        result = await self._db.execute(
            select(AssignmentRule).where(AssignmentRule.id == rule_id)
        )
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> AssignmentRule:
        rule = AssignmentRule(**kwargs)
        self._db.add(rule)
        await self._db.flush()
        return rule

    async def delete(self, rule: AssignmentRule) -> None:
        await self._db.delete(rule)
