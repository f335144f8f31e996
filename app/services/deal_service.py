"""Deal lifecycle: creation, stage transitions and pipeline analytics."""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import AsyncContextManager, Callable, List, Optional, Tuple

from pydantic import TypeAdapter

from app.core.cache import CacheService
from app.core.config import settings
from app.core.constants import AUTO_ASSIGNED_BY
from app.core.exceptions import DealNotFoundError
from app.models.deal import Deal
from app.repositories.deal_repository import DealRepository
from app.schemas.assignment import AssignmentDecision
from app.schemas.common import BulkResult, DealStage, EntityType
from app.schemas.deal import (
    DealCreate,
    DealUpdate,
    PipelineMetrics,
    StageDurationAnalytics,
    StageHistoryEntry,
)
from app.services.auto_assignment import AssignmentOrchestrator, record_assignment
from app.services.bulk import run_bulk
from app.services.stage_history import StageHistoryTracker, stage_duration_analytics

logger = logging.getLogger(__name__)

DealScope = Callable[[], AsyncContextManager[DealRepository]]

STAGE_ANALYTICS_CACHE_KEY = "analytics:deal_stage_durations"
_ANALYTICS_ADAPTER = TypeAdapter(StageDurationAnalytics)


class DealService:
    def __init__(
        self,
        deal_repo: DealRepository,
        orchestrator: AssignmentOrchestrator,
        deal_scope: DealScope,
        cache: Optional[CacheService] = None,
        stage_tracker: Optional[StageHistoryTracker] = None,
    ) -> None:
        self._deal_repo = deal_repo
        self._orchestrator = orchestrator
        self._deal_scope = deal_scope
        self._cache = cache or CacheService()
        self._stages = stage_tracker or StageHistoryTracker()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_deals(self) -> List[Deal]:
        try:
            return await self._deal_repo.list_all()
        except Exception:
            logger.error("Failed to list deals", exc_info=True)
            return []

    async def list_by_stage(self, stage: DealStage) -> List[Deal]:
        try:
            return await self._deal_repo.list_by_stage(stage.value)
        except Exception:
            logger.error("Failed to list %s deals", stage.value, exc_info=True)
            return []

    async def list_by_owner(self, owner_id: int) -> List[Deal]:
        try:
            return await self._deal_repo.list_by_owner(owner_id)
        except Exception:
            logger.error("Failed to list deals for %s", owner_id, exc_info=True)
            return []

    async def get_deal(self, deal_id: int) -> Deal:
        deal = await self._deal_repo.get_by_id(deal_id)
        if deal is None:
            raise DealNotFoundError(f"Deal {deal_id} not found")
        return deal

    async def get_stage_history(self, deal_id: int) -> List[StageHistoryEntry]:
        deal = await self.get_deal(deal_id)
        return list(deal.stage_history or [])

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_deal(
        self,
        data: DealCreate,
        created_by: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[Deal, Optional[AssignmentDecision]]:
        now = now or datetime.now(timezone.utc)
        decision: Optional[AssignmentDecision] = None
        owner = data.deal_owner
        assignment_history = []

        if owner is not None:
            assignment_history = record_assignment(
                [], owner, reason="Manual assignment", assigned_by=created_by, now=now
            )
        else:
            decision = await self._orchestrator.auto_assign(
                EntityType.deals, data.model_dump(mode="json", exclude={"deal_owner"})
            )
            if decision is not None:
                owner = decision.assigned_to
                assignment_history = record_assignment(
                    [], owner, reason=decision.reason, rule_used=decision.rule_used,
                    assigned_by=AUTO_ASSIGNED_BY, now=now,
                )

        deal = await self._deal_repo.create(
            title=data.title,
            amount=data.amount,
            stage=data.stage.value,
            probability=data.probability,
            close_date=data.close_date,
            notes=data.notes,
            deal_owner=owner,
            contact_id=data.contact_id,
            tags=list(data.tags),
            stage_history=self._stages.open_history(data.stage, now),
            assignment_history=assignment_history,
            created_at=now,
            updated_at=now,
        )
        await self._deal_repo.commit()
        await self._cache.delete(STAGE_ANALYTICS_CACHE_KEY)
        logger.info("Created deal %s in stage %s", deal.id, deal.stage)
        return deal, decision

    async def update_deal(
        self, deal_id: int, data: DealUpdate, updated_by: Optional[int] = None
    ) -> Deal:
        """Apply a partial update.  The stage can only change via
        :meth:`transition_stage`."""
        deal = await self.get_deal(deal_id)
        for name in data.model_fields_set:
            value = getattr(data, name)
            if name == "deal_owner":
                if value is not None:
                    deal.assignment_history = record_assignment(
                        deal.assignment_history, value, reason="Manual assignment",
                        assigned_by=updated_by,
                    )
                deal.deal_owner = value
            elif name == "tags":
                deal.tags = list(value or [])
            elif value is None and name in ("title", "amount", "probability"):
                continue
            else:
                setattr(deal, name, value)
        await self._deal_repo.commit()
        return deal

    def _advance(self, deal: Deal, new_stage: DealStage, now: datetime) -> None:
        deal.stage_history = self._stages.transition(deal.stage_history, new_stage, now)
        deal.stage = new_stage.value

    async def transition_stage(
        self, deal_id: int, new_stage: DealStage, now: Optional[datetime] = None
    ) -> Deal:
        """Move a deal to *new_stage*, closing the current history entry.

        Re-entering the current stage still closes the open entry and
        starts a new one.
        """
        now = now or datetime.now(timezone.utc)
        deal = await self.get_deal(deal_id)
        previous = deal.stage
        self._advance(deal, new_stage, now)
        await self._deal_repo.commit()
        await self._cache.delete(STAGE_ANALYTICS_CACHE_KEY)
        logger.info("Deal %s moved %s -> %s", deal_id, previous, new_stage.value)
        return deal

    async def bulk_update_stage(self, ids: List[int], new_stage: DealStage) -> BulkResult:
        now = datetime.now(timezone.utc)

        async def move(deal_id: int) -> None:
            async with self._deal_scope() as repo:
                deal = await repo.get_by_id(deal_id)
                if deal is None:
                    raise DealNotFoundError(f"Deal {deal_id} not found")
                self._advance(deal, new_stage, now)
                await repo.commit()

        result = await run_bulk(ids, move, "Deal stage update")
        await self._cache.delete(STAGE_ANALYTICS_CACHE_KEY)
        return result

    async def bulk_assign(
        self, ids: List[int], owner_id: int, assigned_by: Optional[int] = None
    ) -> BulkResult:
        now = datetime.now(timezone.utc)

        async def assign(deal_id: int) -> None:
            async with self._deal_scope() as repo:
                deal = await repo.get_by_id(deal_id)
                if deal is None:
                    raise DealNotFoundError(f"Deal {deal_id} not found")
                deal.assignment_history = record_assignment(
                    deal.assignment_history, owner_id, reason="Bulk assignment",
                    assigned_by=assigned_by, now=now,
                )
                deal.deal_owner = owner_id
                await repo.commit()

        return await run_bulk(ids, assign, "Deal bulk assignment")

    async def delete_deal(self, deal_id: int) -> None:
        deal = await self.get_deal(deal_id)
        await self._deal_repo.delete(deal)
        await self._deal_repo.commit()
        await self._cache.delete(STAGE_ANALYTICS_CACHE_KEY)
        logger.info("Deleted deal %s", deal_id)

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    async def stage_duration_analytics(
        self, now: Optional[datetime] = None
    ) -> StageDurationAnalytics:
        """Average time per stage; empty analytics if the store fails.

        Results are cached for ``REDIS_CACHE_TTL`` seconds unless *now*
        is given explicitly.
        """
        if now is None:
            cached = await self._cache.get_model(
                STAGE_ANALYTICS_CACHE_KEY, _ANALYTICS_ADAPTER
            )
            if cached is not None:
                return cached

        try:
            deals = await self._deal_repo.list_all()
        except Exception:
            logger.error("Failed to load deals for stage analytics", exc_info=True)
            return StageDurationAnalytics()

        analytics = stage_duration_analytics(deals, now)
        if now is None:
            await self._cache.set_model(
                STAGE_ANALYTICS_CACHE_KEY,
                analytics,
                _ANALYTICS_ADAPTER,
                ttl=settings.REDIS_CACHE_TTL,
            )
        return analytics

    async def pipeline_metrics(self) -> PipelineMetrics:
        try:
            deals = await self._deal_repo.list_all()
        except Exception:
            logger.error("Failed to load deals for pipeline metrics", exc_info=True)
            return PipelineMetrics()

        total_value = sum(d.amount or 0 for d in deals)
        weighted_value = sum((d.amount or 0) * (d.probability or 0) / 100 for d in deals)
        return PipelineMetrics(
            total_value=total_value,
            weighted_value=weighted_value,
            total_deals=len(deals),
            stage_distribution=dict(Counter(d.stage for d in deals)),
        )
