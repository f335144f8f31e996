"""Lead lifecycle: validation, auto-assignment, scoring and history."""

import logging
from datetime import datetime, timezone
from typing import AsyncContextManager, Callable, List, Optional, Tuple

from app.core.constants import AUTO_ASSIGNED_BY
from app.core.exceptions import InvalidLeadDataError, LeadNotFoundError
from app.models.lead import Lead
from app.repositories.lead_repository import LeadRepository
from app.schemas.assignment import AssignmentDecision
from app.schemas.common import BulkResult, EntityType
from app.schemas.lead import (
    LeadCreate,
    LeadUpdate,
    QualificationChecklist,
    ScoreBreakdown,
    ScoringConfigOut,
)
from app.services.auto_assignment import AssignmentOrchestrator, record_assignment
from app.services.bulk import run_bulk
from app.services.lead_scoring import LeadScorer
from app.services.score_history import ScoreHistoryTracker

logger = logging.getLogger(__name__)

LeadScope = Callable[[], AsyncContextManager[LeadRepository]]

# Sent as null on update, these keep their stored value.
_NON_NULL_FIELDS = frozenset({"source", "stage"})


class LeadService:
    """Creates, updates and re-scores leads.

    Every write recomputes the score from the stored fields; a score
    supplied by the caller is ignored.  Bulk operations run each lead in
    its own session obtained from *lead_scope*.
    """

    def __init__(
        self,
        lead_repo: LeadRepository,
        orchestrator: AssignmentOrchestrator,
        lead_scope: LeadScope,
        scorer: Optional[LeadScorer] = None,
        score_history: Optional[ScoreHistoryTracker] = None,
    ) -> None:
        self._lead_repo = lead_repo
        self._orchestrator = orchestrator
        self._lead_scope = lead_scope
        self._scorer = scorer or LeadScorer()
        self._score_history = score_history or ScoreHistoryTracker()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_leads(self) -> List[Lead]:
        try:
            return await self._lead_repo.list_all()
        except Exception:
            logger.error("Failed to list leads", exc_info=True)
            return []

    async def list_by_assignee(self, assignee_id: int) -> List[Lead]:
        try:
            return await self._lead_repo.list_by_assignee(assignee_id)
        except Exception:
            logger.error("Failed to list leads for %s", assignee_id, exc_info=True)
            return []

    async def list_by_score(self) -> List[Lead]:
        try:
            return await self._lead_repo.list_by_score()
        except Exception:
            logger.error("Failed to list leads by score", exc_info=True)
            return []

    async def get_lead(self, lead_id: int) -> Lead:
        lead = await self._lead_repo.get_by_id(lead_id)
        if lead is None:
            raise LeadNotFoundError(f"Lead {lead_id} not found")
        return lead

    async def score_breakdown(self, lead_id: int) -> ScoreBreakdown:
        return self._scorer.breakdown(await self.get_lead(lead_id))

    def scoring_config(self) -> ScoringConfigOut:
        return self._scorer.config()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_lead(
        self,
        data: LeadCreate,
        created_by: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[Lead, Optional[AssignmentDecision]]:
        """Persist a new lead.

        If no owner is given, the assignment engine picks one; a ``None``
        decision leaves the lead unassigned for manual follow-up.
        """
        now = now or datetime.now(timezone.utc)
        qualification = data.qualification or QualificationChecklist()

        decision: Optional[AssignmentDecision] = None
        assignment_history = []
        if data.assigned_to is not None:
            assignment_history = record_assignment(
                [], data.assigned_to, reason="Manual assignment",
                assigned_by=created_by, now=now,
            )
        else:
            decision = await self._orchestrator.auto_assign(
                EntityType.leads,
                data.model_dump(mode="json", exclude={"qualification", "assigned_to"}),
            )
            if decision is not None:
                assignment_history = record_assignment(
                    [], decision.assigned_to, reason=decision.reason,
                    rule_used=decision.rule_used, assigned_by=AUTO_ASSIGNED_BY, now=now,
                )

        fields = data.model_dump(exclude={"qualification", "tags", "stage"})
        fields["stage"] = data.stage.value
        if decision is not None:
            fields["assigned_to"] = decision.assigned_to

        score = self._scorer.score(
            {**fields, "qualification": qualification, "created_at": now, "updated_at": now},
            now=now,
        )
        lead = await self._lead_repo.create(
            **fields,
            qualification=qualification,
            tags=list(data.tags or []),
            assignment_history=assignment_history,
            score=score,
            score_history=self._score_history.append([], score, "Lead created", now),
            created_at=now,
            updated_at=now,
        )
        await self._lead_repo.commit()
        logger.info("Created lead %s with score %s", lead.id, score)
        return lead, decision

    async def update_lead(
        self,
        lead_id: int,
        data: LeadUpdate,
        updated_by: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Lead:
        """Merge *data* into the lead and re-score it.

        Only fields present in the request are applied.  A lead left
        without an owner (and not explicitly unassigned) is offered to
        the assignment engine again.
        """
        now = now or datetime.now(timezone.utc)
        changes = data.model_fields_set - {"score"}
        if any(getattr(data, name) is None for name in changes & {"title", "company"}):
            raise InvalidLeadDataError("Title and company are required")
        lead = await self.get_lead(lead_id)

        for name in changes:
            value = getattr(data, name)
            if value is None and name in _NON_NULL_FIELDS:
                continue
            if name == "assigned_to":
                if value is not None:
                    lead.assignment_history = record_assignment(
                        lead.assignment_history, value, reason="Manual assignment",
                        assigned_by=updated_by, now=now,
                    )
                lead.assigned_to = value
            elif name == "stage":
                lead.stage = value.value
            elif name == "qualification":
                lead.qualification = value or QualificationChecklist()
            elif name == "tags":
                lead.tags = list(value or [])
            else:
                setattr(lead, name, value)

        if lead.assigned_to is None and "assigned_to" not in changes:
            decision = await self._orchestrator.auto_assign(
                EntityType.leads, lead.to_fields()
            )
            if decision is not None:
                lead.assigned_to = decision.assigned_to
                lead.assignment_history = record_assignment(
                    lead.assignment_history, decision.assigned_to,
                    reason=decision.reason, rule_used=decision.rule_used,
                    assigned_by=AUTO_ASSIGNED_BY, now=now,
                )

        lead.updated_at = now
        self._rescore(lead, "Lead updated", now)
        await self._lead_repo.commit()
        return lead

    async def delete_lead(self, lead_id: int) -> None:
        lead = await self.get_lead(lead_id)
        await self._lead_repo.delete(lead)
        await self._lead_repo.commit()
        logger.info("Deleted lead %s", lead_id)

    def _rescore(self, lead: Lead, reason: str, now: datetime) -> None:
        score = self._scorer.score(lead, now=now)
        lead.score_history = self._score_history.append(
            lead.score_history, score, reason, now
        )
        lead.score = score

    # ------------------------------------------------------------------
    # Bulk
    # ------------------------------------------------------------------

    async def recalculate_all_scores(self, now: Optional[datetime] = None) -> BulkResult:
        """Re-score every lead.  ``updated_at`` is left untouched."""
        now = now or datetime.now(timezone.utc)
        try:
            ids = await self._lead_repo.list_ids()
        except Exception:
            logger.error("Failed to list leads for recalculation", exc_info=True)
            return BulkResult()

        async def recalculate(lead_id: int) -> None:
            async with self._lead_scope() as repo:
                lead = await repo.get_by_id(lead_id)
                if lead is None:
                    raise LeadNotFoundError(f"Lead {lead_id} not found")
                self._rescore(lead, "Bulk recalculation", now)
                await repo.commit()

        return await run_bulk(ids, recalculate, "Score recalculation")

    async def bulk_assign(
        self, ids: List[int], assignee_id: int, assigned_by: Optional[int] = None
    ) -> BulkResult:
        now = datetime.now(timezone.utc)

        async def assign(lead_id: int) -> None:
            async with self._lead_scope() as repo:
                lead = await repo.get_by_id(lead_id)
                if lead is None:
                    raise LeadNotFoundError(f"Lead {lead_id} not found")
                lead.assignment_history = record_assignment(
                    lead.assignment_history, assignee_id, reason="Bulk assignment",
                    assigned_by=assigned_by, now=now,
                )
                lead.assigned_to = assignee_id
                await repo.commit()

        return await run_bulk(ids, assign, "Lead bulk assignment")
