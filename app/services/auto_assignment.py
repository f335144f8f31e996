import logging
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from app.repositories.assignment_rule_repository import AssignmentRuleRepository
from app.schemas.assignment import AssignmentDecision, AssignmentHistoryEntry
from app.schemas.common import AssignmentMethod, AssignmentStatus
from app.services.rule_engine import RuleEngine
from app.services.team_directory import TeamDirectory
from app.services.workload_balancer import WorkloadBalancer

logger = logging.getLogger(__name__)


class AssignmentOrchestrator:
    """Chooses an owner for a new or updated entity.

    Active rules for the entity type are tried first; if none of them
    produces an available member, the least-loaded available member is
    chosen.  Any failure along the way (rule store, roster, workload
    counts) is logged and turned into ``None`` so the caller falls back
    to manual assignment instead of failing the whole request.
    """

    def __init__(
        self,
        rule_repo: AssignmentRuleRepository,
        directory: TeamDirectory,
        rule_engine: Optional[RuleEngine] = None,
        balancer: Optional[WorkloadBalancer] = None,
    ) -> None:
        self._rule_repo = rule_repo
        self._directory = directory
        self._engine = rule_engine or RuleEngine()
        self._balancer = balancer or WorkloadBalancer(directory)

    async def auto_assign(
        self, entity_type: Any, entity_fields: Mapping[str, Any]
    ) -> Optional[AssignmentDecision]:
        entity = getattr(entity_type, "value", entity_type)
        try:
            rules = await self._rule_repo.get_active_by_entity(entity)
            team_members = await self._directory.list_members()

            match = self._engine.find_match(entity, entity_fields, rules, team_members)
            if match is not None:
                logger.info(
                    "Rule %s assigned %s to member %s",
                    match.rule.id,
                    entity,
                    match.assignee_id,
                )
                return AssignmentDecision(
                    assigned_to=match.assignee_id,
                    reason=f"Auto-assigned via rule: {match.rule.name}",
                    rule_used=match.rule.id,
                    method=AssignmentMethod.rule,
                )

            decision = await self._balancer.fallback(team_members)
            if decision is None:
                logger.info(
                    "No available team member for %s; manual assignment required",
                    entity,
                )
            return decision
        except Exception:
            logger.error("Auto-assignment failed for %s", entity, exc_info=True)
            return None


def record_assignment(
    history: Optional[List[AssignmentHistoryEntry]],
    assigned_to: int,
    *,
    reason: Optional[str] = None,
    rule_used: Optional[int] = None,
    assigned_by: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[AssignmentHistoryEntry]:
    """Return *history* with a new active entry for *assigned_to*.

    Earlier active entries are marked ``reassigned``.  If *assigned_to*
    already holds the active entry, the history is returned unchanged.
    """
    history = list(history or [])
    active = [e for e in history if e.status == AssignmentStatus.active]
    if active and active[-1].assigned_to == assigned_to:
        return history

    now = now or datetime.now(timezone.utc)
    updated = [
        e.model_copy(update={"status": AssignmentStatus.reassigned})
        if e.status == AssignmentStatus.active
        else e
        for e in history
    ]
    updated.append(
        AssignmentHistoryEntry(
            assigned_to=assigned_to,
            assigned_at=now,
            assigned_by=assigned_by,
            status=AssignmentStatus.active,
            reason=reason,
            rule_used=rule_used,
        )
    )
    return updated
