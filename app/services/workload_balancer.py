import asyncio
import logging
from typing import Optional, Sequence

from app.schemas.assignment import AssignmentDecision
from app.schemas.common import AssignmentMethod
from app.schemas.team import TeamMember
from app.services.team_directory import TeamDirectory

logger = logging.getLogger(__name__)

FALLBACK_REASON = "Auto-assigned via fallback strategy (least workload)"


class WorkloadBalancer:
    """Least-workload fallback used when no rule picks an owner."""

    def __init__(self, directory: TeamDirectory) -> None:
        self._directory = directory

    async def fallback(
        self, team_members: Sequence[TeamMember]
    ) -> Optional[AssignmentDecision]:
        """Pick the available member with the fewest open items.

        Ties go to whichever tied member comes first in *team_members*.
        Returns ``None`` when nobody is available.  A failed workload
        lookup propagates.
        """
        available = [m for m in team_members if m.is_available]
        if not available:
            return None

        workloads = await asyncio.gather(
            *(self._directory.get_workload(m.id) for m in available)
        )

        chosen: Optional[TeamMember] = None
        lowest: Optional[int] = None
        for member, workload in zip(available, workloads):
            if lowest is None or workload.total_active < lowest:
                chosen, lowest = member, workload.total_active

        logger.debug("Least-loaded member is %s (%s open items)", chosen.id, lowest)
        return AssignmentDecision(
            assigned_to=chosen.id,
            reason=FALLBACK_REASON,
            rule_used=None,
            method=AssignmentMethod.fallback,
        )
