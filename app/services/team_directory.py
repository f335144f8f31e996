"""Team roster and per-member workload lookups.

The roster is a small JSON document kept in Redis under
``settings.TEAM_DIRECTORY_KEY``.  It is seeded from
:data:`DEFAULT_TEAM_ROSTER` the first time it is read.  Without Redis
the default roster is served read-only.
"""

import logging
from datetime import datetime, timezone
from typing import Any, AsyncContextManager, Callable, Dict, List, Optional, Sequence

from pydantic import TypeAdapter

from app.core.cache import CacheService
from app.core.config import settings
from app.core.default_team import DEFAULT_TEAM_ROSTER
from app.core.exceptions import (
    TeamDirectoryUnavailableError,
    TeamMemberNotFoundError,
)
from app.repositories.workload_repository import WorkloadRepository
from app.schemas.common import Availability
from app.schemas.team import TeamMember, Workload

logger = logging.getLogger(__name__)

_ROSTER_ADAPTER = TypeAdapter(List[TeamMember])

WorkloadScope = Callable[[], AsyncContextManager[WorkloadRepository]]


class TeamDirectory:
    def __init__(
        self,
        cache: CacheService,
        workload_scope: WorkloadScope,
        roster_key: Optional[str] = None,
        default_roster: Sequence[Dict[str, Any]] = DEFAULT_TEAM_ROSTER,
    ) -> None:
        self._cache = cache
        self._workload_scope = workload_scope
        self._key = roster_key or settings.TEAM_DIRECTORY_KEY
        self._default_roster = default_roster

    def _defaults(self) -> List[TeamMember]:
        return [TeamMember(**m) for m in self._default_roster]

    async def list_members(self) -> List[TeamMember]:
        """Return every member, ordered by ascending id."""
        members = await self._cache.get_model(self._key, _ROSTER_ADAPTER)
        if members is None:
            members = self._defaults()
            if await self._cache.add_model(self._key, members, _ROSTER_ADAPTER):
                logger.info("Seeded team directory with %d members", len(members))
        return sorted(members, key=lambda m: m.id)

    async def list_available(self) -> List[TeamMember]:
        return [m for m in await self.list_members() if m.is_available]

    async def get_member(self, member_id: int) -> TeamMember:
        for member in await self.list_members():
            if member.id == member_id:
                return member
        raise TeamMemberNotFoundError(f"Team member {member_id} not found")

    async def get_workload(self, member_id: int) -> Workload:
        """Count the member's open items using a dedicated session.

        Each call opens its own scope so that workloads for several
        members can be fetched concurrently.
        """
        async with self._workload_scope() as repo:
            return await repo.get_workload(member_id)

    async def set_availability(
        self, member_id: int, availability: Availability
    ) -> TeamMember:
        if not self._cache.is_available:
            raise TeamDirectoryUnavailableError(
                "Team directory is read-only while Redis is unavailable"
            )

        members = await self.list_members()
        for index, member in enumerate(members):
            if member.id == member_id:
                break
        else:
            raise TeamMemberNotFoundError(f"Team member {member_id} not found")

        updated = member.model_copy(
            update={
                "availability": availability,
                "last_updated": datetime.now(timezone.utc),
            }
        )
        members[index] = updated
        await self._cache.set_model(self._key, members, _ROSTER_ADAPTER)
        logger.info("Member %s is now %s", member_id, availability.value)
        return updated
