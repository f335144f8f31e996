import logging
from functools import partial
from typing import AsyncIterator, Optional

from fastapi import Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CacheService
from app.core.config import settings
from app.core.database import AsyncSessionLocal, get_db
from app.repositories.assignment_rule_repository import AssignmentRuleRepository
from app.repositories.base import repository_scope
from app.repositories.deal_repository import DealRepository
from app.repositories.lead_repository import LeadRepository
from app.repositories.workload_repository import WorkloadRepository
from app.services.auto_assignment import AssignmentOrchestrator
from app.services.team_directory import TeamDirectory

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Redis client factory
# ---------------------------------------------------------------------------


async def get_redis_client() -> AsyncIterator[Optional[Redis]]:
    """Yield a Redis client, or ``None`` if Redis cannot be reached."""
    client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        await client.ping()
    except Exception:
        logger.warning("Redis unavailable – caching disabled for this request")
        await client.aclose()
        yield None
        return
    try:
        yield client
    finally:
        await client.aclose()


async def get_cache_service(
    redis_client: Optional[Redis] = Depends(get_redis_client),
) -> CacheService:
    """Build a :class:`CacheService` backed by the request's Redis client."""
    return CacheService(redis_client=redis_client)


# ---------------------------------------------------------------------------
# Repository factory functions (one per repository, each gets the shared db)
# ---------------------------------------------------------------------------


async def get_lead_repo(db: AsyncSession = Depends(get_db)) -> LeadRepository:
    return LeadRepository(db)


async def get_deal_repo(db: AsyncSession = Depends(get_db)) -> DealRepository:
    return DealRepository(db)


async def get_rule_repo(
    db: AsyncSession = Depends(get_db),
) -> AssignmentRuleRepository:
    return AssignmentRuleRepository(db)


# ---------------------------------------------------------------------------
# Service factory functions
# ---------------------------------------------------------------------------


async def get_team_directory(
    cache: CacheService = Depends(get_cache_service),
) -> TeamDirectory:
    """Workload counts run in their own sessions so they can be gathered."""
    return TeamDirectory(
        cache=cache,
        workload_scope=partial(repository_scope, AsyncSessionLocal, WorkloadRepository),
    )


async def get_assignment_orchestrator(
    rule_repo: AssignmentRuleRepository = Depends(get_rule_repo),
    directory: TeamDirectory = Depends(get_team_directory),
) -> AssignmentOrchestrator:
    return AssignmentOrchestrator(rule_repo=rule_repo, directory=directory)


async def get_rule_service(
    rule_repo: AssignmentRuleRepository = Depends(get_rule_repo),
):
    """Build an :class:`AssignmentRuleService` with injected repository."""
    from app.services.assignment_rules import AssignmentRuleService

    return AssignmentRuleService(rule_repo)


async def get_lead_service(
    lead_repo: LeadRepository = Depends(get_lead_repo),
    orchestrator: AssignmentOrchestrator = Depends(get_assignment_orchestrator),
):
    """Build a :class:`LeadService` with injected dependencies."""
    from app.services.lead_service import LeadService

    return LeadService(
        lead_repo=lead_repo,
        orchestrator=orchestrator,
        lead_scope=partial(repository_scope, AsyncSessionLocal, LeadRepository),
    )


async def get_deal_service(
    deal_repo: DealRepository = Depends(get_deal_repo),
    orchestrator: AssignmentOrchestrator = Depends(get_assignment_orchestrator),
    cache: CacheService = Depends(get_cache_service),
):
    """Build a :class:`DealService` with injected dependencies."""
    from app.services.deal_service import DealService

    return DealService(
        deal_repo=deal_repo,
        orchestrator=orchestrator,
        deal_scope=partial(repository_scope, AsyncSessionLocal, DealRepository),
        cache=cache,
    )
