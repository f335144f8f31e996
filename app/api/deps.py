"""API-layer dependency functions.

Re-exports all dependency factories from ``app.dependencies`` so that
endpoint modules only need to import from ``app.api.deps``.
"""

from app.dependencies import (
    # Repository factories
    get_deal_repo,
    get_lead_repo,
    get_rule_repo,
    # Service factories
    get_assignment_orchestrator,
    get_deal_service,
    get_lead_service,
    get_rule_service,
    get_team_directory,
    # Redis
    get_cache_service,
    get_redis_client,
)

__all__ = [
    "get_deal_repo",
    "get_lead_repo",
    "get_rule_repo",
    "get_assignment_orchestrator",
    "get_deal_service",
    "get_lead_service",
    "get_rule_service",
    "get_team_directory",
    "get_cache_service",
    "get_redis_client",
]
