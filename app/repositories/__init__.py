"""Repository layer – all database access goes through here.

Repositories encapsulate SQLAlchemy queries so that the service layer
only contains business logic.
"""

from app.repositories.lead_repository import LeadRepository
from app.repositories.deal_repository import DealRepository
from app.repositories.assignment_rule_repository import AssignmentRuleRepository
from app.repositories.workload_repository import WorkloadRepository
from app.repositories.base import repository_scope

__all__ = [
    "LeadRepository",
    "DealRepository",
    "AssignmentRuleRepository",
    "WorkloadRepository",
    "repository_scope",
]
