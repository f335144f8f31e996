from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class EntityType(str, Enum):
    contacts = "contacts"
    leads = "leads"
    deals = "deals"
    tasks = "tasks"


class ConditionOperator(str, Enum):
    equals = "equals"
    not_equals = "not_equals"
    contains = "contains"
    greater_than = "greater_than"
    less_than = "less_than"
    between = "between"
    in_ = "in"


class FallbackStrategy(str, Enum):
    least_workload = "least_workload"


class Availability(str, Enum):
    available = "available"
    unavailable = "unavailable"


class LeadStage(str, Enum):
    new = "new"
    contacted = "contacted"
    nurturing = "nurturing"
    qualified = "qualified"
    converted = "converted"
    lost = "lost"


class DealStage(str, Enum):
    new = "new"
    qualified = "qualified"
    proposal = "proposal"
    negotiation = "negotiation"
    closed_won = "closed-won"
    closed_lost = "closed-lost"


class AssignmentMethod(str, Enum):
    rule = "rule"
    fallback = "fallback"
    manual = "manual"


class AssignmentStatus(str, Enum):
    active = "active"
    reassigned = "reassigned"


class SuccessResponse(BaseModel):
    """Generic success response base."""

    success: bool = True


class BulkFailure(BaseModel):
    """One record that failed inside a bulk operation."""

    id: int
    message: str


class BulkResult(SuccessResponse):
    """Aggregate outcome of a bulk operation.

    The call itself succeeds even when some items fail; each failure is
    reported individually in ``failures``.
    """

    updated: int = 0
    total: int = 0
    failures: List[BulkFailure] = Field(default_factory=list)
