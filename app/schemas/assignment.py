"""Assignment rule, condition, and decision schemas."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import (
    AssignmentMethod,
    AssignmentStatus,
    EntityType,
    FallbackStrategy,
    SuccessResponse,
)


class Condition(BaseModel):
    """One field test inside a rule.

    ``operator`` stays a plain string so that criteria written by older
    clients with an unknown operator still load; the evaluator treats
    unknown operators as non-matching.
    """

    field: str
    operator: str
    value: Any = None
    assign_to: Optional[int] = None


class RuleCriteria(BaseModel):
    conditions: List[Condition] = Field(default_factory=list)


class AssignmentRuleBase(BaseModel):
    name: str
    entity: EntityType
    is_active: bool = True
    priority: int = 1
    criteria: RuleCriteria = Field(default_factory=RuleCriteria)
    fallback_strategy: FallbackStrategy = FallbackStrategy.least_workload
    assign_to: Optional[int] = None


class AssignmentRuleCreate(AssignmentRuleBase):
    """Request body for creating a rule (full definition)."""


class AssignmentRuleUpdate(AssignmentRuleBase):
    """Request body for replacing a rule definition."""


class AssignmentRuleOut(AssignmentRuleBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AssignmentDecision(BaseModel):
    """Outcome of an automatic assignment attempt.

    ``assigned_to`` is ``None`` only in intermediate results; the
    orchestrator returns ``None`` instead of an empty decision.
    """

    assigned_to: Optional[int] = None
    reason: str
    rule_used: Optional[int] = None
    method: AssignmentMethod


class AssignmentHistoryEntry(BaseModel):
    assigned_to: int
    assigned_at: datetime
    assigned_by: Optional[int] = None
    status: AssignmentStatus = AssignmentStatus.active
    reason: Optional[str] = None
    rule_used: Optional[int] = None


class AutoAssignRequest(BaseModel):
    """Ad-hoc auto-assignment for an entity that is not yet persisted."""

    entity_type: EntityType
    fields: dict = Field(default_factory=dict)


class AutoAssignResponse(SuccessResponse):
    """``decision`` is ``None`` when the caller must pick an owner manually."""

    decision: Optional[AssignmentDecision] = None
    requires_manual_assignment: bool = False


class BulkAssignRequest(BaseModel):
    ids: List[int] = Field(..., min_length=1)
    assignee_id: int
