"""Pydantic schemas package – re-exports for convenience."""

# Common enums
from app.schemas.common import (
    EntityType as EntityType,
    ConditionOperator as ConditionOperator,
    Availability as Availability,
    LeadStage as LeadStage,
    DealStage as DealStage,
    AssignmentMethod as AssignmentMethod,
    AssignmentStatus as AssignmentStatus,
    SuccessResponse as SuccessResponse,
    BulkResult as BulkResult,
)

# Assignment schemas
from app.schemas.assignment import (
    Condition as Condition,
    RuleCriteria as RuleCriteria,
    AssignmentRuleCreate as AssignmentRuleCreate,
    AssignmentRuleOut as AssignmentRuleOut,
    AssignmentDecision as AssignmentDecision,
    AssignmentHistoryEntry as AssignmentHistoryEntry,
)

# Lead schemas
from app.schemas.lead import (
    LeadCreate as LeadCreate,
    LeadUpdate as LeadUpdate,
    LeadOut as LeadOut,
    QualificationChecklist as QualificationChecklist,
    ScoreHistoryEntry as ScoreHistoryEntry,
)

# Deal schemas
from app.schemas.deal import (
    DealCreate as DealCreate,
    DealUpdate as DealUpdate,
    DealOut as DealOut,
    StageHistoryEntry as StageHistoryEntry,
    StageDurationAnalytics as StageDurationAnalytics,
)

# Team schemas
from app.schemas.team import (
    TeamMember as TeamMember,
    Workload as Workload,
)
