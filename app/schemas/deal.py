"""Deal schemas: stage history, stage transitions, and pipeline analytics."""

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.assignment import AssignmentDecision, AssignmentHistoryEntry
from app.schemas.common import DealStage, SuccessResponse

DEFAULT_DEAL_PROBABILITY = 25


class StageHistoryEntry(BaseModel):
    """Time spent in one pipeline stage.

    ``duration`` is in milliseconds and stays 0 while the entry is open
    (``exited_at is None``).
    """

    stage: str
    entered_at: datetime
    exited_at: Optional[datetime] = None
    duration: int = 0

    @property
    def is_open(self) -> bool:
        return self.exited_at is None


class DealCreate(BaseModel):
    title: str = Field("New Deal", min_length=1)
    amount: float = Field(0, ge=0)
    stage: DealStage = DealStage.new
    probability: int = Field(DEFAULT_DEAL_PROBABILITY, ge=0, le=100)
    close_date: Optional[date] = None
    notes: Optional[str] = None
    deal_owner: Optional[int] = None
    contact_id: Optional[int] = None
    tags: List[str] = Field(default_factory=list)


class DealUpdate(BaseModel):
    """Generic field update.

    Stage is deliberately absent: only the stage-transition endpoint
    may move a deal and advance its stage history.
    """

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1)
    amount: Optional[float] = Field(None, ge=0)
    probability: Optional[int] = Field(None, ge=0, le=100)
    close_date: Optional[date] = None
    notes: Optional[str] = None
    deal_owner: Optional[int] = None
    contact_id: Optional[int] = None
    tags: Optional[List[str]] = None


class StageTransitionRequest(BaseModel):
    stage: DealStage


class BulkStageUpdateRequest(BaseModel):
    ids: List[int] = Field(..., min_length=1)
    stage: DealStage


class DealOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    amount: float
    stage: str
    probability: int
    close_date: Optional[date] = None
    notes: Optional[str] = None
    deal_owner: Optional[int] = None
    contact_id: Optional[int] = None
    stage_history: List[StageHistoryEntry] = Field(default_factory=list)
    assignment_history: List[AssignmentHistoryEntry] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DealCreateResponse(SuccessResponse):
    deal: DealOut
    assignment: Optional[AssignmentDecision] = None
    requires_manual_assignment: bool = False


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


class HistoricalStageMetric(BaseModel):
    total_duration: int = 0
    completed_transitions: int = 0
    average_duration: float = 0.0


class CurrentStageMetric(BaseModel):
    total_current_duration: int = 0
    active_deals: int = 0
    average_current_duration: float = 0.0


class StageDurationAnalytics(BaseModel):
    """Average time per stage, in milliseconds.

    ``historical`` covers closed stage entries; ``current`` covers the
    time deals have spent so far in the stage they are in now.
    """

    historical: Dict[str, HistoricalStageMetric] = Field(default_factory=dict)
    current: Dict[str, CurrentStageMetric] = Field(default_factory=dict)


class PipelineMetrics(BaseModel):
    total_value: float = 0.0
    weighted_value: float = 0.0
    total_deals: int = 0
    stage_distribution: Dict[str, int] = Field(default_factory=dict)
