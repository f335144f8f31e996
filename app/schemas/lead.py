"""Lead-specific Pydantic schemas (create, update, response, scoring)."""

import re
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.schemas.assignment import AssignmentDecision, AssignmentHistoryEntry
from app.schemas.common import LeadStage, SuccessResponse

# Loose phone check: digits, spaces, dashes, parentheses, optional leading +
_PHONE_RE = re.compile(r"^[+]?[\d\s\-()]+$")


# ---------------------------------------------------------------------------
# Sub-documents
# ---------------------------------------------------------------------------


class QualificationChecklist(BaseModel):
    """BANT-style readiness checklist stored alongside each lead."""

    budget: bool = False
    authority: bool = False
    need: bool = False
    timeline: bool = False
    decision_process: bool = False
    competition: bool = False
    fit: bool = False


class ScoreHistoryEntry(BaseModel):
    score: int
    previous_score: Optional[int] = None
    timestamp: datetime
    reason: str


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class _LeadFields(BaseModel):
    company: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    value: Optional[float] = None
    budget: Optional[float] = None
    timeline: Optional[str] = None
    source: Optional[str] = None
    stage: Optional[LeadStage] = None
    notes: Optional[str] = None
    assigned_to: Optional[int] = None
    qualification: Optional[QualificationChecklist] = None
    tags: Optional[List[str]] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        if v and not _PHONE_RE.match(v):
            raise ValueError("Please enter a valid phone number")
        return v


class LeadCreate(_LeadFields):
    """Payload for creating a lead; title and company are required."""

    title: str
    company: str
    source: str = "website"
    stage: LeadStage = LeadStage.new

    @field_validator("title", "company")
    @classmethod
    def require_text(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Title and company are required")
        return v.strip()


class LeadUpdate(_LeadFields):
    """Partial update of a lead.

    ``score`` is accepted so that clients can round-trip a full lead
    object, but it is always discarded: the persisted score is
    recomputed from the merged fields.
    """

    title: Optional[str] = None
    score: Optional[int] = None

    @field_validator("title", "company")
    @classmethod
    def reject_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Title and company cannot be blank")
        return v.strip() if v is not None else v


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeadOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    company: str
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    value: Optional[float] = None
    budget: Optional[float] = None
    timeline: Optional[str] = None
    source: str
    stage: str
    notes: Optional[str] = None
    assigned_to: Optional[int] = None
    qualification: QualificationChecklist = Field(
        default_factory=QualificationChecklist
    )
    score: int = Field(..., ge=0, le=100)
    score_history: List[ScoreHistoryEntry] = Field(default_factory=list)
    assignment_history: List[AssignmentHistoryEntry] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LeadCreateResponse(SuccessResponse):
    lead: LeadOut
    assignment: Optional[AssignmentDecision] = None
    requires_manual_assignment: bool = False


class ScoreBreakdown(BaseModel):
    """Raw 0–100 factor scores before weighting, plus the final score."""

    value: float
    engagement: float
    completeness: float
    recency: float
    qualification: float
    weighted_total: float
    score: int


class ScoringConfigOut(BaseModel):
    weights: Dict[str, float]
    value_brackets: List[List[float]]
    value_top_score: int
    engagement: Dict[str, int]
    completeness_fields: List[str]
    recency_window_days: int
    qualification_points: Dict[str, int]
