from typing import Dict, FrozenSet, List, Tuple

from app.schemas.common import DealStage, EntityType, LeadStage

VALID_ENTITY_TYPES: FrozenSet[str] = frozenset(e.value for e in EntityType)

# ---------------------------------------------------------------------------
# Lead scoring
# ---------------------------------------------------------------------------

SCORING_WEIGHTS: Dict[str, float] = {
    "value": 0.30,
    "engagement": 0.25,
    "completeness": 0.15,
    "recency": 0.10,
    "qualification": 0.20,
}

# (inclusive upper bound, score); anything above the last bound scores 100
VALUE_SCORE_BRACKETS: List[Tuple[float, int]] = [
    (10_000, 20),
    (25_000, 40),
    (50_000, 60),
    (100_000, 80),
]
VALUE_SCORE_TOP: int = 100

ENGAGEMENT_SCORES: Dict[str, int] = {
    LeadStage.new.value: 20,
    LeadStage.contacted.value: 40,
    LeadStage.nurturing.value: 60,
    LeadStage.qualified.value: 70,
    LeadStage.converted.value: 100,
    LeadStage.lost.value: 5,
}

COMPLETENESS_FIELDS: Tuple[str, ...] = (
    "title",
    "company",
    "contact_name",
    "email",
    "phone",
    "value",
    "budget",
    "timeline",
    "notes",
)

QUALIFICATION_POINTS: Dict[str, int] = {
    "budget": 15,
    "authority": 15,
    "need": 20,
    "timeline": 15,
    "decision_process": 10,
    "competition": 10,
    "fit": 15,
}

MIN_LEAD_SCORE: int = 1
MAX_LEAD_SCORE: int = 100

# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------

TERMINAL_LEAD_STAGES: FrozenSet[str] = frozenset(
    {LeadStage.converted.value, LeadStage.lost.value}
)
TERMINAL_DEAL_STAGES: FrozenSet[str] = frozenset(
    {DealStage.closed_won.value, DealStage.closed_lost.value}
)
COMPLETED_TASK_STATUSES: FrozenSet[str] = frozenset({"completed"})

AUTO_ASSIGNED_BY: int = 0  # assigned_by value recorded for engine decisions
