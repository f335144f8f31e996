import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from app.core.config import settings
from app.core.constants import (
    COMPLETENESS_FIELDS,
    ENGAGEMENT_SCORES,
    MAX_LEAD_SCORE,
    MIN_LEAD_SCORE,
    QUALIFICATION_POINTS,
    SCORING_WEIGHTS,
    VALUE_SCORE_BRACKETS,
    VALUE_SCORE_TOP,
)
from app.schemas.lead import ScoreBreakdown, ScoringConfigOut

logger = logging.getLogger(__name__)

_SCORED_FIELDS = (
    *COMPLETENESS_FIELDS,
    "stage",
    "qualification",
    "created_at",
    "updated_at",
)


def _as_mapping(lead: Any) -> Mapping[str, Any]:
    """Accept a dict, a pydantic model, or an ORM row."""
    if isinstance(lead, Mapping):
        return lead
    if hasattr(lead, "model_dump"):
        return lead.model_dump()
    return {name: getattr(lead, name, None) for name in _SCORED_FIELDS}


def _as_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class LeadScorer:
    """Computes a 1–100 lead score from five weighted factors.

    Each factor is scored 0–100 on its own:

    * value: bracket of the lead's monetary value
    * engagement: fixed score for the lead's stage
    * completeness: share of profile fields that are filled in
    * recency: linear decay over ``recency_window_days`` since the last update
    * qualification: points for each checked qualification item

    The weighted sum is rounded half-up and clamped to [1, 100].  The
    score is a pure function of the lead and *now*.
    """

    def __init__(self, recency_window_days: Optional[int] = None) -> None:
        self.recency_window_days = recency_window_days or settings.RECENCY_WINDOW_DAYS

    # -- factors ------------------------------------------------------------

    @staticmethod
    def value_score(value: Any) -> float:
        if value is None or isinstance(value, bool):
            return 0
        try:
            amount = float(value)
        except (TypeError, ValueError):
            return 0
        if math.isnan(amount) or amount < 0:
            return 0
        for upper_bound, score in VALUE_SCORE_BRACKETS:
            if amount <= upper_bound:
                return score
        return VALUE_SCORE_TOP

    @staticmethod
    def engagement_score(stage: Any) -> float:
        stage = getattr(stage, "value", stage)
        if not isinstance(stage, str):
            return 0
        return ENGAGEMENT_SCORES.get(stage, 0)

    @staticmethod
    def completeness_score(lead: Mapping[str, Any]) -> float:
        filled = 0
        for name in COMPLETENESS_FIELDS:
            value = lead.get(name)
            # Zero and empty strings count as missing.
            if value and str(value).strip():
                filled += 1
        return filled / len(COMPLETENESS_FIELDS) * 100

    def recency_score(self, lead: Mapping[str, Any], now: datetime) -> float:
        timestamp = _as_datetime(lead.get("updated_at")) or _as_datetime(
            lead.get("created_at")
        )
        if timestamp is None:
            return 0
        days = (now - timestamp).total_seconds() / 86400
        return min(100.0, max(0.0, 100 - days / self.recency_window_days * 100))

    @staticmethod
    def qualification_score(qualification: Any) -> float:
        if hasattr(qualification, "model_dump"):
            qualification = qualification.model_dump()
        if not isinstance(qualification, Mapping):
            return 0
        return sum(
            points
            for item, points in QUALIFICATION_POINTS.items()
            if qualification.get(item)
        )

    # -- totals -------------------------------------------------------------

    def components(self, lead: Any, now: Optional[datetime] = None) -> Dict[str, float]:
        data = _as_mapping(lead)
        now = _as_datetime(now) or datetime.now(timezone.utc)
        return {
            "value": self.value_score(data.get("value")),
            "engagement": self.engagement_score(data.get("stage")),
            "completeness": self.completeness_score(data),
            "recency": self.recency_score(data, now),
            "qualification": self.qualification_score(data.get("qualification")),
        }

    def breakdown(self, lead: Any, now: Optional[datetime] = None) -> ScoreBreakdown:
        parts = self.components(lead, now)
        weighted = sum(parts[name] * weight for name, weight in SCORING_WEIGHTS.items())
        score = max(MIN_LEAD_SCORE, min(MAX_LEAD_SCORE, _round_half_up(weighted)))
        return ScoreBreakdown(**parts, weighted_total=weighted, score=score)

    def score(self, lead: Any, now: Optional[datetime] = None) -> int:
        return self.breakdown(lead, now).score

    def config(self) -> ScoringConfigOut:
        return ScoringConfigOut(
            weights=dict(SCORING_WEIGHTS),
            value_brackets=[[bound, score] for bound, score in VALUE_SCORE_BRACKETS],
            value_top_score=VALUE_SCORE_TOP,
            engagement=dict(ENGAGEMENT_SCORES),
            completeness_fields=list(COMPLETENESS_FIELDS),
            recency_window_days=self.recency_window_days,
            qualification_points=dict(QUALIFICATION_POINTS),
        )
