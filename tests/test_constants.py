import pytest

from app.core.constants import (
    COMPLETENESS_FIELDS,
    ENGAGEMENT_SCORES,
    QUALIFICATION_POINTS,
    SCORING_WEIGHTS,
    TERMINAL_DEAL_STAGES,
    TERMINAL_LEAD_STAGES,
    VALID_ENTITY_TYPES,
    VALUE_SCORE_BRACKETS,
)
from app.schemas.common import DealStage, EntityType, LeadStage
from app.schemas.lead import LeadOut, QualificationChecklist


class TestConstantsConsistency:
    """Verify that constants, enums, and schemas stay in sync."""

    def test_entity_types_match_enum(self):
        assert VALID_ENTITY_TYPES == {e.value for e in EntityType}

    def test_every_lead_stage_has_an_engagement_score(self):
        assert set(ENGAGEMENT_SCORES) == {s.value for s in LeadStage}

    def test_weights_sum_to_one(self):
        assert sum(SCORING_WEIGHTS.values()) == pytest.approx(1.0)

    def test_qualification_points_cover_checklist(self):
        assert set(QUALIFICATION_POINTS) == set(QualificationChecklist.model_fields)
        assert sum(QUALIFICATION_POINTS.values()) == 100

    def test_value_brackets_are_ascending(self):
        bounds = [bound for bound, _ in VALUE_SCORE_BRACKETS]
        assert bounds == sorted(bounds)

    def test_completeness_fields_exist_on_lead(self):
        assert set(COMPLETENESS_FIELDS) <= set(LeadOut.model_fields)

    def test_terminal_stages_are_valid(self):
        assert TERMINAL_LEAD_STAGES <= {s.value for s in LeadStage}
        assert TERMINAL_DEAL_STAGES <= {s.value for s in DealStage}
