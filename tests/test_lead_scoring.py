from datetime import datetime, timedelta, timezone

import pytest

from app.schemas.lead import QualificationChecklist
from app.services.lead_scoring import LeadScorer

NOW = datetime(2026, 5, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def scorer() -> LeadScorer:
    return LeadScorer(recency_window_days=30)


class TestValueScore:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, 20),
            (10_000, 20),
            (10_000.01, 40),
            (25_000, 40),
            (50_000, 60),
            (75_000, 80),
            (100_000, 80),
            (100_001, 100),
            ("30000", 60),
        ],
    )
    def test_brackets_are_inclusive(self, value, expected):
        assert LeadScorer.value_score(value) == expected

    @pytest.mark.parametrize("value", [None, "", "n/a", -5, True])
    def test_missing_or_invalid_value_scores_zero(self, value):
        assert LeadScorer.value_score(value) == 0


class TestFactorScores:
    def test_engagement_by_stage(self):
        assert LeadScorer.engagement_score("qualified") == 70
        assert LeadScorer.engagement_score("converted") == 100
        assert LeadScorer.engagement_score("unknown") == 0

    def test_completeness_ignores_blank_fields(self):
        lead = {"title": "Deal", "company": "  ", "email": "", "value": 0, "notes": "x"}
        assert LeadScorer.completeness_score(lead) == pytest.approx(2 / 9 * 100)

    def test_recency_decays_linearly(self, scorer):
        lead = {"updated_at": NOW - timedelta(days=15)}
        assert scorer.recency_score(lead, NOW) == pytest.approx(50)

    def test_recency_floor_and_ceiling(self, scorer):
        assert scorer.recency_score({"updated_at": NOW - timedelta(days=60)}, NOW) == 0
        assert scorer.recency_score({"updated_at": NOW + timedelta(days=2)}, NOW) == 100

    def test_recency_falls_back_to_created_at(self, scorer):
        lead = {"updated_at": None, "created_at": NOW - timedelta(days=3)}
        assert scorer.recency_score(lead, NOW) == pytest.approx(90)

    def test_recency_without_timestamps_is_zero(self, scorer):
        assert scorer.recency_score({}, NOW) == 0

    def test_naive_timestamps_are_treated_as_utc(self, scorer):
        lead = {"updated_at": NOW.replace(tzinfo=None)}
        assert scorer.recency_score(lead, NOW) == 100

    def test_qualification_points(self):
        full = QualificationChecklist(
            budget=True,
            authority=True,
            need=True,
            timeline=True,
            decision_process=True,
            competition=True,
            fit=True,
        )
        assert LeadScorer.qualification_score(full) == 100
        assert LeadScorer.qualification_score({"need": True, "fit": True}) == 35
        assert LeadScorer.qualification_score(None) == 0


class TestScore:
    def test_end_to_end_example(self, scorer):
        lead = {
            "value": 75000,
            "stage": "qualified",
            "company": "Acme",
            "contact_name": "",
            "email": "",
            "phone": "",
            "budget": None,
            "timeline": None,
            "notes": None,
            "qualification": {"budget": True, "authority": True},
            "updated_at": NOW,
        }

        breakdown = scorer.breakdown(lead, now=NOW)

        assert breakdown.weighted_total == pytest.approx(60.8333, abs=1e-3)
        assert breakdown.score == 61

    def test_score_is_clamped_to_minimum_one(self, scorer):
        assert scorer.score({}, now=NOW) == 1

    @pytest.mark.parametrize(
        "lead",
        [
            {"qualification": "yes"},
            {"qualification": ["budget"]},
            {"stage": ["new"]},
            {"stage": {"x": 1}},
            {"value": "abc", "updated_at": "garbage"},
        ],
    )
    def test_malformed_fields_still_score_in_range(self, scorer, lead):
        assert 1 <= scorer.score(lead, now=NOW) <= 100

    def test_malformed_components_score_zero(self, scorer):
        assert scorer.engagement_score(["new"]) == 0
        assert scorer.qualification_score("yes") == 0
        assert scorer.qualification_score(["budget"]) == 0

    def test_perfect_lead_scores_100(self, scorer):
        lead = {
            "title": "t", "company": "c", "contact_name": "n", "email": "e",
            "phone": "p", "value": 500_000, "budget": 1, "timeline": "q",
            "notes": "n", "stage": "converted", "updated_at": NOW,
            "qualification": {k: True for k in QualificationChecklist.model_fields},
        }
        assert scorer.score(lead, now=NOW) == 100

    def test_half_rounds_up(self, scorer):
        # engagement 70 * 0.25 = 17.5; qualification 15 * 0.2 = 3 -> 20.5
        lead = {"stage": "qualified", "qualification": {"budget": True}}
        assert scorer.breakdown(lead, now=NOW).weighted_total == pytest.approx(20.5)
        assert scorer.score(lead, now=NOW) == 21

    def test_deterministic_for_same_input(self, scorer):
        lead = {"value": 20_000, "stage": "contacted", "updated_at": NOW - timedelta(days=1)}
        assert scorer.score(lead, now=NOW) == scorer.score(dict(lead), now=NOW)

    def test_accepts_objects_with_attributes(self, scorer):
        class Row:
            title = "Deal"
            company = "Acme"
            contact_name = "Jane"
            value = 75000
            stage = "qualified"
            qualification = QualificationChecklist(budget=True, authority=True)
            updated_at = NOW
            created_at = NOW

        # 24 + 17.5 + 4/9 * 15 + 10 + 6
        assert scorer.score(Row(), now=NOW) == 64


class TestConfig:
    def test_config_exposes_weights(self, scorer):
        config = scorer.config()
        assert sum(config.weights.values()) == pytest.approx(1.0)
        assert config.recency_window_days == 30
        assert config.value_top_score == 100
