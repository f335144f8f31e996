from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from unittest.mock import AsyncMock

from app.core.exceptions import DealNotFoundError
from app.schemas.assignment import AssignmentDecision
from app.schemas.common import AssignmentMethod, DealStage
from app.schemas.deal import DealCreate, DealUpdate, StageDurationAnalytics
from app.services.deal_service import STAGE_ANALYTICS_CACHE_KEY, DealService
from app.services.stage_history import StageHistoryTracker

NOW = datetime(2026, 6, 1, 10, 0, tzinfo=timezone.utc)


def _stored_deal(**overrides):
    data = {
        "id": 3,
        "title": "Renewal",
        "amount": 20000.0,
        "stage": "new",
        "probability": 25,
        "deal_owner": 2,
        "stage_history": StageHistoryTracker.open_history("new", NOW - timedelta(hours=4)),
        "assignment_history": [],
        "tags": [],
    }
    data.update(overrides)
    return SimpleNamespace(**data)


@pytest.fixture
def deal_repo():
    repo = AsyncMock()
    repo.create = AsyncMock(side_effect=lambda **kw: SimpleNamespace(id=21, **kw))
    return repo


@pytest.fixture
def orchestrator():
    orchestrator = AsyncMock()
    orchestrator.auto_assign = AsyncMock(
        return_value=AssignmentDecision(
            assigned_to=3,
            reason="Auto-assigned via rule: Large deals",
            rule_used=5,
            method=AssignmentMethod.rule,
        )
    )
    return orchestrator


@pytest.fixture
def service(deal_repo, orchestrator, mock_cache, scope_for):
    return DealService(
        deal_repo, orchestrator, deal_scope=scope_for(deal_repo), cache=mock_cache
    )


class TestCreateDeal:
    @pytest.mark.asyncio
    async def test_opens_stage_history_and_auto_assigns(self, service, orchestrator):
        deal, decision = await service.create_deal(
            DealCreate(title="Big one", amount=90000), now=NOW
        )

        assert deal.deal_owner == 3
        assert decision.rule_used == 5
        assert len(deal.stage_history) == 1
        assert deal.stage_history[0].stage == "new"
        assert deal.stage_history[0].entered_at == NOW
        assert deal.assignment_history[0].rule_used == 5
        entity_type, fields = orchestrator.auto_assign.await_args.args
        assert entity_type == "deals"
        assert fields["amount"] == 90000

    @pytest.mark.asyncio
    async def test_defaults(self, service):
        deal, _ = await service.create_deal(DealCreate(), now=NOW)

        assert deal.title == "New Deal"
        assert deal.probability == 25
        assert deal.stage == "new"

    @pytest.mark.asyncio
    async def test_owner_given_skips_engine(self, service, orchestrator):
        deal, decision = await service.create_deal(
            DealCreate(title="Mine", deal_owner=1), now=NOW
        )

        assert decision is None
        assert deal.deal_owner == 1
        orchestrator.auto_assign.assert_not_awaited()


class TestStageTransitions:
    @pytest.mark.asyncio
    async def test_transition_closes_open_entry(self, service, deal_repo, mock_redis):
        stored = _stored_deal()
        deal_repo.get_by_id = AsyncMock(return_value=stored)

        deal = await service.transition_stage(3, DealStage.proposal, now=NOW)

        assert deal.stage == "proposal"
        first, second = deal.stage_history
        assert first.exited_at == NOW
        assert first.duration == 4 * 3_600_000
        assert second.stage == "proposal" and second.is_open
        deal_repo.commit.assert_awaited_once()
        mock_redis.delete.assert_awaited_with(STAGE_ANALYTICS_CACHE_KEY)

    @pytest.mark.asyncio
    async def test_same_stage_starts_a_new_entry(self, service, deal_repo):
        stored = _stored_deal(stage="new")
        deal_repo.get_by_id = AsyncMock(return_value=stored)

        deal = await service.transition_stage(3, DealStage.new, now=NOW + timedelta(hours=1))

        assert [e.stage for e in deal.stage_history] == ["new", "new"]
        assert deal.stage_history[0].duration == 5 * 3_600_000
        assert deal.stage_history[1].is_open
        deal_repo.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_deal(self, service, deal_repo):
        deal_repo.get_by_id = AsyncMock(return_value=None)

        with pytest.raises(DealNotFoundError):
            await service.transition_stage(3, DealStage.proposal)

    @pytest.mark.asyncio
    async def test_bulk_stage_update(self, service, deal_repo):
        deals = {1: _stored_deal(id=1), 2: _stored_deal(id=2, stage="proposal")}
        deal_repo.get_by_id = AsyncMock(side_effect=lambda deal_id: deals.get(deal_id))

        result = await service.bulk_update_stage([1, 2, 9], DealStage.closed_won)

        assert result.updated == 2
        assert result.total == 3
        assert result.failures[0].id == 9
        assert deals[1].stage == deals[2].stage == "closed-won"
        assert deals[1].stage_history[-1].stage == "closed-won"

    @pytest.mark.asyncio
    async def test_bulk_stage_update_records_same_stage(self, service, deal_repo):
        stored = _stored_deal(id=1, stage="new")
        deal_repo.get_by_id = AsyncMock(return_value=stored)

        result = await service.bulk_update_stage([1], DealStage.new)

        assert result.updated == 1
        assert [e.stage for e in stored.stage_history] == ["new", "new"]
        deal_repo.commit.assert_awaited_once()


class TestUpdateDeal:
    @pytest.mark.asyncio
    async def test_update_leaves_stage_alone(self, service, deal_repo):
        stored = _stored_deal()
        deal_repo.get_by_id = AsyncMock(return_value=stored)

        deal = await service.update_deal(3, DealUpdate(amount=5000, deal_owner=4))

        assert deal.amount == 5000
        assert deal.stage == "new"
        assert deal.deal_owner == 4
        assert deal.assignment_history[-1].assigned_to == 4

    @pytest.mark.asyncio
    async def test_stage_history_lookup(self, service, deal_repo):
        deal_repo.get_by_id = AsyncMock(return_value=_stored_deal())

        history = await service.get_stage_history(3)

        assert [e.stage for e in history] == ["new"]


class TestAnalytics:
    @pytest.mark.asyncio
    async def test_stage_durations_with_explicit_now(self, service, deal_repo, mock_redis):
        deal_repo.list_all = AsyncMock(return_value=[_stored_deal()])

        analytics = await service.stage_duration_analytics(now=NOW)

        assert analytics.current["new"].active_deals == 1
        assert analytics.current["new"].total_current_duration == 4 * 3_600_000
        mock_redis.setex.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stage_durations_are_cached(self, service, deal_repo, mock_redis):
        deal_repo.list_all = AsyncMock(return_value=[_stored_deal()])

        await service.stage_duration_analytics()

        key, ttl, _ = mock_redis.setex.await_args.args
        assert key == STAGE_ANALYTICS_CACHE_KEY
        assert ttl > 0

    @pytest.mark.asyncio
    async def test_cached_analytics_are_returned(self, service, deal_repo, mock_redis):
        cached = StageDurationAnalytics(historical={}, current={})
        mock_redis.get = AsyncMock(return_value=cached.model_dump_json())

        result = await service.stage_duration_analytics()

        assert result == cached
        deal_repo.list_all.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_failure_returns_empty_analytics(self, service, deal_repo):
        deal_repo.list_all = AsyncMock(side_effect=RuntimeError("db down"))

        analytics = await service.stage_duration_analytics(now=NOW)

        assert analytics == StageDurationAnalytics()

    @pytest.mark.asyncio
    async def test_pipeline_metrics(self, service, deal_repo):
        deal_repo.list_all = AsyncMock(
            return_value=[
                _stored_deal(amount=10000.0, probability=50, stage="proposal"),
                _stored_deal(amount=30000.0, probability=10, stage="proposal"),
                _stored_deal(amount=5000.0, probability=100, stage="closed-won"),
            ]
        )

        metrics = await service.pipeline_metrics()

        assert metrics.total_value == 45000
        assert metrics.weighted_value == pytest.approx(13000)
        assert metrics.total_deals == 3
        assert metrics.stage_distribution == {"proposal": 2, "closed-won": 1}
