from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from unittest.mock import AsyncMock, MagicMock

from app.api.deps import (
    get_assignment_orchestrator,
    get_cache_service,
    get_deal_service,
    get_lead_service,
    get_rule_service,
)
from app.core.cache import CacheService
from app.core.exceptions import (
    DealNotFoundError,
    InvalidLeadDataError,
    InvalidRuleError,
    LeadNotFoundError,
)
from app.main import app
from app.schemas.assignment import AssignmentDecision
from app.schemas.common import AssignmentMethod, BulkFailure, BulkResult
from app.services.lead_scoring import LeadScorer
from app.services.stage_history import StageHistoryTracker

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _lead(**overrides):
    data = {
        "id": 1,
        "title": "Website redesign",
        "company": "Acme",
        "contact_name": None,
        "email": None,
        "phone": None,
        "value": 10000.0,
        "budget": None,
        "timeline": None,
        "source": "website",
        "stage": "new",
        "notes": None,
        "assigned_to": 4,
        "qualification": {},
        "score": 42,
        "score_history": [],
        "assignment_history": [],
        "tags": [],
        "created_at": NOW,
        "updated_at": NOW,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def _deal(**overrides):
    data = {
        "id": 5,
        "title": "Renewal",
        "amount": 20000.0,
        "stage": "proposal",
        "probability": 25,
        "close_date": None,
        "notes": None,
        "deal_owner": 3,
        "contact_id": None,
        "stage_history": StageHistoryTracker.open_history("proposal", NOW),
        "assignment_history": [],
        "tags": [],
        "created_at": NOW,
        "updated_at": NOW,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def _override(dependency, service):
    app.dependency_overrides[dependency] = lambda: service
    return service


class TestCORSMiddleware:
    """Verify that CORS headers are present on responses."""

    @pytest.mark.asyncio
    async def test_cors_headers_on_preflight(self, async_client):
        response = await async_client.options(
            "/api/v1/health",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert "access-control-allow-origin" in response.headers

    @pytest.mark.asyncio
    async def test_cors_headers_on_get(self, async_client):
        response = await async_client.get(
            "/api/v1/health", headers={"Origin": "http://localhost:3000"}
        )
        assert response.status_code == 200
        assert response.headers.get("access-control-allow-origin") == "http://localhost:3000"


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health_returns_ok(self, async_client):
        response = await async_client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestValidationErrorFormat:
    """Pydantic validation errors use the custom error body."""

    @pytest.mark.asyncio
    async def test_blank_company_returns_422(self, async_client):
        service = _override(get_lead_service, AsyncMock())

        response = await async_client.post(
            "/api/v1/leads", json={"title": "Deal", "company": " "}
        )

        assert response.status_code == 422
        body = response.json()
        assert body["type"] == "validation_error"
        assert body["errors"]
        service.create_lead.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_phone_returns_422(self, async_client):
        _override(get_lead_service, AsyncMock())

        response = await async_client.post(
            "/api/v1/leads",
            json={"title": "Deal", "company": "Acme", "phone": "call me"},
        )

        assert response.status_code == 422
        assert response.json()["type"] == "validation_error"

    @pytest.mark.asyncio
    async def test_deal_update_rejects_stage(self, async_client):
        service = _override(get_deal_service, AsyncMock())

        response = await async_client.put("/api/v1/deals/5", json={"stage": "closed-won"})

        assert response.status_code == 422
        service.update_deal.assert_not_awaited()


class TestLeadEndpoints:
    @pytest.mark.asyncio
    async def test_create_lead_returns_assignment(self, async_client):
        service = _override(get_lead_service, AsyncMock())
        decision = AssignmentDecision(
            assigned_to=4,
            reason="Auto-assigned via fallback strategy (least workload)",
            method=AssignmentMethod.fallback,
        )
        service.create_lead = AsyncMock(return_value=(_lead(), decision))

        response = await async_client.post(
            "/api/v1/leads", json={"title": "Website redesign", "company": "Acme"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["lead"]["assigned_to"] == 4
        assert body["assignment"]["method"] == "fallback"
        assert body["requires_manual_assignment"] is False

    @pytest.mark.asyncio
    async def test_unassigned_lead_requires_manual_assignment(self, async_client):
        service = _override(get_lead_service, AsyncMock())
        service.create_lead = AsyncMock(return_value=(_lead(assigned_to=None), None))

        response = await async_client.post(
            "/api/v1/leads", json={"title": "Website redesign", "company": "Acme"}
        )

        assert response.json()["requires_manual_assignment"] is True

    @pytest.mark.asyncio
    async def test_missing_lead_returns_404(self, async_client):
        service = _override(get_lead_service, AsyncMock())
        service.get_lead = AsyncMock(side_effect=LeadNotFoundError("Lead 9 not found"))

        response = await async_client.get("/api/v1/leads/9")

        assert response.status_code == 404
        assert response.json() == {"detail": "Lead 9 not found", "type": "lead_not_found"}

    @pytest.mark.asyncio
    async def test_clearing_title_returns_422(self, async_client):
        service = _override(get_lead_service, AsyncMock())
        service.update_lead = AsyncMock(
            side_effect=InvalidLeadDataError("Title and company are required")
        )

        response = await async_client.put("/api/v1/leads/1", json={"title": None})

        assert response.status_code == 422
        assert response.json()["type"] == "invalid_lead_data"

    @pytest.mark.asyncio
    async def test_scoring_rules(self, async_client):
        service = _override(get_lead_service, MagicMock())
        service.scoring_config = MagicMock(return_value=LeadScorer().config())

        response = await async_client.get("/api/v1/leads/scoring-rules")

        assert response.status_code == 200
        assert "weights" in response.json()

    @pytest.mark.asyncio
    async def test_bulk_assign_reports_failures(self, async_client):
        service = _override(get_lead_service, AsyncMock())
        service.bulk_assign = AsyncMock(
            return_value=BulkResult(
                updated=1,
                total=2,
                failures=[BulkFailure(id=8, message="Lead 8 not found")],
            )
        )

        response = await async_client.post(
            "/api/v1/leads/bulk-assign", json={"ids": [7, 8], "assignee_id": 3}
        )

        assert response.status_code == 200
        assert response.json()["failures"] == [{"id": 8, "message": "Lead 8 not found"}]
        service.bulk_assign.assert_awaited_once_with([7, 8], 3)


class TestDealEndpoints:
    @pytest.mark.asyncio
    async def test_stage_transition(self, async_client):
        service = _override(get_deal_service, AsyncMock())
        service.transition_stage = AsyncMock(return_value=_deal(stage="negotiation"))

        response = await async_client.post(
            "/api/v1/deals/5/stage", json={"stage": "negotiation"}
        )

        assert response.status_code == 200
        assert response.json()["stage"] == "negotiation"
        deal_id, stage = service.transition_stage.await_args.args
        assert (deal_id, stage.value) == (5, "negotiation")

    @pytest.mark.asyncio
    async def test_unknown_stage_rejected(self, async_client):
        _override(get_deal_service, AsyncMock())

        response = await async_client.post("/api/v1/deals/5/stage", json={"stage": "won"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_missing_deal_returns_404(self, async_client):
        service = _override(get_deal_service, AsyncMock())
        service.get_stage_history = AsyncMock(side_effect=DealNotFoundError("Deal 5 not found"))

        response = await async_client.get("/api/v1/deals/5/stage-history")

        assert response.status_code == 404
        assert response.json()["type"] == "deal_not_found"

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_500(self):
        service = _override(get_deal_service, AsyncMock())
        service.list_deals = AsyncMock(side_effect=RuntimeError("boom"))

        # Starlette re-raises after the catch-all handler responds.
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        try:
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/api/v1/deals")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json()["type"] == "internal_server_error"


class TestAssignmentRuleEndpoints:
    @pytest.mark.asyncio
    async def test_invalid_rule_lists_every_error(self, async_client):
        service = _override(get_rule_service, AsyncMock())
        service.create_rule = AsyncMock(
            side_effect=InvalidRuleError(
                ["Rule name is required", "At least one condition is required"]
            )
        )

        response = await async_client.post(
            "/api/v1/assignment-rules", json={"name": "", "entity": "leads"}
        )

        assert response.status_code == 422
        body = response.json()
        assert body["type"] == "invalid_rule"
        assert body["errors"] == [
            "Rule name is required",
            "At least one condition is required",
        ]

    @pytest.mark.asyncio
    async def test_unknown_entity_rejected(self, async_client):
        _override(get_rule_service, AsyncMock())

        response = await async_client.get("/api/v1/assignment-rules/entity/widgets")

        assert response.status_code == 422


class TestAutoAssignEndpoint:
    @pytest.mark.asyncio
    async def test_preview_decision(self, async_client):
        orchestrator = _override(get_assignment_orchestrator, AsyncMock())
        orchestrator.auto_assign = AsyncMock(
            return_value=AssignmentDecision(
                assigned_to=3,
                reason="Auto-assigned via rule: Big deals",
                rule_used=2,
                method=AssignmentMethod.rule,
            )
        )

        response = await async_client.post(
            "/api/v1/assignments/auto",
            json={"entity_type": "deals", "fields": {"amount": 90000}},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["decision"]["rule_used"] == 2
        assert body["requires_manual_assignment"] is False

    @pytest.mark.asyncio
    async def test_no_decision_requires_manual_assignment(self, async_client):
        orchestrator = _override(get_assignment_orchestrator, AsyncMock())
        orchestrator.auto_assign = AsyncMock(return_value=None)

        response = await async_client.post(
            "/api/v1/assignments/auto", json={"entity_type": "leads"}
        )

        assert response.json() == {
            "success": True,
            "decision": None,
            "requires_manual_assignment": True,
        }


class TestTeamEndpoints:
    """The roster is served from defaults when Redis is unavailable."""

    @pytest.mark.asyncio
    async def test_members_served_without_redis(self, async_client):
        _override(get_cache_service, CacheService())

        response = await async_client.get("/api/v1/team/members")

        assert response.status_code == 200
        assert [m["id"] for m in response.json()] == [1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_unknown_member_returns_404(self, async_client):
        _override(get_cache_service, CacheService())

        response = await async_client.get("/api/v1/team/members/99")

        assert response.status_code == 404
        assert response.json()["type"] == "team_member_not_found"

    @pytest.mark.asyncio
    async def test_availability_write_without_redis_returns_503(self, async_client):
        _override(get_cache_service, CacheService())

        response = await async_client.put(
            "/api/v1/team/members/2/availability", json={"availability": "unavailable"}
        )

        assert response.status_code == 503
        assert response.json()["type"] == "team_directory_unavailable"

    @pytest.mark.asyncio
    async def test_availability_write_with_redis(self, async_client, mock_cache, mock_redis):
        _override(get_cache_service, mock_cache)

        response = await async_client.put(
            "/api/v1/team/members/2/availability", json={"availability": "unavailable"}
        )

        assert response.status_code == 200
        assert response.json()["availability"] == "unavailable"
        mock_redis.set.assert_awaited()
