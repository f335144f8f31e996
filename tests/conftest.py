from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncGenerator, List
from unittest.mock import AsyncMock

if TYPE_CHECKING:
    from app.core.cache import CacheService

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.main import app
from app.schemas.assignment import AssignmentRuleOut
from app.schemas.team import TeamMember, Workload


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Yield an ``httpx.AsyncClient`` wired to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Return an ``AsyncMock`` that behaves like ``redis.asyncio.Redis``."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.setex = AsyncMock()
    redis.delete = AsyncMock()
    redis.ping = AsyncMock()
    return redis


@pytest.fixture
def mock_cache(mock_redis) -> "CacheService":
    """Return a ``CacheService`` backed by the mock Redis client."""
    from app.core.cache import CacheService

    return CacheService(redis_client=mock_redis)


@pytest.fixture
def roster() -> List[TeamMember]:
    """Four members; member 2 is unavailable."""
    return [
        TeamMember(id=1, name="Current User"),
        TeamMember(id=2, name="John Smith", availability="unavailable"),
        TeamMember(id=3, name="Sarah Wilson"),
        TeamMember(id=4, name="Mike Johnson"),
    ]


@pytest.fixture
def make_rule():
    """Factory for persisted-looking assignment rules."""

    def _make(rule_id=1, conditions=(), **overrides):
        data = {
            "id": rule_id,
            "name": f"Rule {rule_id}",
            "entity": "leads",
            "is_active": True,
            "priority": 1,
            "criteria": {"conditions": list(conditions)},
            "assign_to": None,
        }
        data.update(overrides)
        return AssignmentRuleOut(**data)

    return _make


@pytest.fixture
def mock_directory(roster) -> AsyncMock:
    """Team directory returning :func:`roster` and empty workloads."""
    directory = AsyncMock()
    directory.list_members = AsyncMock(return_value=roster)
    directory.get_workload = AsyncMock(return_value=Workload())
    return directory


@pytest.fixture
def scope_for():
    """Turn a mock repository into a per-item scope factory."""

    def _scope(repo):
        @asynccontextmanager
        async def scope():
            yield repo

        return scope

    return _scope
