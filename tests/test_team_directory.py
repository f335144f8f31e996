import json
from contextlib import asynccontextmanager

import pytest
from unittest.mock import AsyncMock

from app.core.cache import CacheService
from app.core.default_team import DEFAULT_TEAM_ROSTER
from app.core.exceptions import TeamDirectoryUnavailableError, TeamMemberNotFoundError
from app.schemas.common import Availability
from app.schemas.team import Workload
from app.services.team_directory import TeamDirectory


def _no_workload_scope():
    raise AssertionError("workload scope should not be opened")


def _stored(members):
    return json.dumps(members)


class TestRoster:
    @pytest.mark.asyncio
    async def test_seeds_default_roster_on_first_read(self, mock_cache, mock_redis):
        directory = TeamDirectory(mock_cache, _no_workload_scope, roster_key="team")

        members = await directory.list_members()

        assert [m.id for m in members] == [m["id"] for m in DEFAULT_TEAM_ROSTER]
        mock_redis.set.assert_awaited_once()
        assert mock_redis.set.await_args.kwargs == {"nx": True}

    @pytest.mark.asyncio
    async def test_reads_stored_roster_sorted_by_id(self, mock_cache, mock_redis):
        mock_redis.get = AsyncMock(
            return_value=_stored(
                [
                    {"id": 5, "name": "Eve", "availability": "available"},
                    {"id": 2, "name": "Bob", "availability": "unavailable"},
                ]
            )
        )
        directory = TeamDirectory(mock_cache, _no_workload_scope)

        members = await directory.list_members()

        assert [m.id for m in members] == [2, 5]
        assert [m.id for m in await directory.list_available()] == [5]
        mock_redis.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_without_redis_serves_defaults(self):
        directory = TeamDirectory(CacheService(None), _no_workload_scope)

        members = await directory.list_members()

        assert len(members) == len(DEFAULT_TEAM_ROSTER)

    @pytest.mark.asyncio
    async def test_get_member_not_found(self):
        directory = TeamDirectory(CacheService(None), _no_workload_scope)

        with pytest.raises(TeamMemberNotFoundError):
            await directory.get_member(99)


class TestAvailability:
    @pytest.mark.asyncio
    async def test_set_availability_persists_roster(self, mock_cache, mock_redis):
        directory = TeamDirectory(mock_cache, _no_workload_scope, roster_key="team")

        member = await directory.set_availability(3, Availability.unavailable)

        assert member.availability == Availability.unavailable
        assert member.last_updated is not None
        key, payload = mock_redis.set.await_args_list[-1].args
        assert key == "team"
        stored = {m["id"]: m["availability"] for m in json.loads(payload)}
        assert stored[3] == "unavailable"
        assert stored[1] == "available"

    @pytest.mark.asyncio
    async def test_unknown_member(self, mock_cache):
        directory = TeamDirectory(mock_cache, _no_workload_scope)

        with pytest.raises(TeamMemberNotFoundError):
            await directory.set_availability(42, Availability.available)

    @pytest.mark.asyncio
    async def test_read_only_without_redis(self):
        directory = TeamDirectory(CacheService(None), _no_workload_scope)

        with pytest.raises(TeamDirectoryUnavailableError):
            await directory.set_availability(1, Availability.unavailable)


class TestWorkload:
    @pytest.mark.asyncio
    async def test_workload_uses_own_scope(self, mock_cache):
        repo = AsyncMock()
        repo.get_workload = AsyncMock(return_value=Workload(leads=2, tasks=1))
        opened = []

        @asynccontextmanager
        async def scope():
            opened.append(True)
            yield repo

        directory = TeamDirectory(mock_cache, scope)

        workload = await directory.get_workload(3)

        assert workload.total_active == 3
        repo.get_workload.assert_awaited_once_with(3)
        assert opened == [True]
