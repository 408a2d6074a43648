"""
Unit tests for the Redis settlement lock helpers.
"""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from edubridge.core.redis import acquire_lock, release_lock


class TestAcquireLock:
    """Tests for acquire_lock."""

    @pytest.mark.asyncio
    async def test_returns_token_when_acquired(self, mock_redis):
        token = await acquire_lock(mock_redis, "settlement:cs_1", 30)

        assert token
        mock_redis.set.assert_awaited_once_with("settlement:cs_1", token, nx=True, ex=30)

    @pytest.mark.asyncio
    async def test_returns_none_when_held(self, mock_redis):
        mock_redis.set = AsyncMock(return_value=None)

        assert await acquire_lock(mock_redis, "settlement:cs_1", 30) is None

    @pytest.mark.asyncio
    async def test_proceeds_without_redis(self):
        assert await acquire_lock(None, "settlement:cs_1", 30) == ""

    @pytest.mark.asyncio
    async def test_proceeds_when_redis_errors(self, mock_redis):
        mock_redis.set = AsyncMock(side_effect=RedisConnectionError("down"))

        assert await acquire_lock(mock_redis, "settlement:cs_1", 30) == ""


class TestReleaseLock:
    """Tests for release_lock."""

    @pytest.mark.asyncio
    async def test_releases_with_owner_token(self, mock_redis):
        await release_lock(mock_redis, "settlement:cs_1", "abc")

        args = mock_redis.eval.await_args.args
        assert args[1:] == (1, "settlement:cs_1", "abc")

    @pytest.mark.asyncio
    async def test_unlocked_section_is_noop(self, mock_redis):
        await release_lock(mock_redis, "settlement:cs_1", "")

        mock_redis.eval.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_redis_error_is_not_raised(self, mock_redis):
        mock_redis.eval = AsyncMock(side_effect=RedisConnectionError("down"))

        await release_lock(mock_redis, "settlement:cs_1", "abc")
