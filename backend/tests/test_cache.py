"""Tests for Redis cache helpers: failures must degrade, not raise."""

from unittest.mock import AsyncMock, patch

import pytest

from app.core import cache


class TestCacheHelpers:
    def test_make_cache_key(self):
        assert cache.make_cache_key("following", 12) == "cache:following:12"

    @pytest.mark.asyncio
    @patch("app.core.cache._get_redis", new_callable=AsyncMock)
    async def test_get_json_decodes(self, mock_redis):
        mock_redis.return_value.get = AsyncMock(return_value="[1, 2]")
        assert await cache.cache_get_json("k") == [1, 2]

    @pytest.mark.asyncio
    @patch("app.core.cache._get_redis", new_callable=AsyncMock)
    async def test_get_json_ignores_garbage(self, mock_redis):
        mock_redis.return_value.get = AsyncMock(return_value="{not json")
        assert await cache.cache_get_json("k") is None

    @pytest.mark.asyncio
    @patch("app.core.cache._get_redis", new_callable=AsyncMock)
    async def test_redis_outage_is_swallowed(self, mock_redis):
        mock_redis.side_effect = ConnectionError("redis down")
        assert await cache.cache_get_json("k") is None
        await cache.cache_set_json("k", [1])
        await cache.cache_delete("k")

    @pytest.mark.asyncio
    @patch("app.core.cache._get_redis", new_callable=AsyncMock)
    async def test_set_json_uses_ttl(self, mock_redis):
        mock_redis.return_value.set = AsyncMock()
        await cache.cache_set_json("k", [3, 4], ttl=30)
        mock_redis.return_value.set.assert_awaited_once_with("k", "[3, 4]", ex=30)
