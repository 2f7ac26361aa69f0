"""
Tests for the verification rate limiter.
"""

import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from rentalcert.core import rate_limit
from rentalcert.core.rate_limit import (
    RateLimitExceeded,
    check_rate_limit,
    limit_public_verification,
)


@pytest.fixture(autouse=True)
def clear_memory_store():
    rate_limit._memory_store.clear()
    yield
    rate_limit._memory_store.clear()


class TestMemoryFallback:
    @pytest.mark.asyncio
    async def test_blocks_after_limit(self):
        with patch("rentalcert.core.rate_limit.redis_state") as mock_state:
            mock_state.redis_client = None

            results = [await check_rate_limit("verify:test", 3, 60) for _ in range(4)]

        assert results == [True, True, True, False]

    @pytest.mark.asyncio
    async def test_idle_keys_are_evicted(self):
        rate_limit._memory_store["verify:gone"] = [time.time() - 120]
        rate_limit._memory_store["verify:recent"] = [time.time() - 5]

        with patch("rentalcert.core.rate_limit.redis_state") as mock_state:
            mock_state.redis_client = None

            assert await check_rate_limit("verify:new", 3, 60) is True

        assert set(rate_limit._memory_store) == {"verify:recent", "verify:new"}

    @pytest.mark.asyncio
    async def test_redis_error_falls_back_to_memory(self):
        client = MagicMock()
        pipe = MagicMock()
        pipe.execute = AsyncMock(side_effect=RedisConnectionError("refused"))
        client.pipeline.return_value = pipe

        with patch("rentalcert.core.rate_limit.redis_state") as mock_state:
            mock_state.redis_client = client

            assert await check_rate_limit("verify:fallback", 1, 60) is True
            assert await check_rate_limit("verify:fallback", 1, 60) is False

    @pytest.mark.asyncio
    async def test_redis_count_under_limit(self):
        client = MagicMock()
        pipe = MagicMock()
        pipe.execute = AsyncMock(return_value=[0, 4, 1, True])
        client.pipeline.return_value = pipe

        with patch("rentalcert.core.rate_limit.redis_state") as mock_state:
            mock_state.redis_client = client

            assert await check_rate_limit("verify:redis", 5, 60) is True
            assert await check_rate_limit("verify:redis", 4, 60) is False


class TestVerificationDependency:
    @pytest.mark.asyncio
    async def test_raises_429(self):
        request = MagicMock()
        request.client.host = "203.0.113.7"

        with (
            patch("rentalcert.core.rate_limit.redis_state") as mock_state,
            patch("rentalcert.core.rate_limit.settings") as mock_settings,
        ):
            mock_state.redis_client = None
            mock_settings.verify_rate_limit = 1
            mock_settings.verify_rate_limit_window_seconds = 60

            await limit_public_verification(request)
            with pytest.raises(RateLimitExceeded) as exc_info:
                await limit_public_verification(request)

        assert exc_info.value.status_code == 429
        assert exc_info.value.headers["Retry-After"] == "60"
