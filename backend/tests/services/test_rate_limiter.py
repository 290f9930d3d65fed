# tests/services/test_rate_limiter.py
"""
Tests for RateLimiter

Coverage:
- Courtesy delay before enrichment calls
- Exponential backoff schedule (2s, 4s)
- Retry budget exhaustion
- Non rate-limit errors propagate without retry
- Stats

Run with: pytest tests/services/test_rate_limiter.py -v
"""

import pytest
from unittest.mock import AsyncMock, call

from prospector.services.apollo_service import (
    ApolloRateLimitedError,
    ApolloUnauthorizedError,
    RateLimitExhaustedError,
)
from prospector.services.rate_limiter import RateLimiter


class TestCourtesyDelay:

    @pytest.mark.asyncio
    async def test_waits_configured_delay(self, rate_limiter, no_sleep):
        await rate_limiter.wait_before_request()
        no_sleep.assert_awaited_once_with(1.5)

    @pytest.mark.asyncio
    async def test_zero_delay_does_not_sleep(self, no_sleep):
        limiter = RateLimiter(request_delay=0, sleep=no_sleep)
        await limiter.wait_before_request()
        no_sleep.assert_not_awaited()


class TestCallWithBackoff:

    def test_backoff_schedule(self, rate_limiter):
        assert [rate_limiter.backoff_delay(a) for a in range(3)] == [2.0, 4.0, 8.0]

    @pytest.mark.asyncio
    async def test_success_first_try(self, rate_limiter, no_sleep):
        func = AsyncMock(return_value="org")

        assert await rate_limiter.call_with_backoff(func, "acme.com") == "org"
        func.assert_awaited_once_with("acme.com")
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_recovers_after_rate_limit(self, rate_limiter, no_sleep):
        func = AsyncMock(side_effect=[ApolloRateLimitedError(), ApolloRateLimitedError(), "org"])

        assert await rate_limiter.call_with_backoff(func, "acme.com") == "org"
        assert func.await_count == 3
        assert no_sleep.await_args_list == [call(2.0), call(4.0)]
        assert rate_limiter.consecutive_errors == 0

    @pytest.mark.asyncio
    async def test_gives_up_after_two_retries(self, rate_limiter, no_sleep):
        func = AsyncMock(side_effect=ApolloRateLimitedError())

        with pytest.raises(RateLimitExhaustedError) as exc_info:
            await rate_limiter.call_with_backoff(func, "acme.com", label="enrich 'acme.com'")

        assert func.await_count == 3
        assert exc_info.value.attempts == 3
        assert "after 2 retries" in exc_info.value.message
        assert no_sleep.await_args_list == [call(2.0), call(4.0)]
        assert rate_limiter.get_stats()["rate_limited"] == 3

    @pytest.mark.asyncio
    async def test_unauthorized_is_not_retried(self, rate_limiter, no_sleep):
        func = AsyncMock(side_effect=ApolloUnauthorizedError())

        with pytest.raises(ApolloUnauthorizedError):
            await rate_limiter.call_with_backoff(func, "acme.com")

        func.assert_awaited_once()
        no_sleep.assert_not_awaited()
