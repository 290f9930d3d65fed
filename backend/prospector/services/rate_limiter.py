# backend/prospector/services/rate_limiter.py
"""
Rate limiting for Apollo calls

Two mechanisms, both sequential (one call in flight at a time):
- Fixed courtesy delay before each domain-enrichment request
- Bounded exponential backoff when Apollo answers 429
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from prospector.config import settings
from prospector.services.apollo_service import ApolloRateLimitedError, RateLimitExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RateLimiter:
    """
    Apollo rate limiter

    Backoff schedule with the defaults (base 2s, 2 retries): 2s, 4s, then give up.
    """

    def __init__(
        self,
        request_delay: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_base: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.request_delay = (
            request_delay if request_delay is not None else settings.ENRICH_REQUEST_DELAY_SECONDS
        )
        self.max_retries = max_retries if max_retries is not None else settings.RATE_LIMIT_MAX_RETRIES
        self.backoff_base = (
            backoff_base if backoff_base is not None else settings.RATE_LIMIT_BACKOFF_BASE_SECONDS
        )
        self._sleep = sleep

        # Request tracking
        self.request_count = 0
        self.rate_limited_count = 0
        self.consecutive_errors = 0
        self.last_request_time: Optional[datetime] = None

    async def wait_before_request(self, request_type: str = "enrich"):
        """Courtesy pause before an enrichment call"""
        if self.request_delay > 0:
            logger.debug(f"⏳ Waiting {self.request_delay:.2f}s before {request_type} request...")
            await self._sleep(self.request_delay)

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number attempt + 1 (attempt is 0-based)"""
        return self.backoff_base * (2 ** attempt)

    async def call_with_backoff(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        label: str = "apollo",
        **kwargs: Any
    ) -> T:
        """
        Call func, retrying on ApolloRateLimitedError.

        Raises RateLimitExhaustedError once max_retries retries were all rate
        limited. Any other exception propagates untouched.
        """
        attempt = 0
        while True:
            self.request_count += 1
            self.last_request_time = datetime.utcnow()
            try:
                result = await func(*args, **kwargs)
            except ApolloRateLimitedError:
                self.rate_limited_count += 1
                self.mark_error("rate_limited")

                if attempt >= self.max_retries:
                    raise RateLimitExhaustedError(
                        f"Apollo rate limit persisted after {self.max_retries} retries ({label})",
                        attempts=attempt + 1,
                    )

                delay = self.backoff_delay(attempt)
                logger.warning(
                    f"⚠️ Rate limited on {label}, waiting {delay:.1f}s before retry "
                    f"{attempt + 1}/{self.max_retries}"
                )
                await self._sleep(delay)
                attempt += 1
                continue

            self.mark_success()
            return result

    def mark_success(self):
        """Mark last request as successful (reset error counter)"""
        if self.consecutive_errors > 0:
            logger.info(f"✅ Request successful, resetting error counter (was {self.consecutive_errors})")
        self.consecutive_errors = 0

    def mark_error(self, error_type: str = "generic"):
        """Mark last request as failed"""
        self.consecutive_errors += 1
        logger.debug(f"Request failed ({error_type}): {self.consecutive_errors} consecutive errors")

    def get_stats(self) -> Dict:
        """Get current rate limiter stats"""
        return {
            "total_requests": self.request_count,
            "rate_limited": self.rate_limited_count,
            "consecutive_errors": self.consecutive_errors,
            "last_request": self.last_request_time.isoformat() if self.last_request_time else None,
        }
