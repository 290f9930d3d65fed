# backend/prospector/services/apollo_service.py
"""
Apollo.io Service - Organization lookups for company enrichment
1. Organization Search - find a company by name (domain resolution)
2. Organization Enrich - full company profile by domain (ENRICHMENT)

Every call is bounded by a timeout. HTTP failures are classified:
- 429 -> ApolloRateLimitedError (retryable by the caller)
- 401/403 -> ApolloUnauthorizedError (fatal for the whole batch)
- 404, other errors, timeouts, network errors, malformed payloads -> None (soft "no organization")
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from prospector.config import settings
from prospector.schemas.enrichment import OrganizationRecord

logger = logging.getLogger(__name__)


# ============================================================================
# ERRORS
# ============================================================================

class ApolloError(Exception):
    """Base class for Apollo failures that callers must react to."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ApolloRateLimitedError(ApolloError):
    """Apollo answered 429 Too Many Requests."""

    def __init__(self, message: str = "RATE_LIMITED", retry_after: Optional[float] = None):
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class ApolloUnauthorizedError(ApolloError):
    """Apollo rejected the API key."""

    def __init__(self, message: str = "Invalid Apollo API key", status_code: int = 401):
        super().__init__(message, status_code=status_code)


class RateLimitExhaustedError(ApolloError):
    """Still rate limited after the retry budget was spent."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message, status_code=429)
        self.attempts = attempts


# ============================================================================
# SERVICE
# ============================================================================

class ApolloService:
    """Apollo.io organization search + enrichment"""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or settings.APOLLO_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.APOLLO_TIMEOUT_SECONDS
        self._client = client

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "Content-Type": "application/json",
            "Cache-Control": "no-cache",
        }

    # ========================================================================
    # DOMAIN RESOLUTION - Search organization by name
    # ========================================================================

    async def search_organization(
        self,
        company_name: str,
        page: int = 1,
        per_page: int = 1
    ) -> Optional[OrganizationRecord]:
        """
        Best Apollo match for a company name.

        Returns the first organization of the result page, or None.
        """
        logger.info(f"🔍 Apollo Search: '{company_name}'")

        payload = {
            "q_organization_name": company_name,
            "page": page,
            "per_page": per_page,
        }
        data = await self._request(
            "POST",
            "/organizations/search",
            label=f"search '{company_name}'",
            json=payload,
        )
        if data is None:
            return None

        orgs = data.get("organizations") or []
        if not isinstance(orgs, list):
            logger.error(f"Apollo Search: 'organizations' is a {type(orgs).__name__}, expected a list")
            return None

        if not orgs:
            logger.info(f"Apollo Search: no results for '{company_name}'")
            return None

        org = _parse_organization(orgs[0], label=f"search '{company_name}'")
        if org is None:
            return None

        logger.info(f"✅ Apollo Search: found '{org.name}' for '{company_name}'")
        return org

    # ========================================================================
    # ENRICHMENT - Get company data by domain
    # ========================================================================

    async def enrich_organization(self, domain: str) -> Optional[OrganizationRecord]:
        """Full Apollo organization profile for a domain, or None."""
        logger.info(f"🔍 Apollo Org: Enriching '{domain}'")

        data = await self._request(
            "GET",
            "/organizations/enrich",
            label=f"enrich '{domain}'",
            params={"domain": domain},
        )
        if data is None:
            return None

        raw = data.get("organization")
        if not raw:
            logger.info(f"No Apollo org data for {domain}")
            return None

        org = _parse_organization(raw, label=f"enrich '{domain}'")
        if org is None:
            return None

        logger.info(f"✅ Apollo enriched {domain}: '{org.name}'")
        return org

    # ========================================================================
    # HTTP
    # ========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        label: str,
        **kwargs: Any
    ) -> Optional[Dict[str, Any]]:
        """
        Send one request and classify the outcome.

        Raises ApolloRateLimitedError / ApolloUnauthorizedError; every other
        failure is logged and returns None. self.timeout caps the whole call,
        not just each connect/read phase.
        """
        url = f"{self.base_url}{path}"

        try:
            response = await asyncio.wait_for(
                self._send(method, url, **kwargs),
                timeout=self.timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError):
            logger.warning(f"Apollo {label}: timed out after {self.timeout}s")
            return None
        except httpx.TransportError as e:
            logger.warning(f"Apollo {label}: network error {e}")
            return None

        status = response.status_code

        if status == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            logger.warning(f"⚠️ Apollo {label}: rate limited (429)")
            raise ApolloRateLimitedError(retry_after=retry_after)

        if status in (401, 403):
            logger.error(f"❌ Apollo {label}: API key rejected ({status})")
            raise ApolloUnauthorizedError(status_code=status)

        if status == 404:
            logger.info(f"Apollo {label}: 404 not found")
            return None

        if status >= 400:
            logger.error(f"Apollo {label}: HTTP {status} {response.text[:200]}")
            return None

        try:
            data = response.json()
        except ValueError:
            logger.error(f"Apollo {label}: response was not JSON")
            return None

        if not isinstance(data, dict):
            logger.error(f"Apollo {label}: unexpected payload type {type(data).__name__}")
            return None

        return data

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(
                method, url, headers=self.headers, timeout=self.timeout, **kwargs
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.request(method, url, headers=self.headers, **kwargs)


def _parse_organization(raw: Any, label: str) -> Optional[OrganizationRecord]:
    """Validate one organization entry; a malformed entry counts as no organization."""
    try:
        return OrganizationRecord.model_validate(raw)
    except ValidationError as e:
        logger.error(f"Apollo {label}: malformed organization payload ({e.error_count()} errors)")
        return None


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


def create_apollo_service(
    api_key: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None
) -> ApolloService:
    """Factory function"""
    return ApolloService(api_key=api_key or settings.APOLLO_API_KEY or "", client=client)
