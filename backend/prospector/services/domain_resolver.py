# backend/prospector/services/domain_resolver.py
"""
Domain Resolver - company name -> trustworthy domain

Strategies, first success wins:
1. Scraped domain (trusted as-is, no Apollo call)
2. Apollo organization search by name (hit must pass the name validator)
3. Domain guesses (acme.com, acme.io, acme.ai ...) enriched one by one;
   accepted only when Apollo echoes the guessed domain AND the name matches
4. Give up -> source=failed

Soft Apollo failures (404, timeouts, exhausted rate limit) fall through to the
next strategy. ApolloUnauthorizedError is NOT caught: a bad key ends the batch.
"""

import re
import logging
from typing import List, Optional

from prospector.config import settings
from prospector.schemas.enrichment import IdentitySource, ResolvedIdentity
from prospector.services.apollo_service import ApolloService, RateLimitExhaustedError
from prospector.services.company_matcher import (
    domain_echo_matches,
    reported_domain,
    validate_company_match,
)
from prospector.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")
_WHITESPACE_RE = re.compile(r"\s+")


def guess_domains(company_name: str, suffixes: Optional[List[str]] = None) -> List[str]:
    """
    Ordered, de-duplicated domain guesses for a company name.

    "Acme-Labs" -> acmelabs.com, acmelabs.io, acmelabs.ai, acme-labs.com
    """
    if suffixes is None:
        suffixes = settings.domain_guess_suffixes

    lowered = company_name.lower().strip()
    cleaned = _NON_ALNUM_RE.sub("", lowered)
    spaceless = _WHITESPACE_RE.sub("", lowered)

    guesses: List[str] = []
    if cleaned:
        guesses.extend(f"{cleaned}{suffix}" for suffix in suffixes)
    if spaceless and spaceless != cleaned:
        guesses.append(f"{spaceless}.com")

    seen = set()
    ordered = []
    for guess in guesses:
        if guess not in seen:
            seen.add(guess)
            ordered.append(guess)
    return ordered


class DomainResolver:
    """Resolves a candidate company to a domain, recording how it was found"""

    def __init__(
        self,
        apollo: ApolloService,
        rate_limiter: RateLimiter,
        suffixes: Optional[List[str]] = None
    ):
        self.apollo = apollo
        self.rate_limiter = rate_limiter
        self.suffixes = suffixes if suffixes is not None else settings.domain_guess_suffixes

    async def resolve(self, company_name: str, known_domain: Optional[str] = None) -> ResolvedIdentity:
        """
        Run the strategies in order. Returns ResolvedIdentity.failed() when all miss.

        Provider misses, malformed payloads and exhausted rate limits fall through
        to the next strategy. ApolloUnauthorizedError is the one exception raised,
        so the caller can abort the batch on a rejected key.
        """

        # Strategy 1: scraped domain
        if known_domain and known_domain.strip():
            domain = known_domain.strip().lower()
            logger.info(f"✅ Using scraped domain for '{company_name}': {domain}")
            return ResolvedIdentity(domain=domain, source=IdentitySource.SCRAPED)

        # Strategy 2: Apollo name search
        identity = await self._resolve_by_search(company_name)
        if identity:
            return identity

        # Strategy 3: domain guesses
        identity = await self._resolve_by_guess(company_name)
        if identity:
            return identity

        logger.info(f"❌ Could not resolve domain for '{company_name}'")
        return ResolvedIdentity.failed()

    async def _resolve_by_search(self, company_name: str) -> Optional[ResolvedIdentity]:
        logger.info(f"🔍 Searching Apollo for domain: '{company_name}'")
        try:
            org = await self.rate_limiter.call_with_backoff(
                self.apollo.search_organization,
                company_name,
                label=f"search '{company_name}'",
            )
        except RateLimitExhaustedError as e:
            logger.warning(f"⚠️ {e.message}; trying domain guesses")
            return None

        if org is None:
            return None

        domain = reported_domain(org.primary_domain, org.website_url)
        if not domain:
            logger.info(f"Apollo search hit '{org.name}' has no domain")
            return None

        if not validate_company_match(company_name, org.name):
            logger.info(
                f"⚠️ Apollo search returned '{org.name}' ({domain}) for '{company_name}', "
                f"name mismatch - ignoring"
            )
            return None

        logger.info(f"✅ Apollo search resolved '{company_name}' -> {domain} ('{org.name}')")
        return ResolvedIdentity(
            domain=domain,
            source=IdentitySource.PROVIDER_SEARCH,
            matched_name=org.name,
        )

    async def _resolve_by_guess(self, company_name: str) -> Optional[ResolvedIdentity]:
        guesses = guess_domains(company_name, self.suffixes)
        if not guesses:
            return None

        logger.info(f"🔍 Trying domain guesses for '{company_name}': {', '.join(guesses)}")

        for guess in guesses:
            try:
                org = await self.rate_limiter.call_with_backoff(
                    self.apollo.enrich_organization,
                    guess,
                    label=f"enrich guess '{guess}'",
                )
            except RateLimitExhaustedError as e:
                logger.warning(f"⚠️ {e.message}; skipping guess {guess}")
                continue

            if org is None or not org.name:
                logger.debug(f"Guess {guess}: no organization")
                continue

            echoed = reported_domain(org.primary_domain, org.website_url)
            if not domain_echo_matches(echoed, guess):
                logger.info(
                    f"⚠️ Guess {guess} rejected: Apollo reports domain '{echoed}' for '{org.name}'"
                )
                continue

            if not validate_company_match(company_name, org.name):
                logger.info(
                    f"⚠️ Guess {guess} rejected: '{org.name}' does not match '{company_name}'"
                )
                continue

            logger.info(f"✅ Guess {guess} validated for '{company_name}' ('{org.name}')")
            return ResolvedIdentity(
                domain=guess,
                source=IdentitySource.GUESS_VALIDATED,
                matched_name=org.name,
                organization=org,
            )

        return None
