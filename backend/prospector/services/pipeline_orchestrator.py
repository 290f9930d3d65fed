# backend/prospector/services/pipeline_orchestrator.py
"""
Enrichment Orchestrator - candidates in, scored companies out

Per candidate:
    pending -> resolving -> enriching (<-> rate limit backoff) -> success | not_found | failed

FEATURES:
- Strictly sequential: one Apollo call in flight, progress order == input order
- Exactly one terminal EnrichedCompany per candidate, even after an abort
- Invalid API key aborts the rest of the batch with a single batch_error
- Everything else (404, timeouts, exhausted rate limit, mismatches) stays per-candidate
"""

from typing import AsyncIterator, Awaitable, Callable, List, Optional
from datetime import datetime
import logging

from prospector.schemas.enrichment import (
    BatchErrorEvent,
    Candidate,
    CompanyDoneEvent,
    CompleteEvent,
    EnrichedCompany,
    EnrichmentEvent,
    EnrichmentStatus,
    IdentitySource,
    OrganizationRecord,
    ProgressEvent,
    ResolvedIdentity,
    summarize,
)
from prospector.services.apollo_service import (
    ApolloService,
    ApolloUnauthorizedError,
    RateLimitExhaustedError,
    create_apollo_service,
)
from prospector.services.company_matcher import validate_company_match
from prospector.services.domain_resolver import DomainResolver
from prospector.services.icp_scoring_engine import ICPScoringEngine
from prospector.services.rate_limiter import RateLimiter
from prospector.services.result_store import DEFAULT_SESSION_ID, ResultStore, get_result_store

logger = logging.getLogger(__name__)

CANCELLED_ERROR = "Enrichment cancelled: client disconnected"
UNRESOLVED_ERROR = "Could not resolve domain for this company"
NO_DATA_ERROR = "Apollo enrichment returned no data for this domain"

CancelCheck = Callable[[], Awaitable[bool]]


class EnrichmentOrchestrator:
    """
    Orchestrates domain resolution, Apollo enrichment and ICP scoring

    Flow:
    1. Resolve identity (scraped domain / search / validated guess)
    2. Enrich by domain (skipped when the guess was already enriched)
    3. Re-validate name for scraped domains
    4. Score -> EnrichedCompany
    """

    def __init__(
        self,
        apollo: ApolloService,
        resolver: DomainResolver,
        scoring_engine: ICPScoringEngine,
        rate_limiter: RateLimiter,
        result_store: ResultStore,
        session_id: str = DEFAULT_SESSION_ID
    ):
        self.apollo = apollo
        self.resolver = resolver
        self.scoring_engine = scoring_engine
        self.rate_limiter = rate_limiter
        self.result_store = result_store
        self.session_id = session_id

    # ========================================================================
    # BATCH
    # ========================================================================

    async def run_batch(
        self,
        candidates: List[Candidate],
        should_cancel: Optional[CancelCheck] = None
    ) -> AsyncIterator[EnrichmentEvent]:
        """
        Enrich candidates in order, yielding the progress protocol events.

        Always ends with one CompleteEvent whose results has one row per
        candidate. should_cancel is polled between candidates.
        """
        total = len(candidates)
        results: List[EnrichedCompany] = []
        start_time = datetime.utcnow()

        logger.info(f"🚀 Enrichment batch started: {total} companies (session '{self.session_id}')")

        for index, candidate in enumerate(candidates):
            if should_cancel is not None and await should_cancel():
                logger.warning(
                    f"⚠️ Client disconnected, cancelling {total - index} remaining companies"
                )
                results.extend(
                    _failed_row(c, CANCELLED_ERROR) for c in candidates[index:]
                )
                break

            yield ProgressEvent(
                index=index,
                current=index + 1,
                total=total,
                company=candidate.company,
            )

            try:
                result = await self.enrich_candidate(candidate)

            except ApolloUnauthorizedError as e:
                logger.error(f"❌ Apollo rejected the API key at company {index + 1}/{total}; aborting batch")
                result = _failed_row(candidate, e.message)
                results.append(result)
                yield self._company_done(index, total, candidate, result)

                remaining = candidates[index + 1:]
                results.extend(_failed_row(c, e.message) for c in remaining)
                yield BatchErrorEvent(index=index, error=e.message, remaining=len(remaining))
                break

            except Exception as e:
                logger.exception(f"Enrichment error for '{candidate.company}': {e}")
                result = _failed_row(candidate, str(e) or e.__class__.__name__)

            results.append(result)
            yield self._company_done(index, total, candidate, result)

        self.result_store.save(self.session_id, results)

        counts = summarize(results)
        elapsed = (datetime.utcnow() - start_time).total_seconds()
        logger.info(
            f"✅ Enrichment batch done: {counts['successful']} succeeded, "
            f"{counts['not_found']} not found, {counts['failed']} failed, "
            f"time={elapsed:.2f}s, apollo={self.rate_limiter.get_stats()}"
        )

        yield CompleteEvent(results=results, **counts)

    def _company_done(
        self,
        index: int,
        total: int,
        candidate: Candidate,
        result: EnrichedCompany
    ) -> CompanyDoneEvent:
        return CompanyDoneEvent(
            index=index,
            current=index + 1,
            total=total,
            company=candidate.company,
            status=result.enrichment_status,
            error=result.error,
            data=result,
        )

    # ========================================================================
    # SINGLE CANDIDATE
    # ========================================================================

    async def enrich_candidate(self, candidate: Candidate) -> EnrichedCompany:
        """
        Resolve, enrich and score one candidate.

        Raises ApolloUnauthorizedError; every other outcome is a row.
        """
        company = candidate.company

        # Step 1: resolve
        identity = await self.resolver.resolve(company, candidate.domain)
        if not identity.domain:
            return EnrichedCompany.from_candidate(
                candidate,
                EnrichmentStatus.NOT_FOUND,
                error=UNRESOLVED_ERROR,
                identity_source=IdentitySource.FAILED,
            )

        # Step 2: enrich
        if identity.source == IdentitySource.GUESS_VALIDATED and identity.organization:
            org = identity.organization
        else:
            await self.rate_limiter.wait_before_request("enrich")
            try:
                org = await self.rate_limiter.call_with_backoff(
                    self.apollo.enrich_organization,
                    identity.domain,
                    label=f"enrich '{identity.domain}'",
                )
            except RateLimitExhaustedError as e:
                logger.warning(f"⚠️ {company}: {e.message}")
                return self._not_found(candidate, identity, e.message)

        if org is None or not org.name:
            return self._not_found(candidate, identity, NO_DATA_ERROR)

        # Step 3: name check (search / guess identities are already validated)
        if identity.source == IdentitySource.SCRAPED and not validate_company_match(company, org.name):
            logger.info(f"⚠️ Apollo returned '{org.name}' for '{company}' ({identity.domain}) - mismatch")
            return self._not_found(
                candidate,
                identity,
                f'Apollo returned data for "{org.name}" instead of "{company}"',
            )

        # Step 4: score
        return self._build_success(candidate, identity, org)

    def _not_found(
        self,
        candidate: Candidate,
        identity: ResolvedIdentity,
        error: str
    ) -> EnrichedCompany:
        return EnrichedCompany.from_candidate(
            candidate,
            EnrichmentStatus.NOT_FOUND,
            error=error,
            domain=identity.domain,
            identity_source=identity.source,
        )

    def _build_success(
        self,
        candidate: Candidate,
        identity: ResolvedIdentity,
        org: OrganizationRecord
    ) -> EnrichedCompany:
        icp = self.scoring_engine.score(org, hiring_role=candidate.title)

        logger.info(
            f"✅ {candidate.company}: enriched as '{org.name}' via {identity.source.value}, "
            f"ICP score {icp.score}"
        )

        return EnrichedCompany(
            scraped_job_title=candidate.title,
            scraped_job_url=candidate.url,
            company_name=candidate.company,
            location=candidate.location,
            domain=org.primary_domain or identity.domain,
            enrichment_status=EnrichmentStatus.SUCCESS,
            apollo_matched_name=org.name,
            website_url=org.website_url,
            industry=org.industry,
            estimated_num_employees=org.estimated_num_employees,
            annual_revenue=org.annual_revenue,
            annual_revenue_printed=org.annual_revenue_printed,
            total_funding=org.total_funding,
            total_funding_printed=org.total_funding_printed,
            latest_funding_stage=org.latest_funding_stage,
            latest_funding_round_date=org.latest_funding_round_date,
            founded_year=org.founded_year,
            short_description=org.short_description,
            seo_description=org.seo_description,
            logo_url=org.logo_url,
            linkedin_url=org.linkedin_url,
            city=org.city,
            state=org.state,
            country=org.country,
            keywords=org.keywords,
            technology_names=org.technology_names,
            icp_score=icp.score,
            icp_raw_score=icp.raw_score,
            icp_max_score=icp.max_score,
            icp_breakdown=icp.breakdown,
            identity_source=identity.source,
        )


def _failed_row(candidate: Candidate, error: str) -> EnrichedCompany:
    return EnrichedCompany.from_candidate(
        candidate,
        EnrichmentStatus.FAILED,
        error=error,
        domain=candidate.domain,
    )


def create_enrichment_orchestrator(
    api_key: Optional[str] = None,
    result_store: Optional[ResultStore] = None,
    session_id: str = DEFAULT_SESSION_ID,
    rate_limiter: Optional[RateLimiter] = None,
    apollo: Optional[ApolloService] = None,
    scoring_engine: Optional[ICPScoringEngine] = None
) -> EnrichmentOrchestrator:
    """Factory function"""
    apollo = apollo or create_apollo_service(api_key)
    rate_limiter = rate_limiter or RateLimiter()
    return EnrichmentOrchestrator(
        apollo=apollo,
        resolver=DomainResolver(apollo, rate_limiter),
        scoring_engine=scoring_engine or ICPScoringEngine(),
        rate_limiter=rate_limiter,
        result_store=result_store or get_result_store(),
        session_id=session_id,
    )
