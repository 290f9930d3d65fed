"""Pydantic schemas for request/response validation."""

from prospector.schemas.enrichment import (
    BatchErrorEvent,
    Candidate,
    CompanyDoneEvent,
    CompleteEvent,
    EnrichedCompany,
    EnrichmentEvent,
    EnrichmentStatus,
    EnrichRequest,
    FactorStatus,
    ICPFactorResult,
    IdentitySource,
    OrganizationRecord,
    ProgressEvent,
    ResolvedIdentity,
)
from prospector.schemas.icp import ICPRubric, ICPScoreResult

__all__ = [
    "BatchErrorEvent",
    "Candidate",
    "CompanyDoneEvent",
    "CompleteEvent",
    "EnrichedCompany",
    "EnrichmentEvent",
    "EnrichmentStatus",
    "EnrichRequest",
    "FactorStatus",
    "ICPFactorResult",
    "ICPRubric",
    "ICPScoreResult",
    "IdentitySource",
    "OrganizationRecord",
    "ProgressEvent",
    "ResolvedIdentity",
]
