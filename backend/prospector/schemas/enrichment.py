"""
Pydantic schemas for company enrichment.

Candidate (scraped hiring signal) -> ResolvedIdentity -> OrganizationRecord (Apollo)
-> EnrichedCompany (canonical output, one per candidate, input order preserved).
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# ENUMS
# ============================================================================

class IdentitySource(str, Enum):
    """Where a resolved domain came from"""
    SCRAPED = "scraped"
    PROVIDER_SEARCH = "provider_search"
    GUESS_VALIDATED = "guess_validated"
    FAILED = "failed"


class EnrichmentStatus(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    FAILED = "failed"


class FactorStatus(str, Enum):
    PASS = "pass"
    PARTIAL = "partial"
    FAIL = "fail"


# ============================================================================
# INPUT
# ============================================================================

class Candidate(BaseModel):
    """One hiring-signal record from the job board scraper."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    company: str = Field(..., min_length=1)
    domain: Optional[str] = None
    title: Optional[str] = None
    url: Optional[str] = None
    location: Optional[str] = None

    @field_validator("company")
    @classmethod
    def company_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("company name is required")
        return v

    @field_validator("domain")
    @classmethod
    def blank_domain_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()


class EnrichRequest(BaseModel):
    """POST /api/v1/enrich body"""
    companies: List[Candidate] = Field(default_factory=list)
    api_key: Optional[str] = None


# ============================================================================
# APOLLO ORGANIZATION
# ============================================================================

class OrganizationRecord(BaseModel):
    """
    Apollo organization profile.

    Only the fields the pipeline reads are declared; everything else Apollo
    sends is kept as extra data. Every field may be absent.
    """
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: Optional[str] = None
    primary_domain: Optional[str] = None
    website_url: Optional[str] = None
    industry: Optional[str] = None
    estimated_num_employees: Optional[int] = None
    annual_revenue: Optional[float] = None
    annual_revenue_printed: Optional[str] = None
    total_funding: Optional[float] = None
    total_funding_printed: Optional[str] = None
    latest_funding_stage: Optional[str] = None
    latest_funding_round_date: Optional[str] = None
    founded_year: Optional[int] = None
    short_description: Optional[str] = None
    seo_description: Optional[str] = None
    logo_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    technology_names: List[str] = Field(default_factory=list)

    @field_validator("keywords", "technology_names", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, (list, tuple)):
            return []
        return [str(item) for item in v if item]

    @field_validator("estimated_num_employees", "founded_year", mode="before")
    @classmethod
    def coerce_int(cls, v):
        if v in (None, ""):
            return None
        try:
            return int(float(v))
        except (TypeError, ValueError):
            return None

    @field_validator("annual_revenue", "total_funding", mode="before")
    @classmethod
    def coerce_float(cls, v):
        if v in (None, ""):
            return None
        try:
            return float(v)
        except (TypeError, ValueError):
            return None


class ResolvedIdentity(BaseModel):
    """Output of the DomainResolver. domain is None only when source is FAILED."""
    domain: Optional[str] = None
    source: IdentitySource = IdentitySource.FAILED
    matched_name: Optional[str] = None

    # Set for GUESS_VALIDATED: the record already fetched while validating the guess
    organization: Optional[OrganizationRecord] = Field(default=None, exclude=True)

    @classmethod
    def failed(cls) -> "ResolvedIdentity":
        return cls(domain=None, source=IdentitySource.FAILED, matched_name=None)


# ============================================================================
# OUTPUT
# ============================================================================

class ICPFactorResult(BaseModel):
    factor: str
    points: int
    status: FactorStatus
    detail: str


class EnrichedCompany(BaseModel):
    """Canonical per-candidate result handed to the UI and the CSV exporter."""

    # From the scraped job
    scraped_job_title: Optional[str] = None
    scraped_job_url: Optional[str] = None
    company_name: str
    location: Optional[str] = None
    domain: Optional[str] = None

    enrichment_status: EnrichmentStatus
    error: Optional[str] = None

    # Apollo organization subset (success only)
    apollo_matched_name: Optional[str] = None
    website_url: Optional[str] = None
    industry: Optional[str] = None
    estimated_num_employees: Optional[int] = None
    annual_revenue: Optional[float] = None
    annual_revenue_printed: Optional[str] = None
    total_funding: Optional[float] = None
    total_funding_printed: Optional[str] = None
    latest_funding_stage: Optional[str] = None
    latest_funding_round_date: Optional[str] = None
    founded_year: Optional[int] = None
    short_description: Optional[str] = None
    seo_description: Optional[str] = None
    logo_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    technology_names: List[str] = Field(default_factory=list)

    # ICP
    icp_score: int = 0
    icp_raw_score: int = 0
    icp_max_score: Optional[int] = None
    icp_breakdown: List[ICPFactorResult] = Field(default_factory=list)
    identity_source: Optional[IdentitySource] = None

    @classmethod
    def from_candidate(
        cls,
        candidate: Candidate,
        status: EnrichmentStatus,
        error: Optional[str] = None,
        domain: Optional[str] = None,
        identity_source: Optional[IdentitySource] = None,
    ) -> "EnrichedCompany":
        """Row for a candidate that did not reach SUCCESS."""
        return cls(
            scraped_job_title=candidate.title,
            scraped_job_url=candidate.url,
            company_name=candidate.company,
            location=candidate.location,
            domain=domain,
            enrichment_status=status,
            error=error,
            identity_source=identity_source,
        )


# ============================================================================
# STREAM EVENTS
# ============================================================================

class ProgressEvent(BaseModel):
    type: Literal["progress"] = "progress"
    index: int
    current: int
    total: int
    company: str
    status: str = "enriching"


class CompanyDoneEvent(BaseModel):
    type: Literal["company_done"] = "company_done"
    index: int
    current: int
    total: int
    company: str
    status: EnrichmentStatus
    error: Optional[str] = None
    data: EnrichedCompany


class BatchErrorEvent(BaseModel):
    type: Literal["batch_error"] = "batch_error"
    index: int
    error: str
    remaining: int


class CompleteEvent(BaseModel):
    type: Literal["complete"] = "complete"
    total: int
    successful: int
    failed: int
    not_found: int
    results: List[EnrichedCompany]


EnrichmentEvent = Union[ProgressEvent, CompanyDoneEvent, BatchErrorEvent, CompleteEvent]


def summarize(results: List[EnrichedCompany]) -> Dict[str, Any]:
    """Counts by terminal status"""
    return {
        "total": len(results),
        "successful": sum(1 for r in results if r.enrichment_status == EnrichmentStatus.SUCCESS),
        "failed": sum(1 for r in results if r.enrichment_status == EnrichmentStatus.FAILED),
        "not_found": sum(1 for r in results if r.enrichment_status == EnrichmentStatus.NOT_FOUND),
    }
