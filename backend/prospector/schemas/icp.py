"""
Pydantic schemas for the ICP rubric.

The rubric holds the business tuning (keywords, bands, tech weights); the
point values per factor are fixed so the maximum raw score stays at 105.
"""
from typing import Dict, List

from pydantic import BaseModel, Field

from prospector.schemas.enrichment import ICPFactorResult


# ============================================================================
# FACTOR POINTS
# ============================================================================

INDUSTRY_POINTS = 20
EMPLOYEE_POINTS_IDEAL = 15
EMPLOYEE_POINTS_LARGE = 10
EMPLOYEE_POINTS_SMALL = 5
FUNDING_POINTS_STRONG = 15
FUNDING_POINTS_EARLY = 5
REVENUE_POINTS_HIGH = 10
REVENUE_POINTS_MID = 5
TECH_STACK_CAP = 15
TECH_STACK_PASS_AT = 10
HIRING_SIGNAL_POINTS = 20
RECENT_FUNDING_POINTS = 10

MAX_SCORE = (
    INDUSTRY_POINTS
    + EMPLOYEE_POINTS_IDEAL
    + FUNDING_POINTS_STRONG
    + REVENUE_POINTS_HIGH
    + TECH_STACK_CAP
    + HIRING_SIGNAL_POINTS
    + RECENT_FUNDING_POINTS
)


# ============================================================================
# RUBRIC
# ============================================================================

class EmployeeBands(BaseModel):
    ideal_min: int = 100
    ideal_max: int = 2000
    large_max: int = 5000
    small_min: int = 50


class ICPRubric(BaseModel):
    """Target buyer profile for customer-onboarding software"""

    industry_keywords: List[str] = Field(default_factory=lambda: [
        "software",
        "saas",
        "information technology",
        "internet",
        "computer software",
        "technology",
        "cloud",
        "platform",
    ])

    employee_bands: EmployeeBands = Field(default_factory=EmployeeBands)

    strong_funding_stages: List[str] = Field(default_factory=lambda: [
        "series b", "series c", "series d", "series e", "series f", "ipo", "public",
    ])
    early_funding_stages: List[str] = Field(default_factory=lambda: [
        "series a", "seed", "grant", "pre-seed",
    ])

    revenue_high: float = Field(default=10_000_000, ge=0)
    revenue_mid: float = Field(default=1_000_000, ge=0)

    # CRM / CS platforms weigh more than chat, ticketing and collaboration tools
    tech_weights: Dict[str, int] = Field(default_factory=lambda: {
        "salesforce": 5,
        "hubspot": 5,
        "gainsight": 5,
        "intercom": 3,
        "zendesk": 3,
        "totango": 5,
        "churnzero": 5,
        "freshworks": 3,
        "jira": 2,
        "slack": 1,
        "segment": 2,
    })

    recent_funding_months: int = Field(default=24, ge=0)


class ICPScoreResult(BaseModel):
    score: int = Field(..., ge=0, le=100)
    raw_score: int
    max_score: int = MAX_SCORE
    breakdown: List[ICPFactorResult]
