# backend/prospector/services/icp_scoring_engine.py
"""
ICP Scoring Engine - Scores Apollo organizations against the ICP rubric

Seven factors, always emitted in this order:
1. Industry Match    0 / 20
2. Employee Count    0 / 5 / 10 / 15
3. Funding Stage     0 / 5 / 15
4. Revenue Signal    0 / 5 / 10
5. Tech Stack Fit    0-15 (weighted, capped)
6. Hiring Signal     20 (always)
7. Recent Funding    0 / 10

Raw max is 105, normalized to 0-100. Pure: no I/O, missing data scores 0.
"""

from datetime import datetime, timezone
from typing import List, Optional, Tuple
import logging

from prospector.schemas.enrichment import FactorStatus, ICPFactorResult, OrganizationRecord
from prospector.schemas.icp import (
    EMPLOYEE_POINTS_IDEAL,
    EMPLOYEE_POINTS_LARGE,
    EMPLOYEE_POINTS_SMALL,
    FUNDING_POINTS_EARLY,
    FUNDING_POINTS_STRONG,
    HIRING_SIGNAL_POINTS,
    INDUSTRY_POINTS,
    MAX_SCORE,
    RECENT_FUNDING_POINTS,
    REVENUE_POINTS_HIGH,
    REVENUE_POINTS_MID,
    TECH_STACK_CAP,
    TECH_STACK_PASS_AT,
    ICPRubric,
    ICPScoreResult,
)

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30


class ICPScoringEngine:
    """
    Scores organizations against an ICPRubric

    The rubric carries the tunable data (keywords, bands, tech weights);
    the default rubric targets customer-onboarding buyers.
    """

    def __init__(self, rubric: Optional[ICPRubric] = None):
        self.rubric = rubric or ICPRubric()

    def score(
        self,
        organization: Optional[OrganizationRecord],
        hiring_role: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> ICPScoreResult:
        """Score one organization. now defaults to the current UTC time."""
        org = organization or OrganizationRecord()
        now = now or datetime.now(timezone.utc)

        breakdown = [
            self._score_industry(org),
            self._score_employees(org),
            self._score_funding_stage(org),
            self._score_revenue(org),
            self._score_tech_stack(org),
            self._score_hiring_signal(hiring_role),
            self._score_recent_funding(org, now),
        ]

        raw_score = sum(factor.points for factor in breakdown)
        score = min(round(raw_score / MAX_SCORE * 100), 100)

        logger.debug(f"ICP score for '{org.name}': {score} (raw {raw_score}/{MAX_SCORE})")

        return ICPScoreResult(
            score=score,
            raw_score=raw_score,
            max_score=MAX_SCORE,
            breakdown=breakdown,
        )

    def _score_industry(self, org: OrganizationRecord) -> ICPFactorResult:
        industry = (org.industry or "").lower()
        if industry and any(kw in industry for kw in self.rubric.industry_keywords):
            return _factor(
                "Industry Match", INDUSTRY_POINTS, FactorStatus.PASS,
                f"SaaS/Software ({org.industry})"
            )
        return _factor("Industry Match", 0, FactorStatus.FAIL, org.industry or "Unknown")

    def _score_employees(self, org: OrganizationRecord) -> ICPFactorResult:
        """Sweet spot 100-2000"""
        bands = self.rubric.employee_bands
        emp = org.estimated_num_employees or 0

        if bands.ideal_min <= emp <= bands.ideal_max:
            return _factor(
                "Employee Count", EMPLOYEE_POINTS_IDEAL, FactorStatus.PASS,
                f"{emp:,} employees (ideal range)"
            )
        if bands.ideal_max < emp <= bands.large_max:
            return _factor(
                "Employee Count", EMPLOYEE_POINTS_LARGE, FactorStatus.PARTIAL,
                f"{emp:,} employees (larger than ideal)"
            )
        if bands.small_min <= emp < bands.ideal_min:
            return _factor(
                "Employee Count", EMPLOYEE_POINTS_SMALL, FactorStatus.PARTIAL,
                f"{emp:,} employees (smaller than ideal)"
            )
        return _factor("Employee Count", 0, FactorStatus.FAIL, f"{emp:,} employees")

    def _score_funding_stage(self, org: OrganizationRecord) -> ICPFactorResult:
        """Series B+ preferred"""
        stage = (org.latest_funding_stage or "").lower()

        if stage and any(s in stage for s in self.rubric.strong_funding_stages):
            return _factor("Funding Stage", FUNDING_POINTS_STRONG, FactorStatus.PASS, org.latest_funding_stage)
        if stage and any(s in stage for s in self.rubric.early_funding_stages):
            return _factor("Funding Stage", FUNDING_POINTS_EARLY, FactorStatus.PARTIAL, org.latest_funding_stage)
        return _factor("Funding Stage", 0, FactorStatus.FAIL, org.latest_funding_stage or "Unknown")

    def _score_revenue(self, org: OrganizationRecord) -> ICPFactorResult:
        rev = org.annual_revenue or 0

        if rev >= self.rubric.revenue_high:
            detail = org.annual_revenue_printed or f"${rev / 1_000_000:.0f}M"
            return _factor("Revenue Signal", REVENUE_POINTS_HIGH, FactorStatus.PASS, detail)
        if rev >= self.rubric.revenue_mid:
            detail = org.annual_revenue_printed or f"${rev / 1_000_000:.1f}M"
            return _factor("Revenue Signal", REVENUE_POINTS_MID, FactorStatus.PARTIAL, detail)

        detail = f"${rev:,.0f}" if rev > 0 else "Unknown"
        return _factor("Revenue Signal", 0, FactorStatus.FAIL, detail)

    def _score_tech_stack(self, org: OrganizationRecord) -> ICPFactorResult:
        """Weighted sum over matching technologies, capped"""
        tech_names = [t.lower() for t in org.technology_names]

        points = 0
        matched: List[str] = []
        for tech, weight in self.rubric.tech_weights.items():
            if any(tech.lower() in name for name in tech_names):
                points += weight
                matched.append(tech)

        points = min(points, TECH_STACK_CAP)
        if points >= TECH_STACK_PASS_AT:
            status = FactorStatus.PASS
        elif points > 0:
            status = FactorStatus.PARTIAL
        else:
            status = FactorStatus.FAIL

        detail = f"Uses: {', '.join(matched)}" if matched else "No matching integrations found"
        return _factor("Tech Stack Fit", points, status, detail)

    def _score_hiring_signal(self, hiring_role: Optional[str]) -> ICPFactorResult:
        # Every candidate comes from a job board, so the signal always applies
        detail = f"Hiring: {hiring_role}" if hiring_role else "Hiring: active job posting"
        return _factor("Hiring Signal", HIRING_SIGNAL_POINTS, FactorStatus.PASS, detail)

    def _score_recent_funding(self, org: OrganizationRecord, now: datetime) -> ICPFactorResult:
        funded_at = _parse_date(org.latest_funding_round_date)
        if funded_at is None:
            return _factor("Recent Funding", 0, FactorStatus.FAIL, "No funding data")

        months_ago, detail = _months_since(funded_at, now)
        if months_ago <= self.rubric.recent_funding_months:
            return _factor("Recent Funding", RECENT_FUNDING_POINTS, FactorStatus.PASS, detail)
        return _factor("Recent Funding", 0, FactorStatus.FAIL, detail)


def _factor(name: str, points: int, status: FactorStatus, detail: str) -> ICPFactorResult:
    return ICPFactorResult(factor=name, points=points, status=status, detail=detail)


def _parse_date(value: Optional[str]) -> Optional[datetime]:
    """ISO date or datetime; naive values are taken as UTC"""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug(f"Unparseable funding date: {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _months_since(then: datetime, now: datetime) -> Tuple[float, str]:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    months = (now - then).total_seconds() / 86400 / DAYS_PER_MONTH
    return months, f"Funded {round(months)} months ago"
