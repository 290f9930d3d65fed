# tests/services/test_icp_scoring_engine.py
"""
Tests for ICPScoringEngine

Coverage:
- Worked examples (strong fit, empty organization)
- Each factor's bands and statuses
- Fixed factor order
- Configurable rubric (tech weights)
- Determinism

Run with: pytest tests/services/test_icp_scoring_engine.py -v
"""

import pytest
from datetime import timedelta

from prospector.schemas.enrichment import FactorStatus, OrganizationRecord
from prospector.schemas.icp import MAX_SCORE, ICPRubric
from prospector.services.icp_scoring_engine import ICPScoringEngine


FACTOR_ORDER = [
    "Industry Match",
    "Employee Count",
    "Funding Stage",
    "Revenue Signal",
    "Tech Stack Fit",
    "Hiring Signal",
    "Recent Funding",
]


@pytest.fixture
def engine():
    return ICPScoringEngine()


def factor(result, name):
    return next(f for f in result.breakdown if f.factor == name)


# ============================================================================
# TEST: Worked examples
# ============================================================================

class TestScoreExamples:
    """End-to-end totals"""

    def test_strong_fit(self, engine, acme_org, fixed_now):
        """20+15+15+10+6+20+10 = 96 -> 91"""
        result = engine.score(acme_org, hiring_role="CSM", now=fixed_now)

        assert result.raw_score == 96
        assert result.max_score == MAX_SCORE == 105
        assert result.score == 91
        assert [f.points for f in result.breakdown] == [20, 15, 15, 10, 6, 20, 10]

    def test_empty_organization_keeps_hiring_signal(self, engine, fixed_now):
        org = OrganizationRecord(name="Nobody", industry="Agriculture", estimated_num_employees=10)
        result = engine.score(org, now=fixed_now)

        assert result.raw_score == 20
        assert result.score == 19
        assert [f.status for f in result.breakdown] == [
            FactorStatus.FAIL,
            FactorStatus.FAIL,
            FactorStatus.FAIL,
            FactorStatus.FAIL,
            FactorStatus.FAIL,
            FactorStatus.PASS,
            FactorStatus.FAIL,
        ]

    def test_none_organization_is_scored(self, engine, fixed_now):
        result = engine.score(None, now=fixed_now)
        assert result.raw_score == 20
        assert len(result.breakdown) == 7

    def test_factor_order_is_fixed(self, engine, acme_org, fixed_now):
        result = engine.score(acme_org, now=fixed_now)
        assert [f.factor for f in result.breakdown] == FACTOR_ORDER

    def test_rescoring_is_identical(self, engine, acme_org, fixed_now):
        first = engine.score(acme_org, hiring_role="CSM", now=fixed_now)
        second = engine.score(acme_org, hiring_role="CSM", now=fixed_now)
        assert first.model_dump_json() == second.model_dump_json()


# ============================================================================
# TEST: Individual factors
# ============================================================================

class TestFactors:
    """Bands and details per factor"""

    def test_industry_detail(self, engine, org_factory, fixed_now):
        result = engine.score(org_factory(industry="Computer Software"), now=fixed_now)
        assert factor(result, "Industry Match").detail == "SaaS/Software (Computer Software)"

        result = engine.score(org_factory(industry=None), now=fixed_now)
        industry = factor(result, "Industry Match")
        assert industry.points == 0
        assert industry.detail == "Unknown"

    @pytest.mark.parametrize("employees,points,status", [
        (100, 15, FactorStatus.PASS),
        (2000, 15, FactorStatus.PASS),
        (2001, 10, FactorStatus.PARTIAL),
        (5000, 10, FactorStatus.PARTIAL),
        (5001, 0, FactorStatus.FAIL),
        (50, 5, FactorStatus.PARTIAL),
        (99, 5, FactorStatus.PARTIAL),
        (49, 0, FactorStatus.FAIL),
        (None, 0, FactorStatus.FAIL),
    ])
    def test_employee_bands(self, engine, org_factory, fixed_now, employees, points, status):
        result = engine.score(org_factory(estimated_num_employees=employees), now=fixed_now)
        row = factor(result, "Employee Count")
        assert (row.points, row.status) == (points, status)

    def test_employee_detail_formatting(self, engine, org_factory, fixed_now):
        result = engine.score(org_factory(estimated_num_employees=1500), now=fixed_now)
        assert factor(result, "Employee Count").detail == "1,500 employees (ideal range)"

    @pytest.mark.parametrize("stage,points", [
        ("Series B", 15),
        ("IPO", 15),
        ("Public", 15),
        ("Series A", 5),
        ("Seed", 5),
        ("Pre-Seed", 5),
        ("Angel", 0),
        (None, 0),
    ])
    def test_funding_stage(self, engine, org_factory, fixed_now, stage, points):
        result = engine.score(org_factory(latest_funding_stage=stage), now=fixed_now)
        assert factor(result, "Funding Stage").points == points

    def test_revenue_bands(self, engine, org_factory, fixed_now):
        high = engine.score(org_factory(annual_revenue=12_000_000, annual_revenue_printed=None), now=fixed_now)
        assert factor(high, "Revenue Signal").points == 10
        assert factor(high, "Revenue Signal").detail == "$12M"

        mid = engine.score(org_factory(annual_revenue=2_500_000, annual_revenue_printed=None), now=fixed_now)
        assert factor(mid, "Revenue Signal").points == 5
        assert factor(mid, "Revenue Signal").detail == "$2.5M"

        low = engine.score(org_factory(annual_revenue=None, annual_revenue_printed=None), now=fixed_now)
        assert factor(low, "Revenue Signal").points == 0
        assert factor(low, "Revenue Signal").detail == "Unknown"

    def test_tech_stack_is_capped(self, engine, org_factory, fixed_now):
        org = org_factory(technology_names=["Salesforce", "HubSpot", "Gainsight", "Intercom"])
        row = factor(engine.score(org, now=fixed_now), "Tech Stack Fit")

        assert row.points == 15
        assert row.status == FactorStatus.PASS
        assert row.detail == "Uses: salesforce, hubspot, gainsight, intercom"

    def test_tech_stack_partial_and_none(self, engine, org_factory, fixed_now):
        partial = factor(engine.score(org_factory(technology_names=["Slack"]), now=fixed_now), "Tech Stack Fit")
        assert (partial.points, partial.status) == (1, FactorStatus.PARTIAL)

        none = factor(engine.score(org_factory(technology_names=[]), now=fixed_now), "Tech Stack Fit")
        assert (none.points, none.status) == (0, FactorStatus.FAIL)
        assert none.detail == "No matching integrations found"

    def test_hiring_signal_detail(self, engine, acme_org, fixed_now):
        result = engine.score(acme_org, hiring_role="Customer Success Manager", now=fixed_now)
        assert factor(result, "Hiring Signal").detail == "Hiring: Customer Success Manager"

    def test_recent_funding_window(self, engine, org_factory, fixed_now):
        recent = (fixed_now - timedelta(days=30 * 23)).date().isoformat()
        old = (fixed_now - timedelta(days=30 * 25)).date().isoformat()

        assert factor(engine.score(org_factory(latest_funding_round_date=recent), now=fixed_now),
                      "Recent Funding").points == 10
        stale = factor(engine.score(org_factory(latest_funding_round_date=old), now=fixed_now),
                       "Recent Funding")
        assert stale.points == 0
        assert stale.detail == "Funded 25 months ago"

    def test_recent_funding_accepts_zulu_timestamps(self, engine, org_factory, fixed_now):
        org = org_factory(latest_funding_round_date="2025-03-01T00:00:00Z")
        assert factor(engine.score(org, now=fixed_now), "Recent Funding").points == 10

    def test_unparseable_funding_date(self, engine, org_factory, fixed_now):
        row = factor(engine.score(org_factory(latest_funding_round_date="sometime"), now=fixed_now),
                     "Recent Funding")
        assert (row.points, row.detail) == (0, "No funding data")


# ============================================================================
# TEST: Rubric configuration
# ============================================================================

class TestRubric:
    """Business tuning lives in ICPRubric"""

    def test_custom_tech_weights(self, org_factory, fixed_now):
        engine = ICPScoringEngine(ICPRubric(tech_weights={"slack": 12}))
        row = factor(engine.score(org_factory(technology_names=["Slack"]), now=fixed_now), "Tech Stack Fit")
        assert (row.points, row.status) == (12, FactorStatus.PASS)
