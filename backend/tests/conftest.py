# tests/conftest.py

import pytest
from datetime import datetime, timedelta, timezone
from typing import Dict, Any
from unittest.mock import AsyncMock, Mock

from prospector.schemas.enrichment import Candidate, OrganizationRecord
from prospector.services.apollo_service import ApolloService
from prospector.services.rate_limiter import RateLimiter
from prospector.services.result_store import InMemoryResultStore


# ============================================================================
# TIME
# ============================================================================

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now():
    """Evaluation time for recency-dependent scoring"""
    return FIXED_NOW


# ============================================================================
# APOLLO DATA
# ============================================================================

def make_org(**overrides) -> OrganizationRecord:
    """Apollo organization with sensible defaults, override any field"""
    data: Dict[str, Any] = {
        "id": "org_123",
        "name": "Acme",
        "primary_domain": "acme.com",
        "website_url": "https://www.acme.com",
        "industry": "Enterprise Software",
        "estimated_num_employees": 500,
        "latest_funding_stage": "Series C",
        "annual_revenue": 50_000_000,
        "annual_revenue_printed": "50M",
        "technology_names": ["Salesforce", "Slack"],
        "latest_funding_round_date": (FIXED_NOW - timedelta(days=180)).date().isoformat(),
    }
    data.update(overrides)
    return OrganizationRecord.model_validate(data)


@pytest.fixture
def org_factory():
    """make_org as a fixture"""
    return make_org


@pytest.fixture
def acme_org():
    return make_org()


@pytest.fixture
def candidates():
    """Three scraped candidates, no known domains"""
    return [
        Candidate(company="Acme", title="Customer Success Manager", url="https://jobs.example/1"),
        Candidate(company="Globex", title="Onboarding Specialist", url="https://jobs.example/2"),
        Candidate(company="Initech", title="Implementation Lead", url="https://jobs.example/3"),
    ]


# ============================================================================
# COLLABORATORS
# ============================================================================

@pytest.fixture
def mock_apollo():
    """ApolloService with both operations mocked (no results by default)"""
    apollo = Mock(spec=ApolloService)
    apollo.search_organization = AsyncMock(return_value=None)
    apollo.enrich_organization = AsyncMock(return_value=None)
    return apollo


@pytest.fixture
def no_sleep():
    """Injected sleep that records delays instead of waiting"""
    return AsyncMock(return_value=None)


@pytest.fixture
def rate_limiter(no_sleep):
    return RateLimiter(request_delay=1.5, max_retries=2, backoff_base=2.0, sleep=no_sleep)


@pytest.fixture
def result_store():
    return InMemoryResultStore()
