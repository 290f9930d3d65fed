# tests/live_api/conftest.py
"""
Live API tests - Uses a REAL Apollo API key and makes REAL API calls
Only run when you have Apollo credits and want to verify the integration
"""

import pytest
import os

# Check for required API key
APOLLO_API_KEY = os.getenv("APOLLO_API_KEY")


# Skip entire directory if no API key
def pytest_collection_modifyitems(config, items):
    """Skip live API tests if the Apollo key is not configured"""
    if not APOLLO_API_KEY:
        skip_live = pytest.mark.skip(reason="No API key configured (set APOLLO_API_KEY)")
        for item in items:
            if "live_api" in item.nodeid:
                item.add_marker(skip_live)
