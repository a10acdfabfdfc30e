"""
Component Test Layer Configuration

Structure:
    tests/component/
    ├── campaign/    Campaign service components and API
    └── mocks/       Mock implementations

Usage:
    pytest tests/component -v
"""
import os
import sys

import pytest

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from tests.component.mocks import MockHttpClient, MockPostgresClient


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "component: marks tests as component tests"
    )


# =============================================================================
# Database Mocks
# =============================================================================

@pytest.fixture
def mock_db() -> MockPostgresClient:
    """Mock PostgreSQL client"""
    return MockPostgresClient()


# =============================================================================
# HTTP Client Mocks
# =============================================================================

@pytest.fixture
def mock_http_client() -> MockHttpClient:
    """Mock HTTP client for workflow service calls"""
    return MockHttpClient()
