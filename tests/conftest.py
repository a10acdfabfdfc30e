"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - component/: Component tests (mocked repository, workflow client, HTTP)
    - unit/     : Unit tests (pure functions, no I/O)
"""
import os
import sys
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
import pytest

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

# Set testing environment BEFORE any service imports
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret-key-for-campaign-dashboard")
os.environ.setdefault("AUTH_JWT_AUDIENCE", "authenticated")
os.environ.setdefault("SITE_BASE_URL", "https://dashboard.example.com")


# =============================================================================
# Test Configuration
# =============================================================================

class TestConfig:
    """Centralized test configuration"""

    SERVICE_PORT = 8240
    JWT_SECRET = os.environ["AUTH_JWT_SECRET"]
    JWT_AUDIENCE = os.environ["AUTH_JWT_AUDIENCE"]
    SITE_BASE_URL = os.environ["SITE_BASE_URL"]


@pytest.fixture(scope="session")
def test_config() -> TestConfig:
    """Provide test configuration"""
    return TestConfig()


# =============================================================================
# Token Helpers
# =============================================================================

def make_token(
    email: Optional[str] = "editor@example.com",
    sub: str = "usr_editor",
    name: Optional[str] = "Eddie Editor",
    secret: str = TestConfig.JWT_SECRET,
    audience: Optional[str] = TestConfig.JWT_AUDIENCE,
    expires_in: timedelta = timedelta(hours=1),
    **claims: Any,
) -> str:
    """Sign an HS256 access token shaped like the identity provider's"""
    payload: Dict[str, Any] = {
        "sub": sub,
        "iat": datetime.now(timezone.utc),
        "exp": datetime.now(timezone.utc) + expires_in,
        **claims,
    }
    if email is not None:
        payload["email"] = email
    if name is not None:
        payload["user_metadata"] = {"full_name": name}
    if audience is not None:
        payload["aud"] = audience
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def token_factory():
    """Sign tokens with custom claims"""
    return make_token


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    """Bearer header for a regular editor"""
    return {"Authorization": f"Bearer {make_token()}"}
