"""
Component Test Mocks

Shared mock implementations for component testing.
These mocks replace real I/O dependencies (database, HTTP).
"""

from .db_mock import MockPostgresClient
from .http_mock import MockHttpClient, MockHttpResponse

__all__ = [
    'MockPostgresClient',
    'MockHttpClient',
    'MockHttpResponse',
]
