"""
Unit Test Fixtures for Campaign Service

Pure-function tests: no repository, no workflow client.
Uses CampaignTestDataFactory from the data contract.
"""

import pytest
from datetime import date

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.campaign.data_contract import CampaignTestDataFactory


@pytest.fixture
def factory():
    """Provide CampaignTestDataFactory"""
    return CampaignTestDataFactory


@pytest.fixture
def fixed_today():
    """A fixed Eastern calendar day for date range tests"""
    return date(2025, 3, 31)
