"""
Component Test Fixtures for Campaign Service

Provides fixtures for component testing with mocked dependencies.
Uses FastAPI TestClient for API testing.
"""

import pytest
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from fastapi.testclient import TestClient

from core.auth_dependencies import Actor
from microservices.campaign_service.analytics_service import AnalyticsService
from microservices.campaign_service.campaign_service import CampaignService
from microservices.campaign_service.campaign_workflow import CampaignWorkflowService
from microservices.campaign_service.notification_dispatcher import NotificationDispatcher
from microservices.campaign_service.product_search import ProductSearchService
from microservices.campaign_service.protocols import WorkflowError
from tests.contracts.campaign.data_contract import (
    Campaign,
    CampaignActivity,
    CampaignReview,
    CampaignStatus,
    CampaignTestDataFactory,
    ReviewStatus,
    User,
    UserRole,
)

SITE_BASE_URL = "https://dashboard.example.com"

GENERATION_WORKFLOW = "wf_generate"
PRODUCT_SEARCH_WORKFLOW = "wf_product_search"
KPI_RANGE_WORKFLOW = "wf_kpi_range"
KPI_DETAIL_WORKFLOW = "wf_kpi_detail"
NOTIFICATION_WORKFLOW = "wf_notify"


# ====================
# Mock Repository
# ====================


class MockCampaignRepository:
    """In-memory repository implementing CampaignRepositoryProtocol"""

    UPDATABLE_FIELDS = frozenset(Campaign.model_fields) - {"id", "created_at", "created_by_id"}

    def __init__(self):
        self.campaigns: Dict[str, Campaign] = {}
        self.activities: List[CampaignActivity] = []
        self.reviews: List[CampaignReview] = []
        self.users: Dict[str, User] = {}
        self.fail_activity_inserts = False
        self.fail_review_insert_at: Optional[int] = None
        self.fail_review_approval = False
        self.fail_status_writes = False
        self.update_calls: List[Tuple[str, Dict[str, Any]]] = []

    async def initialize(self):
        pass

    async def close(self):
        pass

    async def health_check(self) -> bool:
        return True

    # Campaign CRUD
    async def create_campaign(self, campaign: Campaign) -> Campaign:
        self.campaigns[campaign.id] = campaign
        return campaign

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        return self.campaigns.get(campaign_id)

    async def list_campaigns(
        self,
        status: Optional[CampaignStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Campaign], int]:
        results = list(self.campaigns.values())
        if status:
            results = [c for c in results if c.status == status]
        results.sort(key=lambda c: c.created_at or datetime.min.replace(tzinfo=timezone.utc), reverse=True)
        return results[offset : offset + limit], len(results)

    async def update_campaign(self, campaign_id: str, updates: Dict[str, Any]) -> Optional[Campaign]:
        self.update_calls.append((campaign_id, dict(updates)))
        campaign = self.campaigns.get(campaign_id)
        if not campaign:
            return None
        return self._apply_updates(campaign, updates)

    async def delete_campaign(self, campaign_id: str) -> bool:
        return self.campaigns.pop(campaign_id, None) is not None

    # Activities
    async def create_activity(self, activity: CampaignActivity) -> CampaignActivity:
        if self.fail_activity_inserts:
            raise RuntimeError("activity insert failed")
        self.activities.append(activity)
        return activity

    async def list_activities(self, campaign_id: str, limit: int = 50) -> List[CampaignActivity]:
        # Newest first; insertion order breaks timestamp ties
        rows = [(i, a) for i, a in enumerate(self.activities) if a.campaign_id == campaign_id]
        rows.sort(key=lambda row: (row[1].created_at, row[0]), reverse=True)
        return [a for _, a in rows][:limit]

    # Reviews
    async def request_reviews(
        self,
        campaign_id: str,
        reviews: List[CampaignReview],
        updates: Dict[str, Any],
    ) -> Tuple[Optional[Campaign], List[CampaignReview]]:
        # Every failure is raised before anything is stored, like a rolled-back transaction
        self.update_calls.append((campaign_id, dict(updates)))
        campaign = self.campaigns.get(campaign_id)
        if not campaign:
            return None, []
        if self.fail_status_writes:
            raise RuntimeError("campaign update failed")
        staged = []
        for i, review in enumerate(reviews):
            if self.fail_review_insert_at is not None and i == self.fail_review_insert_at:
                raise RuntimeError("review insert failed")
            staged.append(review)
        updated = self._apply_updates(campaign, updates)
        self.reviews.extend(staged)
        return updated, staged

    async def list_reviews(self, campaign_id: str) -> List[CampaignReview]:
        rows = [(i, r) for i, r in enumerate(self.reviews) if r.campaign_id == campaign_id]
        rows.sort(key=lambda row: (row[1].created_at, row[0]), reverse=True)
        return [r for _, r in rows]

    async def approve_campaign(
        self,
        campaign_id: str,
        updates: Dict[str, Any],
        responded_at: datetime,
    ) -> Tuple[Optional[Campaign], int]:
        self.update_calls.append((campaign_id, dict(updates)))
        campaign = self.campaigns.get(campaign_id)
        if not campaign:
            return None, 0
        if self.fail_status_writes:
            raise RuntimeError("campaign update failed")
        if self.fail_review_approval:
            raise RuntimeError("review update failed")
        updated = self._apply_updates(campaign, updates)
        count = 0
        for i, review in enumerate(self.reviews):
            if review.campaign_id == campaign_id and review.status == ReviewStatus.PENDING:
                self.reviews[i] = review.model_copy(
                    update={"status": ReviewStatus.APPROVED, "responded_at": responded_at}
                )
                count += 1
        return updated, count

    # Users
    async def list_users(self) -> List[User]:
        return sorted(self.users.values(), key=lambda u: (u.name is None, u.name or ""))

    async def get_user_by_email(self, email: str) -> Optional[User]:
        for user in self.users.values():
            if user.email.lower() == email.lower():
                return user
        return None

    # Test helpers
    def _apply_updates(self, campaign: Campaign, updates: Dict[str, Any]) -> Campaign:
        fields = {k: v for k, v in updates.items() if k in self.UPDATABLE_FIELDS}
        fields.setdefault("updated_at", datetime.now(timezone.utc))
        updated = campaign.model_copy(update=fields)
        self.campaigns[campaign.id] = updated
        return updated

    def add_campaign(self, campaign: Campaign) -> Campaign:
        self.campaigns[campaign.id] = campaign
        return campaign

    def add_user(self, user: User) -> User:
        self.users[user.id] = user
        return user

    def activities_for(self, campaign_id: str) -> List[CampaignActivity]:
        return [a for a in self.activities if a.campaign_id == campaign_id]


# ====================
# Mock Workflow Client
# ====================


class MockWorkflowClient:
    """Records executeWorkflow calls; responses are configured per workflow id"""

    def __init__(self, configured: bool = True, project_configured: bool = True):
        self.configured = configured
        self.project_configured = project_configured
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self._responses: Dict[str, Any] = {}
        self._errors: Dict[str, Exception] = {}
        self._predicate_errors: List[Tuple[Callable[[str, Dict[str, Any]], bool], Exception]] = []

    def is_configured(self, require_project: bool = False) -> bool:
        if not self.configured:
            return False
        return self.project_configured or not require_project

    async def execute_workflow(self, workflow_id: Optional[str], payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append((workflow_id, payload))
        for predicate, error in self._predicate_errors:
            if predicate(workflow_id, payload):
                raise error
        if workflow_id in self._errors:
            raise self._errors[workflow_id]
        response = self._responses.get(workflow_id, {"status": "SUCCESS", "result": {}})
        return response(payload) if callable(response) else response

    # Test helpers
    def set_result(self, workflow_id: str, result: Any, status: str = "SUCCESS"):
        self._responses[workflow_id] = {"status": status, "result": result}

    def set_response_fn(self, workflow_id: str, fn: Callable[[Dict[str, Any]], Dict[str, Any]]):
        self._responses[workflow_id] = fn

    def set_error(self, workflow_id: str, error: Optional[Exception] = None):
        self._errors[workflow_id] = error or WorkflowError("workflow failed")

    def fail_when(self, predicate: Callable[[str, Dict[str, Any]], bool], error: Optional[Exception] = None):
        self._predicate_errors.append((predicate, error or WorkflowError("workflow failed")))

    def calls_for(self, workflow_id: str) -> List[Dict[str, Any]]:
        return [payload for wf, payload in self.calls if wf == workflow_id]


# ====================
# Fixtures
# ====================


@pytest.fixture
def factory():
    """Test data factory"""
    return CampaignTestDataFactory()


@pytest.fixture
def mock_repository():
    return MockCampaignRepository()


@pytest.fixture
def mock_workflow_client():
    return MockWorkflowClient()


@pytest.fixture
def actor():
    """Verified editor identity"""
    return Actor(email="editor@example.com", user_id="usr_editor", name="Eddie Editor")


@pytest.fixture
def admin_actor(mock_repository):
    """Verified identity whose User row is ADMIN"""
    mock_repository.add_user(
        User(id="usr_admin", email="admin@example.com", name="Ada Admin", role=UserRole.ADMIN)
    )
    return Actor(email="admin@example.com", user_id="usr_admin", name="Ada Admin")


@pytest.fixture
def dispatcher(mock_workflow_client):
    return NotificationDispatcher(
        workflow_client=mock_workflow_client,
        workflow_id=NOTIFICATION_WORKFLOW,
        site_base_url=SITE_BASE_URL,
        max_concurrency=3,
    )


@pytest.fixture
def campaign_service(mock_repository):
    return CampaignService(repository=mock_repository)


@pytest.fixture
def workflow_service(campaign_service, mock_repository, dispatcher, mock_workflow_client):
    return CampaignWorkflowService(
        campaign_service=campaign_service,
        repository=mock_repository,
        dispatcher=dispatcher,
        workflow_client=mock_workflow_client,
        generation_workflow_id=GENERATION_WORKFLOW,
    )


@pytest.fixture
def analytics_service(mock_workflow_client):
    return AnalyticsService(
        workflow_client=mock_workflow_client,
        date_range_workflow_id=KPI_RANGE_WORKFLOW,
        detail_workflow_id=KPI_DETAIL_WORKFLOW,
    )


@pytest.fixture
def product_search_service(mock_workflow_client):
    return ProductSearchService(
        workflow_client=mock_workflow_client,
        workflow_id=PRODUCT_SEARCH_WORKFLOW,
    )


@pytest.fixture
def sample_campaign(mock_repository, factory):
    return mock_repository.add_campaign(factory.make_campaign(status=CampaignStatus.DRAFT))


@pytest.fixture
def scheduled_campaign(mock_repository, factory):
    return mock_repository.add_campaign(factory.make_campaign(status=CampaignStatus.SCHEDULED))


@pytest.fixture
def pending_review_campaign(mock_repository, factory):
    return mock_repository.add_campaign(factory.make_campaign(status=CampaignStatus.PENDING_REVIEW))


@pytest.fixture
def approved_campaign(mock_repository, factory):
    return mock_repository.add_campaign(factory.make_campaign(status=CampaignStatus.APPROVED))


@pytest.fixture
def app_client(
    campaign_service,
    workflow_service,
    analytics_service,
    product_search_service,
):
    """
    TestClient with the service dependencies overridden.

    Authentication stays real: requests carry signed bearer tokens.
    The lifespan does not run, so no database is touched.
    """
    from microservices.campaign_service import main

    app = main.app
    app.dependency_overrides[main.get_campaign_service] = lambda: campaign_service
    app.dependency_overrides[main.get_workflow_service] = lambda: workflow_service
    app.dependency_overrides[main.get_analytics_service] = lambda: analytics_service
    app.dependency_overrides[main.get_product_search_service] = lambda: product_search_service

    client = TestClient(app, raise_server_exceptions=False)
    yield client

    app.dependency_overrides.clear()

