"""
Campaign Service Protocols

Defines interfaces for dependency injection and testing.
Following the protocol-based architecture pattern.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Tuple

from .models import (
    Campaign,
    CampaignActivity,
    CampaignReview,
    CampaignStatus,
    NotificationBatchResult,
    NotificationType,
    Recipient,
    User,
)


# ====================
# Repository Protocol
# ====================


class CampaignRepositoryProtocol(Protocol):
    """Protocol for campaign data repository"""

    async def initialize(self) -> None:
        """Initialize repository connection"""
        ...

    async def close(self) -> None:
        """Close repository connection"""
        ...

    async def health_check(self) -> bool:
        """Check repository health"""
        ...

    # Campaigns
    async def create_campaign(self, campaign: Campaign) -> Campaign:
        ...

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        ...

    async def list_campaigns(
        self,
        status: Optional[CampaignStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Campaign], int]:
        """List campaigns newest first; returns (page, total matching)"""
        ...

    async def update_campaign(
        self, campaign_id: str, updates: Dict[str, Any]
    ) -> Optional[Campaign]:
        """Apply field updates; None if the campaign does not exist"""
        ...

    async def delete_campaign(self, campaign_id: str) -> bool:
        ...

    # Activities
    async def create_activity(self, activity: CampaignActivity) -> CampaignActivity:
        ...

    async def list_activities(
        self, campaign_id: str, limit: int = 50
    ) -> List[CampaignActivity]:
        ...

    # Reviews
    async def request_reviews(
        self,
        campaign_id: str,
        reviews: List[CampaignReview],
        updates: Dict[str, Any],
    ) -> Tuple[Optional[Campaign], List[CampaignReview]]:
        """Apply campaign updates and insert all reviews atomically"""
        ...

    async def list_reviews(self, campaign_id: str) -> List[CampaignReview]:
        ...

    async def approve_campaign(
        self,
        campaign_id: str,
        updates: Dict[str, Any],
        responded_at: datetime,
    ) -> Tuple[Optional[Campaign], int]:
        """Apply campaign updates and approve every PENDING review atomically"""
        ...

    # Users
    async def list_users(self) -> List[User]:
        ...

    async def get_user_by_email(self, email: str) -> Optional[User]:
        ...


# ====================
# Client Protocols
# ====================


class WorkflowClientProtocol(Protocol):
    """Protocol for the external workflow execution service"""

    def is_configured(self, require_project: bool = False) -> bool:
        ...

    async def execute_workflow(
        self, workflow_id: str, payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Run a workflow; returns {"status": ..., "result": ...}"""
        ...


class NotificationDispatcherProtocol(Protocol):
    """Protocol for review/approval email fan-out"""

    async def dispatch(
        self,
        notification_type: NotificationType,
        campaign_id: str,
        campaign_title: Optional[str],
        recipients: List[Recipient],
        sender_name: str,
        sender_email: str,
    ) -> NotificationBatchResult:
        ...


# ====================
# Exceptions
# ====================


class CampaignServiceError(Exception):
    """Base exception for campaign service errors"""
    pass


class CampaignNotFoundError(CampaignServiceError):
    """Raised when campaign is not found"""
    pass


class InvalidCampaignStateError(CampaignServiceError):
    """Raised when a requested status transition is not allowed"""

    def __init__(
        self,
        message: str,
        current_status: Optional[CampaignStatus] = None,
        requested_status: Optional[CampaignStatus] = None,
    ):
        super().__init__(message)
        self.current_status = current_status
        self.requested_status = requested_status


class CampaignValidationError(CampaignServiceError):
    """Raised when request validation fails"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class PermissionDeniedError(CampaignServiceError):
    """Raised when the actor lacks the role an operation requires"""
    pass


class WorkflowError(CampaignServiceError):
    """Raised when the external workflow call fails or returns errors"""
    pass


class WorkflowNotConfiguredError(WorkflowError):
    """Raised when required workflow configuration is missing"""
    pass


class AnalyticsUnavailableError(CampaignServiceError):
    """Raised when no requested analytics platform could be fetched"""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.errors = errors or {}


__all__ = [
    "CampaignRepositoryProtocol",
    "WorkflowClientProtocol",
    "NotificationDispatcherProtocol",
    "CampaignServiceError",
    "CampaignNotFoundError",
    "InvalidCampaignStateError",
    "CampaignValidationError",
    "PermissionDeniedError",
    "WorkflowError",
    "WorkflowNotConfiguredError",
    "AnalyticsUnavailableError",
]
