"""
Campaign Service Data Models

Canonical data structures for the campaign dashboard: entities, request
and response contracts. JSON on the wire is camelCase; Python attributes
are snake_case. Table columns use the camelCase names, so database rows
validate straight into these models.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .date_utils import to_calendar_date


# =============================================================================
# ENUMS
# =============================================================================

class CampaignStatus(str, Enum):
    """Campaign lifecycle status"""
    DRAFT = "DRAFT"
    SCHEDULED = "SCHEDULED"
    PENDING_REVIEW = "PENDING_REVIEW"
    APPROVED = "APPROVED"
    PUBLISHED = "PUBLISHED"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


class Channel(str, Enum):
    """Content surface a campaign can target"""
    BLOG = "blog"
    EMAIL = "email"
    SMS = "sms"
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    TWITTER = "twitter"


class ActivityAction(str, Enum):
    """Audit log action"""
    CREATED = "CREATED"
    EDITED = "EDITED"
    SENT_FOR_REVIEW = "SENT_FOR_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    SCHEDULED = "SCHEDULED"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class ReviewStatus(str, Enum):
    """Per-reviewer review request status"""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    VIEWER = "VIEWER"


class NotificationType(str, Enum):
    """Email template selector for the notification workflow"""
    REVIEW_REQUEST = "review_request"
    APPROVAL = "approval"


class AnalyticsPlatform(str, Enum):
    """Platform identifiers understood by the KPI workflows"""
    MAILCHIMP = "mailchimp"
    FACEBOOK = "facebook"
    GOOGLE_ADS = "googleads"


# =============================================================================
# BASE MODELS
# =============================================================================

class BaseContract(BaseModel):
    """Base model for all contracts"""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


def _calendar_date(value: Any) -> Optional[date]:
    try:
        return to_calendar_date(value)
    except ValueError as e:
        raise ValueError(f"Invalid date: {e}") from e


# =============================================================================
# ENTITIES
# =============================================================================

class Campaign(BaseContract):
    """Scheduled multi-channel marketing content unit"""
    id: str
    title: str
    topic: str
    notes: Optional[str] = None

    scheduled_date: Optional[date] = None
    status: CampaignStatus = CampaignStatus.DRAFT

    channels: Dict[Channel, bool] = Field(default_factory=dict)
    image_channels: Optional[Dict[Channel, bool]] = None

    # Product references and term-sale bundles, stored as submitted
    products: List[Dict[str, Any]] = Field(default_factory=list)
    content_focus: int = Field(default=3, ge=1, le=5)

    # Generation results
    generated_content: Optional[Dict[str, Any]] = None
    doc_url: Optional[str] = None
    folder_url: Optional[str] = None

    # Audit linkage
    created_by_id: Optional[str] = None
    last_modified_by_id: Optional[str] = None
    assigned_to_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("scheduled_date", mode="before")
    @classmethod
    def normalize_scheduled_date(cls, v):
        return _calendar_date(v)

    @field_validator("products", mode="before")
    @classmethod
    def default_products(cls, v):
        return v if v is not None else []


class CampaignActivity(BaseContract):
    """Immutable audit log entry"""
    id: str
    campaign_id: str
    user_id: Optional[str] = None
    user_email: str
    action: ActivityAction
    details: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None


class CampaignReview(BaseContract):
    """Review request sent to one reviewer"""
    id: str
    campaign_id: str
    requested_by_id: Optional[str] = None
    requested_by_email: str
    reviewer_id: Optional[str] = None
    reviewer_email: Optional[str] = None
    status: ReviewStatus = ReviewStatus.PENDING
    comments: Optional[str] = None
    created_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None


class User(BaseContract):
    """Reviewer / recipient identity (owned by the identity provider)"""
    id: str
    email: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: UserRole = UserRole.VIEWER


# =============================================================================
# REQUEST MODELS
# =============================================================================

class CampaignCreateRequest(BaseContract):
    """
    Campaign creation request

    title/topic/channels are checked by the service so a missing field is
    reported by name rather than as a schema error.
    """
    title: Optional[str] = None
    topic: Optional[str] = None
    channels: Optional[Dict[Channel, bool]] = None
    scheduled_date: Optional[date] = None
    image_channels: Optional[Dict[Channel, bool]] = None
    products: List[Dict[str, Any]] = Field(default_factory=list)
    content_focus: int = Field(default=3, ge=1, le=5)
    notes: Optional[str] = None
    assigned_to_id: Optional[str] = None
    # Accepted for older clients; the verified actor is used instead
    user_email: Optional[str] = None

    @field_validator("scheduled_date", mode="before")
    @classmethod
    def normalize_scheduled_date(cls, v):
        return _calendar_date(v)


class CampaignUpdateRequest(BaseContract):
    """Partial campaign update (PUT and PATCH); only fields sent are applied"""
    NON_NULLABLE: ClassVar[Tuple[str, ...]] = ("title", "topic", "status", "channels", "products", "content_focus")

    title: Optional[str] = Field(None, min_length=1)
    topic: Optional[str] = Field(None, min_length=1)
    notes: Optional[str] = None
    scheduled_date: Optional[date] = None
    status: Optional[CampaignStatus] = None
    channels: Optional[Dict[Channel, bool]] = None
    image_channels: Optional[Dict[Channel, bool]] = None
    products: Optional[List[Dict[str, Any]]] = None
    content_focus: Optional[int] = Field(None, ge=1, le=5)
    generated_content: Optional[Dict[str, Any]] = None
    doc_url: Optional[str] = None
    folder_url: Optional[str] = None
    assigned_to_id: Optional[str] = None
    user_email: Optional[str] = None

    @field_validator("scheduled_date", mode="before")
    @classmethod
    def normalize_scheduled_date(cls, v):
        return _calendar_date(v)

    def changes(self) -> Dict[str, Any]:
        """Fields the caller actually sent, minus the ignored actor field"""
        data = self.model_dump(exclude_unset=True)
        data.pop("user_email", None)
        # An explicit null cannot clear a required column
        for key in self.NON_NULLABLE:
            if key in data and data[key] is None:
                del data[key]
        return data


class ActivityCreateRequest(BaseContract):
    """Manual activity log entry"""
    action: ActivityAction
    details: Optional[Dict[str, Any]] = None
    user_email: Optional[str] = None


class Recipient(BaseContract):
    """Notification recipient"""
    email: str = Field(..., min_length=3)
    name: Optional[str] = None
    id: Optional[str] = None


class ReviewRequest(BaseContract):
    """Send a campaign to reviewers"""
    campaign_id: Optional[str] = None
    campaign_title: Optional[str] = None
    recipients: List[Recipient] = Field(default_factory=list)
    sender_name: Optional[str] = None
    sender_email: Optional[str] = None


class ApproveRequest(BaseContract):
    """Approve a campaign and notify recipients"""
    campaign_id: Optional[str] = None
    campaign_title: Optional[str] = None
    recipients: List[Recipient] = Field(default_factory=list)
    sender_name: Optional[str] = None
    sender_email: Optional[str] = None


class ProductSearchRequest(BaseContract):
    keyword: str = ""


class KPIDetailRequest(BaseContract):
    """Single-campaign drill-down on one platform"""
    platform: Optional[AnalyticsPlatform] = None
    campaign_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def normalize_dates(cls, v):
        return _calendar_date(v)


# =============================================================================
# RESULT / RESPONSE MODELS
# =============================================================================

class EmailResult(BaseContract):
    """Outcome of one notification send"""
    email: str
    success: bool
    error: Optional[str] = None


class NotificationBatchResult(BaseContract):
    """Ordered per-recipient results of a notification batch"""
    results: List[EmailResult] = Field(default_factory=list)

    @property
    def emails_sent(self) -> bool:
        # Vacuously true for an empty batch
        return all(r.success for r in self.results)

    @property
    def failed(self) -> List[EmailResult]:
        return [r for r in self.results if not r.success]


class CampaignResponse(BaseContract):
    campaign: Campaign


class CampaignDetailResponse(BaseContract):
    campaign: Campaign
    activities: List[CampaignActivity] = Field(default_factory=list)


class CampaignListResponse(BaseContract):
    """Campaign list response; count is the total number of matching rows"""
    campaigns: List[Campaign]
    count: int
    limit: int
    offset: int


class DeleteResponse(BaseContract):
    success: bool = True


class ActivityResponse(BaseContract):
    activity: CampaignActivity


class ActivityListResponse(BaseContract):
    activities: List[CampaignActivity]


class ReviewSendResponse(BaseContract):
    reviews: List[CampaignReview]
    success: bool = True
    emails_sent: bool
    email_results: List[EmailResult]


class ReviewListResponse(BaseContract):
    reviews: List[CampaignReview]


class ApproveResponse(BaseContract):
    success: bool = True
    emails_sent: bool
    email_results: List[EmailResult]


class UserListResponse(BaseContract):
    users: List[User]


class PlatformSummary(BaseContract):
    """One platform's KPI block; platform-specific fields pass through"""
    model_config = ConfigDict(extra="allow")

    connected: bool = False
    summary: Optional[Dict[str, Any]] = None
    campaigns: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None


class KPISummaryResponse(BaseContract):
    """Unified analytics response; platforms not requested are null"""
    email: Optional[PlatformSummary] = None
    facebook: Optional[PlatformSummary] = None
    google_ads: Optional[PlatformSummary] = None
    all: Optional[Dict[str, Any]] = None
    fetched_at: datetime


class ProductSearchResult(BaseContract):
    products: List[Dict[str, Any]] = Field(default_factory=list)
    term_sales: List[Dict[str, Any]] = Field(default_factory=list)
    products_count: int = 0
    term_sales_count: int = 0
    keyword: str = ""


# ====================
# Service Models
# ====================

class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    service: str
    port: int
    version: str
    dependencies: Dict[str, str] = Field(default_factory=dict)


class ReadinessResponse(BaseModel):
    """Readiness check response"""
    ready: bool
    checks: Dict[str, bool] = Field(default_factory=dict)
    details: Dict[str, str] = Field(default_factory=dict)


class LivenessResponse(BaseModel):
    """Liveness check response"""
    alive: bool
    uptime_seconds: float


__all__ = [
    # Enums
    "CampaignStatus",
    "Channel",
    "ActivityAction",
    "ReviewStatus",
    "UserRole",
    "NotificationType",
    "AnalyticsPlatform",
    # Entities
    "BaseContract",
    "Campaign",
    "CampaignActivity",
    "CampaignReview",
    "User",
    # Requests
    "CampaignCreateRequest",
    "CampaignUpdateRequest",
    "ActivityCreateRequest",
    "Recipient",
    "ReviewRequest",
    "ApproveRequest",
    "ProductSearchRequest",
    "KPIDetailRequest",
    # Results / responses
    "EmailResult",
    "NotificationBatchResult",
    "CampaignResponse",
    "CampaignDetailResponse",
    "CampaignListResponse",
    "DeleteResponse",
    "ActivityResponse",
    "ActivityListResponse",
    "ReviewSendResponse",
    "ReviewListResponse",
    "ApproveResponse",
    "UserListResponse",
    "PlatformSummary",
    "KPISummaryResponse",
    "ProductSearchResult",
    "HealthResponse",
    "ReadinessResponse",
    "LivenessResponse",
]
