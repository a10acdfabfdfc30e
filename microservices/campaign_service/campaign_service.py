"""
Campaign Service Business Logic

Campaign record store: CRUD, the activity audit trail, and status changes
requested through plain field updates (checked against the status machine).
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from core.auth_dependencies import Actor

from .models import (
    ActivityAction,
    Campaign,
    CampaignActivity,
    CampaignCreateRequest,
    CampaignStatus,
    User,
)
from .protocols import (
    CampaignNotFoundError,
    CampaignRepositoryProtocol,
    CampaignValidationError,
)
from .status_machine import CampaignStatusMachine

logger = logging.getLogger(__name__)


class CampaignService:
    """Campaign record store"""

    DEFAULT_LIST_LIMIT = 50
    MAX_LIST_LIMIT = 200
    DEFAULT_ACTIVITY_LIMIT = 50
    REQUIRED_CREATE_FIELDS = ("title", "topic", "channels")

    def __init__(self, repository: CampaignRepositoryProtocol):
        self.repository = repository

    # ====================
    # Campaign CRUD
    # ====================

    async def create_campaign(self, request: CampaignCreateRequest, actor: Actor) -> Campaign:
        """
        Create a campaign in DRAFT status and log CREATED.

        Raises:
            CampaignValidationError: title, topic or channels missing
        """
        self._validate_create_request(request)

        now = datetime.now(timezone.utc)
        campaign = Campaign(
            id=str(uuid.uuid4()),
            title=request.title,
            topic=request.topic,
            notes=request.notes,
            scheduled_date=request.scheduled_date,
            status=CampaignStatus.DRAFT,
            channels=request.channels,
            image_channels=request.image_channels,
            products=request.products,
            content_focus=request.content_focus,
            created_by_id=actor.user_id,
            last_modified_by_id=actor.user_id,
            assigned_to_id=request.assigned_to_id,
            created_at=now,
            updated_at=now,
        )

        created = await self.repository.create_campaign(campaign)
        logger.info(f"Campaign {created.id} created by {actor.email}")

        await self.log_activity(
            created.id,
            actor,
            ActivityAction.CREATED,
            {"title": created.title, "topic": created.topic},
        )
        return created

    async def get_campaign(self, campaign_id: str) -> Campaign:
        """Get campaign by ID or raise CampaignNotFoundError"""
        campaign = await self.repository.get_campaign(campaign_id)
        if not campaign:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")
        return campaign

    async def get_campaign_detail(
        self,
        campaign_id: str,
        activity_limit: int = DEFAULT_ACTIVITY_LIMIT,
    ) -> Tuple[Campaign, List[CampaignActivity]]:
        """Campaign plus its most recent activities"""
        campaign = await self.get_campaign(campaign_id)
        activities = await self.repository.list_activities(campaign_id, limit=activity_limit)
        return campaign, activities

    async def list_campaigns(
        self,
        status: Optional[CampaignStatus] = None,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
    ) -> Tuple[List[Campaign], int]:
        """List campaigns newest first; returns (page, total matching)"""
        limit = max(1, min(limit, self.MAX_LIST_LIMIT))
        offset = max(0, offset)
        return await self.repository.list_campaigns(status=status, limit=limit, offset=offset)

    async def update_campaign(
        self,
        campaign_id: str,
        changes: Dict[str, Any],
        actor: Actor,
        label_status_change: bool = False,
    ) -> Campaign:
        """
        Apply a partial update and log one activity.

        Args:
            campaign_id: Campaign to update
            changes: snake_case field -> new value, only fields the caller sent
            actor: Verified caller
            label_status_change: PATCH semantics; an update carrying status
                SCHEDULED / PUBLISHED / ARCHIVED is logged under that label
                instead of EDITED, even when the status is unchanged

        Raises:
            CampaignNotFoundError: unknown campaign
            InvalidCampaignStateError: status change not allowed
        """
        current = await self.get_campaign(campaign_id)
        if not changes:
            return current

        new_status: Optional[CampaignStatus] = changes.get("status")
        if new_status is not None:
            CampaignStatusMachine.validate_update(current.status, new_status)

        updates = dict(changes)
        if actor.user_id:
            updates["last_modified_by_id"] = actor.user_id

        updated = await self.repository.update_campaign(campaign_id, updates)
        if not updated:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")

        updated_fields = [Campaign.model_fields[name].alias or name for name in changes]
        details: Dict[str, Any] = {"updatedFields": updated_fields}
        action = ActivityAction.EDITED

        if new_status is not None:
            details["status"] = new_status.value
            if new_status != current.status:
                details["previousStatus"] = current.status.value
            if label_status_change:
                action = CampaignStatusMachine.activity_for_status(new_status)

        await self.log_activity(campaign_id, actor, action, details)
        logger.info(f"Campaign {campaign_id} updated by {actor.email}: {updated_fields}")
        return updated

    async def delete_campaign(self, campaign_id: str) -> bool:
        """Delete unconditionally; activities and reviews stay behind"""
        deleted = await self.repository.delete_campaign(campaign_id)
        if deleted:
            logger.info(f"Campaign {campaign_id} deleted")
        return deleted

    # ====================
    # Activity Log
    # ====================

    async def list_activities(
        self,
        campaign_id: str,
        limit: int = DEFAULT_ACTIVITY_LIMIT,
    ) -> List[CampaignActivity]:
        """Activities newest first; works for deleted campaigns too"""
        limit = max(1, min(limit, self.MAX_LIST_LIMIT))
        return await self.repository.list_activities(campaign_id, limit=limit)

    async def record_activity(
        self,
        campaign_id: str,
        actor: Actor,
        action: ActivityAction,
        details: Optional[Dict[str, Any]] = None,
    ) -> CampaignActivity:
        """Explicitly requested activity entry; failures propagate"""
        await self.get_campaign(campaign_id)
        return await self.repository.create_activity(
            self._make_activity(campaign_id, actor, action, details)
        )

    async def log_activity(
        self,
        campaign_id: str,
        actor: Actor,
        action: ActivityAction,
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[CampaignActivity]:
        """
        Append the audit row for a mutation that already succeeded.

        A failed insert is logged and swallowed; the parent mutation stands.
        """
        try:
            return await self.repository.create_activity(
                self._make_activity(campaign_id, actor, action, details)
            )
        except Exception as e:
            logger.error(
                f"Failed to log {action.value} activity for campaign {campaign_id}: {e}"
            )
            return None

    # ====================
    # Users
    # ====================

    async def list_users(self) -> List[User]:
        return await self.repository.list_users()

    # ====================
    # Validation Methods
    # ====================

    def _validate_create_request(self, request: CampaignCreateRequest) -> None:
        missing = []
        for field_name in self.REQUIRED_CREATE_FIELDS:
            value = getattr(request, field_name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(field_name)
        if missing:
            raise CampaignValidationError(
                f"Missing required fields: {', '.join(missing)}",
                missing[0],
            )

    @staticmethod
    def _make_activity(
        campaign_id: str,
        actor: Actor,
        action: ActivityAction,
        details: Optional[Dict[str, Any]],
    ) -> CampaignActivity:
        return CampaignActivity(
            id=str(uuid.uuid4()),
            campaign_id=campaign_id,
            user_id=actor.user_id,
            user_email=actor.email,
            action=action,
            details=details,
            created_at=datetime.now(timezone.utc),
        )


__all__ = ["CampaignService"]
