"""
Campaign Workflow

Status transitions that carry side effects: content generation, sending
for review, approval, and the admin archive override. Each operation
checks the status machine first, then writes, then logs one activity,
then (for review and approval) notifies recipients. Notification results
are returned as data; they never undo the transition.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from core.auth_dependencies import Actor

from .campaign_service import CampaignService
from .models import (
    ActivityAction,
    ApproveRequest,
    Campaign,
    CampaignReview,
    CampaignStatus,
    Channel,
    NotificationBatchResult,
    NotificationType,
    ReviewRequest,
    ReviewStatus,
    UserRole,
)
from .notification_dispatcher import DEFAULT_SENDER_NAME
from .protocols import (
    CampaignNotFoundError,
    CampaignRepositoryProtocol,
    CampaignValidationError,
    InvalidCampaignStateError,
    NotificationDispatcherProtocol,
    PermissionDeniedError,
    WorkflowClientProtocol,
    WorkflowNotConfiguredError,
)
from .status_machine import CampaignStatusMachine

logger = logging.getLogger(__name__)

# Channels the generation workflow can illustrate
IMAGE_CHANNELS = (Channel.BLOG, Channel.FACEBOOK, Channel.INSTAGRAM, Channel.TWITTER)


def build_generation_payload(campaign: Campaign) -> Dict[str, Any]:
    """Campaign -> campaign generation workflow inputs"""
    skus = []
    bundle_id = None
    for item in campaign.products:
        if item.get("type") == "term_sale" or item.get("term_sale_id"):
            if bundle_id is None:
                bundle_id = item.get("term_sale_id")
        elif item.get("sku"):
            skus.append(item["sku"])

    image_channels = campaign.image_channels or {}
    return {
        "topic": campaign.topic,
        "bundleId": bundle_id,
        "products": skus,
        "channels": {c.value: bool(campaign.channels.get(c, False)) for c in Channel},
        "imageChannels": {c.value: bool(image_channels.get(c, False)) for c in IMAGE_CHANNELS},
        "notes": campaign.notes,
        "contentFocus": campaign.content_focus,
    }


class CampaignWorkflowService:
    """Review, approval, archive and generation transitions"""

    GENERATABLE_STATUSES = frozenset({CampaignStatus.DRAFT, CampaignStatus.SCHEDULED})

    def __init__(
        self,
        campaign_service: CampaignService,
        repository: CampaignRepositoryProtocol,
        dispatcher: NotificationDispatcherProtocol,
        workflow_client: Optional[WorkflowClientProtocol] = None,
        generation_workflow_id: Optional[str] = None,
    ):
        self.campaign_service = campaign_service
        self.repository = repository
        self.dispatcher = dispatcher
        self.workflow_client = workflow_client
        self.generation_workflow_id = generation_workflow_id

    # ====================
    # Review
    # ====================

    async def send_for_review(
        self,
        request: ReviewRequest,
        actor: Actor,
    ) -> Tuple[List[CampaignReview], NotificationBatchResult]:
        """
        Move a campaign to PENDING_REVIEW with one review row per recipient.

        Returns:
            (created reviews, notification results)

        Raises:
            CampaignValidationError: campaignId or recipients missing
            CampaignNotFoundError: unknown campaign
            InvalidCampaignStateError: campaign not SCHEDULED / PENDING_REVIEW
        """
        if not request.campaign_id:
            raise CampaignValidationError("Missing required fields: campaignId", "campaignId")
        if not request.recipients:
            raise CampaignValidationError("At least one recipient is required", "recipients")

        campaign = await self.campaign_service.get_campaign(request.campaign_id)
        CampaignStatusMachine.validate_transition(campaign.status, CampaignStatus.PENDING_REVIEW)

        now = datetime.now(timezone.utc)
        updated, reviews = await self.repository.request_reviews(
            campaign.id,
            [
                CampaignReview(
                    id=str(uuid.uuid4()),
                    campaign_id=campaign.id,
                    requested_by_id=actor.user_id,
                    requested_by_email=actor.email,
                    reviewer_id=recipient.id,
                    reviewer_email=recipient.email,
                    status=ReviewStatus.PENDING,
                    created_at=now,
                )
                for recipient in request.recipients
            ],
            self._status_updates(CampaignStatus.PENDING_REVIEW, actor),
        )
        if not updated:
            raise CampaignNotFoundError(f"Campaign not found: {campaign.id}")

        recipient_emails = [r.email for r in request.recipients]
        await self.campaign_service.log_activity(
            campaign.id,
            actor,
            ActivityAction.SENT_FOR_REVIEW,
            {"recipients": recipient_emails, "reviewCount": len(reviews)},
        )
        logger.info(f"Campaign {campaign.id} sent for review to {len(reviews)} reviewer(s)")

        batch = await self.dispatcher.dispatch(
            NotificationType.REVIEW_REQUEST,
            campaign.id,
            request.campaign_title or campaign.title,
            request.recipients,
            self._sender_name(request.sender_name, actor),
            actor.email,
        )
        return reviews, batch

    async def list_reviews(self, campaign_id: Optional[str]) -> List[CampaignReview]:
        if not campaign_id:
            raise CampaignValidationError("Missing required query parameter: campaignId", "campaignId")
        return await self.repository.list_reviews(campaign_id)

    # ====================
    # Approval
    # ====================

    async def approve(self, request: ApproveRequest, actor: Actor) -> NotificationBatchResult:
        """
        Approve a campaign under review.

        Every PENDING review is marked APPROVED with respondedAt; reviews
        in any other state are left alone. Recipients (which may differ
        from the reviewers) get an approval email.
        """
        if not request.campaign_id:
            raise CampaignValidationError("Missing required fields: campaignId", "campaignId")

        campaign = await self.campaign_service.get_campaign(request.campaign_id)
        CampaignStatusMachine.validate_transition(campaign.status, CampaignStatus.APPROVED)

        updated, approved_count = await self.repository.approve_campaign(
            campaign.id,
            self._status_updates(CampaignStatus.APPROVED, actor),
            datetime.now(timezone.utc),
        )
        if not updated:
            raise CampaignNotFoundError(f"Campaign not found: {campaign.id}")

        await self.campaign_service.log_activity(
            campaign.id,
            actor,
            ActivityAction.APPROVED,
            {
                "recipients": [r.email for r in request.recipients],
                "approvedReviews": approved_count,
            },
        )
        logger.info(f"Campaign {campaign.id} approved by {actor.email} ({approved_count} review(s) closed)")

        return await self.dispatcher.dispatch(
            NotificationType.APPROVAL,
            campaign.id,
            request.campaign_title or campaign.title,
            request.recipients,
            self._sender_name(request.sender_name, actor),
            actor.email,
        )

    # ====================
    # Archive (admin override)
    # ====================

    async def archive(self, campaign_id: str, actor: Actor) -> Campaign:
        """
        Archive from any state. Requires the actor's User row to be ADMIN.

        Raises:
            PermissionDeniedError: actor unknown or not ADMIN
            InvalidCampaignStateError: already archived
        """
        user = await self.repository.get_user_by_email(actor.email)
        if not user or user.role != UserRole.ADMIN:
            raise PermissionDeniedError("Archiving a campaign requires the ADMIN role")

        campaign = await self.campaign_service.get_campaign(campaign_id)
        CampaignStatusMachine.validate_archive(campaign.status)

        updated = await self._set_status(campaign.id, CampaignStatus.ARCHIVED, actor)
        await self.campaign_service.log_activity(
            campaign.id,
            actor,
            ActivityAction.ARCHIVED,
            {"previousStatus": campaign.status.value},
        )
        logger.info(f"Campaign {campaign.id} archived by {actor.email} (was {campaign.status.value})")
        return updated

    # ====================
    # Content Generation
    # ====================

    async def generate_content(self, campaign_id: str, actor: Actor) -> Campaign:
        """
        Run the campaign generation workflow and store its output.

        A DRAFT campaign becomes SCHEDULED; a SCHEDULED one is regenerated
        in place. Nothing is stored if the workflow fails.
        """
        campaign = await self.campaign_service.get_campaign(campaign_id)
        if campaign.status not in self.GENERATABLE_STATUSES:
            raise InvalidCampaignStateError(
                f"Content can only be generated for DRAFT or SCHEDULED campaigns, not {campaign.status.value}",
                current_status=campaign.status,
                requested_status=CampaignStatus.SCHEDULED,
            )

        if (
            self.workflow_client is None
            or not self.generation_workflow_id
            or not self.workflow_client.is_configured(require_project=True)
        ):
            raise WorkflowNotConfiguredError("Campaign generation workflow not configured")

        response = await self.workflow_client.execute_workflow(
            self.generation_workflow_id,
            build_generation_payload(campaign),
        )
        result = response.get("result") or {}
        if not isinstance(result, dict):
            result = {"content": result}

        regenerated = campaign.status == CampaignStatus.SCHEDULED
        updates: Dict[str, Any] = {
            "generated_content": result,
            "doc_url": result.get("docUrl"),
            "folder_url": result.get("folderUrl"),
            "status": CampaignStatus.SCHEDULED,
        }
        if actor.user_id:
            updates["last_modified_by_id"] = actor.user_id

        updated = await self.repository.update_campaign(campaign.id, updates)
        if not updated:
            raise CampaignNotFoundError(f"Campaign not found: {campaign.id}")

        await self.campaign_service.log_activity(
            campaign.id,
            actor,
            ActivityAction.EDITED if regenerated else ActivityAction.SCHEDULED,
            {
                "docUrl": updated.doc_url,
                "folderUrl": updated.folder_url,
                "regenerated": regenerated,
            },
        )
        logger.info(f"Generated content for campaign {campaign.id} (regenerated={regenerated})")
        return updated

    # ====================
    # Helper Methods
    # ====================

    @staticmethod
    def _status_updates(status: CampaignStatus, actor: Actor) -> Dict[str, Any]:
        updates: Dict[str, Any] = {"status": status}
        if actor.user_id:
            updates["last_modified_by_id"] = actor.user_id
        return updates

    async def _set_status(self, campaign_id: str, status: CampaignStatus, actor: Actor) -> Campaign:
        updated = await self.repository.update_campaign(campaign_id, self._status_updates(status, actor))
        if not updated:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")
        return updated

    @staticmethod
    def _sender_name(requested: Optional[str], actor: Actor) -> str:
        return (requested or "").strip() or actor.name or DEFAULT_SENDER_NAME


__all__ = ["CampaignWorkflowService", "build_generation_payload", "IMAGE_CHANNELS"]
