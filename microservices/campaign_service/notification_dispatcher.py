"""
Notification Dispatcher

Sends review-request and approval emails through the notification
workflow, one call per recipient. Sends run concurrently under a
semaphore; results come back in recipient order. A failed send is
reported in its result and never raised.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from .models import EmailResult, NotificationBatchResult, NotificationType, Recipient
from .protocols import WorkflowClientProtocol

logger = logging.getLogger(__name__)

DEFAULT_CAMPAIGN_TITLE = "Untitled Campaign"
DEFAULT_SENDER_NAME = "A team member"
NOT_CONFIGURED_ERROR = "Notification workflow not configured"


class NotificationDispatcher:
    """Per-recipient email fan-out via the notification workflow"""

    def __init__(
        self,
        workflow_client: WorkflowClientProtocol,
        workflow_id: Optional[str],
        site_base_url: str,
        max_concurrency: int = 5,
    ):
        self.workflow_client = workflow_client
        self.workflow_id = workflow_id
        self.site_base_url = site_base_url.rstrip("/")
        self.max_concurrency = max(1, max_concurrency)

    def is_configured(self) -> bool:
        return bool(self.workflow_id) and self.workflow_client.is_configured(require_project=True)

    def campaign_url(self, campaign_id: str) -> str:
        """Shareable link to the campaign page"""
        return f"{self.site_base_url}/campaigns/{campaign_id}"

    async def dispatch(
        self,
        notification_type: NotificationType,
        campaign_id: str,
        campaign_title: Optional[str],
        recipients: List[Recipient],
        sender_name: str,
        sender_email: str,
    ) -> NotificationBatchResult:
        """
        Notify every recipient about a campaign.

        Args:
            notification_type: review_request or approval
            campaign_id: Campaign the link points at
            campaign_title: Title shown in the email
            recipients: Who to notify
            sender_name: Display name of the actor
            sender_email: Verified email of the actor

        Returns:
            Ordered per-recipient results
        """
        if not recipients:
            return NotificationBatchResult(results=[])

        if not self.is_configured():
            logger.warning(
                f"{NOT_CONFIGURED_ERROR} - skipping {len(recipients)} "
                f"{notification_type.value} email(s) for campaign {campaign_id}"
            )
            return NotificationBatchResult(results=[
                EmailResult(email=r.email, success=False, error=NOT_CONFIGURED_ERROR)
                for r in recipients
            ])

        base_payload = {
            "notificationType": notification_type.value,
            "campaignTitle": campaign_title or DEFAULT_CAMPAIGN_TITLE,
            "campaignUrl": self.campaign_url(campaign_id),
            "senderName": sender_name or DEFAULT_SENDER_NAME,
            "senderEmail": sender_email,
        }
        semaphore = asyncio.Semaphore(self.max_concurrency)

        results = await asyncio.gather(*[
            self._send_one(semaphore, base_payload, recipient, campaign_id)
            for recipient in recipients
        ])

        batch = NotificationBatchResult(results=list(results))
        if batch.failed:
            logger.warning(
                f"{len(batch.failed)}/{len(batch.results)} {notification_type.value} "
                f"email(s) failed for campaign {campaign_id}"
            )
        return batch

    async def _send_one(
        self,
        semaphore: asyncio.Semaphore,
        base_payload: Dict[str, str],
        recipient: Recipient,
        campaign_id: str,
    ) -> EmailResult:
        payload = {
            **base_payload,
            "recipientEmail": recipient.email,
            "recipientName": recipient.name or recipient.email,
        }
        async with semaphore:
            try:
                await self.workflow_client.execute_workflow(self.workflow_id, payload)
                return EmailResult(email=recipient.email, success=True)
            except Exception as e:
                logger.error(
                    f"Failed to send {base_payload['notificationType']} email to "
                    f"{recipient.email} for campaign {campaign_id}: {e}"
                )
                return EmailResult(email=recipient.email, success=False, error=str(e) or type(e).__name__)


__all__ = [
    "NotificationDispatcher",
    "DEFAULT_CAMPAIGN_TITLE",
    "DEFAULT_SENDER_NAME",
    "NOT_CONFIGURED_ERROR",
]
