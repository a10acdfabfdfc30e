"""
Analytics Aggregator

Read-through proxy over the KPI workflows. Fetches each platform's
summary for a date range and reshapes the results into one response.
No metric math happens here; rates and ratios arrive pre-computed.
"""

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .date_utils import format_date
from .models import (
    AnalyticsPlatform,
    KPIDetailRequest,
    KPISummaryResponse,
    PlatformSummary,
)
from .protocols import (
    AnalyticsUnavailableError,
    CampaignValidationError,
    WorkflowClientProtocol,
    WorkflowNotConfiguredError,
)

logger = logging.getLogger(__name__)

# Response slot per platform
PLATFORM_SLOTS: Dict[AnalyticsPlatform, str] = {
    AnalyticsPlatform.MAILCHIMP: "email",
    AnalyticsPlatform.FACEBOOK: "facebook",
    AnalyticsPlatform.GOOGLE_ADS: "google_ads",
}

# Keys a workflow response may file the platform block under
PLATFORM_RESPONSE_KEYS: Dict[AnalyticsPlatform, Tuple[str, ...]] = {
    AnalyticsPlatform.MAILCHIMP: ("email", "mailchimp"),
    AnalyticsPlatform.FACEBOOK: ("facebook",),
    AnalyticsPlatform.GOOGLE_ADS: ("googleAds", "googleads", "google_ads"),
}


def extract_platform_section(
    platform: AnalyticsPlatform,
    response: Dict[str, Any],
) -> PlatformSummary:
    """
    Pull one platform's block out of a KPI workflow response.

    The block may be keyed by platform, or the response may be the bare
    block. A platform that returned nothing is reported as not connected.
    """
    block: Optional[Dict[str, Any]] = None
    for key in PLATFORM_RESPONSE_KEYS[platform]:
        candidate = response.get(key)
        if isinstance(candidate, dict):
            block = candidate
            break
    if block is None and ("summary" in response or "connected" in response):
        block = response

    if not block:
        return PlatformSummary(connected=False)
    return PlatformSummary.model_validate({"connected": True, **block})


class AnalyticsService:
    """Unified KPI summary and drill-down"""

    def __init__(
        self,
        workflow_client: WorkflowClientProtocol,
        date_range_workflow_id: Optional[str],
        detail_workflow_id: Optional[str],
    ):
        self.workflow_client = workflow_client
        self.date_range_workflow_id = date_range_workflow_id
        self.detail_workflow_id = detail_workflow_id

    async def get_summary(
        self,
        start_date: date,
        end_date: date,
        platform: Optional[AnalyticsPlatform] = None,
    ) -> KPISummaryResponse:
        """
        Fetch KPI summaries for one or all platforms.

        Platforms are fetched concurrently. A failed platform is reported
        as connected=false with its error; only when every requested
        platform fails is the whole request an error.

        Raises:
            WorkflowNotConfiguredError: KPI workflow not configured
            AnalyticsUnavailableError: every requested platform failed
        """
        if not self.date_range_workflow_id or not self.workflow_client.is_configured():
            raise WorkflowNotConfiguredError("KPI date range workflow not configured")

        platforms: List[AnalyticsPlatform] = [platform] if platform else list(AnalyticsPlatform)
        outcomes = await asyncio.gather(
            *[self._fetch_platform(p, start_date, end_date) for p in platforms],
            return_exceptions=True,
        )

        sections: Dict[str, PlatformSummary] = {}
        errors: Dict[str, str] = {}
        combined: Optional[Dict[str, Any]] = None

        for p, outcome in zip(platforms, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                message = str(outcome) or type(outcome).__name__
                logger.error(f"KPI fetch failed for {p.value}: {message}")
                errors[p.value] = message
                sections[PLATFORM_SLOTS[p]] = PlatformSummary(connected=False, error=message)
                continue

            section, all_block = outcome
            sections[PLATFORM_SLOTS[p]] = section
            if combined is None and isinstance(all_block, dict):
                combined = all_block

        if len(errors) == len(platforms):
            detail = "; ".join(f"{name}: {msg}" for name, msg in errors.items())
            raise AnalyticsUnavailableError(f"Failed to fetch KPI data ({detail})", errors)

        return KPISummaryResponse(
            **sections,
            all=combined,
            fetched_at=datetime.now(timezone.utc),
        )

    async def get_detail(self, request: KPIDetailRequest) -> Dict[str, Any]:
        """Single-campaign metrics for one platform, passed through as returned"""
        missing = []
        if not request.platform:
            missing.append("platform")
        if not request.campaign_id:
            missing.append("campaignId")
        if missing:
            raise CampaignValidationError(f"Missing required fields: {', '.join(missing)}", missing[0])
        if request.start_date and request.end_date and request.start_date > request.end_date:
            raise CampaignValidationError("startDate must not be after endDate", "startDate")

        if not self.detail_workflow_id or not self.workflow_client.is_configured():
            raise WorkflowNotConfiguredError("KPI detail workflow not configured")

        payload: Dict[str, Any] = {
            "platform": request.platform.value,
            "campaignId": request.campaign_id,
        }
        if request.start_date:
            payload["startDate"] = format_date(request.start_date)
        if request.end_date:
            payload["endDate"] = format_date(request.end_date)

        response = await self.workflow_client.execute_workflow(self.detail_workflow_id, payload)
        result = response.get("result")
        if not isinstance(result, dict):
            return {}
        return result.get("output") or {}

    async def _fetch_platform(
        self,
        platform: AnalyticsPlatform,
        start_date: date,
        end_date: date,
    ) -> Tuple[PlatformSummary, Optional[Dict[str, Any]]]:
        response = await self.workflow_client.execute_workflow(
            self.date_range_workflow_id,
            {
                "platform": platform.value,
                "startDate": format_date(start_date),
                "endDate": format_date(end_date),
            },
        )
        result = response.get("result")
        data = result.get("response") if isinstance(result, dict) else None
        if not isinstance(data, dict):
            data = {}
        return extract_platform_section(platform, data), data.get("all")


__all__ = [
    "AnalyticsService",
    "extract_platform_section",
    "PLATFORM_SLOTS",
]
