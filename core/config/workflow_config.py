#!/usr/bin/env python3
"""External workflow service configuration

The workflow service executes content generation, product search, KPI
fetches and notification emails. Every value is injected from the
environment; nothing here has a usable default except timeouts.
"""
import os
from dataclasses import dataclass
from typing import Optional

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default

def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default


@dataclass
class WorkflowConfig:
    """Workflow service endpoint, credentials and workflow identifiers"""

    api_url: Optional[str] = None
    api_token: Optional[str] = None
    project_id: Optional[str] = None

    # ===========================================
    # Workflow identifiers
    # ===========================================
    campaign_generation_workflow_id: Optional[str] = None
    product_search_workflow_id: Optional[str] = None
    kpi_date_range_workflow_id: Optional[str] = None
    kpi_detail_workflow_id: Optional[str] = None
    review_notification_workflow_id: Optional[str] = None

    timeout_seconds: float = 120.0
    notification_max_concurrency: int = 5

    @classmethod
    def from_env(cls) -> 'WorkflowConfig':
        """Load workflow config from environment variables"""
        return cls(
            api_url=os.getenv("WORKFLOW_API_URL") or None,
            api_token=os.getenv("WORKFLOW_API_TOKEN") or None,
            project_id=os.getenv("WORKFLOW_PROJECT_ID") or None,
            campaign_generation_workflow_id=os.getenv("CAMPAIGN_GENERATION_WORKFLOW_ID") or None,
            product_search_workflow_id=os.getenv("PRODUCT_SEARCH_WORKFLOW_ID") or None,
            kpi_date_range_workflow_id=os.getenv("KPI_DATE_RANGE_WORKFLOW_ID") or None,
            kpi_detail_workflow_id=os.getenv("KPI_DETAIL_WORKFLOW_ID") or None,
            review_notification_workflow_id=os.getenv("REVIEW_NOTIFICATION_WORKFLOW_ID") or None,
            timeout_seconds=_float(os.getenv("WORKFLOW_TIMEOUT_SECONDS", "120"), 120.0),
            notification_max_concurrency=_int(os.getenv("NOTIFICATION_MAX_CONCURRENCY", "5"), 5),
        )
