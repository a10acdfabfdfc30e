"""
Campaign Service Factory

Factory for creating campaign service instances with proper dependency injection.
"""

import logging
from typing import Optional

from core.config_manager import ConfigManager
from core.postgres_client import PostgresClient

from .analytics_service import AnalyticsService
from .campaign_repository import CampaignRepository
from .campaign_service import CampaignService
from .campaign_workflow import CampaignWorkflowService
from .clients.workflow_client import WorkflowClient
from .notification_dispatcher import NotificationDispatcher
from .product_search import ProductSearchService

logger = logging.getLogger(__name__)


class CampaignServiceFactory:
    """Factory for creating campaign service components"""

    def __init__(self, config: Optional[ConfigManager] = None):
        self.config = config or ConfigManager("campaign_service")
        self._repository: Optional[CampaignRepository] = None
        self._workflow_client: Optional[WorkflowClient] = None
        self._dispatcher: Optional[NotificationDispatcher] = None
        self._service: Optional[CampaignService] = None
        self._workflow_service: Optional[CampaignWorkflowService] = None
        self._analytics_service: Optional[AnalyticsService] = None
        self._product_search: Optional[ProductSearchService] = None

    async def initialize(self) -> None:
        """Initialize all components"""
        logger.info("Initializing Campaign Service components...")

        infra = self.config.infrastructure
        workflow = self.config.workflow
        service_config = self.config.get_service_config()

        # Initialize repository
        db = PostgresClient(service_name="campaign_service", infra=infra)
        self._repository = CampaignRepository(db)
        await self._repository.initialize()
        if infra.auto_migrate:
            await self._repository.ensure_schema()

        # Initialize workflow client
        self._workflow_client = WorkflowClient(workflow)
        if not self._workflow_client.is_configured():
            logger.warning("Workflow API not configured - generation, search, KPI and email calls will fail")

        self._dispatcher = NotificationDispatcher(
            workflow_client=self._workflow_client,
            workflow_id=workflow.review_notification_workflow_id,
            site_base_url=service_config.site_base_url,
            max_concurrency=workflow.notification_max_concurrency,
        )

        # Initialize main services
        self._service = CampaignService(repository=self._repository)
        self._workflow_service = CampaignWorkflowService(
            campaign_service=self._service,
            repository=self._repository,
            dispatcher=self._dispatcher,
            workflow_client=self._workflow_client,
            generation_workflow_id=workflow.campaign_generation_workflow_id,
        )
        self._analytics_service = AnalyticsService(
            workflow_client=self._workflow_client,
            date_range_workflow_id=workflow.kpi_date_range_workflow_id,
            detail_workflow_id=workflow.kpi_detail_workflow_id,
        )
        self._product_search = ProductSearchService(
            workflow_client=self._workflow_client,
            workflow_id=workflow.product_search_workflow_id,
        )

        logger.info("Campaign Service components initialized")

    async def close(self) -> None:
        """Close all components"""
        logger.info("Closing Campaign Service components...")

        if self._repository:
            await self._repository.close()

        logger.info("Campaign Service components closed")

    @property
    def repository(self) -> CampaignRepository:
        """Get campaign repository"""
        if not self._repository:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._repository

    @property
    def service(self) -> CampaignService:
        """Get campaign service"""
        if not self._service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._service

    @property
    def workflow_service(self) -> CampaignWorkflowService:
        """Get review / approval / generation service"""
        if not self._workflow_service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._workflow_service

    @property
    def analytics_service(self) -> AnalyticsService:
        if not self._analytics_service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._analytics_service

    @property
    def product_search(self) -> ProductSearchService:
        if not self._product_search:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._product_search

    @property
    def workflow_client(self) -> Optional[WorkflowClient]:
        """Get workflow client"""
        return self._workflow_client


__all__ = ["CampaignServiceFactory"]
