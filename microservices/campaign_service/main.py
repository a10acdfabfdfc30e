"""
Campaign Service Main Application

FastAPI application for the marketing campaign dashboard: campaign
records, the review / approval workflow, notifications, and KPI analytics.
Port: 8240
"""

import logging
import os
import sys
import time
import traceback
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from core.auth_dependencies import Actor, require_actor
from core.config_manager import ConfigManager
from core.logger import setup_service_logger

from .analytics_service import AnalyticsService
from .campaign_service import CampaignService
from .campaign_workflow import CampaignWorkflowService
from .date_utils import parse_date_range
from .factory import CampaignServiceFactory
from .models import (
    ActivityCreateRequest,
    ActivityListResponse,
    ActivityResponse,
    AnalyticsPlatform,
    ApproveRequest,
    ApproveResponse,
    CampaignCreateRequest,
    CampaignDetailResponse,
    CampaignListResponse,
    CampaignResponse,
    CampaignStatus,
    CampaignUpdateRequest,
    DeleteResponse,
    HealthResponse,
    KPIDetailRequest,
    KPISummaryResponse,
    LivenessResponse,
    ProductSearchRequest,
    ProductSearchResult,
    ReadinessResponse,
    ReviewListResponse,
    ReviewRequest,
    ReviewSendResponse,
    UserListResponse,
)
from .product_search import ProductSearchService
from .protocols import (
    AnalyticsUnavailableError,
    CampaignNotFoundError,
    CampaignValidationError,
    InvalidCampaignStateError,
    PermissionDeniedError,
    WorkflowError,
)

# Service configuration
SERVICE_NAME = "campaign_service"
SERVICE_VERSION = "1.0.0"

config_manager = ConfigManager(SERVICE_NAME)
service_config = config_manager.get_service_config()
SERVICE_PORT = service_config.service_port

logger = setup_service_logger(SERVICE_NAME)

# Track startup time for uptime calculation
startup_time = time.time()

# Global factory instance
factory: Optional[CampaignServiceFactory] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    global factory

    logger.info(f"Starting {SERVICE_NAME} on port {SERVICE_PORT}")
    if service_config.debug:
        config_manager.print_config_summary()

    if factory is None:
        factory = CampaignServiceFactory(config_manager)
        await factory.initialize()

    yield

    # Cleanup
    logger.info(f"Shutting down {SERVICE_NAME}")
    if factory:
        await factory.close()
        factory = None


# Create FastAPI application
app = FastAPI(
    title="Campaign Service",
    description="Marketing campaign dashboard backend: campaigns, reviews, approvals and KPI analytics",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


@app.middleware("http")
async def no_store_on_reads(request: Request, call_next):
    """Reads must reflect the latest write; GET responses are never cached"""
    response = await call_next(request)
    if request.method == "GET":
        response.headers["Cache-Control"] = "no-store"
    return response


# ====================
# Exception Handlers
# ====================


@app.exception_handler(CampaignNotFoundError)
async def campaign_not_found_handler(request: Request, exc: CampaignNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)},
    )


@app.exception_handler(InvalidCampaignStateError)
async def invalid_state_handler(request: Request, exc: InvalidCampaignStateError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": str(exc),
            "currentStatus": exc.current_status.value if exc.current_status else None,
            "requestedStatus": exc.requested_status.value if exc.requested_status else None,
        },
    )


@app.exception_handler(CampaignValidationError)
async def validation_error_handler(request: Request, exc: CampaignValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "field": exc.field},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = []
    messages = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        name = ".".join(loc) or "body"
        fields.append(name)
        messages.append(f"{name}: {error.get('msg')}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": f"Invalid request: {'; '.join(messages)}",
            "field": fields[0] if fields else None,
        },
    )


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"detail": str(exc)},
    )


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    logger.error(f"Workflow error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "type": type(exc).__name__},
    )


@app.exception_handler(AnalyticsUnavailableError)
async def analytics_unavailable_handler(request: Request, exc: AnalyticsUnavailableError):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "type": type(exc).__name__, "errors": exc.errors},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all: upstream and database failures surface with their raw message"""
    logger.error(f"Unhandled exception: {exc}\n{traceback.format_exc()}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": str(exc),
            "type": type(exc).__name__,
        },
    )


# ====================
# Dependencies
# ====================


def _require_factory() -> CampaignServiceFactory:
    if not factory:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return factory


def get_campaign_service() -> CampaignService:
    """Get campaign service from factory"""
    return _require_factory().service


def get_workflow_service() -> CampaignWorkflowService:
    """Get review / approval / generation service from factory"""
    return _require_factory().workflow_service


def get_analytics_service() -> AnalyticsService:
    return _require_factory().analytics_service


def get_product_search_service() -> ProductSearchService:
    return _require_factory().product_search


def _parse_status(value: Optional[str]) -> Optional[CampaignStatus]:
    if not value:
        return None
    try:
        return CampaignStatus(value.upper())
    except ValueError:
        raise CampaignValidationError(f"Invalid status: {value}", "status")


def _parse_platform(value: Optional[str]) -> Optional[AnalyticsPlatform]:
    if not value:
        return None
    try:
        return AnalyticsPlatform(value.lower())
    except ValueError:
        raise CampaignValidationError(f"Invalid platform: {value}", "platform")


# ====================
# Health Endpoints
# ====================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint"""
    dependencies: Dict[str, str] = {}

    if factory:
        try:
            db_healthy = await factory.repository.health_check()
            dependencies["postgres"] = "healthy" if db_healthy else "unhealthy"
        except Exception:
            dependencies["postgres"] = "unhealthy"

        client = factory.workflow_client
        dependencies["workflow_api"] = (
            "configured" if client and client.is_configured() else "not_configured"
        )

    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        port=SERVICE_PORT,
        version=SERVICE_VERSION,
        dependencies=dependencies,
    )


@app.get("/health/ready", response_model=ReadinessResponse, tags=["Health"])
async def readiness_check():
    """Readiness check endpoint"""
    checks: Dict[str, bool] = {}
    details: Dict[str, str] = {}

    if factory:
        try:
            db_healthy = await factory.repository.health_check()
            checks["database"] = db_healthy
            details["database"] = "Connected" if db_healthy else "Connection failed"
        except Exception as e:
            checks["database"] = False
            details["database"] = str(e)

        client = factory.workflow_client
        checks["workflow_api"] = True  # Optional
        details["workflow_api"] = (
            "Configured" if client and client.is_configured() else "Not configured (optional)"
        )
    else:
        checks["factory"] = False
        details["factory"] = "Factory not initialized"

    ready = all(checks.get(k, False) for k in ["database"])

    return ReadinessResponse(
        ready=ready,
        checks=checks,
        details=details,
    )


@app.get("/health/live", response_model=LivenessResponse, tags=["Health"])
async def liveness_check():
    """Liveness check endpoint"""
    return LivenessResponse(
        alive=True,
        uptime_seconds=time.time() - startup_time,
    )


# ====================
# Campaign Endpoints
# ====================


@app.get("/api/v1/campaigns", response_model=CampaignListResponse, tags=["Campaigns"])
async def list_campaigns(
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: int = Query(CampaignService.DEFAULT_LIST_LIMIT, ge=1, le=CampaignService.MAX_LIST_LIMIT),
    offset: int = Query(0, ge=0),
    service: CampaignService = Depends(get_campaign_service),
):
    """List campaigns newest first; count is the total matching"""
    campaigns, total = await service.list_campaigns(
        status=_parse_status(status_filter),
        limit=limit,
        offset=offset,
    )
    return CampaignListResponse(campaigns=campaigns, count=total, limit=limit, offset=offset)


@app.post(
    "/api/v1/campaigns",
    response_model=CampaignResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Campaigns"],
)
async def create_campaign(
    request: CampaignCreateRequest,
    service: CampaignService = Depends(get_campaign_service),
    actor: Actor = Depends(require_actor),
):
    """Create a campaign in DRAFT status"""
    campaign = await service.create_campaign(request, actor)
    return CampaignResponse(campaign=campaign)


@app.get("/api/v1/campaigns/{campaign_id}", response_model=CampaignDetailResponse, tags=["Campaigns"])
async def get_campaign(
    campaign_id: str,
    service: CampaignService = Depends(get_campaign_service),
):
    """Campaign with its most recent activities"""
    campaign, activities = await service.get_campaign_detail(campaign_id)
    return CampaignDetailResponse(campaign=campaign, activities=activities)


@app.put("/api/v1/campaigns/{campaign_id}", response_model=CampaignResponse, tags=["Campaigns"])
async def update_campaign(
    campaign_id: str,
    request: CampaignUpdateRequest,
    service: CampaignService = Depends(get_campaign_service),
    actor: Actor = Depends(require_actor),
):
    """Partial field update; logs EDITED"""
    campaign = await service.update_campaign(campaign_id, request.changes(), actor)
    return CampaignResponse(campaign=campaign)


@app.patch("/api/v1/campaigns/{campaign_id}", response_model=CampaignResponse, tags=["Campaigns"])
async def patch_campaign(
    campaign_id: str,
    request: CampaignUpdateRequest,
    service: CampaignService = Depends(get_campaign_service),
    actor: Actor = Depends(require_actor),
):
    """Partial field update; a status change is logged under its own action"""
    campaign = await service.update_campaign(
        campaign_id, request.changes(), actor, label_status_change=True
    )
    return CampaignResponse(campaign=campaign)


@app.delete("/api/v1/campaigns/{campaign_id}", response_model=DeleteResponse, tags=["Campaigns"])
async def delete_campaign(
    campaign_id: str,
    service: CampaignService = Depends(get_campaign_service),
    actor: Actor = Depends(require_actor),
):
    """Delete a campaign; succeeds whether or not it existed"""
    deleted = await service.delete_campaign(campaign_id)
    if not deleted:
        logger.info(f"Delete requested by {actor.email} for missing campaign {campaign_id}")
    return DeleteResponse(success=True)


@app.get(
    "/api/v1/campaigns/{campaign_id}/activity",
    response_model=ActivityListResponse,
    tags=["Activity"],
)
async def list_activities(
    campaign_id: str,
    limit: int = Query(CampaignService.DEFAULT_ACTIVITY_LIMIT, ge=1, le=CampaignService.MAX_LIST_LIMIT),
    service: CampaignService = Depends(get_campaign_service),
):
    activities = await service.list_activities(campaign_id, limit=limit)
    return ActivityListResponse(activities=activities)


@app.post(
    "/api/v1/campaigns/{campaign_id}/activity",
    response_model=ActivityResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Activity"],
)
async def create_activity(
    campaign_id: str,
    request: ActivityCreateRequest,
    service: CampaignService = Depends(get_campaign_service),
    actor: Actor = Depends(require_actor),
):
    """Append an explicit activity entry for the calling user"""
    activity = await service.record_activity(campaign_id, actor, request.action, request.details)
    return ActivityResponse(activity=activity)


@app.post(
    "/api/v1/campaigns/{campaign_id}/archive",
    response_model=CampaignResponse,
    tags=["Workflow"],
)
async def archive_campaign(
    campaign_id: str,
    workflow: CampaignWorkflowService = Depends(get_workflow_service),
    actor: Actor = Depends(require_actor),
):
    """Admin override: archive from any state"""
    campaign = await workflow.archive(campaign_id, actor)
    return CampaignResponse(campaign=campaign)


@app.post(
    "/api/v1/campaigns/{campaign_id}/generate",
    response_model=CampaignResponse,
    tags=["Workflow"],
)
async def generate_campaign_content(
    campaign_id: str,
    workflow: CampaignWorkflowService = Depends(get_workflow_service),
    actor: Actor = Depends(require_actor),
):
    """Run content generation and store the result"""
    campaign = await workflow.generate_content(campaign_id, actor)
    return CampaignResponse(campaign=campaign)


# ====================
# Review / Approval Endpoints
# ====================


@app.post("/api/v1/reviews", response_model=ReviewSendResponse, tags=["Workflow"])
async def send_for_review(
    request: ReviewRequest,
    workflow: CampaignWorkflowService = Depends(get_workflow_service),
    actor: Actor = Depends(require_actor),
):
    """Send a campaign to reviewers and email them"""
    reviews, batch = await workflow.send_for_review(request, actor)
    return ReviewSendResponse(
        reviews=reviews,
        success=True,
        emails_sent=batch.emails_sent,
        email_results=batch.results,
    )


@app.get("/api/v1/reviews", response_model=ReviewListResponse, tags=["Workflow"])
async def list_reviews(
    campaign_id: Optional[str] = Query(None, alias="campaignId"),
    workflow: CampaignWorkflowService = Depends(get_workflow_service),
):
    reviews = await workflow.list_reviews(campaign_id)
    return ReviewListResponse(reviews=reviews)


@app.post("/api/v1/approve", response_model=ApproveResponse, tags=["Workflow"])
async def approve_campaign(
    request: ApproveRequest,
    workflow: CampaignWorkflowService = Depends(get_workflow_service),
    actor: Actor = Depends(require_actor),
):
    """Approve a campaign under review and notify recipients"""
    batch = await workflow.approve(request, actor)
    return ApproveResponse(
        success=True,
        emails_sent=batch.emails_sent,
        email_results=batch.results,
    )


# ====================
# Users
# ====================


@app.get("/api/v1/users", response_model=UserListResponse, tags=["Users"])
async def list_users(service: CampaignService = Depends(get_campaign_service)):
    """Reviewer directory"""
    users = await service.list_users()
    return UserListResponse(users=users)


# ====================
# Analytics Endpoints
# ====================


@app.get("/api/v1/kpi", response_model=KPISummaryResponse, tags=["Analytics"])
async def get_kpi_summary(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    platform: Optional[str] = Query(None),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    """
    Unified KPI summary across platforms.

    Both dates absent: the last 30 days (Eastern). A platform that fails
    is reported as connected=false; 500 only if every platform fails.
    """
    try:
        start, end = parse_date_range(start_date, end_date)
    except ValueError as e:
        raise CampaignValidationError(str(e), "startDate")

    return await analytics.get_summary(start, end, platform=_parse_platform(platform))


@app.post("/api/v1/kpi", tags=["Analytics"])
async def get_kpi_detail(
    request: KPIDetailRequest,
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> Dict[str, Any]:
    """Single-campaign drill-down, returned as the workflow produced it"""
    return await analytics.get_detail(request)


# ====================
# Product Search
# ====================


@app.post("/api/v1/products/search", response_model=ProductSearchResult, tags=["Products"])
async def search_products(
    request: ProductSearchRequest,
    search: ProductSearchService = Depends(get_product_search_service),
):
    """Products and term sales for the campaign product picker"""
    return await search.search(request.keyword)


# ====================
# Main Entry Point
# ====================


def main():
    """Run the service"""
    import uvicorn

    uvicorn.run(
        "microservices.campaign_service.main:app",
        host=service_config.service_host,
        port=SERVICE_PORT,
        reload=service_config.debug,
        log_level=service_config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
