"""
API Tests for Campaign Service

HTTP contract through FastAPI TestClient: status codes, camelCase bodies,
error shapes and authentication. Services run against the in-memory
repository and mocked workflow client.
"""

from datetime import timedelta

import pytest

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.conftest import make_token
from tests.component.campaign.conftest import (
    GENERATION_WORKFLOW,
    KPI_DETAIL_WORKFLOW,
    KPI_RANGE_WORKFLOW,
    NOTIFICATION_WORKFLOW,
    PRODUCT_SEARCH_WORKFLOW,
)
from tests.contracts.campaign.data_contract import (
    CampaignCreateRequestBuilder,
    CampaignStatus,
    ReviewRequestBuilder,
    ReviewStatus,
)

CAMPAIGNS = "/api/v1/campaigns"


def _bearer(**kwargs):
    return {"Authorization": f"Bearer {make_token(**kwargs)}"}


class TestAuthentication:
    """Mutating endpoints require a verified bearer token"""

    def test_missing_token(self, app_client):
        response = app_client.post(CAMPAIGNS, json=CampaignCreateRequestBuilder().build_payload())

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_wrong_secret(self, app_client):
        response = app_client.post(
            CAMPAIGNS,
            json=CampaignCreateRequestBuilder().build_payload(),
            headers=_bearer(secret="not-the-secret"),
        )

        assert response.status_code == 401

    def test_expired_token(self, app_client):
        response = app_client.post(
            CAMPAIGNS,
            json=CampaignCreateRequestBuilder().build_payload(),
            headers=_bearer(expires_in=timedelta(minutes=-5)),
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Token has expired"

    def test_token_without_email(self, app_client):
        response = app_client.delete(f"{CAMPAIGNS}/cmp_1", headers=_bearer(email=None))

        assert response.status_code == 401

    def test_reads_do_not_require_token(self, app_client):
        assert app_client.get(CAMPAIGNS).status_code == 200


class TestCampaignEndpoints:
    """Campaign CRUD over HTTP"""

    def test_create_returns_camel_case_campaign(self, app_client, auth_headers, mock_repository):
        payload = (
            CampaignCreateRequestBuilder()
            .with_title("Spring Sale")
            .with_scheduled_date("2025-03-14T12:00:00.000Z")
            .with_content_focus(4)
            .build_payload()
        )

        response = app_client.post(CAMPAIGNS, json=payload, headers=auth_headers)

        assert response.status_code == 201
        campaign = response.json()["campaign"]
        assert campaign["title"] == "Spring Sale"
        assert campaign["status"] == "DRAFT"
        assert campaign["scheduledDate"] == "2025-03-14"
        assert campaign["contentFocus"] == 4
        assert campaign["createdById"] == "usr_editor"
        assert campaign["channels"]["blog"] is True
        assert campaign["id"] in mock_repository.campaigns

    def test_create_missing_fields(self, app_client, auth_headers):
        payload = CampaignCreateRequestBuilder().without("topic", "channels").build_payload()

        response = app_client.post(CAMPAIGNS, json=payload, headers=auth_headers)

        assert response.status_code == 400
        assert response.json() == {"detail": "Missing required fields: topic, channels", "field": "topic"}

    def test_create_content_focus_out_of_range(self, app_client, auth_headers):
        payload = CampaignCreateRequestBuilder().with_content_focus(7).build_payload()

        response = app_client.post(CAMPAIGNS, json=payload, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["field"] == "contentFocus"

    def test_create_unknown_channel(self, app_client, auth_headers):
        payload = CampaignCreateRequestBuilder().with_channels({"blog": True, "tiktok": True}).build_payload()

        response = app_client.post(CAMPAIGNS, json=payload, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Invalid request:")

    def test_create_invalid_date(self, app_client, auth_headers):
        payload = CampaignCreateRequestBuilder().with_scheduled_date("next tuesday").build_payload()

        response = app_client.post(CAMPAIGNS, json=payload, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["field"] == "scheduledDate"

    def test_list_reports_total_count(self, app_client, mock_repository, factory):
        for _ in range(3):
            mock_repository.add_campaign(factory.make_campaign())
        mock_repository.add_campaign(factory.make_campaign(status=CampaignStatus.SCHEDULED))

        response = app_client.get(CAMPAIGNS, params={"limit": 2})

        body = response.json()
        assert response.status_code == 200
        assert len(body["campaigns"]) == 2
        assert body["count"] == 4
        assert body["limit"] == 2
        assert body["offset"] == 0

    def test_list_status_filter_is_case_insensitive(self, app_client, mock_repository, factory):
        mock_repository.add_campaign(factory.make_campaign())
        mock_repository.add_campaign(factory.make_campaign(status=CampaignStatus.SCHEDULED))

        response = app_client.get(CAMPAIGNS, params={"status": "scheduled"})

        assert [c["status"] for c in response.json()["campaigns"]] == ["SCHEDULED"]

    def test_list_invalid_status(self, app_client):
        response = app_client.get(CAMPAIGNS, params={"status": "LIVE"})

        assert response.status_code == 400
        assert response.json()["field"] == "status"

    def test_list_limit_out_of_range(self, app_client):
        assert app_client.get(CAMPAIGNS, params={"limit": 500}).status_code == 400

    def test_reads_are_not_cached(self, app_client):
        response = app_client.get(CAMPAIGNS)

        assert response.headers["Cache-Control"] == "no-store"

    def test_get_detail_with_activities(self, app_client, auth_headers):
        created = app_client.post(
            CAMPAIGNS, json=CampaignCreateRequestBuilder().build_payload(), headers=auth_headers
        ).json()["campaign"]

        response = app_client.get(f"{CAMPAIGNS}/{created['id']}")

        body = response.json()
        assert response.status_code == 200
        assert body["campaign"]["id"] == created["id"]
        assert [a["action"] for a in body["activities"]] == ["CREATED"]
        assert body["activities"][0]["userEmail"] == "editor@example.com"

    def test_get_unknown_campaign(self, app_client):
        response = app_client.get(f"{CAMPAIGNS}/does-not-exist")

        assert response.status_code == 404

    def test_put_updates_fields(self, app_client, auth_headers, sample_campaign):
        response = app_client.put(
            f"{CAMPAIGNS}/{sample_campaign.id}",
            json={"title": "Renamed", "notes": None},
            headers=auth_headers,
        )

        campaign = response.json()["campaign"]
        assert response.status_code == 200
        assert campaign["title"] == "Renamed"
        assert campaign["notes"] is None
        assert campaign["topic"] == sample_campaign.topic

    def test_patch_invalid_transition(self, app_client, auth_headers, sample_campaign):
        response = app_client.patch(
            f"{CAMPAIGNS}/{sample_campaign.id}",
            json={"status": "PUBLISHED"},
            headers=auth_headers,
        )

        assert response.status_code == 409
        body = response.json()
        assert body["currentStatus"] == "DRAFT"
        assert body["requestedStatus"] == "PUBLISHED"

    def test_patch_publish(self, app_client, auth_headers, approved_campaign, mock_repository):
        response = app_client.patch(
            f"{CAMPAIGNS}/{approved_campaign.id}",
            json={"status": "PUBLISHED"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["campaign"]["status"] == "PUBLISHED"
        assert mock_repository.activities_for(approved_campaign.id)[-1].action.value == "PUBLISHED"

    def test_delete_existing_and_missing(self, app_client, auth_headers, sample_campaign, mock_repository):
        first = app_client.delete(f"{CAMPAIGNS}/{sample_campaign.id}", headers=auth_headers)
        second = app_client.delete(f"{CAMPAIGNS}/{sample_campaign.id}", headers=auth_headers)

        assert first.json() == {"success": True}
        assert second.status_code == 200
        assert second.json() == {"success": True}
        assert sample_campaign.id not in mock_repository.campaigns


class TestActivityEndpoints:
    """Activity log over HTTP"""

    def test_record_and_list(self, app_client, auth_headers, sample_campaign):
        created = app_client.post(
            f"{CAMPAIGNS}/{sample_campaign.id}/activity",
            json={"action": "CHANGES_REQUESTED", "details": {"note": "Shorter subject line"}},
            headers=auth_headers,
        )
        listed = app_client.get(f"{CAMPAIGNS}/{sample_campaign.id}/activity")

        assert created.status_code == 201
        assert created.json()["activity"]["action"] == "CHANGES_REQUESTED"
        assert [a["details"] for a in listed.json()["activities"]] == [{"note": "Shorter subject line"}]

    def test_unknown_action(self, app_client, auth_headers, sample_campaign):
        response = app_client.post(
            f"{CAMPAIGNS}/{sample_campaign.id}/activity",
            json={"action": "LIKED"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["field"] == "action"


class TestReviewFlow:
    """Send for review, list reviews, approve"""

    def test_review_then_approve(
        self, app_client, auth_headers, scheduled_campaign, mock_repository, mock_workflow_client
    ):
        # Given: A scheduled campaign sent to two reviewers
        review_payload = (
            ReviewRequestBuilder(scheduled_campaign.id)
            .with_recipient("r1@example.com", "Reviewer One")
            .with_recipient("r2@example.com")
            .build_payload()
        )
        sent = app_client.post("/api/v1/reviews", json=review_payload, headers=auth_headers)

        assert sent.status_code == 200
        body = sent.json()
        assert body["success"] is True
        assert body["emailsSent"] is True
        assert [r["email"] for r in body["emailResults"]] == ["r1@example.com", "r2@example.com"]
        assert all(r["status"] == "PENDING" for r in body["reviews"])

        # When: The campaign is approved
        approve_payload = ReviewRequestBuilder(scheduled_campaign.id).with_recipient("owner@example.com").build_payload()
        approved = app_client.post("/api/v1/approve", json=approve_payload, headers=auth_headers)

        # Then
        assert approved.status_code == 200
        assert approved.json()["emailsSent"] is True
        assert mock_repository.campaigns[scheduled_campaign.id].status == CampaignStatus.APPROVED
        listed = app_client.get("/api/v1/reviews", params={"campaignId": scheduled_campaign.id}).json()
        assert {r["status"] for r in listed["reviews"]} == {ReviewStatus.APPROVED.value}
        assert len(mock_workflow_client.calls_for(NOTIFICATION_WORKFLOW)) == 3

    def test_review_reports_email_failures(self, app_client, auth_headers, scheduled_campaign, mock_workflow_client):
        mock_workflow_client.set_error(NOTIFICATION_WORKFLOW)
        payload = ReviewRequestBuilder(scheduled_campaign.id).with_recipient("r1@example.com").build_payload()

        response = app_client.post("/api/v1/reviews", json=payload, headers=auth_headers)

        body = response.json()
        assert response.status_code == 200
        assert body["emailsSent"] is False
        assert body["emailResults"][0]["error"] == "workflow failed"

    def test_review_from_draft_conflicts(self, app_client, auth_headers, sample_campaign):
        payload = ReviewRequestBuilder(sample_campaign.id).with_recipient("r1@example.com").build_payload()

        response = app_client.post("/api/v1/reviews", json=payload, headers=auth_headers)

        assert response.status_code == 409

    def test_review_without_recipients(self, app_client, auth_headers, scheduled_campaign):
        payload = ReviewRequestBuilder(scheduled_campaign.id).build_payload()

        response = app_client.post("/api/v1/reviews", json=payload, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["field"] == "recipients"

    def test_list_reviews_requires_campaign_id(self, app_client):
        response = app_client.get("/api/v1/reviews")

        assert response.status_code == 400
        assert response.json()["field"] == "campaignId"


class TestWorkflowEndpoints:
    """Archive and generation over HTTP"""

    def test_archive_requires_admin(self, app_client, auth_headers, sample_campaign):
        response = app_client.post(f"{CAMPAIGNS}/{sample_campaign.id}/archive", headers=auth_headers)

        assert response.status_code == 403

    def test_admin_archives(self, app_client, admin_actor, approved_campaign):
        headers = _bearer(email=admin_actor.email, sub=admin_actor.user_id, name=admin_actor.name)

        response = app_client.post(f"{CAMPAIGNS}/{approved_campaign.id}/archive", headers=headers)

        assert response.status_code == 200
        assert response.json()["campaign"]["status"] == "ARCHIVED"

    def test_generate(self, app_client, auth_headers, sample_campaign, mock_workflow_client):
        mock_workflow_client.set_result(GENERATION_WORKFLOW, {"docUrl": "https://docs.example.com/d/9"})

        response = app_client.post(f"{CAMPAIGNS}/{sample_campaign.id}/generate", headers=auth_headers)

        campaign = response.json()["campaign"]
        assert response.status_code == 200
        assert campaign["status"] == "SCHEDULED"
        assert campaign["docUrl"] == "https://docs.example.com/d/9"

    def test_generate_failure_surfaces_message(self, app_client, auth_headers, sample_campaign, mock_workflow_client):
        from microservices.campaign_service.protocols import WorkflowError

        mock_workflow_client.set_error(GENERATION_WORKFLOW, WorkflowError("Workflow timed out after 120s"))

        response = app_client.post(f"{CAMPAIGNS}/{sample_campaign.id}/generate", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"detail": "Workflow timed out after 120s", "type": "WorkflowError"}


class TestUsersEndpoint:

    def test_users_ordered_by_name(self, app_client, mock_repository, factory):
        mock_repository.add_user(factory.make_user(name="Zed"))
        mock_repository.add_user(factory.make_user(name="Amy"))

        response = app_client.get("/api/v1/users")

        assert [u["name"] for u in response.json()["users"]] == ["Amy", "Zed"]


class TestAnalyticsEndpoints:
    """KPI summary and detail over HTTP"""

    def test_summary_shape(self, app_client, mock_workflow_client):
        mock_workflow_client.set_result(KPI_RANGE_WORKFLOW, {"response": {"summary": {"clicks": 5}}})

        response = app_client.get("/api/v1/kpi", params={"startDate": "2025-03-01", "endDate": "2025-03-31"})

        body = response.json()
        assert response.status_code == 200
        assert set(body) == {"email", "facebook", "googleAds", "all", "fetchedAt"}
        assert body["googleAds"]["summary"] == {"clicks": 5}

    def test_summary_single_platform(self, app_client, mock_workflow_client):
        response = app_client.get("/api/v1/kpi", params={"platform": "Facebook"})

        assert response.status_code == 200
        assert [p["platform"] for p in mock_workflow_client.calls_for(KPI_RANGE_WORKFLOW)] == ["facebook"]
        assert response.json()["email"] is None

    def test_summary_needs_both_dates(self, app_client, mock_workflow_client):
        response = app_client.get("/api/v1/kpi", params={"startDate": "2025-03-01"})

        assert response.status_code == 400
        assert mock_workflow_client.calls == []

    def test_summary_unknown_platform(self, app_client):
        response = app_client.get("/api/v1/kpi", params={"platform": "tiktok"})

        assert response.status_code == 400
        assert response.json()["field"] == "platform"

    def test_summary_all_platforms_down(self, app_client, mock_workflow_client):
        mock_workflow_client.set_error(KPI_RANGE_WORKFLOW)

        response = app_client.get("/api/v1/kpi")

        body = response.json()
        assert response.status_code == 500
        assert body["type"] == "AnalyticsUnavailableError"
        assert set(body["errors"]) == {"mailchimp", "facebook", "googleads"}

    def test_detail_passthrough(self, app_client, mock_workflow_client):
        mock_workflow_client.set_result(KPI_DETAIL_WORKFLOW, {"output": {"opens": 9}})

        response = app_client.post("/api/v1/kpi", json={"platform": "mailchimp", "campaignId": "mc_1"})

        assert response.status_code == 200
        assert response.json() == {"opens": 9}

    def test_detail_missing_fields(self, app_client):
        response = app_client.post("/api/v1/kpi", json={"platform": "mailchimp"})

        assert response.status_code == 400
        assert response.json()["field"] == "campaignId"


class TestProductSearchEndpoint:

    def test_search(self, app_client, mock_workflow_client, factory):
        mock_workflow_client.set_result(PRODUCT_SEARCH_WORKFLOW, {"products": [factory.make_product("SKU-7")]})

        response = app_client.post("/api/v1/products/search", json={"keyword": "lantern"})

        body = response.json()
        assert response.status_code == 200
        assert body["productsCount"] == 1
        assert body["termSalesCount"] == 0
        assert body["keyword"] == "lantern"

    def test_short_keyword(self, app_client, mock_workflow_client):
        response = app_client.post("/api/v1/products/search", json={"keyword": "l"})

        assert response.json()["products"] == []
        assert mock_workflow_client.calls == []


class TestHealthEndpoints:
    """Health endpoints work before the factory is initialized"""

    def test_health(self, app_client):
        body = app_client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["service"] == "campaign_service"

    def test_ready_without_factory(self, app_client):
        body = app_client.get("/health/ready").json()

        assert body["ready"] is False
        assert body["checks"] == {"factory": False}

    def test_live(self, app_client):
        assert app_client.get("/health/live").json()["alive"] is True
