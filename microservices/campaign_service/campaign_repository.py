"""
Campaign Service Data Repository

Data access layer - PostgreSQL (Async)

Tables use quoted camelCase identifiers ("Campaign", "scheduledDate", ...),
which are exactly the model aliases, so rows validate straight into models.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic_core import to_jsonable_python

from core.postgres_client import PostgresClient, get_postgres_client
from .models import (
    Campaign,
    CampaignActivity,
    CampaignReview,
    CampaignStatus,
    ReviewStatus,
    User,
)

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def _quote(column: str) -> str:
    return f'"{column}"'


def _affected_rows(status_tag: str) -> int:
    """Row count from an asyncpg status tag such as 'UPDATE 3'"""
    try:
        return int(str(status_tag).rsplit(" ", 1)[-1])
    except (ValueError, IndexError):
        return 0


class CampaignRepository:
    """Campaign service data repository - PostgreSQL (Async)"""

    # Stored as jsonb
    JSON_FIELDS = frozenset({"channels", "image_channels", "products", "generated_content", "details"})

    CAMPAIGN_FIELDS = (
        "id", "title", "topic", "notes", "scheduled_date", "status",
        "channels", "image_channels", "products", "content_focus",
        "generated_content", "doc_url", "folder_url",
        "created_by_id", "last_modified_by_id", "assigned_to_id",
        "created_at", "updated_at",
    )
    # Fields a caller may change after creation
    UPDATABLE_FIELDS = frozenset(CAMPAIGN_FIELDS) - {"id", "created_at", "created_by_id"}

    ACTIVITY_FIELDS = (
        "id", "campaign_id", "user_id", "user_email", "action", "details", "created_at",
    )
    REVIEW_FIELDS = (
        "id", "campaign_id", "requested_by_id", "requested_by_email",
        "reviewer_id", "reviewer_email", "status", "comments",
        "created_at", "responded_at",
    )

    def __init__(self, db: Optional[PostgresClient] = None):
        self.db = db
        self.campaigns_table = _quote("Campaign")
        self.activities_table = _quote("CampaignActivity")
        self.reviews_table = _quote("CampaignReview")
        self.users_table = _quote("User")

    async def initialize(self):
        """Initialize database connection"""
        if self.db is None:
            self.db = await get_postgres_client("campaign_service")
        await self.db.connect()
        logger.info("Campaign repository initialized with PostgreSQL")

    async def ensure_schema(self) -> List[str]:
        """Apply the migration scripts in name order; they are idempotent"""
        applied = []
        for script in sorted(MIGRATIONS_DIR.glob("*.sql")):
            async with self.db:
                await self.db.execute(script.read_text())
            applied.append(script.name)
            logger.info(f"Applied migration {script.name}")
        return applied

    async def close(self):
        """Close database connection"""
        if self.db is not None:
            await self.db.close()
        logger.info("Campaign repository database connection closed")

    async def health_check(self) -> bool:
        """Check repository health"""
        try:
            async with self.db:
                result = await self.db.query_row("SELECT 1 as healthy")
                return result is not None
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return False

    # ====================
    # Campaign CRUD
    # ====================

    async def create_campaign(self, campaign: Campaign) -> Campaign:
        """Insert a campaign"""
        try:
            values = self._model_values(campaign, self.CAMPAIGN_FIELDS)
            query = self._insert_sql(self.campaigns_table, Campaign, self.CAMPAIGN_FIELDS)

            async with self.db:
                result = await self.db.query_row(query, params=values)

            return Campaign.model_validate(result)

        except Exception as e:
            logger.error(f"Error creating campaign {campaign.id}: {e}")
            raise

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        """Get campaign by ID"""
        try:
            query = f'SELECT * FROM {self.campaigns_table} WHERE "id" = $1'

            async with self.db:
                result = await self.db.query_row(query, params=[campaign_id])

            return Campaign.model_validate(result) if result else None

        except Exception as e:
            logger.error(f"Error getting campaign {campaign_id}: {e}")
            raise

    async def list_campaigns(
        self,
        status: Optional[CampaignStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Campaign], int]:
        """List campaigns newest first with the total matching count"""
        try:
            conditions = []
            params: List[Any] = []

            if status:
                params.append(status.value)
                conditions.append(f'"status" = ${len(params)}')

            where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

            count_query = f"SELECT COUNT(*) AS total FROM {self.campaigns_table} {where_clause}"
            list_query = f'''
                SELECT * FROM {self.campaigns_table}
                {where_clause}
                ORDER BY "createdAt" DESC
                LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}
            '''

            async with self.db:
                count_row = await self.db.query_row(count_query, params=params)
                rows = await self.db.query(list_query, params=params + [limit, offset])

            total = int(count_row["total"]) if count_row else 0
            return [Campaign.model_validate(row) for row in rows], total

        except Exception as e:
            logger.error(f"Error listing campaigns: {e}")
            raise

    async def update_campaign(
        self, campaign_id: str, updates: Dict[str, Any]
    ) -> Optional[Campaign]:
        """Apply field updates (snake_case keys); None if the campaign is absent"""
        try:
            query, params = self._update_sql(campaign_id, updates)

            async with self.db:
                result = await self.db.query_row(query, params=params)

            return Campaign.model_validate(result) if result else None

        except Exception as e:
            logger.error(f"Error updating campaign {campaign_id}: {e}")
            raise

    async def delete_campaign(self, campaign_id: str) -> bool:
        """Delete a campaign; activities and reviews are left in place"""
        try:
            query = f'DELETE FROM {self.campaigns_table} WHERE "id" = $1'

            async with self.db:
                result = await self.db.execute(query, params=[campaign_id])

            return _affected_rows(result) > 0

        except Exception as e:
            logger.error(f"Error deleting campaign {campaign_id}: {e}")
            raise

    # ====================
    # Activities
    # ====================

    async def create_activity(self, activity: CampaignActivity) -> CampaignActivity:
        """Append an activity row"""
        values = self._model_values(activity, self.ACTIVITY_FIELDS)
        query = self._insert_sql(self.activities_table, CampaignActivity, self.ACTIVITY_FIELDS)

        async with self.db:
            result = await self.db.query_row(query, params=values)

        return CampaignActivity.model_validate(result)

    async def list_activities(
        self, campaign_id: str, limit: int = 50
    ) -> List[CampaignActivity]:
        """Most recent activities first"""
        try:
            query = f'''
                SELECT * FROM {self.activities_table}
                WHERE "campaignId" = $1
                ORDER BY "createdAt" DESC
                LIMIT $2
            '''

            async with self.db:
                rows = await self.db.query(query, params=[campaign_id, limit])

            return [CampaignActivity.model_validate(row) for row in rows]

        except Exception as e:
            logger.error(f"Error listing activities for campaign {campaign_id}: {e}")
            raise

    # ====================
    # Reviews
    # ====================

    async def request_reviews(
        self,
        campaign_id: str,
        reviews: List[CampaignReview],
        updates: Dict[str, Any],
    ) -> Tuple[Optional[Campaign], List[CampaignReview]]:
        """
        Update the campaign and insert its review requests in one transaction.

        Returns:
            (updated campaign, created reviews); (None, []) with nothing
            written if the campaign does not exist
        """
        try:
            update_query, update_params = self._update_sql(campaign_id, updates)
            insert_query = self._insert_sql(self.reviews_table, CampaignReview, self.REVIEW_FIELDS)
            created = []

            async with self.db.transaction() as tx:
                row = await tx.query_row(update_query, params=update_params)
                if not row:
                    return None, []
                for review in reviews:
                    review_row = await tx.query_row(
                        insert_query, params=self._model_values(review, self.REVIEW_FIELDS)
                    )
                    created.append(CampaignReview.model_validate(review_row))

            return Campaign.model_validate(row), created

        except Exception as e:
            logger.error(f"Error requesting reviews for campaign {campaign_id}: {e}")
            raise

    async def list_reviews(self, campaign_id: str) -> List[CampaignReview]:
        """Reviews for a campaign, newest first"""
        try:
            query = f'''
                SELECT * FROM {self.reviews_table}
                WHERE "campaignId" = $1
                ORDER BY "createdAt" DESC
            '''

            async with self.db:
                rows = await self.db.query(query, params=[campaign_id])

            return [CampaignReview.model_validate(row) for row in rows]

        except Exception as e:
            logger.error(f"Error listing reviews for campaign {campaign_id}: {e}")
            raise

    async def approve_campaign(
        self,
        campaign_id: str,
        updates: Dict[str, Any],
        responded_at: datetime,
    ) -> Tuple[Optional[Campaign], int]:
        """
        Update the campaign and bulk-approve its PENDING reviews in one
        transaction.

        Returns:
            (updated campaign, approved review count); (None, 0) with
            nothing written if the campaign does not exist
        """
        try:
            update_query, update_params = self._update_sql(campaign_id, updates)
            approve_query = f'''
                UPDATE {self.reviews_table}
                SET "status" = $2, "respondedAt" = $3
                WHERE "campaignId" = $1 AND "status" = $4
            '''

            async with self.db.transaction() as tx:
                row = await tx.query_row(update_query, params=update_params)
                if not row:
                    return None, 0
                result = await tx.execute(
                    approve_query,
                    params=[
                        campaign_id,
                        ReviewStatus.APPROVED.value,
                        responded_at,
                        ReviewStatus.PENDING.value,
                    ],
                )

            return Campaign.model_validate(row), _affected_rows(result)

        except Exception as e:
            logger.error(f"Error approving reviews for campaign {campaign_id}: {e}")
            raise

    # ====================
    # Users
    # ====================

    async def list_users(self) -> List[User]:
        """Reviewer directory ordered by name"""
        try:
            query = f'''
                SELECT "id", "email", "name", "avatarUrl", "role"
                FROM {self.users_table}
                ORDER BY "name" ASC NULLS LAST
            '''

            async with self.db:
                rows = await self.db.query(query)

            return [User.model_validate(row) for row in rows]

        except Exception as e:
            logger.error(f"Error listing users: {e}")
            raise

    async def get_user_by_email(self, email: str) -> Optional[User]:
        try:
            query = f'''
                SELECT "id", "email", "name", "avatarUrl", "role"
                FROM {self.users_table}
                WHERE lower("email") = lower($1)
            '''

            async with self.db:
                row = await self.db.query_row(query, params=[email])

            return User.model_validate(row) if row else None

        except Exception as e:
            logger.error(f"Error getting user {email}: {e}")
            raise

    # ====================
    # Helper Methods
    # ====================

    @staticmethod
    def _column(model, field_name: str) -> str:
        return _quote(model.model_fields[field_name].alias or field_name)

    def _insert_sql(self, table: str, model, fields) -> str:
        columns = ", ".join(self._column(model, f) for f in fields)
        placeholders = ", ".join(f"${i}" for i in range(1, len(fields) + 1))
        return f"INSERT INTO {table} ({columns}) VALUES ({placeholders}) RETURNING *"

    def _update_sql(self, campaign_id: str, updates: Dict[str, Any]) -> Tuple[str, List[Any]]:
        """UPDATE ... RETURNING * for the updatable fields; stamps updatedAt"""
        fields = {k: v for k, v in updates.items() if k in self.UPDATABLE_FIELDS}
        fields.setdefault("updated_at", datetime.now(timezone.utc))

        params: List[Any] = [campaign_id]
        assignments = []
        for field_name, value in fields.items():
            params.append(self._column_value(field_name, value))
            assignments.append(f"{self._column(Campaign, field_name)} = ${len(params)}")

        query = f'''
            UPDATE {self.campaigns_table}
            SET {", ".join(assignments)}
            WHERE "id" = $1
            RETURNING *
        '''
        return query, params

    def _model_values(self, model_instance, fields) -> List[Any]:
        return [
            self._column_value(f, getattr(model_instance, f))
            for f in fields
        ]

    def _column_value(self, field_name: str, value: Any) -> Any:
        """Python value -> asyncpg parameter"""
        if value is None:
            return None
        if field_name in self.JSON_FIELDS:
            # Enum dict keys and nested dates become plain JSON values
            return to_jsonable_python(value)
        if isinstance(value, Enum):
            return value.value
        return value


__all__ = ["CampaignRepository"]
