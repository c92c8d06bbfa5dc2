"""
Ad Service Data Repository

Data access layer - PostgreSQL (asyncpg)

Counter increments and status changes are single conditional UPDATE
statements, so concurrent writers never lose updates.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import asyncpg

from core.config import InfraConfig, get_settings

from .models import (
    AdStatus,
    BLOCKING_TRANSACTION_STATUSES,
    Campaign,
    CounterField,
    SlotFilter,
    utc_now,
)

logger = logging.getLogger(__name__)

# Columns callers may change through update_campaign / compare_and_set_status
UPDATABLE_COLUMNS = frozenset({
    "title",
    "name",
    "ad_type",
    "position",
    "image_url",
    "target_link",
    "price",
    "is_paid",
    "status",
    "rejection_reason",
    "start_date",
    "end_date",
})


class AdRepository:
    """Ad campaign data repository - PostgreSQL (asyncpg)"""

    def __init__(
        self,
        config: Optional[InfraConfig] = None,
        pool: Optional[asyncpg.Pool] = None,
    ):
        self.config = config or get_settings().infrastructure
        self.pool = pool
        self._owns_pool = pool is None
        self.schema = self.config.postgres_schema

        # Table names
        self.campaigns_table = "ad_campaigns"
        self.transactions_table = "ad_transactions"

    async def initialize(self, create_schema: bool = False):
        """Initialize database connection pool"""
        if self.pool is None:
            logger.info(f"Connecting to PostgreSQL at {self.config.postgres_host}:{self.config.postgres_port}")
            self.pool = await asyncpg.create_pool(
                dsn=self.config.postgres_dsn,
                min_size=self.config.postgres_pool_min,
                max_size=self.config.postgres_pool_max,
            )
        if create_schema:
            await self.create_schema()
        logger.info("Ad repository initialized with PostgreSQL")

    async def close(self):
        """Close database connection pool"""
        if self.pool is not None and self._owns_pool:
            await self.pool.close()
            self.pool = None
        logger.info("Ad repository database connection closed")

    async def health_check(self) -> bool:
        """Check repository health"""
        try:
            result = await self.pool.fetchval("SELECT 1")
            return result == 1
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return False

    async def create_schema(self) -> None:
        """Create schema and tables if missing"""
        statements = [
            f"CREATE SCHEMA IF NOT EXISTS {self.schema}",
            f'''
                CREATE TABLE IF NOT EXISTS {self.schema}.{self.campaigns_table} (
                    campaign_id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    name TEXT,
                    ad_type TEXT NOT NULL,
                    position TEXT,
                    image_url TEXT NOT NULL,
                    target_link TEXT,
                    price NUMERIC(12, 2) NOT NULL DEFAULT 0,
                    is_paid BOOLEAN NOT NULL DEFAULT FALSE,
                    status TEXT NOT NULL DEFAULT 'PENDING',
                    rejection_reason TEXT,
                    start_date TIMESTAMPTZ NOT NULL,
                    end_date TIMESTAMPTZ NOT NULL,
                    impressions INTEGER NOT NULL DEFAULT 0 CHECK (impressions >= 0),
                    clicks INTEGER NOT NULL DEFAULT 0 CHECK (clicks >= 0),
                    owner_id TEXT NOT NULL,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    CHECK (end_date > start_date),
                    CHECK (status <> 'ACTIVE' OR is_paid)
                )
            ''',
            f'''
                CREATE INDEX IF NOT EXISTS idx_{self.campaigns_table}_serving
                ON {self.schema}.{self.campaigns_table} (status, start_date, end_date)
            ''',
            f'''
                CREATE TABLE IF NOT EXISTS {self.schema}.{self.transactions_table} (
                    transaction_id TEXT PRIMARY KEY,
                    campaign_id TEXT NOT NULL,
                    status TEXT NOT NULL,
                    amount NUMERIC(12, 2) NOT NULL,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            ''',
        ]
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                for statement in statements:
                    await conn.execute(statement)

    # ====================
    # Queries
    # ====================

    async def find_eligible(self, slot_filter: SlotFilter) -> List[Campaign]:
        """Campaigns matching a slot filter, newest first"""
        try:
            query = f'''
                SELECT * FROM {self.schema}.{self.campaigns_table}
                WHERE status = $1
                  AND start_date <= $2
                  AND end_date >= $2
                  AND (
                    position = ANY($3::text[])
                    OR (ad_type = ANY($4::text[]) AND (position IS NULL OR position = ''))
                  )
                ORDER BY created_at DESC
            '''
            rows = await self.pool.fetch(
                query,
                slot_filter.status.value,
                slot_filter.now,
                sorted(slot_filter.allowed_positions),
                sorted(t.value for t in slot_filter.allowed_types),
            )
            return [self._row_to_campaign(row) for row in rows]

        except Exception as e:
            logger.error(f"Error finding ads for slot {slot_filter.slot_name}: {e}")
            raise

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        """Get campaign by ID"""
        try:
            query = f'''
                SELECT * FROM {self.schema}.{self.campaigns_table}
                WHERE campaign_id = $1
            '''
            row = await self.pool.fetchrow(query, campaign_id)
            return self._row_to_campaign(row) if row else None

        except Exception as e:
            logger.error(f"Error getting campaign {campaign_id}: {e}")
            raise

    async def list_by_owner(self, owner_id: str) -> List[Campaign]:
        """All campaigns owned by an advertiser, newest first"""
        try:
            query = f'''
                SELECT * FROM {self.schema}.{self.campaigns_table}
                WHERE owner_id = $1
                ORDER BY created_at DESC
            '''
            rows = await self.pool.fetch(query, owner_id)
            return [self._row_to_campaign(row) for row in rows]

        except Exception as e:
            logger.error(f"Error listing campaigns for {owner_id}: {e}")
            raise

    async def list_expirable(self, now: datetime) -> List[Campaign]:
        """ACTIVE or PAUSED campaigns whose end date has passed"""
        try:
            query = f'''
                SELECT * FROM {self.schema}.{self.campaigns_table}
                WHERE status = ANY($1::text[]) AND end_date < $2
            '''
            rows = await self.pool.fetch(
                query, [AdStatus.ACTIVE.value, AdStatus.PAUSED.value], now
            )
            return [self._row_to_campaign(row) for row in rows]

        except Exception as e:
            logger.error(f"Error listing expirable campaigns: {e}")
            raise

    async def has_active_transactions(self, campaign_id: str) -> bool:
        """Whether PENDING or SUCCEEDED transactions reference the campaign"""
        try:
            query = f'''
                SELECT EXISTS (
                    SELECT 1 FROM {self.schema}.{self.transactions_table}
                    WHERE campaign_id = $1 AND status = ANY($2::text[])
                )
            '''
            return bool(await self.pool.fetchval(
                query, campaign_id, sorted(s.value for s in BLOCKING_TRANSACTION_STATUSES)
            ))

        except Exception as e:
            logger.error(f"Error checking transactions for {campaign_id}: {e}")
            raise

    # ====================
    # Writes
    # ====================

    async def save_campaign(self, campaign: Campaign) -> Campaign:
        """Insert a campaign"""
        try:
            query = f'''
                INSERT INTO {self.schema}.{self.campaigns_table} (
                    campaign_id, title, name, ad_type, position, image_url,
                    target_link, price, is_paid, status, rejection_reason,
                    start_date, end_date, impressions, clicks, owner_id,
                    created_at, updated_at
                ) VALUES (
                    $1, $2, $3, $4, $5, $6, $7, $8, $9, $10,
                    $11, $12, $13, $14, $15, $16, $17, $18
                )
                RETURNING *
            '''
            row = await self.pool.fetchrow(
                query,
                campaign.campaign_id,
                campaign.title,
                campaign.name,
                campaign.ad_type.value,
                campaign.position,
                campaign.image_url,
                campaign.target_link,
                campaign.price,
                campaign.is_paid,
                campaign.status.value,
                campaign.rejection_reason,
                campaign.start_date,
                campaign.end_date,
                campaign.impressions,
                campaign.clicks,
                campaign.owner_id,
                campaign.created_at,
                campaign.updated_at,
            )
            return self._row_to_campaign(row) if row else campaign

        except Exception as e:
            logger.error(f"Error saving campaign: {e}", exc_info=True)
            raise

    async def update_campaign(
        self, campaign_id: str, updates: Dict[str, Any]
    ) -> Optional[Campaign]:
        """Update campaign fields"""
        try:
            if not updates:
                return await self.get_campaign(campaign_id)

            set_clauses, params = self._build_set_clauses(updates)
            params.append(campaign_id)

            query = f'''
                UPDATE {self.schema}.{self.campaigns_table}
                SET {", ".join(set_clauses)}
                WHERE campaign_id = ${len(params)}
                RETURNING *
            '''
            row = await self.pool.fetchrow(query, *params)
            return self._row_to_campaign(row) if row else None

        except Exception as e:
            logger.error(f"Error updating campaign {campaign_id}: {e}")
            raise

    async def compare_and_set_status(
        self,
        campaign_id: str,
        expected: AdStatus,
        new_status: AdStatus,
        **fields: Any,
    ) -> Optional[Campaign]:
        """
        Set status and fields only while the stored status equals ``expected``.

        Returns None when the campaign is missing or its status moved.
        """
        try:
            set_clauses, params = self._build_set_clauses({**fields, "status": new_status})
            params.extend([campaign_id, expected.value])

            query = f'''
                UPDATE {self.schema}.{self.campaigns_table}
                SET {", ".join(set_clauses)}
                WHERE campaign_id = ${len(params) - 1} AND status = ${len(params)}
                RETURNING *
            '''
            row = await self.pool.fetchrow(query, *params)
            return self._row_to_campaign(row) if row else None

        except Exception as e:
            logger.error(f"Error updating status of campaign {campaign_id}: {e}")
            raise

    async def increment_counter(
        self, campaign_id: str, field: CounterField
    ) -> Optional[Campaign]:
        """Atomically add one to an engagement counter"""
        column = CounterField(field).value
        try:
            query = f'''
                UPDATE {self.schema}.{self.campaigns_table}
                SET {column} = {column} + 1
                WHERE campaign_id = $1
                RETURNING *
            '''
            row = await self.pool.fetchrow(query, campaign_id)
            return self._row_to_campaign(row) if row else None

        except Exception as e:
            logger.error(f"Error incrementing {column} for campaign {campaign_id}: {e}")
            raise

    async def delete_campaign(self, campaign_id: str) -> bool:
        """Delete a campaign unless PENDING/SUCCEEDED transactions reference it"""
        try:
            query = f'''
                DELETE FROM {self.schema}.{self.campaigns_table} c
                WHERE c.campaign_id = $1
                  AND NOT EXISTS (
                    SELECT 1 FROM {self.schema}.{self.transactions_table} t
                    WHERE t.campaign_id = c.campaign_id AND t.status = ANY($2::text[])
                  )
                RETURNING c.campaign_id
            '''
            deleted = await self.pool.fetchval(
                query, campaign_id, sorted(s.value for s in BLOCKING_TRANSACTION_STATUSES)
            )
            return deleted is not None

        except Exception as e:
            logger.error(f"Error deleting campaign {campaign_id}: {e}")
            raise

    # ====================
    # Helpers
    # ====================

    @staticmethod
    def _build_set_clauses(updates: Dict[str, Any]):
        set_clauses = []
        params: List[Any] = []

        for key, value in updates.items():
            if key not in UPDATABLE_COLUMNS:
                raise ValueError(f"Column {key} cannot be updated")
            params.append(value.value if isinstance(value, Enum) else value)
            set_clauses.append(f"{key} = ${len(params)}")

        params.append(utc_now())
        set_clauses.append(f"updated_at = ${len(params)}")
        return set_clauses, params

    @staticmethod
    def _row_to_campaign(row) -> Campaign:
        """Convert database row to Campaign model"""
        return Campaign.model_validate(dict(row))


__all__ = ["AdRepository", "UPDATABLE_COLUMNS"]
