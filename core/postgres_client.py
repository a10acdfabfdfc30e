"""
PostgreSQL Client Wrapper

asyncpg connection pool with the query/query_row/execute access pattern
used by every repository.

Usage:
    from core.postgres_client import get_postgres_client

    db = await get_postgres_client("campaign_service")

    async with db:
        rows = await db.query('SELECT * FROM "Campaign" WHERE status = $1', ["DRAFT"])
"""

import json
import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import date, datetime
from decimal import Decimal
from typing import Any, AsyncIterator, Dict, List, Optional

import asyncpg

from .config import InfraConfig, get_settings

logger = logging.getLogger(__name__)


class ExtendedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal and date/datetime types"""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)


def json_dumps(obj):
    """JSON dumps with Decimal and datetime support"""
    return json.dumps(obj, cls=ExtendedJSONEncoder)


async def _init_connection(conn: asyncpg.Connection) -> None:
    """Decode json/jsonb columns to Python objects on every pooled connection"""
    for type_name in ("json", "jsonb"):
        await conn.set_type_codec(
            type_name,
            encoder=json_dumps,
            decoder=json.loads,
            schema="pg_catalog",
        )


class PostgresClient:
    """
    PostgreSQL client over an asyncpg pool.

    The pool is created lazily on first use (or by connect()), so building
    the client never touches the network. Inside a transaction() block all
    calls run on the transaction's connection.
    """

    def __init__(
        self,
        service_name: str,
        dsn: Optional[str] = None,
        min_size: Optional[int] = None,
        max_size: Optional[int] = None,
        infra: Optional[InfraConfig] = None,
    ):
        infra = infra or get_settings().infrastructure
        self.service_name = service_name
        self.dsn = dsn or infra.postgres_dsn
        self.min_size = min_size or infra.postgres_min_pool_size
        self.max_size = max_size or infra.postgres_max_pool_size
        self._pool: Optional[asyncpg.Pool] = None
        # Per-task, so concurrent requests never share a transaction connection
        self._tx_conn: ContextVar[Optional[asyncpg.Connection]] = ContextVar(
            f"{service_name}_tx_conn", default=None
        )

    async def connect(self) -> None:
        """Create the connection pool"""
        if self._pool is None:
            self._pool = await asyncpg.create_pool(
                dsn=self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                init=_init_connection,
            )
            logger.info(f"PostgreSQL pool created for {self.service_name}")

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        # The pool outlives individual request scopes; close() releases it
        pass

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
        tx_conn = self._tx_conn.get()
        if tx_conn is not None:
            yield tx_conn
            return
        await self.connect()
        async with self._pool.acquire() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["PostgresClient"]:
        """Run the enclosed query/execute calls in a single transaction"""
        await self.connect()
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                token = self._tx_conn.set(conn)
                try:
                    yield self
                finally:
                    self._tx_conn.reset(token)

    async def health_check(self) -> bool:
        """Check database health"""
        row = await self.query_row("SELECT 1 AS healthy")
        return row is not None

    async def query(self, sql: str, params: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
        """Execute query and return results"""
        async with self._connection() as conn:
            records = await conn.fetch(sql, *(params or []))
        return [dict(record) for record in records]

    async def query_row(self, sql: str, params: Optional[List[Any]] = None) -> Optional[Dict[str, Any]]:
        """Execute query and return single row"""
        async with self._connection() as conn:
            record = await conn.fetchrow(sql, *(params or []))
        return dict(record) if record else None

    async def execute(self, sql: str, params: Optional[List[Any]] = None) -> str:
        """Execute SQL statement, returning the status tag (e.g. 'UPDATE 3')"""
        async with self._connection() as conn:
            return await conn.execute(sql, *(params or []))

    async def close(self):
        """Close the pool"""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info(f"PostgreSQL pool closed for {self.service_name}")


# Singleton instances per service
_postgres_clients: Dict[str, PostgresClient] = {}


async def get_postgres_client(service_name: str, **kwargs) -> PostgresClient:
    """
    Get or create PostgreSQL client for a service.

    Args:
        service_name: Name of the service
        **kwargs: Overrides passed to PostgresClient on first creation

    Returns:
        PostgresClient instance
    """
    if service_name not in _postgres_clients:
        _postgres_clients[service_name] = PostgresClient(service_name, **kwargs)
    return _postgres_clients[service_name]


__all__ = [
    "PostgresClient",
    "get_postgres_client",
    "json_dumps",
    "ExtendedJSONEncoder",
]
