#!/usr/bin/env python3
"""Infrastructure configuration

Database of record for campaigns, activities, reviews and users.
"""
import os
from dataclasses import dataclass
from typing import Optional

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class InfraConfig:
    """Infrastructure endpoints"""

    # ===========================================
    # PostgreSQL (native asyncpg - port 5432)
    # ===========================================
    database_url: Optional[str] = None
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "postgres"
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"

    # Pool sizing
    postgres_min_pool_size: int = 1
    postgres_max_pool_size: int = 10

    # Apply migrations/*.sql on startup
    auto_migrate: bool = False

    @property
    def postgres_dsn(self) -> str:
        """DATABASE_URL when given, otherwise built from the POSTGRES_* parts"""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @classmethod
    def from_env(cls) -> 'InfraConfig':
        """Load infrastructure config from environment variables"""
        return cls(
            database_url=os.getenv("DATABASE_URL") or None,
            postgres_host=os.getenv("POSTGRES_HOST", "localhost"),
            postgres_port=_int(os.getenv("POSTGRES_PORT", "5432"), 5432),
            postgres_db=os.getenv("POSTGRES_DB", "postgres"),
            postgres_user=os.getenv("POSTGRES_USER", "postgres"),
            postgres_password=os.getenv("POSTGRES_PASSWORD", "postgres"),
            postgres_min_pool_size=_int(os.getenv("POSTGRES_MIN_POOL_SIZE", "1"), 1),
            postgres_max_pool_size=_int(os.getenv("POSTGRES_MAX_POOL_SIZE", "10"), 10),
            auto_migrate=os.getenv("DB_AUTO_MIGRATE", "false").lower() == "true",
        )
