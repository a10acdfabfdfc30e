#!/usr/bin/env python3
"""Campaign dashboard main configuration

Combines all sub-configs with the service-level settings.
"""
import os
from dataclasses import dataclass, field
from typing import Optional

from .infra_config import InfraConfig
from .logging_config import LoggingConfig
from .workflow_config import WorkflowConfig


def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class AuthConfig:
    """Bearer token verification settings"""
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_audience: Optional[str] = "authenticated"
    jwt_issuer: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'AuthConfig':
        return cls(
            jwt_secret=os.getenv("AUTH_JWT_SECRET") or os.getenv("JWT_SECRET"),
            jwt_algorithm=os.getenv("AUTH_JWT_ALGORITHM", "HS256"),
            # Empty string disables the audience check
            jwt_audience=os.getenv("AUTH_JWT_AUDIENCE", "authenticated") or None,
            jwt_issuer=os.getenv("AUTH_JWT_ISSUER") or None,
        )


@dataclass
class AppConfig:
    """Main campaign dashboard configuration with all sub-configs"""

    # Environment
    environment: str = "development"
    debug: bool = False

    service_name: str = "campaign_service"
    host: str = "0.0.0.0"
    port: int = 8240

    # Base URL for shareable campaign links
    site_base_url: str = "http://localhost:3000"

    # Sub-configurations
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    infrastructure: InfraConfig = field(default_factory=InfraConfig)
    workflow: WorkflowConfig = field(default_factory=WorkflowConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """Load complete configuration from environment"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            environment=env,
            debug=_bool(os.getenv("DEBUG", "true" if env == "development" else "false")),
            service_name=os.getenv("SERVICE_NAME", "campaign_service"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_int(os.getenv("SERVICE_PORT") or os.getenv("PORT", "8240"), 8240),
            site_base_url=os.getenv("SITE_BASE_URL", "http://localhost:3000").rstrip("/"),
            logging=LoggingConfig.from_env(),
            infrastructure=InfraConfig.from_env(),
            workflow=WorkflowConfig.from_env(),
            auth=AuthConfig.from_env(),
        )
