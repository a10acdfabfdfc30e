"""
Configuration Manager

Per-service view over the global settings loaded by core.config.

Usage:
    from core.config_manager import ConfigManager

    config_manager = ConfigManager("campaign_service")
    config = config_manager.get_service_config()
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .config import AppConfig, get_settings

logger = logging.getLogger(__name__)


@dataclass
class ServiceSettings:
    """Flat settings a single microservice reads at startup"""
    service_name: str
    service_host: str
    service_port: int
    debug: bool
    log_level: str
    environment: str
    site_base_url: str


class ConfigManager:
    """Configuration access for one microservice"""

    SECRET_FIELDS = ("api_token", "jwt_secret", "postgres_password", "database_url")

    def __init__(self, service_name: str, settings: Optional[AppConfig] = None):
        self.service_name = service_name
        self.settings = settings or get_settings()

    def get_service_config(self) -> ServiceSettings:
        """Get the flat service settings"""
        return ServiceSettings(
            service_name=self.service_name,
            service_host=self.settings.host,
            service_port=self.settings.port,
            debug=self.settings.debug,
            log_level=self.settings.logging.log_level,
            environment=self.settings.environment,
            site_base_url=self.settings.site_base_url,
        )

    @property
    def workflow(self):
        return self.settings.workflow

    @property
    def infrastructure(self):
        return self.settings.infrastructure

    @property
    def auth(self):
        return self.settings.auth

    def get_config_summary(self, show_secrets: bool = False) -> Dict[str, Any]:
        """Build a nested dict of the settings, secrets masked unless requested"""
        def _section(obj) -> Dict[str, Any]:
            values = {}
            for key, value in vars(obj).items():
                if not show_secrets and key in self.SECRET_FIELDS and value:
                    value = "***"
                values[key] = value
            return values

        return {
            "service": _section(self.get_service_config()),
            "infrastructure": _section(self.settings.infrastructure),
            "workflow": _section(self.settings.workflow),
            "auth": _section(self.settings.auth),
            "logging": _section(self.settings.logging),
        }

    def print_config_summary(self, show_secrets: bool = False) -> None:
        """Log the configuration summary"""
        summary = self.get_config_summary(show_secrets=show_secrets)
        logger.info(f"Configuration for {self.service_name}:")
        for section, values in summary.items():
            logger.info(f"  [{section}]")
            for key, value in values.items():
                logger.info(f"    {key} = {value}")


__all__ = ["ConfigManager", "ServiceSettings"]
