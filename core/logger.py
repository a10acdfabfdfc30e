"""
Service Logger Setup

Configures stdlib logging for a microservice from LoggingConfig.

Usage:
    from core.logger import setup_service_logger

    logger = setup_service_logger("campaign_service", level="INFO")
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from .config import get_settings


class JSONLogFormatter(logging.Formatter):
    """One JSON object per line"""

    def __init__(self, service_name: str, environment: str):
        super().__init__()
        self.service_name = service_name
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service_name,
            "environment": self.environment,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_service_logger(service_name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger for a service and return the service logger.

    Args:
        service_name: Logger name and service identity in structured output
        level: Log level override (defaults to LoggingConfig.log_level)

    Returns:
        The named service logger
    """
    log_config = get_settings().logging
    log_level = (level or log_config.log_level).upper()

    if log_config.enable_structured:
        formatter: logging.Formatter = JSONLogFormatter(service_name, log_config.environment)
    else:
        formatter = logging.Formatter(log_config.log_format)

    root = logging.getLogger()
    root.setLevel(log_level)

    # Replace handlers so repeated setup (reload, tests) does not duplicate output
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if log_config.enable_console:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(formatter)
        root.addHandler(console)

    if log_config.log_file:
        file_handler = logging.FileHandler(log_config.log_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # asyncpg and httpx are chatty at DEBUG
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)

    return logging.getLogger(service_name)


__all__ = ["setup_service_logger", "JSONLogFormatter"]
