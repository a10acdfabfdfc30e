#!/usr/bin/env python3
"""
Core Module for Microservices Architecture

Shared components for the campaign dashboard microservices.

COMPONENTS:
    - config/: dataclass configuration loaded from the environment
    - config_manager.py: per-service view over the settings
    - logger.py: logging setup
    - postgres_client.py: asyncpg pool wrapper
    - jwt_manager.py / auth_dependencies.py: bearer token verification

USAGE:
    from core.config_manager import ConfigManager

    config = ConfigManager("campaign_service")
"""
