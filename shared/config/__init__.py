"""
Configuration Module
====================

Centralized configuration management using Pydantic Settings.
Loads from environment variables with type validation and defaults.

Usage:
    from shared.config import settings

    print(settings.environment)
    print(settings.fabric.channel)
"""

from shared.config.settings import (
    Settings,
    FabricSettings,
    get_settings,
    Environment,
    LogLevel,
    FabricMode,
)


# Global settings instance (singleton)
settings = get_settings()

__all__ = [
    "Settings",
    "FabricSettings",
    "get_settings",
    "settings",
    "Environment",
    "LogLevel",
    "FabricMode",
]
