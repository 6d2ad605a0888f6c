"""
Centralized configuration management.

This module provides a unified interface for accessing configuration settings.
It selects the appropriate settings class based on the service name.

The configuration system uses Pydantic Settings, which loads values from:
    1. Environment variables (highest priority)
    2. .env file in the project root
    3. Default values defined in the settings classes

Example:
    ```python
    from fincafe.config import get_settings

    settings = get_settings("farm-service")
    print(settings.DATABASE_URL)
    ```
"""

from fincafe.config.settings import BaseServiceSettings, FarmServiceSettings


def get_settings(service_name: str | None = None) -> FarmServiceSettings | BaseServiceSettings:
    """
    Get settings instance for the specified service.

    Args:
        service_name: Name of the service. Any name containing "farm" (as well
            as None, since every entry point in this repository works with farm
            databases) returns FarmServiceSettings. Other names return
            BaseServiceSettings.

    Returns:
        A fresh settings instance. Settings are not cached so tests can change
        environment variables between calls.
    """
    if service_name is None or "farm" in service_name.lower():
        return FarmServiceSettings()
    return BaseServiceSettings()


__all__ = [
    "BaseServiceSettings",
    "FarmServiceSettings",
    "get_settings",
]
