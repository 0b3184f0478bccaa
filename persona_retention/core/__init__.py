"""
Core infrastructure package for the Persona Retention backend.

Provides:
- Configuration management via pydantic-settings (config)
- FastAPI dependency injection utilities (dependencies)

Only configuration is re-exported here. The dependencies module imports the
service layer, so it is imported directly by the API routers:

    from persona_retention.core import get_settings
    from persona_retention.core.dependencies import SessionDep, SettingsDep
"""

from persona_retention.core.config import Settings, get_settings

__all__ = [
    'Settings',
    'get_settings',
]
