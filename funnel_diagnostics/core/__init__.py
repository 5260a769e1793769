"""
Core infrastructure package for the Funnel Diagnostics backend.

Provides:
- Configuration management via pydantic-settings
- FastAPI dependency injection utilities

This module re-exports key components from submodules for convenient importing:

    from funnel_diagnostics.core import get_settings, SettingsDep
"""

from funnel_diagnostics.core.config import Settings, get_settings
from funnel_diagnostics.core.dependencies import (
    get_settings_dependency,
    get_engine_config_dependency,
    SettingsDep,
    EngineConfigDep,
)

__all__ = [
    'Settings',
    'get_settings',
    'get_settings_dependency',
    'get_engine_config_dependency',
    'SettingsDep',
    'EngineConfigDep',
]
