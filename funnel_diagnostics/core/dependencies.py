"""
FastAPI dependency injection module for the Funnel Diagnostics backend.

This module provides reusable FastAPI dependencies for configuration access.
Endpoint handlers receive the Settings singleton and the immutable EngineConfig
through these dependencies, so tests can override either one with
`app.dependency_overrides` without touching module-level state.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- get_engine_config_dependency: Returns the cached EngineConfig (registry,
  stages, eligibility thresholds, confidence constants)
- SettingsDep: Type alias for injecting Settings into endpoints
- EngineConfigDep: Type alias for injecting EngineConfig into endpoints

Usage Examples:
    @router.get("/targets")
    async def list_targets(engine_config: EngineConfigDep) -> Dict[str, MetricTarget]:
        return dict(engine_config.targets)
"""

from typing import Annotated

from fastapi import Depends

from funnel_diagnostics.core.config import Settings, get_settings
from funnel_diagnostics.services.registry import EngineConfig, get_engine_config


def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Returns:
        Settings: The cached application settings.
    """
    return get_settings()


def get_engine_config_dependency() -> EngineConfig:
    """
    Return the EngineConfig singleton instance.

    The engine configuration is built once per process and treated as
    immutable; callers that need different targets use EngineConfig.with_targets()
    (e.g. with a benchmark profile) instead of mutating this one.

    Returns:
        EngineConfig: The cached engine configuration.
    """
    return get_engine_config()


SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

EngineConfigDep = Annotated[EngineConfig, Depends(get_engine_config_dependency)]
