"""
Settings and environment management module for the Funnel Diagnostics backend.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for development
- Singleton pattern via @lru_cache for efficient access
- Engine tuning knobs (status buffer, action cap, checklist gating)

Environment Variables:
- LOG_LEVEL: Root log level for the API process (default: INFO)
- CORS_ORIGINS: Origins allowed to call the API (default: local dashboard)
- STATUS_BUFFER_PERCENT: Tolerance band for warn status (default: 0.10)
- MAX_ACTIONS: Cap on recommended actions per diagnostic (default: 6)
- MAX_MISSING_DATA_QUESTIONS: Cap on clarifying questions (default: 3)
- CHECKLIST_MIN_CONFIDENCE: Confidence score below which the daily checklist
  is empty (default: 50)
- CHECKLIST_MAX_ITEMS: Cap on daily checklist items (default: 3)

The Metric Registry, stage table and sample-size thresholds are NOT settings;
they live in funnel_diagnostics.services.registry as an immutable EngineConfig.

Usage:
    from funnel_diagnostics.core.config import get_settings

    settings = get_settings()
    max_actions = settings.max_actions
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        log_level: Root log level used by the FastAPI entry point.
        cors_origins: Origins allowed by the CORS middleware.
        status_buffer_percent: Fraction of a target used as the warn band.
        max_actions: Maximum number of recommended actions returned.
        max_missing_data_questions: Maximum number of clarifying questions.
        checklist_min_confidence: Minimum confidence score for a daily checklist.
        checklist_max_items: Maximum number of daily checklist items.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Process settings
    # =========================================================================

    log_level: str = 'INFO'

    # Dashboard front-end origins
    cors_origins: List[str] = [
        'http://localhost:3000',
        'http://127.0.0.1:3000',
    ]

    # =========================================================================
    # Engine tuning
    # =========================================================================

    # A metric within 10% of its target (on the wrong side) is 'warn', not 'fail'.
    # Applied to the raw value, before any rounding for display.
    status_buffer_percent: float = 0.10

    # Recommended actions are sorted by priority and truncated to this count
    max_actions: int = 6

    # Clarifying questions asked when optional inputs are missing
    max_missing_data_questions: int = 3

    # Low-confidence data must not drive a concrete daily action list
    checklist_min_confidence: int = 50
    checklist_max_items: int = 3


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The application settings instance with all configuration values.

    Raises:
        pydantic.ValidationError: If an environment variable has an invalid value.

    Note:
        To refresh settings in tests, you can clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
