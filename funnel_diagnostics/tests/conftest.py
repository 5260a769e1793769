"""
Pytest Configuration and Shared Fixtures for Funnel Diagnostics Tests.

This module provides fixtures and configuration for all engine and API tests:
- Isolated EngineConfig and Settings instances (no cross-test interference)
- Sample funnel snapshots: healthy, empty, inconsistent, below-target
- A helper that builds stage impacts the way the orchestrator does

Snapshots are chosen so rates land away from status boundaries; where a test
needs an exact boundary it builds its own target.

Dependencies:
- pytest
- httpx (FastAPI TestClient)
"""

from typing import Callable, Dict, Generator, List

import pytest

from funnel_diagnostics.core.config import Settings, get_settings
from funnel_diagnostics.models.schemas import FunnelSnapshot, MetricTarget, StageImpact
from funnel_diagnostics.services.bottlenecks import calculate_stage_impacts
from funnel_diagnostics.services.rates import calculate_derived_metrics
from funnel_diagnostics.services.registry import EngineConfig, get_engine_config


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Configure custom pytest markers for test organization.

    Custom markers defined:
    - scenario: Concrete end-to-end scenarios with hand-computed results
    - api: Tests that go through the FastAPI application

    Usage:
        pytest -m scenario
        pytest -m "not api"
    """
    config.addinivalue_line(
        'markers',
        'scenario: concrete scenarios with hand-computed expected results'
    )
    config.addinivalue_line(
        'markers',
        'api: tests exercising the FastAPI application'
    )


# ============================================================
# CONFIGURATION FIXTURES
# ============================================================

@pytest.fixture
def engine_config() -> EngineConfig:
    """A fresh default EngineConfig, independent of the cached singleton."""
    return EngineConfig()


@pytest.fixture
def settings() -> Settings:
    """Settings with the documented defaults, independent of the environment."""
    return Settings(
        status_buffer_percent=0.10,
        max_actions=6,
        max_missing_data_questions=3,
        checklist_min_confidence=50,
        checklist_max_items=3,
    )


@pytest.fixture
def clear_caches() -> Generator[None, None, None]:
    """Reset the cached Settings and EngineConfig around a test."""
    get_settings.cache_clear()
    get_engine_config.cache_clear()
    yield
    get_settings.cache_clear()
    get_engine_config.cache_clear()


@pytest.fixture
def make_config(engine_config: EngineConfig) -> Callable[[Dict[str, MetricTarget]], EngineConfig]:
    """Build a config with some targets overridden."""
    def _make(overrides: Dict[str, MetricTarget]) -> EngineConfig:
        targets = dict(engine_config.targets)
        targets.update(overrides)
        return engine_config.with_targets(targets)
    return _make


# ============================================================
# SNAPSHOT FIXTURES
# ============================================================

@pytest.fixture
def healthy_snapshot() -> FunnelSnapshot:
    """
    Every stage eligible and at or above target, complete media data.

    ctr 1.6%, cpc 3.125, cpm 50, click->lead 6.25%, cpl 50,
    lead->MQL 30%, MQL->SQL 40%, SQL->opp 50%, opp->won 33.3%
    """
    return FunnelSnapshot(
        spend=10000.0,
        impressions=200000,
        clicks=3200,
        leads=200,
        mql=60,
        sql=24,
        opportunities=12,
        closedDeals=4,
    )


@pytest.fixture
def empty_snapshot() -> FunnelSnapshot:
    return FunnelSnapshot(leads=0)


@pytest.fixture
def inconsistent_snapshot() -> FunnelSnapshot:
    """More MQLs than leads."""
    return FunnelSnapshot(leads=100, mql=150)


@pytest.fixture
def trusted_bottleneck_snapshot() -> FunnelSnapshot:
    """
    Lead->MQL at 10% against a 15% target; every later stage eligible at 50%.

    extra MQLs = round(400 x 0.15 - 40) = 20
    extra deals = 20 x 0.5 x 0.5 x 0.5 = 2.5 -> 3
    """
    return FunnelSnapshot(leads=400, mql=40, sql=20, opportunities=10, closedDeals=5)


@pytest.fixture
def build_impacts(engine_config: EngineConfig) -> Callable[..., List[StageImpact]]:
    """Derive metrics and stage impacts for a snapshot."""
    def _build(snapshot: FunnelSnapshot, config: EngineConfig = None) -> List[StageImpact]:
        config = config or engine_config
        derived = calculate_derived_metrics(snapshot)
        return calculate_stage_impacts(snapshot, derived, config)
    return _build
