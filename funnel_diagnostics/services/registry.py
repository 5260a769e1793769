"""
Metric Registry and Engine Configuration

This module holds the static configuration the diagnostic engine grades against:

- DEFAULT_TARGETS: metric key -> MetricTarget (value, direction, label, unit)
- STAGES: the ordered funnel stages and their member metrics
- STAGE_THRESHOLDS: minimum denominator per stage (eligibility gate)
- MEDIA_THRESHOLDS: minimum impressions/clicks/leads per media metric
- SAMPLE_SIZE_RULES / penalty constants: confidence scorer tiers

Everything is bundled into an immutable EngineConfig built once per process by
get_engine_config() and injected into every service entry point. Callers that
want different targets (benchmark profiles, capture-type adjustments, request
overrides) build a new targets mapping with with_targets(); the defaults are
never mutated.

A registry that has drifted out of sync with the stage table is a configuration
error, raised as RegistryConfigurationError by validate_engine_config() at
start-up and by the status evaluator when it is asked to grade such a stage.
"""

import logging
from functools import lru_cache
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from funnel_diagnostics.models.enums import Direction, MetricUnit
from funnel_diagnostics.models.schemas import (
    EligibilityThreshold,
    MediaMetricThreshold,
    MetricTarget,
    StageDefinition,
)


logger = logging.getLogger(__name__)


class RegistryConfigurationError(ValueError):
    """The metric registry and the stage/threshold tables are out of sync."""


# =============================================================================
# Default Targets
# Percent metrics are on a 0-100 scale; currency metrics in account currency.
# =============================================================================

DEFAULT_TARGETS: Dict[str, MetricTarget] = {
    # Paid media
    "ctr": MetricTarget(value=1.5, direction=Direction.MIN, label="CTR (%)"),
    "cpc": MetricTarget(value=8.0, direction=Direction.MAX, label="CPC", unit=MetricUnit.CURRENCY),
    "cpm": MetricTarget(value=60.0, direction=Direction.MAX, label="CPM", unit=MetricUnit.CURRENCY),
    "clickToLeadRate": MetricTarget(value=5.0, direction=Direction.MIN, label="Click → lead (%)"),
    "cpl": MetricTarget(value=150.0, direction=Direction.MAX, label="CPL", unit=MetricUnit.CURRENCY),
    "invalidLeadRate": MetricTarget(value=15.0, direction=Direction.MAX, label="Invalid leads (%)"),
    # Lead → MQL: B2B typically 10-20%
    "leadToMql": MetricTarget(value=15.0, direction=Direction.MIN, label="Lead → MQL (%)"),
    # Inside sales
    "timeToFirstTouch": MetricTarget(
        value=5.0, direction=Direction.MAX, label="Time to first touch (min)", unit=MetricUnit.MINUTES
    ),
    "contactRate24h": MetricTarget(value=80.0, direction=Direction.MIN, label="Contact rate 24h (%)"),
    "connectRate": MetricTarget(value=25.0, direction=Direction.MIN, label="Connect rate (%)"),
    "salRate": MetricTarget(value=60.0, direction=Direction.MIN, label="SAL rate (%)"),
    "mqlAgingDays": MetricTarget(value=7.0, direction=Direction.MAX, label="MQL aging (days)", unit=MetricUnit.DAYS),
    "mqlToSql": MetricTarget(value=30.0, direction=Direction.MIN, label="MQL → SQL (%)"),
    "sqlToOpportunity": MetricTarget(value=35.0, direction=Direction.MIN, label="SQL → Opportunity (%)"),
    # Closing
    "opportunityToWon": MetricTarget(value=20.0, direction=Direction.MIN, label="Opportunity → Won (%)"),
    "salesCycleDays": MetricTarget(
        value=69.0, direction=Direction.MAX, label="Sales cycle (days)", unit=MetricUnit.DAYS
    ),
    "discountRate": MetricTarget(value=15.0, direction=Direction.MAX, label="Discount rate (%)"),
}


# =============================================================================
# Funnel Stages (declaration order drives propagation and tie-breaks)
# =============================================================================

STAGES: List[StageDefinition] = [
    StageDefinition(
        id="lead_to_mql",
        name="Lead → MQL",
        numeratorKey="mql",
        denominatorKey="leads",
        mainMetricKey="leadToMql",
        metricKeys=["ctr", "cpc", "cpm", "clickToLeadRate", "cpl", "invalidLeadRate", "leadToMql"],
        outputLabel="MQLs",
    ),
    StageDefinition(
        id="mql_to_sql",
        name="MQL → SQL",
        numeratorKey="sql",
        denominatorKey="mql",
        mainMetricKey="mqlToSql",
        metricKeys=["timeToFirstTouch", "contactRate24h", "connectRate", "salRate", "mqlAgingDays", "mqlToSql"],
        outputLabel="SQLs",
    ),
    StageDefinition(
        id="sql_to_opportunity",
        name="SQL → Opportunity",
        numeratorKey="opportunities",
        denominatorKey="sql",
        mainMetricKey="sqlToOpportunity",
        metricKeys=["sqlToOpportunity", "responseRate", "attemptsPerSql", "timeToScheduleDays"],
        outputLabel="opportunities",
    ),
    StageDefinition(
        id="opportunity_to_won",
        name="Opportunity → Won",
        numeratorKey="closedDeals",
        denominatorKey="opportunities",
        mainMetricKey="opportunityToWon",
        metricKeys=["opportunityToWon", "salesCycleDays", "discountRate"],
        outputLabel="deals",
    ),
]


# =============================================================================
# Eligibility Thresholds
# =============================================================================

STAGE_THRESHOLDS: Dict[str, EligibilityThreshold] = {
    "lead_to_mql": EligibilityThreshold(denominatorKey="leads", minSampleSize=30),
    "mql_to_sql": EligibilityThreshold(denominatorKey="mql", minSampleSize=20),
    "sql_to_opportunity": EligibilityThreshold(denominatorKey="sql", minSampleSize=10),
    "opportunity_to_won": EligibilityThreshold(denominatorKey="opportunities", minSampleSize=10),
}

# Required fields are checked in declaration order
MEDIA_THRESHOLDS: Dict[str, MediaMetricThreshold] = {
    "ctr": MediaMetricThreshold(metricKey="ctr", required={"impressions": 1000, "clicks": 30}),
    "cpc": MediaMetricThreshold(metricKey="cpc", required={"clicks": 30}),
    "clickToLeadRate": MediaMetricThreshold(metricKey="clickToLeadRate", required={"clicks": 30, "leads": 20}),
    "cpl": MediaMetricThreshold(metricKey="cpl", required={"leads": 20}),
}


# =============================================================================
# Confidence Scoring Constants
# =============================================================================


class SampleSizeRule(BaseModel):
    """
    Three-tier sample penalty for one funnel counter.

    missing (None or 0) -> missing_points
    below small_cutoff -> small_points
    below moderate_cutoff -> moderate_points
    """
    model_config = ConfigDict(frozen=True)

    counter_key: str
    label: str
    missing_points: int
    small_cutoff: int
    small_points: int
    moderate_cutoff: int
    moderate_points: int


# Earlier, more foundational counters carry larger penalties
SAMPLE_SIZE_RULES: List[SampleSizeRule] = [
    SampleSizeRule(counter_key="leads", label="leads", missing_points=35,
                   small_cutoff=20, small_points=35, moderate_cutoff=50, moderate_points=20),
    SampleSizeRule(counter_key="mql", label="MQLs", missing_points=25,
                   small_cutoff=10, small_points=25, moderate_cutoff=20, moderate_points=15),
    SampleSizeRule(counter_key="sql", label="SQLs", missing_points=25,
                   small_cutoff=5, small_points=25, moderate_cutoff=10, moderate_points=15),
    SampleSizeRule(counter_key="opportunities", label="opportunities", missing_points=20,
                   small_cutoff=5, small_points=20, moderate_cutoff=10, moderate_points=10),
]

MISSING_SPEND_PENALTY: int = 10
INCOMPLETE_MEDIA_PENALTY: int = 10
INCONSISTENCY_PENALTY: int = 30

# Stage weight = 1 + (stage_count - index) * STAGE_WEIGHT_STEP
STAGE_WEIGHT_STEP: float = 0.1


# =============================================================================
# Engine Configuration
# =============================================================================


class EngineConfig(BaseModel):
    """
    Immutable bundle of everything the engine grades against.

    Built once per process; pass a different instance (or use with_targets())
    to grade against other targets without touching the defaults. Lookup tables
    are read-only mappings and tuples, so the cached instance cannot be altered
    through its fields.
    """
    model_config = ConfigDict(frozen=True)

    targets: Mapping[str, MetricTarget] = Field(default_factory=lambda: MappingProxyType(dict(DEFAULT_TARGETS)))
    stages: Tuple[StageDefinition, ...] = Field(default_factory=lambda: tuple(STAGES))
    stage_thresholds: Mapping[str, EligibilityThreshold] = Field(
        default_factory=lambda: MappingProxyType(dict(STAGE_THRESHOLDS))
    )
    media_thresholds: Mapping[str, MediaMetricThreshold] = Field(
        default_factory=lambda: MappingProxyType(dict(MEDIA_THRESHOLDS))
    )
    sample_size_rules: Tuple[SampleSizeRule, ...] = Field(default_factory=lambda: tuple(SAMPLE_SIZE_RULES))
    missing_spend_penalty: int = MISSING_SPEND_PENALTY
    incomplete_media_penalty: int = INCOMPLETE_MEDIA_PENALTY
    inconsistency_penalty: int = INCONSISTENCY_PENALTY
    stage_weight_step: float = STAGE_WEIGHT_STEP

    @field_validator("targets", "stage_thresholds", "media_thresholds", mode="after")
    @classmethod
    def _read_only(cls, value: Mapping) -> Mapping:
        return MappingProxyType(dict(value))

    def with_targets(self, targets: Mapping[str, MetricTarget]) -> "EngineConfig":
        """Return a copy of this config grading against `targets`."""
        return self.model_copy(update={"targets": MappingProxyType(dict(targets))})

    def get_stage(self, stage_id: str) -> StageDefinition:
        for stage in self.stages:
            if stage.id == stage_id:
                return stage
        raise RegistryConfigurationError(f"Unknown stage '{stage_id}'")

    def stage_weight(self, stage_index: int) -> float:
        """Earlier stages weigh slightly more; fixing them compounds downstream."""
        return 1 + (len(self.stages) - stage_index) * self.stage_weight_step


def merge_targets(
    base: Mapping[str, MetricTarget],
    overrides: Optional[Mapping[str, MetricTarget]] = None
) -> Dict[str, MetricTarget]:
    """
    Return a new targets mapping with `overrides` applied over `base`.

    Neither input is modified.
    """
    merged = dict(base)
    if overrides:
        merged.update(overrides)
    return merged


def validate_engine_config(config: EngineConfig) -> None:
    """
    Fail fast when the registry and the stage tables disagree.

    Checks:
    - every stage's main metric has a target
    - every stage has an eligibility threshold on its own denominator
    - stage ids are unique

    Raises:
        RegistryConfigurationError: On the first problem found.
    """
    seen_ids = set()
    for stage in config.stages:
        if stage.id in seen_ids:
            raise RegistryConfigurationError(f"Duplicate stage id '{stage.id}'")
        seen_ids.add(stage.id)

        if stage.mainMetricKey not in config.targets:
            raise RegistryConfigurationError(
                f"Stage '{stage.id}' main metric '{stage.mainMetricKey}' has no target in the registry"
            )

        threshold = config.stage_thresholds.get(stage.id)
        if threshold is None:
            raise RegistryConfigurationError(f"Stage '{stage.id}' has no eligibility threshold")
        if threshold.denominatorKey != stage.denominatorKey:
            raise RegistryConfigurationError(
                f"Stage '{stage.id}' threshold gates '{threshold.denominatorKey}' "
                f"but the stage denominator is '{stage.denominatorKey}'"
            )

    logger.debug(f"Engine config valid: {len(config.stages)} stages, {len(config.targets)} targets")


@lru_cache()
def get_engine_config() -> EngineConfig:
    """
    Get the process-wide EngineConfig singleton.

    Note:
        To rebuild in tests: get_engine_config.cache_clear()
    """
    return EngineConfig()


# =============================================================================
# Display Formatting
# =============================================================================


def format_metric_value(
    key: str,
    value: Optional[float],
    targets: Optional[Mapping[str, MetricTarget]] = None
) -> str:
    """
    Render a metric value for display using the registry unit.

    Metrics without a registry entry are formatted as plain counts.
    Undefined values render as '-'.
    """
    if value is None:
        return "-"

    if targets is None:
        targets = get_engine_config().targets
    target = targets.get(key)
    unit = target.unit if target is not None else MetricUnit.COUNT

    if unit == MetricUnit.PERCENT:
        return f"{value:.1f}%"
    if unit == MetricUnit.CURRENCY:
        return f"{value:,.2f}"
    if unit == MetricUnit.MINUTES:
        return f"{value:.0f} min"
    if unit == MetricUnit.DAYS:
        return f"{value:.0f} days"
    return f"{value:,.0f}"


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "RegistryConfigurationError",
    "DEFAULT_TARGETS",
    "STAGES",
    "STAGE_THRESHOLDS",
    "MEDIA_THRESHOLDS",
    "SampleSizeRule",
    "SAMPLE_SIZE_RULES",
    "MISSING_SPEND_PENALTY",
    "INCOMPLETE_MEDIA_PENALTY",
    "INCONSISTENCY_PENALTY",
    "STAGE_WEIGHT_STEP",
    "EngineConfig",
    "merge_targets",
    "validate_engine_config",
    "get_engine_config",
    "format_metric_value",
]
