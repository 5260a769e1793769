"""
Eligibility Gate Service

Decides whether a sample is large enough for a rate to mean anything. A
conversion rate over n=2 is statistically meaningless and would otherwise get
a stage declared critical, so every stage rate and rate-based media metric is
gated here before it is graded.

Outcomes:
- eligible
- ineligible / no_data: the gating count is missing or zero
- ineligible / low_sample: the gating count is present but below the minimum;
  the actual and required values are attached for user-facing messaging

Thresholds come from the EngineConfig, not from call sites.
"""

import logging
from typing import List, Optional

from funnel_diagnostics.models.enums import EligibilityReason
from funnel_diagnostics.models.schemas import EligibilityResult, FunnelSnapshot
from funnel_diagnostics.services.registry import (
    EngineConfig,
    RegistryConfigurationError,
    get_engine_config,
)


logger = logging.getLogger(__name__)


def _gate(value: Optional[float], min_value: int) -> EligibilityResult:
    if value is None or value == 0:
        return EligibilityResult(eligible=False, reason=EligibilityReason.NO_DATA)
    if value < min_value:
        return EligibilityResult(
            eligible=False,
            reason=EligibilityReason.LOW_SAMPLE,
            currentValue=value,
            requiredValue=min_value,
        )
    return EligibilityResult(eligible=True)


def check_stage_eligibility(
    stage_id: str,
    snapshot: FunnelSnapshot,
    config: Optional[EngineConfig] = None
) -> EligibilityResult:
    """
    Gate a stage on its denominator count.

    Args:
        stage_id: Stage identifier from the stage table
        snapshot: Raw funnel counters
        config: Engine configuration (defaults to the process singleton)

    Returns:
        EligibilityResult

    Raises:
        RegistryConfigurationError: If the stage has no eligibility threshold
    """
    if config is None:
        config = get_engine_config()

    threshold = config.stage_thresholds.get(stage_id)
    if threshold is None:
        raise RegistryConfigurationError(f"Stage '{stage_id}' has no eligibility threshold")

    value = getattr(snapshot, threshold.denominatorKey, None)
    result = _gate(value, threshold.minSampleSize)
    logger.debug(f"Stage {stage_id} eligibility: {result.eligible} ({result.reason})")
    return result


def check_media_metric_eligibility(
    metric_key: str,
    snapshot: FunnelSnapshot,
    config: Optional[EngineConfig] = None
) -> EligibilityResult:
    """
    Gate a media metric on every field it requires.

    Each required field must individually clear its minimum. Fields are checked
    in declaration order and the first failure is returned.

    Metrics without a media threshold are always eligible.
    """
    if config is None:
        config = get_engine_config()

    threshold = config.media_thresholds.get(metric_key)
    if threshold is None:
        return EligibilityResult(eligible=True)

    for field, min_value in threshold.required.items():
        result = _gate(getattr(snapshot, field, None), min_value)
        if not result.eligible:
            return result

    return EligibilityResult(eligible=True)


def get_eligible_stages(
    snapshot: FunnelSnapshot,
    config: Optional[EngineConfig] = None
) -> List[str]:
    """Ids of eligible stages, in declaration order."""
    if config is None:
        config = get_engine_config()
    return [
        stage.id
        for stage in config.stages
        if check_stage_eligibility(stage.id, snapshot, config).eligible
    ]


def has_minimum_data_for_analysis(
    snapshot: FunnelSnapshot,
    config: Optional[EngineConfig] = None
) -> bool:
    """At least one stage must be eligible."""
    return len(get_eligible_stages(snapshot, config)) > 0


def has_complete_media_data(
    snapshot: FunnelSnapshot,
    config: Optional[EngineConfig] = None
) -> bool:
    """Spend is present and every media metric clears its gate."""
    if config is None:
        config = get_engine_config()
    if not snapshot.spend:
        return False
    return all(
        check_media_metric_eligibility(key, snapshot, config).eligible
        for key in config.media_thresholds
    )


__all__ = [
    "check_stage_eligibility",
    "check_media_metric_eligibility",
    "get_eligible_stages",
    "has_minimum_data_for_analysis",
    "has_complete_media_data",
]
