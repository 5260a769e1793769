"""
Status Evaluator Service

Grades metrics against their targets and aggregates member metrics into a
stage status.

Per-metric grading uses a tolerance buffer of target x 10% (configurable via
Settings.status_buffer_percent), applied to the raw value before any display
rounding:

    direction=min (higher is better)
        value >= target            -> pass
        value >= target - buffer   -> warn
        otherwise                  -> fail

    direction=max (lower is better)
        value <= target            -> pass
        value <= target + buffer   -> warn
        otherwise                  -> fail

    value or target undefined      -> no_data

Stage aggregation:
- all members no_data  -> no_data
- any member fail      -> critical
- any member warn      -> warn
- otherwise            -> ok

Every member metric is evaluated (no short-circuit) because the full list is
surfaced to the user.
"""

import logging
from typing import Iterable, List, Optional

from funnel_diagnostics.core.config import get_settings
from funnel_diagnostics.models.enums import Direction, MetricStatus, StageStatus
from funnel_diagnostics.models.schemas import (
    DerivedMetrics,
    EligibilityResult,
    FunnelSnapshot,
    MetricDelta,
    MetricEvaluation,
    MetricPriority,
    MetricTarget,
    StageDefinition,
    StageEvaluation,
)
from funnel_diagnostics.services.eligibility import (
    check_media_metric_eligibility,
    check_stage_eligibility,
)
from funnel_diagnostics.services.rates import get_metric_value
from funnel_diagnostics.services.registry import (
    EngineConfig,
    RegistryConfigurationError,
    get_engine_config,
)


logger = logging.getLogger(__name__)

# Maximum number of metric priorities returned
MAX_PRIORITIES: int = 3


def evaluate_metric_status(
    value: Optional[float],
    target: Optional[MetricTarget],
    buffer_percent: Optional[float] = None
) -> MetricStatus:
    """
    Grade a single value against its target.

    Args:
        value: Observed value, may be None
        target: Target, may be None
        buffer_percent: Tolerance band as a fraction of the target value
            (defaults to Settings.status_buffer_percent)

    Returns:
        MetricStatus
    """
    if value is None or target is None:
        return MetricStatus.NO_DATA

    if buffer_percent is None:
        buffer_percent = get_settings().status_buffer_percent

    buffer = target.value * buffer_percent

    if target.direction == Direction.MIN:
        if value >= target.value:
            return MetricStatus.PASS
        if value >= target.value - buffer:
            return MetricStatus.WARN
        return MetricStatus.FAIL

    if value <= target.value:
        return MetricStatus.PASS
    if value <= target.value + buffer:
        return MetricStatus.WARN
    return MetricStatus.FAIL


def calculate_delta(
    value: Optional[float],
    target: Optional[MetricTarget]
) -> Optional[MetricDelta]:
    """
    Absolute and relative (percent of target) difference from target.

    Relative is 0 when the target value is 0.
    """
    if value is None or target is None:
        return None

    absolute = value - target.value
    relative = (absolute / target.value) * 100 if target.value != 0 else 0.0
    return MetricDelta(absolute=absolute, relative=relative)


def aggregate_stage_status(statuses: Iterable[MetricStatus]) -> StageStatus:
    """Fold member metric statuses into one stage status."""
    all_no_data = True
    has_fail = False
    has_warn = False

    for status in statuses:
        if status == MetricStatus.NO_DATA:
            continue
        all_no_data = False
        if status == MetricStatus.FAIL:
            has_fail = True
        elif status == MetricStatus.WARN:
            has_warn = True

    if all_no_data:
        return StageStatus.NO_DATA
    if has_fail:
        return StageStatus.CRITICAL
    if has_warn:
        return StageStatus.WARN
    return StageStatus.OK


def evaluate_stage(
    stage: StageDefinition,
    snapshot: FunnelSnapshot,
    derived: DerivedMetrics,
    config: Optional[EngineConfig] = None,
    buffer_percent: Optional[float] = None
) -> StageEvaluation:
    """
    Grade every member metric of a stage and aggregate them.

    Gating:
    - The stage's main conversion rate is graded only when the stage passes
      the eligibility gate; otherwise its value is reported as None.
    - Media metrics with a media threshold are graded only when every required
      field clears its minimum; the observed value is still reported but
      carries no delta.
    - Members without a registry target are no_data.

    Args:
        stage: Stage definition
        snapshot: Raw funnel counters
        derived: Derived metrics for the same snapshot
        config: Engine configuration (defaults to the process singleton)
        buffer_percent: Warn band as a fraction of the target
            (defaults to Settings.status_buffer_percent)

    Returns:
        StageEvaluation with every member metric

    Raises:
        RegistryConfigurationError: If the stage's main metric has no target
    """
    if config is None:
        config = get_engine_config()

    if stage.mainMetricKey not in config.targets:
        logger.error(f"No target for main metric '{stage.mainMetricKey}' of stage '{stage.id}'")
        raise RegistryConfigurationError(
            f"Stage '{stage.id}' main metric '{stage.mainMetricKey}' has no target in the registry"
        )

    stage_eligibility = check_stage_eligibility(stage.id, snapshot, config)

    metrics: List[MetricEvaluation] = []
    failing_metrics: List[str] = []

    for key in stage.metricKeys:
        value = get_metric_value(key, snapshot, derived)
        target = config.targets.get(key)

        eligibility: Optional[EligibilityResult] = None
        if key == stage.mainMetricKey:
            eligibility = stage_eligibility
            if not eligibility.eligible:
                value = None
        elif key in config.media_thresholds:
            eligibility = check_media_metric_eligibility(key, snapshot, config)

        gated = eligibility is not None and not eligibility.eligible
        status = MetricStatus.NO_DATA if gated else evaluate_metric_status(value, target, buffer_percent)

        metrics.append(MetricEvaluation(
            key=key,
            label=target.label if target is not None else key,
            value=value,
            target=target,
            status=status,
            delta=None if gated else calculate_delta(value, target),
            eligibility=eligibility,
        ))

        if status == MetricStatus.FAIL:
            failing_metrics.append(key)

    stage_status = aggregate_stage_status(m.status for m in metrics)
    logger.debug(f"Stage {stage.id}: {stage_status.value}, failing={failing_metrics}")

    return StageEvaluation(
        stageId=stage.id,
        stageName=stage.name,
        status=stage_status,
        metrics=metrics,
        failingMetrics=failing_metrics,
    )


def evaluate_all_stages(
    snapshot: FunnelSnapshot,
    derived: DerivedMetrics,
    config: Optional[EngineConfig] = None,
    buffer_percent: Optional[float] = None
) -> List[StageEvaluation]:
    """Evaluate every stage in declaration order."""
    if config is None:
        config = get_engine_config()
    return [evaluate_stage(stage, snapshot, derived, config, buffer_percent) for stage in config.stages]


def calculate_priorities(
    evaluations: List[StageEvaluation],
    config: Optional[EngineConfig] = None,
    limit: int = MAX_PRIORITIES
) -> List[MetricPriority]:
    """
    Rank failing member metrics across stages.

    score = stage_weight x |relative delta %|. Ties keep stage then member order.

    Args:
        evaluations: Stage evaluations in declaration order
        config: Engine configuration (defaults to the process singleton)
        limit: Maximum number of priorities returned

    Returns:
        Up to `limit` MetricPriority items, highest score first
    """
    if config is None:
        config = get_engine_config()

    priorities: List[MetricPriority] = []

    for index, evaluation in enumerate(evaluations):
        stage_weight = config.stage_weight(index)
        for metric in evaluation.metrics:
            if metric.status != MetricStatus.FAIL:
                continue
            # FAIL implies both value and target are defined
            delta_percent = abs(metric.delta.relative) if metric.delta is not None else 0.0
            priorities.append(MetricPriority(
                stageId=evaluation.stageId,
                stageName=evaluation.stageName,
                metricKey=metric.key,
                metricLabel=metric.label,
                value=metric.value,
                target=metric.target,
                deltaPercent=delta_percent,
                score=stage_weight * delta_percent,
            ))

    priorities.sort(key=lambda p: -p.score)
    return priorities[:limit]


__all__ = [
    "evaluate_metric_status",
    "calculate_delta",
    "aggregate_stage_status",
    "evaluate_stage",
    "evaluate_all_stages",
    "calculate_priorities",
]
