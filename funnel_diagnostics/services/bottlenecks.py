"""
Bottleneck Ranker Service

Builds per-stage impact objects and ranks failing stages.

Stage impacts
-------------
For each stage: observed rate (only when the eligibility gate passes), target
rate, gap in percentage points, status and, for an eligible below-target stage
with a positive denominator, an ImpactEstimate.

Downstream-impact propagation
-----------------------------
For a below-target stage with denominator D, numerator N and target rate T:

    extra numerator units = round(D x T - N)        (reported only if > 0)

The extra units are multiplied through every later stage:
- eligible stage      -> its observed rate
- ineligible stage    -> its target rate, and the estimate becomes 'estimated'
- eligible stage whose observed rate is unusable (undefined, or above 100%
  because the numerator exceeds the denominator) -> propagation stops and the
  estimate is 'unavailable' with extraFinalOutcomeUnits = 0

The product is rounded once, at the end.

Ranking
-------
Candidates are eligible stages with status critical:

    severity = |gap pp| x stage_weight x max(1, extra final outcome units)

Sorted by severity descending, ties to the earlier stage. bestStage is the
first eligible 'ok' stage in declaration order.

Note that max(1, impact) lets a small stage with a huge relative gap outrank a
larger stage with more at stake in absolute terms. That is the tool's ranking
policy and is kept as-is.
"""

import logging
from typing import List, Optional, Tuple

from funnel_diagnostics.models.enums import (
    EligibilityReason,
    MetricStatus,
    PropagationKind,
    StageStatus,
)
from funnel_diagnostics.models.schemas import (
    Bottlenecks,
    DerivedMetrics,
    EligibilityResult,
    FunnelSnapshot,
    ImpactEstimate,
    MetricTarget,
    RankedBottleneck,
    StageDefinition,
    StageImpact,
)
from funnel_diagnostics.services.eligibility import check_stage_eligibility
from funnel_diagnostics.services.rates import get_metric_value, round_half_up
from funnel_diagnostics.services.registry import (
    EngineConfig,
    RegistryConfigurationError,
    get_engine_config,
)
from funnel_diagnostics.services.status import evaluate_metric_status


logger = logging.getLogger(__name__)

_STATUS_FROM_METRIC = {
    MetricStatus.PASS: StageStatus.OK,
    MetricStatus.WARN: StageStatus.WARN,
    MetricStatus.FAIL: StageStatus.CRITICAL,
    MetricStatus.NO_DATA: StageStatus.NO_DATA,
}


def _require_target(stage: StageDefinition, config: EngineConfig) -> MetricTarget:
    target = config.targets.get(stage.mainMetricKey)
    if target is None:
        raise RegistryConfigurationError(
            f"Stage '{stage.id}' main metric '{stage.mainMetricKey}' has no target in the registry"
        )
    return target


def propagate_downstream(
    extra_units: int,
    stage_index: int,
    observed_rates: List[Optional[float]],
    eligibilities: List[EligibilityResult],
    target_rates: List[float]
) -> Tuple[int, PropagationKind]:
    """
    Carry extra units at `stage_index` through every later stage.

    Args:
        extra_units: Extra numerator units at the improved stage
        stage_index: Index of the improved stage
        observed_rates: Raw observed rate (%) per stage
        eligibilities: Eligibility per stage
        target_rates: Target rate (%) per stage

    Returns:
        (extra final outcome units, propagation kind)
    """
    propagated = float(extra_units)
    kind = PropagationKind.TRUSTED

    for index in range(stage_index + 1, len(target_rates)):
        if eligibilities[index].eligible:
            rate = observed_rates[index]
            if rate is None or rate > 100:
                return 0, PropagationKind.UNAVAILABLE
            propagated *= rate / 100
        else:
            propagated *= target_rates[index] / 100
            kind = PropagationKind.ESTIMATED

    return round_half_up(propagated), kind


def _describe(
    stage: StageDefinition,
    extra_units: int,
    final_units: int,
    kind: PropagationKind,
    is_last_stage: bool,
    final_label: str
) -> str:
    description = f"+{extra_units} {stage.outputLabel}"
    if is_last_stage:
        return description
    if kind == PropagationKind.UNAVAILABLE:
        return f"{description} (final impact unavailable)"
    if final_units > 0:
        description = f"{description} → +{final_units} {final_label}"
        if kind == PropagationKind.ESTIMATED:
            description = f"{description} (estimated)"
    return description


def calculate_stage_impacts(
    snapshot: FunnelSnapshot,
    derived: DerivedMetrics,
    config: Optional[EngineConfig] = None,
    buffer_percent: Optional[float] = None
) -> List[StageImpact]:
    """
    Build one StageImpact per stage, in declaration order.

    Args:
        snapshot: Raw funnel counters
        derived: Derived metrics for the same snapshot
        config: Engine configuration (defaults to the process singleton)
        buffer_percent: Warn band as a fraction of the target
            (defaults to Settings.status_buffer_percent)

    Returns:
        List of StageImpact

    Raises:
        RegistryConfigurationError: If a stage's main metric has no target
    """
    if config is None:
        config = get_engine_config()

    stages = config.stages
    targets = [_require_target(stage, config) for stage in stages]
    target_rates = [target.value for target in targets]
    eligibilities = [check_stage_eligibility(stage.id, snapshot, config) for stage in stages]
    observed_rates = [get_metric_value(stage.mainMetricKey, snapshot, derived) for stage in stages]
    final_label = stages[-1].outputLabel if stages else ""

    impacts: List[StageImpact] = []

    for index, stage in enumerate(stages):
        eligibility = eligibilities[index]
        target = targets[index]
        numerator = getattr(snapshot, stage.numeratorKey, None)
        denominator = getattr(snapshot, stage.denominatorKey, None)

        current_rate = observed_rates[index] if eligibility.eligible else None

        if not eligibility.eligible:
            status = (
                StageStatus.LOW_SAMPLE
                if eligibility.reason == EligibilityReason.LOW_SAMPLE
                else StageStatus.NO_DATA
            )
        else:
            status = _STATUS_FROM_METRIC[evaluate_metric_status(current_rate, target, buffer_percent)]

        gap_pp = current_rate - target.value if current_rate is not None else None

        impact: Optional[ImpactEstimate] = None
        if (
            current_rate is not None
            and current_rate < target.value
            and denominator
        ):
            extra_units = round_half_up(denominator * target.value / 100 - (numerator or 0))
            if extra_units > 0:
                is_last_stage = index == len(stages) - 1
                if is_last_stage:
                    final_units, kind = extra_units, PropagationKind.TRUSTED
                else:
                    final_units, kind = propagate_downstream(
                        extra_units, index, observed_rates, eligibilities, target_rates
                    )
                impact = ImpactEstimate(
                    extraNumeratorUnits=extra_units,
                    extraFinalOutcomeUnits=final_units,
                    propagation=kind,
                    description=_describe(stage, extra_units, final_units, kind, is_last_stage, final_label),
                )

        impacts.append(StageImpact(
            stageId=stage.id,
            stageName=stage.name,
            numerator=numerator,
            denominator=denominator,
            currentRate=current_rate,
            targetRate=target.value,
            gapPp=gap_pp,
            status=status,
            eligibility=eligibility,
            impact=impact,
        ))

    return impacts


def calculate_severity(impact: StageImpact, stage_weight: float) -> float:
    """|gap pp| x stage weight x max(1, extra final outcome units)."""
    gap = abs(impact.gapPp) if impact.gapPp is not None else 0.0
    downstream = impact.impact.extraFinalOutcomeUnits if impact.impact is not None else 0
    return gap * stage_weight * max(1, downstream)


def rank_bottlenecks(
    impacts: List[StageImpact],
    config: Optional[EngineConfig] = None
) -> Bottlenecks:
    """
    Rank eligible critical stages by severity.

    Args:
        impacts: Stage impacts in declaration order
        config: Engine configuration (defaults to the process singleton)

    Returns:
        Bottlenecks with primary, secondary, bestStage and the full ranking
    """
    if config is None:
        config = get_engine_config()

    candidates: List[Tuple[int, RankedBottleneck]] = []
    for index, impact in enumerate(impacts):
        if not impact.eligibility.eligible or impact.status != StageStatus.CRITICAL:
            continue
        stage_weight = config.stage_weight(index)
        candidates.append((index, RankedBottleneck(
            stage=impact,
            severity=calculate_severity(impact, stage_weight),
            stageWeight=stage_weight,
        )))

    candidates.sort(key=lambda item: (-item[1].severity, item[0]))
    ranked = [bottleneck for _, bottleneck in candidates]

    best_stage = next(
        (i for i in impacts if i.eligibility.eligible and i.status == StageStatus.OK),
        None,
    )

    if ranked:
        logger.debug(f"Primary bottleneck: {ranked[0].stage.stageId} (severity {ranked[0].severity:.2f})")

    return Bottlenecks(
        primary=ranked[0] if ranked else None,
        secondary=ranked[1] if len(ranked) > 1 else None,
        bestStage=best_stage,
        ranked=ranked,
    )


__all__ = [
    "propagate_downstream",
    "calculate_stage_impacts",
    "calculate_severity",
    "rank_bottlenecks",
]
