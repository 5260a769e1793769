"""
Diagnostic Orchestrator Service

Runs the whole funnel diagnostic pipeline on one snapshot:

1. Resolve the effective targets
   default registry -> capture-type adjustment -> benchmark profile (opt-in)
   -> explicit request overrides
2. Rate Calculator: derived metrics
3. Status Evaluator: per-stage evaluations and metric priorities
4. Bottleneck Ranker: stage impacts with downstream propagation, ranking
5. Confidence Scorer
6. Action Recommendation: playbook actions, daily checklist, missing-data
   questions, matrix diagnostics for critical stages

Each call builds its own values and shares nothing with other calls. Only a
registry/stage-table mismatch raises (RegistryConfigurationError).
"""

import logging
from typing import Dict, List, Mapping, Optional

from funnel_diagnostics.core.config import Settings, get_settings
from funnel_diagnostics.models.schemas import (
    DiagnosticContext,
    DiagnosticReport,
    DiagnosticRequest,
    FunnelSnapshot,
    MetricTarget,
)
from funnel_diagnostics.services.actions import (
    build_stage_diagnostics,
    generate_actions,
    generate_daily_checklist,
    generate_missing_data_questions,
)
from funnel_diagnostics.services.benchmarks import (
    apply_benchmark_as_targets,
    get_benchmark_profile,
    get_capture_adjusted_targets,
)
from funnel_diagnostics.services.bottlenecks import calculate_stage_impacts, rank_bottlenecks
from funnel_diagnostics.services.confidence import score_confidence
from funnel_diagnostics.services.eligibility import has_minimum_data_for_analysis
from funnel_diagnostics.services.rates import calculate_derived_metrics
from funnel_diagnostics.services.registry import EngineConfig, get_engine_config, merge_targets
from funnel_diagnostics.services.status import calculate_priorities, evaluate_all_stages


logger = logging.getLogger(__name__)


def resolve_targets(
    config: EngineConfig,
    context: DiagnosticContext,
    overrides: Optional[Mapping[str, MetricTarget]] = None,
    use_benchmark_targets: bool = False
) -> Dict[str, MetricTarget]:
    """
    Build the targets a run grades against. Always a new mapping.

    Explicit overrides are applied last and win over every adjustment.
    """
    targets = get_capture_adjusted_targets(config.targets, context.captureType, context.formComplexity)

    if use_benchmark_targets:
        profile = get_benchmark_profile(context.benchmarkChannel, context.benchmarkSegment)
        if profile is not None:
            targets = apply_benchmark_as_targets(targets, profile)
        else:
            logger.warning("Benchmark targets requested without a benchmark channel or segment; ignoring")

    return merge_targets(targets, overrides)


def run_diagnostic(
    snapshot: FunnelSnapshot,
    targets: Optional[Mapping[str, MetricTarget]] = None,
    context: Optional[DiagnosticContext] = None,
    use_benchmark_targets: bool = False,
    config: Optional[EngineConfig] = None,
    settings: Optional[Settings] = None
) -> DiagnosticReport:
    """
    Run the full diagnostic pipeline.

    Args:
        snapshot: Raw funnel counters (sparse)
        targets: Per-metric target overrides merged over the registry
        context: Channel, segment, capture and integration flags
        use_benchmark_targets: Grade stage rates against the benchmark profile
        config: Engine configuration (defaults to the process singleton)
        settings: Settings (defaults to the cached instance)

    Returns:
        DiagnosticReport

    Raises:
        RegistryConfigurationError: If a stage cannot be graded with the
            effective targets
    """
    if config is None:
        config = get_engine_config()
    if settings is None:
        settings = get_settings()
    context = context or DiagnosticContext()

    effective = config.with_targets(resolve_targets(config, context, targets, use_benchmark_targets))

    derived = calculate_derived_metrics(snapshot)
    stages = evaluate_all_stages(snapshot, derived, effective, settings.status_buffer_percent)
    impacts = calculate_stage_impacts(snapshot, derived, effective, settings.status_buffer_percent)
    confidence = score_confidence(snapshot, effective)
    bottlenecks = rank_bottlenecks(impacts, effective)

    actions = generate_actions(snapshot, derived, impacts, context, settings)
    checklist = generate_daily_checklist(actions, confidence.score, settings)
    questions = generate_missing_data_questions(snapshot, context, settings)

    report = DiagnosticReport(
        derivedMetrics=derived,
        stages=stages,
        stageImpacts=impacts,
        confidence=confidence,
        bottlenecks=bottlenecks,
        actions=actions,
        dailyChecklist=checklist,
        missingDataQuestions=questions,
        diagnostics=build_stage_diagnostics(stages),
        priorities=calculate_priorities(stages, effective),
        benchmarkProfile=get_benchmark_profile(context.benchmarkChannel, context.benchmarkSegment),
        hasMinimumData=has_minimum_data_for_analysis(snapshot, effective),
    )

    primary = bottlenecks.primary.stage.stageId if bottlenecks.primary else None
    logger.info(
        f"Diagnostic complete: confidence={confidence.score} ({confidence.tier.value}), "
        f"primary bottleneck={primary}, {len(actions)} actions"
    )
    return report


def run_diagnostic_request(
    request: DiagnosticRequest,
    config: Optional[EngineConfig] = None,
    settings: Optional[Settings] = None
) -> DiagnosticReport:
    """Run the pipeline for an API request body."""
    return run_diagnostic(
        snapshot=request.snapshot,
        targets=request.targets,
        context=request.context,
        use_benchmark_targets=request.useBenchmarkTargets,
        config=config,
        settings=settings,
    )


def run_diagnostic_batch(
    requests: List[DiagnosticRequest],
    config: Optional[EngineConfig] = None,
    settings: Optional[Settings] = None
) -> List[DiagnosticReport]:
    """Run the pipeline for each request; results keep the input order."""
    logger.info(f"Running diagnostic batch of {len(requests)} snapshots")
    return [run_diagnostic_request(request, config, settings) for request in requests]


__all__ = [
    "resolve_targets",
    "run_diagnostic",
    "run_diagnostic_request",
    "run_diagnostic_batch",
]
