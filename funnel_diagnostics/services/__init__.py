"""
Diagnostic Engine Services

Pure, stateless services that make up the funnel diagnostic pipeline. None of
them performs I/O; every entry point takes an optional EngineConfig and falls
back to the cached process-wide instance.

Services:
- registry: Metric targets, stage table, thresholds, EngineConfig
- rates: Rate Calculator (safe division, derived metrics)
- eligibility: Eligibility Gate (sample-size checks)
- status: Status Evaluator (pass/warn/fail, stage aggregation, priorities)
- confidence: Confidence Scorer (penalties, tiers)
- bottlenecks: Bottleneck Ranker (stage impacts, downstream propagation)
- actions: Action playbook, daily checklist, missing-data questions, matrix rules
- benchmarks: Benchmark profiles and capture-type target adjustment
- diagnostic: Orchestrator running the whole pipeline

All services are consumed by the API layer (funnel_diagnostics/api/).
"""

# =============================================================================
# Registry Exports
# Imported first: core.dependencies depends on it
# =============================================================================

from funnel_diagnostics.services.registry import (
    RegistryConfigurationError,
    DEFAULT_TARGETS,
    STAGES,
    STAGE_THRESHOLDS,
    MEDIA_THRESHOLDS,
    SAMPLE_SIZE_RULES,
    SampleSizeRule,
    EngineConfig,
    merge_targets,
    validate_engine_config,
    get_engine_config,
    format_metric_value,
)

# =============================================================================
# Rate Calculator Exports
# =============================================================================

from funnel_diagnostics.services.rates import (
    safe_div,
    safe_percent,
    round_half_up,
    calculate_derived_metrics,
    get_metric_value,
)

# =============================================================================
# Eligibility Gate Exports
# =============================================================================

from funnel_diagnostics.services.eligibility import (
    check_stage_eligibility,
    check_media_metric_eligibility,
    get_eligible_stages,
    has_minimum_data_for_analysis,
    has_complete_media_data,
)

# =============================================================================
# Status Evaluator Exports
# =============================================================================

from funnel_diagnostics.services.status import (
    evaluate_metric_status,
    calculate_delta,
    aggregate_stage_status,
    evaluate_stage,
    evaluate_all_stages,
    calculate_priorities,
)

# =============================================================================
# Confidence Scorer Exports
# =============================================================================

from funnel_diagnostics.services.confidence import (
    score_to_tier,
    collect_penalties,
    top_penalties,
    score_confidence,
)

# =============================================================================
# Bottleneck Ranker Exports
# =============================================================================

from funnel_diagnostics.services.bottlenecks import (
    propagate_downstream,
    calculate_stage_impacts,
    calculate_severity,
    rank_bottlenecks,
)

# =============================================================================
# Action Recommendation Exports
# =============================================================================

from funnel_diagnostics.services.actions import (
    ActionRuleInput,
    PLAYBOOK_RULES,
    generate_actions,
    generate_missing_data_questions,
    generate_daily_checklist,
    DEFAULT_MATRIX_RULES,
    get_matching_rules,
    build_stage_diagnostics,
)

# =============================================================================
# Benchmark Exports
# =============================================================================

from funnel_diagnostics.services.benchmarks import (
    CHANNEL_BENCHMARKS,
    SEGMENT_BENCHMARKS,
    get_benchmark_profile,
    get_benchmark_catalog,
    apply_benchmark_as_targets,
    get_benchmark_for_stage,
    calculate_benchmark_gap,
    get_capture_adjusted_targets,
)

# =============================================================================
# Orchestrator Exports
# =============================================================================

from funnel_diagnostics.services.diagnostic import (
    resolve_targets,
    run_diagnostic,
    run_diagnostic_request,
    run_diagnostic_batch,
)


# =============================================================================
# __all__ - Public API Definition
# All symbols explicitly listed for clean imports via:
#   from funnel_diagnostics.services import <symbol>
# =============================================================================

__all__ = [
    # ----- Registry -----
    'RegistryConfigurationError',
    'DEFAULT_TARGETS',
    'STAGES',
    'STAGE_THRESHOLDS',
    'MEDIA_THRESHOLDS',
    'SAMPLE_SIZE_RULES',
    'SampleSizeRule',
    'EngineConfig',
    'merge_targets',
    'validate_engine_config',
    'get_engine_config',
    'format_metric_value',
    # ----- Rate Calculator -----
    'safe_div',
    'safe_percent',
    'round_half_up',
    'calculate_derived_metrics',
    'get_metric_value',
    # ----- Eligibility Gate -----
    'check_stage_eligibility',
    'check_media_metric_eligibility',
    'get_eligible_stages',
    'has_minimum_data_for_analysis',
    'has_complete_media_data',
    # ----- Status Evaluator -----
    'evaluate_metric_status',
    'calculate_delta',
    'aggregate_stage_status',
    'evaluate_stage',
    'evaluate_all_stages',
    'calculate_priorities',
    # ----- Confidence Scorer -----
    'score_to_tier',
    'collect_penalties',
    'top_penalties',
    'score_confidence',
    # ----- Bottleneck Ranker -----
    'propagate_downstream',
    'calculate_stage_impacts',
    'calculate_severity',
    'rank_bottlenecks',
    # ----- Action Recommendation -----
    'ActionRuleInput',
    'PLAYBOOK_RULES',
    'generate_actions',
    'generate_missing_data_questions',
    'generate_daily_checklist',
    'DEFAULT_MATRIX_RULES',
    'get_matching_rules',
    'build_stage_diagnostics',
    # ----- Benchmarks -----
    'CHANNEL_BENCHMARKS',
    'SEGMENT_BENCHMARKS',
    'get_benchmark_profile',
    'get_benchmark_catalog',
    'apply_benchmark_as_targets',
    'get_benchmark_for_stage',
    'calculate_benchmark_gap',
    'get_capture_adjusted_targets',
    # ----- Orchestrator -----
    'resolve_targets',
    'run_diagnostic',
    'run_diagnostic_request',
    'run_diagnostic_batch',
]
