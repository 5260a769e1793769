"""
Package initialization file for funnel diagnostics models.

This module exports all Pydantic schemas and enumerations from schemas.py and enums.py,
making them importable from funnel_diagnostics.models directly.

Usage:
    from funnel_diagnostics.models import (
        FunnelSnapshot,
        MetricTarget,
        StageStatus,
        # ... etc
    )
"""

# =============================================================================
# Enums
# =============================================================================

from funnel_diagnostics.models.enums import (
    # Registry metadata
    Direction,
    MetricUnit,
    # Grading
    MetricStatus,
    StageStatus,
    EligibilityReason,
    # Confidence
    ConfidenceTier,
    PenaltyCategory,
    # Impact
    PropagationKind,
    # Actions
    ActionCategory,
    ActionPriority,
    ActionSource,
    # Context
    MediaChannel,
    IndustrySegment,
    CaptureType,
    FormComplexity,
    # Benchmarks
    BenchmarkChannel,
    BenchmarkSegment,
)


# =============================================================================
# Schemas
# =============================================================================

from funnel_diagnostics.models.schemas import (
    # Inputs
    FunnelSnapshot,
    MetricTarget,
    DiagnosticContext,
    # Configuration records
    StageDefinition,
    EligibilityThreshold,
    MediaMetricThreshold,
    MatrixRule,
    # Computed results
    DerivedMetrics,
    EligibilityResult,
    MetricDelta,
    MetricEvaluation,
    StageEvaluation,
    ImpactEstimate,
    StageImpact,
    Penalty,
    ConfidenceResult,
    RankedBottleneck,
    Bottlenecks,
    ActionItem,
    DiagnosticItem,
    MetricPriority,
    BenchmarkProfile,
    DiagnosticReport,
    # HTTP contracts
    DiagnosticRequest,
    BenchmarkCatalog,
)


__all__ = [
    # Enums
    "Direction",
    "MetricUnit",
    "MetricStatus",
    "StageStatus",
    "EligibilityReason",
    "ConfidenceTier",
    "PenaltyCategory",
    "PropagationKind",
    "ActionCategory",
    "ActionPriority",
    "ActionSource",
    "MediaChannel",
    "IndustrySegment",
    "CaptureType",
    "FormComplexity",
    "BenchmarkChannel",
    "BenchmarkSegment",
    # Schemas
    "FunnelSnapshot",
    "MetricTarget",
    "DiagnosticContext",
    "StageDefinition",
    "EligibilityThreshold",
    "MediaMetricThreshold",
    "MatrixRule",
    "DerivedMetrics",
    "EligibilityResult",
    "MetricDelta",
    "MetricEvaluation",
    "StageEvaluation",
    "ImpactEstimate",
    "StageImpact",
    "Penalty",
    "ConfidenceResult",
    "RankedBottleneck",
    "Bottlenecks",
    "ActionItem",
    "DiagnosticItem",
    "MetricPriority",
    "BenchmarkProfile",
    "DiagnosticReport",
    "DiagnosticRequest",
    "BenchmarkCatalog",
]
