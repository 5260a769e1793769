"""
Pydantic models for the Funnel Diagnostics backend.

This module provides type-safe data validation and serialization for the engine's
inputs and outputs and for the HTTP contracts wrapped around them:

- Inputs: FunnelSnapshot, MetricTarget, DiagnosticContext
- Configuration: StageDefinition, EligibilityThreshold, MediaMetricThreshold, MatrixRule
- Computed results: DerivedMetrics, EligibilityResult, MetricEvaluation, StageEvaluation,
  StageImpact, ImpactEstimate, ConfidenceResult, Bottlenecks, ActionItem, DiagnosticReport

Absent numeric fields are None and mean "unknown", never zero. Input and
configuration models are frozen; derived values are always produced into new
model instances.

All models use Pydantic v2 syntax with camelCase field names matching the
dashboard's JSON contract.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ConfigDict

from funnel_diagnostics.models.enums import (
    ActionCategory,
    ActionPriority,
    ActionSource,
    BenchmarkChannel,
    BenchmarkSegment,
    CaptureType,
    ConfidenceTier,
    Direction,
    EligibilityReason,
    FormComplexity,
    IndustrySegment,
    MediaChannel,
    MetricStatus,
    MetricUnit,
    PenaltyCategory,
    PropagationKind,
    StageStatus,
)


# =============================================================================
# Inputs
# =============================================================================


class FunnelSnapshot(BaseModel):
    """
    Raw funnel counters and process metrics for one analysis.

    Every field is optional. None means the value was not supplied, which is
    semantically different from 0: a 0 denominator and a missing denominator
    both make a rate undefined, but only a supplied 0 is a real observation.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "spend": 12000.0,
                "impressions": 250000,
                "clicks": 3100,
                "leads": 420,
                "mql": 96,
                "sql": 31,
                "opportunities": 14,
                "closedDeals": 4,
                "revenue": 56000.0,
                "timeToFirstTouch": 42.0,
                "connectRate": 22.0,
            }
        }
    )

    # Paid media
    spend: Optional[float] = Field(default=None, ge=0, description="Media spend in the period")
    impressions: Optional[int] = Field(default=None, ge=0, description="Ad impressions")
    clicks: Optional[int] = Field(default=None, ge=0, description="Ad clicks")

    # Funnel counters
    leads: Optional[int] = Field(default=None, ge=0, description="Leads captured")
    mql: Optional[int] = Field(default=None, ge=0, description="Marketing-qualified leads")
    sql: Optional[int] = Field(default=None, ge=0, description="Sales-qualified leads")
    opportunities: Optional[int] = Field(default=None, ge=0, description="Opportunities opened")
    closedDeals: Optional[int] = Field(default=None, ge=0, description="Deals won")
    revenue: Optional[float] = Field(default=None, ge=0, description="Revenue from won deals")

    # Process metrics
    invalidLeadRate: Optional[float] = Field(default=None, ge=0, description="Invalid leads (%)")
    timeToFirstTouch: Optional[float] = Field(default=None, ge=0, description="Minutes until first contact")
    contactRate24h: Optional[float] = Field(default=None, ge=0, description="Leads contacted within 24h (%)")
    connectRate: Optional[float] = Field(default=None, ge=0, description="Contact attempts that connect (%)")
    salRate: Optional[float] = Field(default=None, ge=0, description="MQLs accepted by sales (%)")
    mqlAgingDays: Optional[float] = Field(default=None, ge=0, description="Days an MQL waits for work")
    responseRate: Optional[float] = Field(default=None, ge=0, description="SQLs that reply (%)")
    attemptsPerSql: Optional[float] = Field(default=None, ge=0, description="Contact attempts per SQL")
    timeToScheduleDays: Optional[float] = Field(default=None, ge=0, description="Days to book a meeting")
    salesCycleDays: Optional[float] = Field(default=None, ge=0, description="Sales cycle length in days")
    discountRate: Optional[float] = Field(default=None, ge=0, description="Average discount granted (%)")


class MetricTarget(BaseModel):
    """
    Target for a single metric.

    direction=min means higher is better (target is a floor);
    direction=max means lower is better (target is a ceiling).
    """
    model_config = ConfigDict(frozen=True)

    value: float = Field(..., description="Target value, in the metric's own unit")
    direction: Direction = Field(..., description="Comparison direction")
    label: str = Field(..., description="Display label")
    unit: MetricUnit = Field(default=MetricUnit.PERCENT, description="Display unit")


class DiagnosticContext(BaseModel):
    """
    Optional analysis context supplied by the host.

    Unknown keys are accepted and ignored by the engine so hosts can pass
    free-form flags through.
    """
    model_config = ConfigDict(frozen=True, extra='allow')

    channel: Optional[MediaChannel] = Field(default=None, description="Main paid acquisition channel")
    segment: Optional[IndustrySegment] = Field(default=None, description="Industry segment")
    captureType: Optional[CaptureType] = Field(default=None, description="How leads are captured")
    formComplexity: Optional[FormComplexity] = Field(
        default=None,
        description="Native lead form setup (only meaningful for native_lead capture)"
    )
    crmChatIntegrated: Optional[bool] = Field(
        default=None,
        description="Whether the chat channel is integrated into the CRM (None = unknown)"
    )
    benchmarkChannel: Optional[BenchmarkChannel] = Field(default=None, description="Benchmark channel profile")
    benchmarkSegment: Optional[BenchmarkSegment] = Field(default=None, description="Benchmark segment profile")


# =============================================================================
# Configuration records
# =============================================================================


class StageDefinition(BaseModel):
    """One sequential funnel stage. Declaration order is significant."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stage identifier")
    name: str = Field(..., description="Display name")
    numeratorKey: str = Field(..., description="Snapshot counter reached by the stage")
    denominatorKey: str = Field(..., description="Snapshot counter entering the stage")
    mainMetricKey: str = Field(..., description="Registry key of the stage conversion rate")
    metricKeys: List[str] = Field(default_factory=list, description="Member metrics graded for the stage")
    outputLabel: str = Field(..., description="Plural label of the numerator units")


class EligibilityThreshold(BaseModel):
    """Minimum denominator for a stage's conversion rate to be meaningful."""
    model_config = ConfigDict(frozen=True)

    denominatorKey: str
    minSampleSize: int = Field(..., ge=1)


class MediaMetricThreshold(BaseModel):
    """Minimums every required field must individually clear, in declaration order."""
    model_config = ConfigDict(frozen=True)

    metricKey: str
    required: Dict[str, int]


class MatrixRule(BaseModel):
    """A stage-scoped diagnostic rule: a situation, the metric that reveals it, and the fix."""
    model_config = ConfigDict(frozen=True)

    stage: str
    situation: str
    metricLabel: str
    metricKey: str
    action: str
    sortOrder: int


# =============================================================================
# Computed results
# =============================================================================


class DerivedMetrics(BaseModel):
    """
    Ratio metrics derived from a FunnelSnapshot.

    Percentages are stored on a 0-100 scale. Every field is either a finite
    non-negative number or None.
    """
    ctr: Optional[float] = None
    cpc: Optional[float] = None
    cpm: Optional[float] = None
    clickToLeadRate: Optional[float] = None
    cpl: Optional[float] = None
    leadToMql: Optional[float] = None
    mqlToSql: Optional[float] = None
    sqlToOpportunity: Optional[float] = None
    opportunityToWon: Optional[float] = None
    cac: Optional[float] = None
    revenuePerDeal: Optional[float] = None


class EligibilityResult(BaseModel):
    """Outcome of the sample-size gate for a stage or media metric."""
    eligible: bool
    reason: Optional[EligibilityReason] = None
    currentValue: Optional[float] = Field(default=None, description="Observed sample (low_sample only)")
    requiredValue: Optional[float] = Field(default=None, description="Required sample (low_sample only)")


class MetricDelta(BaseModel):
    """Difference between an observed value and its target."""
    absolute: float
    relative: float = Field(..., description="Percent of the target value; 0 when the target is 0")


class MetricEvaluation(BaseModel):
    """Grade of one member metric of a stage."""
    key: str
    label: str
    value: Optional[float] = None
    target: Optional[MetricTarget] = None
    status: MetricStatus
    delta: Optional[MetricDelta] = None
    eligibility: Optional[EligibilityResult] = None


class StageEvaluation(BaseModel):
    """Aggregated grade of a stage and the full per-metric breakdown."""
    stageId: str
    stageName: str
    status: StageStatus
    metrics: List[MetricEvaluation]
    failingMetrics: List[str]


class ImpactEstimate(BaseModel):
    """
    What hitting a stage's target would add.

    extraFinalOutcomeUnits is 0 when propagation is 'unavailable'; consumers
    must read `propagation` before showing the number.
    """
    extraNumeratorUnits: int
    extraFinalOutcomeUnits: int
    propagation: PropagationKind
    description: str


class StageImpact(BaseModel):
    """Rate, gap and improvement estimate of one stage."""
    stageId: str
    stageName: str
    numerator: Optional[float] = None
    denominator: Optional[float] = None
    currentRate: Optional[float] = Field(default=None, description="Observed rate (%), None unless eligible")
    targetRate: float = Field(..., description="Target rate (%)")
    gapPp: Optional[float] = Field(default=None, description="currentRate - targetRate, percentage points")
    status: StageStatus
    eligibility: EligibilityResult
    impact: Optional[ImpactEstimate] = None


class Penalty(BaseModel):
    """A deduction from the confidence score."""
    reason: str
    points: int
    category: PenaltyCategory


class ConfidenceResult(BaseModel):
    """Funnel-wide confidence score, its tier and the penalties behind it."""
    score: int = Field(..., ge=0, le=100)
    tier: ConfidenceTier
    penalties: List[Penalty]
    topPenalties: List[Penalty]
    hasInconsistency: bool


class RankedBottleneck(BaseModel):
    """A failing stage with its weighted severity."""
    stage: StageImpact
    severity: float
    stageWeight: float


class Bottlenecks(BaseModel):
    """Ranked failing stages plus the best healthy stage."""
    primary: Optional[RankedBottleneck] = None
    secondary: Optional[RankedBottleneck] = None
    bestStage: Optional[StageImpact] = None
    ranked: List[RankedBottleneck] = Field(default_factory=list)


class ActionItem(BaseModel):
    """A concrete recommended action."""
    id: str
    category: ActionCategory
    stage: str
    priority: ActionPriority
    title: str
    nextStep: str
    metricToWatch: str
    source: ActionSource = ActionSource.PLAYBOOK


class DiagnosticItem(BaseModel):
    """A matrix rule matched to a stage."""
    stageId: str
    situation: str
    metricLabel: str
    action: str
    source: ActionSource = ActionSource.MATRIX_RULE


class MetricPriority(BaseModel):
    """A failing metric ranked by stage weight and relative miss."""
    stageId: str
    stageName: str
    metricKey: str
    metricLabel: str
    value: float
    target: MetricTarget
    deltaPercent: float
    score: float


class BenchmarkProfile(BaseModel):
    """Stage conversion benchmarks (%) for a channel or segment."""
    leadToMql: float
    mqlToSql: float
    sqlToOpportunity: float
    opportunityToWon: float
    visitorToLead: Optional[float] = None


class DiagnosticReport(BaseModel):
    """Complete output of one diagnostic run."""
    derivedMetrics: DerivedMetrics
    stages: List[StageEvaluation]
    stageImpacts: List[StageImpact]
    confidence: ConfidenceResult
    bottlenecks: Bottlenecks
    actions: List[ActionItem]
    dailyChecklist: List[ActionItem]
    missingDataQuestions: List[str]
    diagnostics: List[DiagnosticItem]
    priorities: List[MetricPriority]
    benchmarkProfile: Optional[BenchmarkProfile] = None
    hasMinimumData: bool


# =============================================================================
# HTTP contracts
# =============================================================================


class DiagnosticRequest(BaseModel):
    """Body of POST /diagnostics."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "snapshot": {"leads": 420, "mql": 96, "sql": 31, "opportunities": 14, "closedDeals": 4},
                "context": {"channel": "linkedin_ads", "crmChatIntegrated": False},
                "useBenchmarkTargets": False,
            }
        }
    )

    snapshot: FunnelSnapshot
    targets: Optional[Dict[str, MetricTarget]] = Field(
        default=None,
        description="Per-key overrides merged over the default registry"
    )
    context: Optional[DiagnosticContext] = None
    useBenchmarkTargets: bool = Field(
        default=False,
        description="Replace stage targets with the context's benchmark profile"
    )


class BenchmarkCatalog(BaseModel):
    """Body of GET /diagnostics/benchmarks."""
    channels: Dict[str, BenchmarkProfile]
    segments: Dict[str, BenchmarkProfile]
