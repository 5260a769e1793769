"""
Benchmark Profiles and Target Adjustment Service

Alternative target sets for the four stage conversion rates, plus the
capture-type adjustment of the top-of-funnel media targets.

Benchmark profiles
------------------
Published SaaS funnel conversion benchmarks, by acquisition channel and by
industry segment (percent, 0-100). When both are given the segment profile
wins over the channel profile.

    apply_benchmark_as_targets(targets, profile) -> NEW targets mapping

The input mapping, and in particular the default registry, is never mutated.

Capture-type adjustment
-----------------------
How leads are captured shifts what a healthy top of funnel looks like:

    capture        click->lead   CPL multiplier   Lead->MQL
    landing_page        5%           x1.3            30%
    native_lead        13%           x0.7          by form complexity
    chat               25%           x0.5            12%
    other               6%           x1.0          unchanged

Native lead forms: few fields 15%, many fields 28%, qualifying fields 35%;
without a known form complexity the Lead->MQL target is unchanged.
"""

import logging
from typing import Dict, Mapping, Optional

from funnel_diagnostics.models.enums import (
    BenchmarkChannel,
    BenchmarkSegment,
    CaptureType,
    FormComplexity,
)
from funnel_diagnostics.models.schemas import BenchmarkCatalog, BenchmarkProfile, MetricTarget
from funnel_diagnostics.services.rates import round_half_up
from funnel_diagnostics.services.registry import EngineConfig, get_engine_config


logger = logging.getLogger(__name__)


# =============================================================================
# Benchmark Tables (percent)
# =============================================================================

CHANNEL_BENCHMARKS: Dict[BenchmarkChannel, BenchmarkProfile] = {
    BenchmarkChannel.SEO: BenchmarkProfile(
        visitorToLead=2.1, leadToMql=41.0, mqlToSql=51.0, sqlToOpportunity=49.0, opportunityToWon=36.0),
    BenchmarkChannel.PPC: BenchmarkProfile(
        visitorToLead=0.7, leadToMql=36.0, mqlToSql=26.0, sqlToOpportunity=38.0, opportunityToWon=35.0),
    BenchmarkChannel.LINKEDIN: BenchmarkProfile(
        visitorToLead=2.2, leadToMql=38.0, mqlToSql=30.0, sqlToOpportunity=41.0, opportunityToWon=39.0),
    BenchmarkChannel.EMAIL: BenchmarkProfile(
        visitorToLead=1.3, leadToMql=43.0, mqlToSql=46.0, sqlToOpportunity=48.0, opportunityToWon=32.0),
    BenchmarkChannel.WEBINAR: BenchmarkProfile(
        visitorToLead=0.9, leadToMql=44.0, mqlToSql=39.0, sqlToOpportunity=42.0, opportunityToWon=40.0),
}

SEGMENT_BENCHMARKS: Dict[BenchmarkSegment, BenchmarkProfile] = {
    BenchmarkSegment.ADTECH: BenchmarkProfile(
        visitorToLead=1.4, leadToMql=39.0, mqlToSql=35.0, sqlToOpportunity=40.0, opportunityToWon=37.0),
    BenchmarkSegment.AUTOMOTIVE_SAAS: BenchmarkProfile(
        visitorToLead=1.9, leadToMql=37.0, mqlToSql=39.0, sqlToOpportunity=44.0, opportunityToWon=36.0),
    BenchmarkSegment.CRMS: BenchmarkProfile(
        visitorToLead=2.0, leadToMql=36.0, mqlToSql=42.0, sqlToOpportunity=48.0, opportunityToWon=38.0),
    BenchmarkSegment.CHEMICAL_PHARMACEUTICAL: BenchmarkProfile(
        visitorToLead=2.3, leadToMql=47.0, mqlToSql=46.0, sqlToOpportunity=41.0, opportunityToWon=39.0),
    BenchmarkSegment.CYBERSECURITY: BenchmarkProfile(
        visitorToLead=1.6, leadToMql=44.0, mqlToSql=38.0, sqlToOpportunity=40.0, opportunityToWon=39.0),
    BenchmarkSegment.DESIGN: BenchmarkProfile(
        visitorToLead=0.9, leadToMql=40.0, mqlToSql=34.0, sqlToOpportunity=45.0, opportunityToWon=38.0),
    BenchmarkSegment.EDTECH: BenchmarkProfile(
        visitorToLead=1.4, leadToMql=46.0, mqlToSql=35.0, sqlToOpportunity=39.0, opportunityToWon=40.0),
    BenchmarkSegment.ENTERTAINMENT: BenchmarkProfile(
        visitorToLead=1.6, leadToMql=41.0, mqlToSql=39.0, sqlToOpportunity=47.0, opportunityToWon=43.0),
    BenchmarkSegment.FINTECH: BenchmarkProfile(
        visitorToLead=1.7, leadToMql=38.0, mqlToSql=42.0, sqlToOpportunity=48.0, opportunityToWon=39.0),
    BenchmarkSegment.HOSPITALITY: BenchmarkProfile(
        visitorToLead=1.6, leadToMql=45.0, mqlToSql=38.0, sqlToOpportunity=38.0, opportunityToWon=38.0),
    BenchmarkSegment.INDUSTRIAL_IOT: BenchmarkProfile(
        visitorToLead=2.1, leadToMql=47.0, mqlToSql=39.0, sqlToOpportunity=42.0, opportunityToWon=39.0),
    BenchmarkSegment.INSURANCE: BenchmarkProfile(
        visitorToLead=1.6, leadToMql=40.0, mqlToSql=28.0, sqlToOpportunity=41.0, opportunityToWon=37.0),
    BenchmarkSegment.LEGALTECH: BenchmarkProfile(
        visitorToLead=1.3, leadToMql=41.0, mqlToSql=40.0, sqlToOpportunity=47.0, opportunityToWon=42.0),
    BenchmarkSegment.MEDTECH: BenchmarkProfile(
        visitorToLead=1.8, leadToMql=48.0, mqlToSql=43.0, sqlToOpportunity=41.0, opportunityToWon=35.0),
    BenchmarkSegment.PROJECT_MANAGEMENT: BenchmarkProfile(
        visitorToLead=1.8, leadToMql=46.0, mqlToSql=37.0, sqlToOpportunity=42.0, opportunityToWon=35.0),
    BenchmarkSegment.RETAIL_ECOMMERCE: BenchmarkProfile(
        visitorToLead=2.1, leadToMql=41.0, mqlToSql=36.0, sqlToOpportunity=45.0, opportunityToWon=39.0),
    BenchmarkSegment.TELECOM: BenchmarkProfile(
        visitorToLead=0.9, leadToMql=46.0, mqlToSql=35.0, sqlToOpportunity=41.0, opportunityToWon=36.0),
}

# Benchmark profile fields are named after the stage main metric keys
BENCHMARKED_METRICS = ("leadToMql", "mqlToSql", "sqlToOpportunity", "opportunityToWon")


def get_benchmark_profile(
    channel: Optional[BenchmarkChannel] = None,
    segment: Optional[BenchmarkSegment] = None
) -> Optional[BenchmarkProfile]:
    """
    Benchmark profile for a channel and/or segment.

    Priority: segment > channel. Returns None when neither is known.
    """
    if segment is not None and segment in SEGMENT_BENCHMARKS:
        return SEGMENT_BENCHMARKS[segment]
    if channel is not None and channel in CHANNEL_BENCHMARKS:
        return CHANNEL_BENCHMARKS[channel]
    return None


def get_benchmark_catalog() -> BenchmarkCatalog:
    return BenchmarkCatalog(
        channels={channel.value: profile for channel, profile in CHANNEL_BENCHMARKS.items()},
        segments={segment.value: profile for segment, profile in SEGMENT_BENCHMARKS.items()},
    )


def apply_benchmark_as_targets(
    targets: Mapping[str, MetricTarget],
    profile: BenchmarkProfile
) -> Dict[str, MetricTarget]:
    """
    Return a new targets mapping with the stage conversion targets replaced by
    the profile's benchmark values.

    Only keys already present in `targets` are replaced; direction, label and
    unit are kept.
    """
    updated = dict(targets)
    for key in BENCHMARKED_METRICS:
        if key in updated:
            updated[key] = updated[key].model_copy(update={"value": getattr(profile, key)})
    return updated


def get_benchmark_for_stage(
    stage_id: str,
    profile: Optional[BenchmarkProfile],
    config: Optional[EngineConfig] = None
) -> Optional[float]:
    """Benchmark rate (%) for a stage, or None without a profile."""
    if profile is None:
        return None
    if config is None:
        config = get_engine_config()
    key = config.get_stage(stage_id).mainMetricKey
    return getattr(profile, key, None)


def calculate_benchmark_gap(
    current_rate: Optional[float],
    benchmark_rate: Optional[float]
) -> Optional[float]:
    """current - benchmark in percentage points, None if either is unknown."""
    if current_rate is None or benchmark_rate is None:
        return None
    return current_rate - benchmark_rate


# =============================================================================
# Capture-Type Adjusted Targets
# =============================================================================

CAPTURE_CLICK_TO_LEAD: Dict[CaptureType, float] = {
    CaptureType.LANDING_PAGE: 5.0,
    CaptureType.NATIVE_LEAD: 13.0,
    CaptureType.CHAT: 25.0,
    CaptureType.OTHER: 6.0,
}

CAPTURE_CPL_MULTIPLIER: Dict[CaptureType, float] = {
    CaptureType.LANDING_PAGE: 1.3,
    CaptureType.NATIVE_LEAD: 0.7,
    CaptureType.CHAT: 0.5,
    CaptureType.OTHER: 1.0,
}

CAPTURE_LEAD_TO_MQL: Dict[CaptureType, float] = {
    CaptureType.LANDING_PAGE: 30.0,
    CaptureType.CHAT: 12.0,
}

NATIVE_FORM_LEAD_TO_MQL: Dict[FormComplexity, float] = {
    FormComplexity.FEW_FIELDS: 15.0,
    FormComplexity.MANY_FIELDS: 28.0,
    FormComplexity.QUALIFYING_FIELDS: 35.0,
}


def get_capture_adjusted_targets(
    targets: Mapping[str, MetricTarget],
    capture_type: Optional[CaptureType],
    form_complexity: Optional[FormComplexity] = None
) -> Dict[str, MetricTarget]:
    """
    Return a new targets mapping adjusted for how leads are captured.

    Args:
        targets: Base targets (not modified)
        capture_type: Lead capture method; None returns an unchanged copy
        form_complexity: Native lead form setup

    Returns:
        New targets mapping
    """
    adjusted = dict(targets)
    if capture_type is None:
        return adjusted

    if "clickToLeadRate" in adjusted:
        adjusted["clickToLeadRate"] = adjusted["clickToLeadRate"].model_copy(
            update={"value": CAPTURE_CLICK_TO_LEAD[capture_type]}
        )

    if "cpl" in adjusted:
        cpl = adjusted["cpl"]
        adjusted["cpl"] = cpl.model_copy(
            update={"value": float(round_half_up(cpl.value * CAPTURE_CPL_MULTIPLIER[capture_type]))}
        )

    lead_to_mql: Optional[float] = None
    if capture_type == CaptureType.NATIVE_LEAD:
        if form_complexity is not None:
            lead_to_mql = NATIVE_FORM_LEAD_TO_MQL[form_complexity]
    else:
        lead_to_mql = CAPTURE_LEAD_TO_MQL.get(capture_type)

    if lead_to_mql is not None and "leadToMql" in adjusted:
        adjusted["leadToMql"] = adjusted["leadToMql"].model_copy(update={"value": lead_to_mql})

    logger.debug(f"Targets adjusted for capture type {capture_type.value}")
    return adjusted


__all__ = [
    "CHANNEL_BENCHMARKS",
    "SEGMENT_BENCHMARKS",
    "get_benchmark_profile",
    "get_benchmark_catalog",
    "apply_benchmark_as_targets",
    "get_benchmark_for_stage",
    "calculate_benchmark_gap",
    "get_capture_adjusted_targets",
]
