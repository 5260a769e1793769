"""
Confidence Scorer Service

Computes one 0-100 score for how far the whole analysis can be trusted. The
score starts at 100 and loses points in three categories:

A) Sample size: one independent three-tier check per funnel counter
   (missing / small / moderate), larger penalties for earlier counters.
B) Completeness: spend missing; spend present but clicks or impressions missing.
C) Consistency: every adjacent funnel pair where the downstream count exceeds
   the upstream count is a data-entry error. Each violation is penalised on
   its own; violations compound.

The score is clamped to [0, 100] and mapped to a tier:
    score < 50 -> low, 50 <= score < 80 -> medium, score >= 80 -> high

The two largest penalties are surfaced as topPenalties (points descending,
ties by category order sample > completeness > consistency, then check order).
"""

import logging
from typing import List, Optional

from funnel_diagnostics.models.enums import ConfidenceTier, PenaltyCategory
from funnel_diagnostics.models.schemas import ConfidenceResult, FunnelSnapshot, Penalty
from funnel_diagnostics.services.registry import (
    EngineConfig,
    SampleSizeRule,
    get_engine_config,
)


logger = logging.getLogger(__name__)

LOW_TIER_MAX: int = 50
MEDIUM_TIER_MAX: int = 80
TOP_PENALTY_COUNT: int = 2

_CATEGORY_ORDER = {category: index for index, category in enumerate(PenaltyCategory)}


def score_to_tier(score: int) -> ConfidenceTier:
    """Map a 0-100 confidence score to its tier."""
    if score < LOW_TIER_MAX:
        return ConfidenceTier.LOW
    if score < MEDIUM_TIER_MAX:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.HIGH


def _sample_penalty(rule: SampleSizeRule, value: Optional[int]) -> Optional[Penalty]:
    if not value:
        return Penalty(
            reason=f"{rule.label[:1].upper()}{rule.label[1:]} not provided",
            points=rule.missing_points,
            category=PenaltyCategory.SAMPLE,
        )
    if value < rule.small_cutoff:
        return Penalty(
            reason=f"Small {rule.label} sample ({value} < {rule.small_cutoff})",
            points=rule.small_points,
            category=PenaltyCategory.SAMPLE,
        )
    if value < rule.moderate_cutoff:
        return Penalty(
            reason=f"Moderate {rule.label} sample ({value} < {rule.moderate_cutoff})",
            points=rule.moderate_points,
            category=PenaltyCategory.SAMPLE,
        )
    return None


def collect_penalties(
    snapshot: FunnelSnapshot,
    config: Optional[EngineConfig] = None
) -> List[Penalty]:
    """
    Run every confidence check in fixed order and return the penalties found.

    Order: sample-size rules in declaration order, completeness, then one
    consistency check per stage in declaration order.
    """
    if config is None:
        config = get_engine_config()

    penalties: List[Penalty] = []

    # A) Sample size
    for rule in config.sample_size_rules:
        penalty = _sample_penalty(rule, getattr(snapshot, rule.counter_key, None))
        if penalty is not None:
            penalties.append(penalty)

    # B) Completeness
    if not snapshot.spend:
        penalties.append(Penalty(
            reason="Media spend not provided",
            points=config.missing_spend_penalty,
            category=PenaltyCategory.COMPLETENESS,
        ))
    elif not snapshot.clicks or not snapshot.impressions:
        penalties.append(Penalty(
            reason="Incomplete media data (clicks/impressions)",
            points=config.incomplete_media_penalty,
            category=PenaltyCategory.COMPLETENESS,
        ))

    # C) Consistency
    for stage in config.stages:
        upstream = getattr(snapshot, stage.denominatorKey, None)
        downstream = getattr(snapshot, stage.numeratorKey, None)
        if upstream and downstream is not None and downstream > upstream:
            penalties.append(Penalty(
                reason=f"Inconsistent data: {stage.numeratorKey} ({downstream}) > "
                       f"{stage.denominatorKey} ({upstream})",
                points=config.inconsistency_penalty,
                category=PenaltyCategory.CONSISTENCY,
            ))

    return penalties


def top_penalties(penalties: List[Penalty], count: int = TOP_PENALTY_COUNT) -> List[Penalty]:
    """Largest penalties first; sorted() is stable so check order breaks remaining ties."""
    ranked = sorted(penalties, key=lambda p: (-p.points, _CATEGORY_ORDER[p.category]))
    return ranked[:count]


def score_confidence(
    snapshot: FunnelSnapshot,
    config: Optional[EngineConfig] = None
) -> ConfidenceResult:
    """
    Score how trustworthy an analysis of `snapshot` is.

    Args:
        snapshot: Raw funnel counters
        config: Engine configuration (defaults to the process singleton)

    Returns:
        ConfidenceResult with score in [0, 100]
    """
    penalties = collect_penalties(snapshot, config)

    score = 100 - sum(p.points for p in penalties)
    score = max(0, min(100, score))

    has_inconsistency = any(p.category == PenaltyCategory.CONSISTENCY for p in penalties)

    result = ConfidenceResult(
        score=score,
        tier=score_to_tier(score),
        penalties=penalties,
        topPenalties=top_penalties(penalties),
        hasInconsistency=has_inconsistency,
    )
    logger.debug(f"Confidence {result.score} ({result.tier.value}), {len(penalties)} penalties")
    return result


__all__ = [
    "score_to_tier",
    "collect_penalties",
    "top_penalties",
    "score_confidence",
]
