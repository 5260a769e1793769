"""
Confidence Scorer Test Module

Tests for funnel_diagnostics/services/confidence.py.

Test Coverage:
- Sample-size tiers per funnel counter
- Completeness penalties for media data
- Consistency penalties, compounding per violating pair
- Score clamping and tier cutoffs (50 / 80)
- Top penalty selection and ordering
"""

import pytest

from funnel_diagnostics.models.enums import ConfidenceTier, PenaltyCategory
from funnel_diagnostics.models.schemas import FunnelSnapshot, Penalty
from funnel_diagnostics.services.confidence import (
    collect_penalties,
    score_confidence,
    score_to_tier,
    top_penalties,
)


def _full(**overrides) -> FunnelSnapshot:
    """Large, consistent, complete funnel; no penalties unless overridden."""
    values = dict(
        spend=10000.0, impressions=200000, clicks=3200,
        leads=200, mql=60, sql=24, opportunities=12, closedDeals=4,
    )
    values.update(overrides)
    return FunnelSnapshot(**values)


# =============================================================================
# Test Class: TestTiers
# =============================================================================

class TestTiers:

    @pytest.mark.parametrize("score,tier", [
        (0, ConfidenceTier.LOW),
        (49, ConfidenceTier.LOW),
        (50, ConfidenceTier.MEDIUM),
        (79, ConfidenceTier.MEDIUM),
        (80, ConfidenceTier.HIGH),
        (100, ConfidenceTier.HIGH),
    ])
    def test_cutoffs(self, score, tier):
        assert score_to_tier(score) == tier


# =============================================================================
# Test Class: TestSamplePenalties
# =============================================================================

class TestSamplePenalties:
    """Three-tier penalties: missing / small / moderate."""

    def test_no_penalty_for_large_funnel(self, engine_config):
        result = score_confidence(_full(), engine_config)
        assert result.score == 100
        assert result.tier == ConfidenceTier.HIGH
        assert result.penalties == []

    @pytest.mark.parametrize("field,value,label,points", [
        ("leads", None, "leads", 35),
        ("leads", 0, "leads", 35),
        ("leads", 15, "leads", 35),
        ("leads", 40, "leads", 20),
        ("leads", 50, "leads", 0),
        ("mql", 5, "mqls", 25),
        ("mql", 15, "mqls", 15),
        ("mql", 25, "mqls", 0),
        ("sql", 3, "sqls", 25),
        ("sql", 7, "sqls", 15),
        ("sql", 10, "sqls", 0),
        ("opportunities", 2, "opportunities", 20),
        ("opportunities", 7, "opportunities", 10),
        ("opportunities", 10, "opportunities", 0),
    ])
    def test_counter_tiers(self, engine_config, field, value, label, points):
        # A single counter has no neighbour to be inconsistent with
        penalties = collect_penalties(FunnelSnapshot(**{field: value}), engine_config)
        own = [
            p for p in penalties
            if p.category == PenaltyCategory.SAMPLE and label in p.reason.lower()
        ]
        assert sum(p.points for p in own) == points

    def test_small_sample_reason(self, engine_config):
        penalties = collect_penalties(_full(leads=12, mql=6, sql=3, opportunities=2, closedDeals=1), engine_config)
        assert penalties[0].reason == "Small leads sample (12 < 20)"

    def test_missing_reason(self, engine_config):
        penalties = collect_penalties(_full(opportunities=None, closedDeals=None), engine_config)
        assert any(p.reason == "Opportunities not provided" and p.points == 20 for p in penalties)


# =============================================================================
# Test Class: TestCompletenessPenalties
# =============================================================================

class TestCompletenessPenalties:

    def test_missing_spend(self, engine_config):
        penalties = collect_penalties(_full(spend=None), engine_config)
        completeness = [p for p in penalties if p.category == PenaltyCategory.COMPLETENESS]
        assert [p.points for p in completeness] == [10]
        assert completeness[0].reason == "Media spend not provided"

    def test_spend_without_clicks(self, engine_config):
        penalties = collect_penalties(_full(clicks=None), engine_config)
        completeness = [p for p in penalties if p.category == PenaltyCategory.COMPLETENESS]
        assert [p.points for p in completeness] == [10]
        assert "clicks/impressions" in completeness[0].reason

    def test_spend_without_impressions(self, engine_config):
        result = score_confidence(_full(impressions=0), engine_config)
        assert result.score == 90

    def test_missing_spend_is_single_penalty(self, engine_config):
        """Missing clicks are not penalised again when spend is already missing."""
        result = score_confidence(_full(spend=None, clicks=None, impressions=None), engine_config)
        assert result.score == 90


# =============================================================================
# Test Class: TestConsistencyPenalties
# =============================================================================

class TestConsistencyPenalties:

    @pytest.mark.scenario
    def test_more_mql_than_leads(self, engine_config, inconsistent_snapshot):
        consistent = FunnelSnapshot(leads=100, mql=100)

        result = score_confidence(inconsistent_snapshot, engine_config)
        baseline = score_confidence(consistent, engine_config)

        assert result.hasInconsistency is True
        assert baseline.hasInconsistency is False
        assert baseline.score - result.score == 30
        consistency = [p for p in result.penalties if p.category == PenaltyCategory.CONSISTENCY]
        assert consistency[0].reason == "Inconsistent data: mql (150) > leads (100)"

    def test_violations_compound(self, engine_config):
        snapshot = _full(leads=200, mql=60, sql=80, opportunities=90, closedDeals=4)
        result = score_confidence(snapshot, engine_config)
        consistency = [p for p in result.penalties if p.category == PenaltyCategory.CONSISTENCY]
        assert len(consistency) == 2
        assert result.score == 40

    def test_missing_upstream_not_flagged(self, engine_config):
        result = score_confidence(FunnelSnapshot(mql=50), engine_config)
        assert result.hasInconsistency is False


# =============================================================================
# Test Class: TestScoreBounds
# =============================================================================

class TestScoreBounds:

    @pytest.mark.scenario
    def test_zero_leads_clamped_to_zero(self, engine_config, empty_snapshot):
        result = score_confidence(empty_snapshot, engine_config)

        assert result.score == 0
        assert result.tier == ConfidenceTier.LOW
        assert any(p.reason == "Leads not provided" and p.points == 35 for p in result.penalties)

    @pytest.mark.parametrize("snapshot", [
        FunnelSnapshot(),
        FunnelSnapshot(leads=1, mql=5, sql=9, opportunities=20, closedDeals=50),
        FunnelSnapshot(leads=10**6, mql=10**6, sql=10**6, opportunities=10**6, closedDeals=10**6, spend=1.0,
                       clicks=1, impressions=1),
    ])
    def test_bounds(self, engine_config, snapshot):
        result = score_confidence(snapshot, engine_config)
        assert 0 <= result.score <= 100
        assert result.tier == score_to_tier(result.score)


# =============================================================================
# Test Class: TestTopPenalties
# =============================================================================

class TestTopPenalties:

    def test_two_largest(self):
        penalties = [
            Penalty(reason="a", points=10, category=PenaltyCategory.COMPLETENESS),
            Penalty(reason="b", points=35, category=PenaltyCategory.SAMPLE),
            Penalty(reason="c", points=30, category=PenaltyCategory.CONSISTENCY),
            Penalty(reason="d", points=15, category=PenaltyCategory.SAMPLE),
        ]
        assert [p.reason for p in top_penalties(penalties)] == ["b", "c"]

    def test_ties_by_category_then_order(self):
        penalties = [
            Penalty(reason="consistency", points=25, category=PenaltyCategory.CONSISTENCY),
            Penalty(reason="sample-1", points=25, category=PenaltyCategory.SAMPLE),
            Penalty(reason="sample-2", points=25, category=PenaltyCategory.SAMPLE),
        ]
        assert [p.reason for p in top_penalties(penalties)] == ["sample-1", "sample-2"]

    def test_fewer_than_two(self):
        penalties = [Penalty(reason="only", points=10, category=PenaltyCategory.COMPLETENESS)]
        assert top_penalties(penalties) == penalties

    def test_result_carries_top_penalties(self, engine_config, inconsistent_snapshot):
        result = score_confidence(inconsistent_snapshot, engine_config)
        assert len(result.topPenalties) == 2
        assert result.topPenalties[0].points >= result.topPenalties[1].points
