"""
Rate Calculator Test Module

Tests for funnel_diagnostics/services/rates.py.

Test Coverage:
- safe_div / safe_percent: undefined operands and zero denominators give None
- Derived metrics for complete, sparse and zero-valued snapshots
- Metric lookup across derived metrics and raw snapshot fields
- Half-up rounding used for unit estimates
"""

import math

import pytest

from funnel_diagnostics.models.schemas import DerivedMetrics, FunnelSnapshot
from funnel_diagnostics.services.rates import (
    calculate_derived_metrics,
    get_metric_value,
    round_half_up,
    safe_div,
    safe_percent,
)


# =============================================================================
# Test Class: TestSafeDivision
# =============================================================================

class TestSafeDivision:
    """A ratio is defined only when both operands are defined and the denominator is non-zero."""

    def test_regular_division(self):
        assert safe_div(30, 120) == pytest.approx(0.25)

    def test_zero_denominator_is_undefined(self):
        assert safe_div(10, 0) is None

    def test_zero_over_zero_is_undefined(self):
        assert safe_div(0, 0) is None

    def test_missing_numerator_is_undefined(self):
        assert safe_div(None, 10) is None

    def test_missing_denominator_is_undefined(self):
        assert safe_div(10, None) is None

    def test_zero_numerator_is_zero(self):
        """Zero is a real observation, not missing data."""
        assert safe_div(0, 50) == 0.0

    def test_overflow_is_undefined(self):
        assert safe_div(1e308, 1e-308) is None

    def test_safe_percent_scales_to_100(self):
        assert safe_percent(30, 100) == pytest.approx(30.0)

    def test_safe_percent_propagates_none(self):
        assert safe_percent(30, 0) is None


# =============================================================================
# Test Class: TestDerivedMetrics
# =============================================================================

class TestDerivedMetrics:
    """Tests for calculate_derived_metrics."""

    def test_complete_snapshot(self, healthy_snapshot):
        derived = calculate_derived_metrics(healthy_snapshot)

        assert derived.ctr == pytest.approx(1.6)
        assert derived.cpc == pytest.approx(3.125)
        assert derived.cpm == pytest.approx(50.0)
        assert derived.clickToLeadRate == pytest.approx(6.25)
        assert derived.cpl == pytest.approx(50.0)
        assert derived.leadToMql == pytest.approx(30.0)
        assert derived.mqlToSql == pytest.approx(40.0)
        assert derived.sqlToOpportunity == pytest.approx(50.0)
        assert derived.opportunityToWon == pytest.approx(100 / 3)
        assert derived.cac == pytest.approx(2500.0)
        assert derived.revenuePerDeal is None

    def test_empty_snapshot_has_no_metrics(self):
        derived = calculate_derived_metrics(FunnelSnapshot())
        assert all(value is None for value in derived.model_dump().values())

    def test_zero_leads_leaves_lead_rates_undefined(self):
        derived = calculate_derived_metrics(FunnelSnapshot(leads=0, mql=0, spend=500.0))
        assert derived.leadToMql is None
        assert derived.cpl is None

    def test_cpm_requires_impressions(self):
        derived = calculate_derived_metrics(FunnelSnapshot(spend=100.0, impressions=0))
        assert derived.cpm is None

    def test_revenue_per_deal(self):
        derived = calculate_derived_metrics(FunnelSnapshot(closedDeals=4, revenue=20000.0))
        assert derived.revenuePerDeal == pytest.approx(5000.0)

    def test_inconsistent_counts_still_compute(self, inconsistent_snapshot):
        """Rates above 100% are reported; consistency is the scorer's concern."""
        derived = calculate_derived_metrics(inconsistent_snapshot)
        assert derived.leadToMql == pytest.approx(150.0)

    @pytest.mark.parametrize("snapshot", [
        FunnelSnapshot(),
        FunnelSnapshot(leads=0, mql=0, sql=0, opportunities=0, closedDeals=0),
        FunnelSnapshot(spend=0.0, impressions=0, clicks=0),
        FunnelSnapshot(spend=1e300, clicks=1, leads=1),
        FunnelSnapshot(leads=1, mql=10**9),
    ])
    def test_never_nan_or_infinite(self, snapshot):
        derived = calculate_derived_metrics(snapshot)
        for value in derived.model_dump().values():
            assert value is None or (math.isfinite(value) and value >= 0)


# =============================================================================
# Test Class: TestMetricLookup
# =============================================================================

class TestMetricLookup:
    """Tests for get_metric_value."""

    def test_derived_metric(self, healthy_snapshot):
        derived = calculate_derived_metrics(healthy_snapshot)
        assert get_metric_value("leadToMql", healthy_snapshot, derived) == pytest.approx(30.0)

    def test_raw_snapshot_field(self):
        snapshot = FunnelSnapshot(timeToFirstTouch=12.0)
        assert get_metric_value("timeToFirstTouch", snapshot, DerivedMetrics()) == 12.0

    def test_missing_raw_field(self):
        assert get_metric_value("connectRate", FunnelSnapshot(), DerivedMetrics()) is None

    def test_unknown_key(self):
        assert get_metric_value("notAMetric", FunnelSnapshot(), DerivedMetrics()) is None


# =============================================================================
# Test Class: TestRounding
# =============================================================================

class TestRounding:

    @pytest.mark.parametrize("value,expected", [
        (2.5, 3),
        (3.5, 4),
        (2.4999, 2),
        (0.5, 1),
        (0.49, 0),
        (10.0, 10),
    ])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected
