"""
Rate Calculator Service

Derives ratio metrics from a FunnelSnapshot using safe division: a ratio is
defined only when both operands are defined and the denominator is non-zero.
Otherwise the metric is None. It is never 0 by default, never NaN, never inf.

Percentage metrics are stored on a 0-100 scale so they compare directly with
registry targets.

Derived metrics:
- Media: ctr, cpc, cpm, clickToLeadRate, cpl
- Stage conversions: leadToMql, mqlToSql, sqlToOpportunity, opportunityToWon
- Economics: cac, revenuePerDeal
"""

import math
from typing import Optional, Union

from funnel_diagnostics.models.schemas import DerivedMetrics, FunnelSnapshot


Number = Union[int, float]


def safe_div(numerator: Optional[Number], denominator: Optional[Number]) -> Optional[float]:
    """
    Divide, or return None when the division is undefined.

    Args:
        numerator: Dividend, may be None
        denominator: Divisor, may be None or 0

    Returns:
        numerator / denominator, or None if either operand is None,
        the denominator is 0, or the result is not finite
    """
    if numerator is None or denominator is None or denominator == 0:
        return None
    result = numerator / denominator
    if not math.isfinite(result):
        return None
    return result


def safe_percent(numerator: Optional[Number], denominator: Optional[Number]) -> Optional[float]:
    """safe_div scaled to 0-100."""
    ratio = safe_div(numerator, denominator)
    return ratio * 100 if ratio is not None else None


def round_half_up(value: float) -> int:
    """Round .5 up (round() would round half to even)."""
    return int(math.floor(value + 0.5))


def calculate_derived_metrics(snapshot: FunnelSnapshot) -> DerivedMetrics:
    """
    Compute every derived metric for a snapshot.

    Never raises for missing data; absent inputs propagate as None outputs.

    Args:
        snapshot: Raw funnel counters

    Returns:
        A new DerivedMetrics instance
    """
    cpm = None
    if snapshot.impressions:
        cpm = safe_div(snapshot.spend, snapshot.impressions / 1000)

    return DerivedMetrics(
        ctr=safe_percent(snapshot.clicks, snapshot.impressions),
        cpc=safe_div(snapshot.spend, snapshot.clicks),
        cpm=cpm,
        clickToLeadRate=safe_percent(snapshot.leads, snapshot.clicks),
        cpl=safe_div(snapshot.spend, snapshot.leads),
        leadToMql=safe_percent(snapshot.mql, snapshot.leads),
        mqlToSql=safe_percent(snapshot.sql, snapshot.mql),
        sqlToOpportunity=safe_percent(snapshot.opportunities, snapshot.sql),
        opportunityToWon=safe_percent(snapshot.closedDeals, snapshot.opportunities),
        cac=safe_div(snapshot.spend, snapshot.closedDeals),
        revenuePerDeal=safe_div(snapshot.revenue, snapshot.closedDeals),
    )


def get_metric_value(
    key: str,
    snapshot: FunnelSnapshot,
    derived: DerivedMetrics
) -> Optional[float]:
    """
    Look a metric up by key, derived metrics first, then raw snapshot fields.

    Unknown keys return None.
    """
    if key in DerivedMetrics.model_fields:
        return getattr(derived, key)
    if key in FunnelSnapshot.model_fields:
        value = getattr(snapshot, key)
        return float(value) if value is not None else None
    return None


__all__ = [
    "safe_div",
    "safe_percent",
    "round_half_up",
    "calculate_derived_metrics",
    "get_metric_value",
]
