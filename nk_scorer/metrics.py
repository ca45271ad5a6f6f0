"""
Basic search-term arithmetic (CTR, CPC, CPA, wasted spend).

All functions are pure and guard divide-by-zero by returning 0.
"""
from __future__ import annotations

from typing import Sequence

from nk_core.constants import WASTED_SPEND_THRESHOLD
from nk_core.models import PerformanceRow


def calculate_ctr(clicks: int, impressions: int) -> float:
    if impressions == 0:
        return 0.0
    return round(clicks / impressions * 100, 2)


def calculate_cpc(cost: float, clicks: int) -> float:
    if clicks == 0:
        return 0.0
    return round(cost / clicks, 2)


def calculate_cpa(cost: float, conversions: float) -> float:
    if conversions == 0:
        return 0.0
    return round(cost / conversions, 2)


def calculate_conversion_rate(conversions: float, clicks: int) -> float:
    if clicks == 0:
        return 0.0
    return round(conversions / clicks * 100, 2)


def calculate_wasted_spend(rows: Sequence[PerformanceRow]) -> float:
    """Cost of every row with no conversions."""
    return sum(r.cost for r in rows if r.conversions == 0)


def calculate_potential_savings(rows: Sequence[PerformanceRow]) -> float:
    """Cost of non-converting rows above the wasted spend threshold."""
    return sum(
        r.cost for r in rows
        if r.conversions == 0 and r.cost > WASTED_SPEND_THRESHOLD
    )


def calculate_average_ctr(rows: Sequence[PerformanceRow]) -> float:
    if not rows:
        return 0.0
    return round(sum(r.ctr for r in rows) / len(rows), 2)


def calculate_average_cpc(rows: Sequence[PerformanceRow]) -> float:
    if not rows:
        return 0.0
    return round(sum(r.cpc for r in rows) / len(rows), 2)


def calculate_average_cpa(rows: Sequence[PerformanceRow]) -> float:
    """Mean cost-per-conversion over converting rows only."""
    converting = [r for r in rows if r.conversions > 0]
    if not converting:
        return 0.0
    return round(sum(r.cost_per_conversion for r in converting) / len(converting), 2)
