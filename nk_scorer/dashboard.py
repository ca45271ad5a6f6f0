"""
Dashboard Aggregator - summary metrics over the performance snapshot.

Consumes the scorer for the "top opportunities" view. Opportunity rows have
no impressions of their own, so they are shown with clicks * 10 as an
estimate; this is a display placeholder, not a measured value.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Sequence

from nk_core.constants import ESTIMATED_IMPRESSIONS_PER_CLICK, TOP_OPPORTUNITIES
from nk_core.models import NegativeKeywordCandidate, PerformanceRow
from nk_scorer import metrics
from nk_scorer.scorer import identify_opportunities


@dataclass(frozen=True)
class DashboardMetrics:
    total_search_terms: int
    total_cost: float
    total_clicks: int
    total_conversions: float
    wasted_spend: float
    potential_savings: float
    average_ctr: float
    average_cpc: float
    average_cpa: float
    top_negative_keyword_opportunities: List[PerformanceRow] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalSearchTerms": self.total_search_terms,
            "totalCost": self.total_cost,
            "totalClicks": self.total_clicks,
            "totalConversions": self.total_conversions,
            "wastedSpend": self.wasted_spend,
            "potentialSavings": self.potential_savings,
            "averageCtr": self.average_ctr,
            "averageCpc": self.average_cpc,
            "averageCpa": self.average_cpa,
            "topNegativeKeywordOpportunities": [
                r.to_dict() for r in self.top_negative_keyword_opportunities
            ],
        }


def opportunity_to_row(candidate: NegativeKeywordCandidate, as_of: datetime) -> PerformanceRow:
    """Re-shape a candidate into a display row with estimated impressions."""
    return PerformanceRow(
        id=f"{candidate.search_term}-{candidate.campaign_name}-{candidate.ad_group_name}",
        search_term=candidate.search_term,
        campaign_name=candidate.campaign_name,
        ad_group_name=candidate.ad_group_name,
        keyword_text=candidate.search_term,
        cost=candidate.cost,
        clicks=candidate.clicks,
        impressions=candidate.clicks * ESTIMATED_IMPRESSIONS_PER_CLICK,
        conversions=candidate.conversions,
        date=as_of.isoformat(),
    )


def generate_dashboard_metrics(rows: Sequence[PerformanceRow]) -> DashboardMetrics:
    """
    Totals, waste, savings potential, averages and the top 10 opportunities.

    Currency values and averages are rounded to 2 decimal places.
    """
    total_cost = sum(r.cost for r in rows)
    total_clicks = sum(r.clicks for r in rows)
    total_conversions = sum(r.conversions for r in rows)

    opportunities = identify_opportunities(rows)[:TOP_OPPORTUNITIES]
    now = datetime.now()

    return DashboardMetrics(
        total_search_terms=len(rows),
        total_cost=round(total_cost, 2),
        total_clicks=total_clicks,
        total_conversions=total_conversions,
        wasted_spend=round(metrics.calculate_wasted_spend(rows), 2),
        potential_savings=round(metrics.calculate_potential_savings(rows), 2),
        average_ctr=metrics.calculate_average_ctr(rows),
        average_cpc=metrics.calculate_average_cpc(rows),
        average_cpa=metrics.calculate_average_cpa(rows),
        top_negative_keyword_opportunities=[opportunity_to_row(o, now) for o in opportunities],
    )


def calculate_spend_distribution(rows: Sequence[PerformanceRow]) -> List[Dict[str, Any]]:
    """Per-campaign cost / conversions / clicks / impressions with CTR, CPA and conversion rate."""
    by_campaign: Dict[str, Dict[str, Any]] = {}

    for r in rows:
        agg = by_campaign.setdefault(r.campaign_name, {
            "campaign": r.campaign_name,
            "cost": 0.0,
            "conversions": 0.0,
            "clicks": 0,
            "impressions": 0,
        })
        agg["cost"] += r.cost
        agg["conversions"] += r.conversions
        agg["clicks"] += r.clicks
        agg["impressions"] += r.impressions

    out = []
    for agg in by_campaign.values():
        item = dict(agg)
        item["ctr"] = metrics.calculate_ctr(agg["clicks"], agg["impressions"])
        item["cpa"] = metrics.calculate_cpa(agg["cost"], agg["conversions"])
        item["conversion_rate"] = metrics.calculate_conversion_rate(agg["conversions"], agg["clicks"])
        out.append(item)
    return out


def calculate_performance_trends(rows: Sequence[PerformanceRow], days: int = 30) -> List[Dict[str, Any]]:
    """Daily sums in ascending date order, last `days` dates only. Rows without a date are skipped."""
    by_date: Dict[str, Dict[str, Any]] = {}

    for r in rows:
        if not r.date:
            continue
        day = str(r.date)[:10]
        agg = by_date.setdefault(day, {
            "date": day,
            "cost": 0.0,
            "clicks": 0,
            "conversions": 0.0,
            "impressions": 0,
        })
        agg["cost"] += r.cost
        agg["clicks"] += r.clicks
        agg["conversions"] += r.conversions
        agg["impressions"] += r.impressions

    ordered = [by_date[d] for d in sorted(by_date)]
    return ordered[-days:] if days > 0 else []
