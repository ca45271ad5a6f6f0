"""
Test the Opportunity Scorer and Dashboard Aggregator.

Test Flow:
1. Opportunity filter (conversions == 0, cost > 5, clicks > 0)
2. Ordering by potential savings (stable on ties)
3. Match type and level recommendations
4. Impact summary
5. Dashboard metrics, including the top opportunities display rows

Run: python tools/testing/test_scorer.py
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from nk_core.models import PerformanceRow
from nk_scorer.dashboard import (
    calculate_performance_trends,
    calculate_spend_distribution,
    generate_dashboard_metrics,
)
from nk_scorer.scorer import (
    calculate_impact,
    identify_opportunities,
    recommend_level,
    recommend_match_type,
)


def _row(id, cost, clicks, conversions, impressions=None, term=None, campaign="Shoes", ad_group="Trail", date=None):
    return PerformanceRow(
        id=id,
        search_term=term or f"term {id}",
        campaign_name=campaign,
        ad_group_name=ad_group,
        cost=cost,
        clicks=clicks,
        impressions=impressions if impressions is not None else clicks * 20,
        conversions=conversions,
        date=date,
    )


def scenario_rows():
    return [
        _row("1", cost=20, clicks=5, conversions=0, impressions=100),
        _row("2", cost=3, clicks=2, conversions=0, impressions=50),
        _row("3", cost=50, clicks=10, conversions=2, impressions=200),
    ]


def test_opportunity_filter():
    """Only the non-converting row above the threshold qualifies."""
    print("\n=== TEST 1: Opportunity Filter ===")

    candidates = identify_opportunities(scenario_rows())

    assert len(candidates) == 1, f"Expected 1 candidate, got {len(candidates)}"
    assert candidates[0].cost == 20
    assert candidates[0].potential_savings == 20
    print("✅ PASS: Only {cost: 20} row is an opportunity")


def test_threshold_is_strict():
    print("\n=== TEST 2: Threshold Edges ===")

    rows = [
        _row("a", cost=5.0, clicks=3, conversions=0),     # not > 5
        _row("b", cost=5.01, clicks=3, conversions=0),    # qualifies
        _row("c", cost=40, clicks=0, conversions=0, impressions=10),  # no clicks
        _row("d", cost=40, clicks=4, conversions=0.5),    # converted
    ]
    candidates = identify_opportunities(rows)

    assert [c.search_term for c in candidates] == ["term b"]
    print("✅ PASS: cost == 5, zero clicks and partial conversions excluded")


def test_sorted_by_savings_stable():
    print("\n=== TEST 3: Ordering ===")

    rows = [
        _row("a", cost=10, clicks=1, conversions=0),
        _row("b", cost=30, clicks=1, conversions=0),
        _row("c", cost=10, clicks=1, conversions=0),
        _row("d", cost=12.5, clicks=1, conversions=0),
    ]
    candidates = identify_opportunities(rows)

    assert [c.search_term for c in candidates] == ["term b", "term d", "term a", "term c"]
    for earlier, later in zip(candidates, candidates[1:]):
        assert earlier.potential_savings >= later.potential_savings
    print("✅ PASS: Descending savings, ties keep input order")


def test_empty_input():
    assert identify_opportunities([]) == []
    assert calculate_impact([]) == {
        "total_savings": 0,
        "affected_search_terms": 0,
        "average_savings_per_term": 0,
    }


def test_match_type_heuristic():
    print("\n=== TEST 4: Match Type ===")

    assert recommend_match_type("shoe") == "EXACT"
    assert recommend_match_type("a b") == "EXACT"
    assert recommend_match_type("cheap running shoes") == "PHRASE"
    assert recommend_match_type("Official Store Hours") == "PHRASE"
    assert recommend_match_type("red running shoes") == "BROAD"
    print("✅ PASS: EXACT / PHRASE / BROAD")


def test_level_recommendation():
    print("\n=== TEST 5: Level ===")

    ad_group = _row("1", 10, 1, 0, term="trail running shoes", campaign="Outdoor", ad_group="Trail Running Shoes")
    campaign = _row("2", 10, 1, 0, term="running socks", campaign="Running Gear", ad_group="Trail Shoes")
    shared = _row("3", 10, 1, 0, term="tent rental", campaign="Running", ad_group="Road Shoes")

    assert recommend_level(ad_group) == "AD_GROUP"
    assert recommend_level(campaign) == "CAMPAIGN"
    assert recommend_level(shared) == "SHARED_LIST"
    print("✅ PASS: AD_GROUP / CAMPAIGN / SHARED_LIST")


def test_impact():
    print("\n=== TEST 6: Impact ===")

    rows = [
        _row("a", cost=10, clicks=1, conversions=0),
        _row("b", cost=20.5, clicks=1, conversions=0),
    ]
    impact = calculate_impact(identify_opportunities(rows))

    assert impact["total_savings"] == 30.5
    assert impact["affected_search_terms"] == 2
    assert impact["average_savings_per_term"] == 15.25
    print(f"✅ PASS: {impact}")


def test_dashboard_metrics():
    print("\n=== TEST 7: Dashboard Metrics ===")

    m = generate_dashboard_metrics(scenario_rows())

    assert m.total_search_terms == 3
    assert m.total_cost == 73
    assert m.total_clicks == 17
    assert m.total_conversions == 2
    assert m.wasted_spend == 23
    assert m.potential_savings == 20
    assert m.average_ctr == 4.67        # (5 + 4 + 5) / 3
    assert m.average_cpc == 3.5         # (4 + 1.5 + 5) / 3
    assert m.average_cpa == 25.0        # converting rows only

    top = m.top_negative_keyword_opportunities
    assert len(top) == 1
    assert top[0].impressions == 50     # clicks * 10
    assert top[0].ctr == 10.0
    assert top[0].cpc == 4.0
    assert top[0].keyword_text == top[0].search_term
    assert top[0].id == "term 1-Shoes-Trail"

    d = m.to_dict()
    assert d["topNegativeKeywordOpportunities"][0]["impressions"] == 50
    assert d["averageCpa"] == 25.0
    print("✅ PASS: Totals, averages and top opportunities")


def test_dashboard_top_ten_only():
    rows = [_row(str(i), cost=10 + i, clicks=1, conversions=0) for i in range(15)]
    m = generate_dashboard_metrics(rows)

    assert len(m.top_negative_keyword_opportunities) == 10
    assert m.top_negative_keyword_opportunities[0].cost == 24


def test_dashboard_empty():
    m = generate_dashboard_metrics([])
    assert m.total_search_terms == 0
    assert m.average_ctr == 0.0
    assert m.average_cpa == 0.0
    assert m.top_negative_keyword_opportunities == []


def test_spend_distribution_and_trends():
    print("\n=== TEST 8: Distribution / Trends ===")

    rows = [
        _row("1", cost=10, clicks=2, conversions=1, impressions=100, campaign="A", date="2026-10-02"),
        _row("2", cost=30, clicks=3, conversions=0, impressions=100, campaign="A", date="2026-10-01"),
        _row("3", cost=5, clicks=1, conversions=0, impressions=50, campaign="B", date="2026-10-02"),
        _row("4", cost=1, clicks=1, conversions=0, impressions=50, campaign="B"),
    ]

    dist = {d["campaign"]: d for d in calculate_spend_distribution(rows)}
    assert dist["A"]["cost"] == 40
    assert dist["A"]["ctr"] == 2.5
    assert dist["A"]["cpa"] == 40.0
    assert dist["B"]["cpa"] == 0.0
    assert dist["A"]["conversion_rate"] == 20.0
    assert dist["B"]["conversion_rate"] == 0.0

    trends = calculate_performance_trends(rows)
    assert [t["date"] for t in trends] == ["2026-10-01", "2026-10-02"]
    assert trends[1]["cost"] == 15

    assert [t["date"] for t in calculate_performance_trends(rows, days=1)] == ["2026-10-02"]
    print("✅ PASS: Per-campaign and per-date sums")


if __name__ == "__main__":
    print("=" * 70)
    print("SCORER / DASHBOARD TESTS")
    print("=" * 70)

    test_opportunity_filter()
    test_threshold_is_strict()
    test_sorted_by_savings_stable()
    test_empty_input()
    test_match_type_heuristic()
    test_level_recommendation()
    test_impact()
    test_dashboard_metrics()
    test_dashboard_top_ten_only()
    test_dashboard_empty()
    test_spend_distribution_and_trends()

    print("\n" + "=" * 70)
    print("✅ ALL SCORER TESTS PASSED")
    print("=" * 70)
