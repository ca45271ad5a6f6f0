"""
Opportunity Scorer - proposes negative keywords from search-term performance.

A search term is an opportunity when it spent money, got clicks and never
converted:

    conversions == 0 AND cost > 5 AND clicks > 0

Each opportunity carries a recommended match type and placement level. Both
recommendations are plain pattern matching over the term and the
campaign / ad group names.
"""
from __future__ import annotations

from typing import Dict, List, Sequence

from nk_core.constants import BRAND_TERMS, PRODUCT_TERMS, WASTED_SPEND_THRESHOLD
from nk_core.models import NegativeKeywordCandidate, PerformanceRow


def is_opportunity(row: PerformanceRow) -> bool:
    return (
        row.conversions == 0
        and row.cost > WASTED_SPEND_THRESHOLD
        and row.clicks > 0
    )


def identify_opportunities(rows: Sequence[PerformanceRow]) -> List[NegativeKeywordCandidate]:
    """
    Score performance rows into negative keyword candidates.

    Returns:
        Candidates sorted by potential_savings descending. The sort is stable,
        so equal savings keep their input order.
    """
    candidates = [
        NegativeKeywordCandidate(
            search_term=row.search_term,
            cost=row.cost,
            clicks=row.clicks,
            conversions=row.conversions,
            potential_savings=row.cost,
            recommended_match_type=recommend_match_type(row.search_term),
            recommended_level=recommend_level(row),
            campaign_name=row.campaign_name,
            ad_group_name=row.ad_group_name,
        )
        for row in rows
        if is_opportunity(row)
    ]
    return sorted(candidates, key=lambda c: c.potential_savings, reverse=True)


def recommend_match_type(search_term: str) -> str:
    """
    EXACT for single words or very short terms, PHRASE for brand / product
    intent terms, BROAD otherwise.
    """
    term = search_term.lower()

    if len(term.split(" ")) == 1 or len(term) <= 3:
        return "EXACT"

    if contains_brand_terms(term) or contains_product_terms(term):
        return "PHRASE"

    return "BROAD"


def recommend_level(row: PerformanceRow) -> str:
    """AD_GROUP if the term is ad-group specific, CAMPAIGN if campaign specific, else SHARED_LIST."""
    if is_ad_group_specific(row.search_term, row.ad_group_name):
        return "AD_GROUP"

    if is_campaign_specific(row.search_term, row.campaign_name):
        return "CAMPAIGN"

    return "SHARED_LIST"


def contains_brand_terms(term: str) -> bool:
    return any(brand in term for brand in BRAND_TERMS)


def contains_product_terms(term: str) -> bool:
    return any(product in term for product in PRODUCT_TERMS)


def _matching_words(search_term: str, name: str) -> List[str]:
    # Substring match in either direction against any word of the name
    name_words = name.lower().split(" ")
    search_words = search_term.lower().split(" ")
    return [
        word for word in search_words
        if any(name_word in word or word in name_word for name_word in name_words)
    ]


def is_ad_group_specific(search_term: str, ad_group_name: str) -> bool:
    """More than 50% of the term's words appear in the ad group name."""
    search_words = search_term.lower().split(" ")
    matching = _matching_words(search_term, ad_group_name)
    return len(matching) / len(search_words) > 0.5


def is_campaign_specific(search_term: str, campaign_name: str) -> bool:
    """Any word of the term appears in the campaign name."""
    return len(_matching_words(search_term, campaign_name)) > 0


def calculate_impact(candidates: Sequence[NegativeKeywordCandidate]) -> Dict[str, float]:
    """Total / count / average savings for a set of candidates."""
    total_savings = sum(c.potential_savings for c in candidates)
    affected = len(candidates)
    average = total_savings / affected if affected > 0 else 0

    return {
        "total_savings": round(total_savings, 2),
        "affected_search_terms": affected,
        "average_savings_per_term": round(average, 2),
    }
