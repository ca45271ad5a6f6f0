import random
from datetime import date, timedelta

from nk_core.models import PerformanceRow

# (campaign, ad group, terms) - deterministic mock account structure
MOCK_STRUCTURE = [
    ("Running Shoes - Search", "Trail Running Shoes", [
        "trail running shoes",
        "free running shoes",
        "running shoes repair",
        "trail shoes size guide",
        "best trail running shoes",
    ]),
    ("Running Shoes - Search", "Road Running Shoes", [
        "road running shoes",
        "cheap running shoes",
        "running shoes jobs",
        "marathon shoes",
    ]),
    ("Outdoor Gear - Brand", "Official Store", [
        "outdoor gear official store",
        "outdoor gear discount code",
        "outdoor gear careers",
        "tents",
    ]),
    ("Outdoor Gear - Generic", "Camping Tents", [
        "camping tents",
        "tent rental near me",
        "how to pitch a tent",
        "used tents for sale",
    ]),
]

def mock_search_terms(seed: int, snapshot_date: date = None) -> list[PerformanceRow]:
    rnd = random.Random(seed)
    snapshot_date = snapshot_date or date.today() - timedelta(days=1)
    rows = []
    row_id = 0

    for campaign_name, ad_group_name, terms in MOCK_STRUCTURE:
        for term in terms:
            row_id += 1
            impressions = rnd.randint(50, 3000)
            clicks = rnd.randint(0, max(1, impressions // 15))
            cost = round(clicks * rnd.uniform(0.20, 2.50), 2)
            # Roughly one term in three converts
            conversions = round(rnd.random() * 4, 1) if rnd.random() < 0.35 and clicks > 0 else 0.0

            rows.append(
                PerformanceRow(
                    id=str(row_id),
                    search_term=term,
                    campaign_name=campaign_name,
                    ad_group_name=ad_group_name,
                    keyword_text=ad_group_name.lower(),
                    cost=cost,
                    clicks=clicks,
                    impressions=impressions,
                    conversions=conversions,
                    date=snapshot_date.isoformat(),
                )
            )
    return rows
