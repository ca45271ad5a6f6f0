from collections import Counter

from nk_core.models import PerformanceRow

def validate_no_duplicate_ids(rows: list[PerformanceRow]) -> tuple[bool, dict]:
    c = Counter(r.id for r in rows)
    dups = [k for k, v in c.items() if v > 1]
    return (len(dups) == 0, {"duplicate_ids": dups[:20]})

def validate_non_negative(rows: list[PerformanceRow]) -> tuple[bool, dict]:
    bad = [
        r.id for r in rows
        if r.cost < 0 or r.clicks < 0 or r.impressions < 0 or r.conversions < 0
    ]
    return (len(bad) == 0, {"negative_metric_ids": bad[:20]})

def validate_clicks_within_impressions(rows: list[PerformanceRow]) -> tuple[bool, dict]:
    bad = [r.id for r in rows if r.clicks > r.impressions]
    return (len(bad) == 0, {"clicks_exceed_impressions_ids": bad[:20]})

SNAPSHOT_CHECKS = (
    validate_no_duplicate_ids,
    validate_non_negative,
    validate_clicks_within_impressions,
)

def validate_snapshot(rows: list[PerformanceRow]) -> tuple[bool, dict]:
    details = {}
    ok = True
    for check in SNAPSHOT_CHECKS:
        passed, info = check(rows)
        ok = ok and passed
        details[check.__name__] = {"ok": passed, **info}
    return ok, details
