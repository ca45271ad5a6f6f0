"""
Test the Request Validator.

Every invalid payload must produce at least one error and never become a
KeywordSubmission; every valid payload becomes the matching target variant.

Run: python tools/testing/test_validator.py
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest

from nk_core.errors import ValidationError
from nk_core.models import AdGroupTarget, CampaignTarget, SharedListTarget
from nk_ledger.validator import build_submission, validate_batch, validate_keyword


def test_valid_campaign_keyword():
    print("\n=== TEST 1: Valid Campaign Keyword ===")

    payload = {"text": "free shipping", "matchType": "BROAD", "level": "CAMPAIGN", "campaignId": "123"}
    assert validate_keyword(payload) == []

    sub = build_submission(payload)
    assert sub.keyword_text == "free shipping"
    assert sub.match_type == "BROAD"
    assert sub.level == "CAMPAIGN"
    assert sub.target == CampaignTarget(campaign_id="123")
    print("✅ PASS: CampaignTarget built")


def test_missing_ad_group_id_rejected():
    print("\n=== TEST 2: Missing Ad Group ID ===")

    payload = {"text": "shoes", "matchType": "EXACT", "level": "AD_GROUP"}
    errors = validate_keyword(payload)

    assert len(errors) == 1
    assert "Ad Group" in errors[0]
    with pytest.raises(ValidationError) as exc:
        build_submission(payload)
    assert exc.value.errors == errors
    print(f"✅ PASS: {errors[0]}")


def test_ad_group_and_shared_list_variants():
    ad_group = build_submission({
        "text": "trail shoes", "matchType": "PHRASE", "level": "AD_GROUP",
        "campaignId": "1", "adGroupId": "2", "adGroupName": "Trail",
    })
    assert ad_group.target == AdGroupTarget("1", "2", None, "Trail")

    shared = build_submission({
        "text": "jobs", "matchType": "EXACT", "level": "SHARED_LIST",
        "sharedListId": " 77 ", "sharedListName": "Account Negatives",
    })
    assert shared.target == SharedListTarget("77", "Account Negatives")


def test_text_rules():
    print("\n=== TEST 3: Text Rules ===")

    base = {"matchType": "EXACT", "level": "CAMPAIGN", "campaignId": "1"}

    assert validate_keyword({**base, "text": ""}) == ["Keyword text is required"]
    assert validate_keyword({**base, "text": "   "}) == ["Keyword text is required"]
    assert validate_keyword({**base}) == ["Keyword text is required"]
    assert validate_keyword({**base, "text": "a" * 80}) == []
    assert validate_keyword({**base, "text": "a" * 81}) == ["Keyword text must be 80 characters or less"]
    assert validate_keyword({**base, "text": "shoes & socks"}) == ["Keyword text contains invalid characters"]
    assert validate_keyword({**base, "text": "what's on sale?"}) == ["Keyword text contains invalid characters"]
    assert validate_keyword({**base, "text": "shoes-2, size 10. now!"}) == []
    print("✅ PASS: required / length / character set")


def test_enum_and_id_rules():
    print("\n=== TEST 4: Match Type / Level / IDs ===")

    assert validate_keyword({"text": "x", "matchType": "exact", "level": "CAMPAIGN", "campaignId": "1"}) == [
        "Invalid match type. Must be EXACT, PHRASE, or BROAD"
    ]
    assert validate_keyword({"text": "x", "matchType": "EXACT", "level": "ACCOUNT"}) == [
        "Invalid level. Must be CAMPAIGN, AD_GROUP, or SHARED_LIST"
    ]
    assert validate_keyword({"text": "x", "matchType": "EXACT", "level": "CAMPAIGN", "campaignId": " "}) == [
        "Campaign ID is required for campaign level keywords"
    ]
    assert validate_keyword({"text": "x", "matchType": "EXACT", "level": "AD_GROUP", "adGroupId": "2"}) == [
        "Campaign ID and Ad Group ID are required for ad group level keywords"
    ]
    assert validate_keyword({"text": "x", "matchType": "EXACT", "level": "SHARED_LIST", "campaignId": "1"}) == [
        "Shared List ID is required for shared list keywords"
    ]
    print("✅ PASS: enum and identifier rules")


def test_multiple_errors_reported_together():
    errors = validate_keyword({"text": "", "matchType": "NONE", "level": "NONE"})
    assert len(errors) == 3


def test_non_object_payload():
    assert validate_keyword("shoes") == ["Keyword must be an object"]


def test_batch_partial():
    print("\n=== TEST 5: Batch ===")

    items = validate_batch([
        {"text": "free", "matchType": "EXACT", "level": "CAMPAIGN", "campaignId": "1"},
        {"text": "shoes", "matchType": "EXACT", "level": "AD_GROUP"},
        {"text": "free", "matchType": "EXACT", "level": "CAMPAIGN", "campaignId": "1"},
    ])

    assert [i.valid for i in items] == [True, False, True]
    assert [i.index for i in items] == [0, 1, 2]
    assert items[1].submission is None
    # No duplicate suppression
    assert items[0].submission == items[2].submission
    print("✅ PASS: independent per-item validation")


if __name__ == "__main__":
    print("=" * 70)
    print("REQUEST VALIDATOR TESTS")
    print("=" * 70)

    test_valid_campaign_keyword()
    test_missing_ad_group_id_rejected()
    test_ad_group_and_shared_list_variants()
    test_text_rules()
    test_enum_and_id_rules()
    test_multiple_errors_reported_together()
    test_non_object_payload()
    test_batch_partial()

    print("\n" + "=" * 70)
    print("✅ ALL VALIDATOR TESTS PASSED")
    print("=" * 70)
