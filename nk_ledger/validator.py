"""
Request Validator - integrity rules applied before a request reaches the ledger.

Validates the submission payload (camelCase keys, as sent by the API):

    {
        "text": str,
        "matchType": "EXACT" | "PHRASE" | "BROAD",
        "level": "CAMPAIGN" | "AD_GROUP" | "SHARED_LIST",
        "campaignId": str,      # CAMPAIGN, AD_GROUP
        "adGroupId": str,       # AD_GROUP
        "sharedListId": str,    # SHARED_LIST
        "campaignName" / "adGroupName" / "sharedListName": optional display names
    }

Each item in a batch is validated on its own; there is no duplicate suppression.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from nk_core.constants import (
    KEYWORD_ALLOWED_CHARACTERS,
    KEYWORD_MAX_LENGTH,
    LEVELS,
    MATCH_TYPES,
)
from nk_core.errors import ValidationError
from nk_core.models import (
    AdGroupTarget,
    CampaignTarget,
    KeywordSubmission,
    SharedListTarget,
)


@dataclass
class ItemValidation:
    """Validation outcome for one payload in a batch."""
    index: int
    payload: Dict[str, Any]
    errors: List[str] = field(default_factory=list)
    submission: Optional[KeywordSubmission] = None

    @property
    def valid(self) -> bool:
        return not self.errors


def _clean(value: Any) -> Optional[str]:
    """Normalize an id/name field: None or blank -> None, else stripped string."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def validate_keyword(payload: Dict[str, Any]) -> List[str]:
    """
    Validate one keyword payload.

    Returns:
        List of error messages (empty = admissible)
    """
    errors: List[str] = []

    if not isinstance(payload, dict):
        return ["Keyword must be an object"]

    text = payload.get("text")
    if text is not None and not isinstance(text, str):
        text = str(text)

    if not text or not text.strip():
        errors.append("Keyword text is required")
    else:
        if len(text) > KEYWORD_MAX_LENGTH:
            errors.append(f"Keyword text must be {KEYWORD_MAX_LENGTH} characters or less")
        if not KEYWORD_ALLOWED_CHARACTERS.match(text):
            errors.append("Keyword text contains invalid characters")

    if payload.get("matchType") not in MATCH_TYPES:
        errors.append("Invalid match type. Must be EXACT, PHRASE, or BROAD")

    level = payload.get("level")
    if level not in LEVELS:
        errors.append("Invalid level. Must be CAMPAIGN, AD_GROUP, or SHARED_LIST")

    campaign_id = _clean(payload.get("campaignId"))
    ad_group_id = _clean(payload.get("adGroupId"))
    shared_list_id = _clean(payload.get("sharedListId"))

    if level == "CAMPAIGN" and not campaign_id:
        errors.append("Campaign ID is required for campaign level keywords")

    if level == "AD_GROUP" and (not campaign_id or not ad_group_id):
        errors.append("Campaign ID and Ad Group ID are required for ad group level keywords")

    if level == "SHARED_LIST" and not shared_list_id:
        errors.append("Shared List ID is required for shared list keywords")

    return errors


def build_submission(payload: Dict[str, Any]) -> KeywordSubmission:
    """
    Convert an admissible payload into a KeywordSubmission.

    Raises:
        ValidationError: if validate_keyword() reports any error
    """
    errors = validate_keyword(payload)
    if errors:
        raise ValidationError(errors)

    level = payload["level"]
    if level == "CAMPAIGN":
        target = CampaignTarget(
            campaign_id=_clean(payload.get("campaignId")),
            campaign_name=_clean(payload.get("campaignName")),
        )
    elif level == "AD_GROUP":
        target = AdGroupTarget(
            campaign_id=_clean(payload.get("campaignId")),
            ad_group_id=_clean(payload.get("adGroupId")),
            campaign_name=_clean(payload.get("campaignName")),
            ad_group_name=_clean(payload.get("adGroupName")),
        )
    else:
        target = SharedListTarget(
            shared_list_id=_clean(payload.get("sharedListId")),
            shared_list_name=_clean(payload.get("sharedListName")),
        )

    return KeywordSubmission(
        keyword_text=str(payload["text"]).strip(),
        match_type=payload["matchType"],
        target=target,
    )


def validate_batch(payloads: Sequence[Dict[str, Any]]) -> List[ItemValidation]:
    """Validate every payload independently (a batch may be partially admitted)."""
    results = []
    for index, payload in enumerate(payloads):
        item = ItemValidation(index=index, payload=payload)
        item.errors = validate_keyword(payload)
        if not item.errors:
            item.submission = build_submission(payload)
        results.append(item)
    return results
