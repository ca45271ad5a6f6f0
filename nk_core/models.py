"""
Negative keyword data models: PerformanceRow, candidates, submission targets, ledger rows.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from nk_core.constants import STATUS_PENDING
from nk_core.errors import AdmissionError


def _round(value: float, places: int = 2) -> float:
    return round(value, places)


@dataclass(frozen=True)
class PerformanceRow:
    """One search term's metrics for the current reporting window."""
    id: str
    search_term: str
    campaign_name: str = ""
    ad_group_name: str = ""
    cost: float = 0.0                   # currency units (not micros)
    clicks: int = 0
    impressions: int = 0
    conversions: float = 0.0
    keyword_text: str = ""
    date: Optional[str] = None          # YYYY-MM-DD

    @property
    def cost_per_conversion(self) -> float:
        if self.conversions == 0:
            return 0.0
        return _round(self.cost / self.conversions)

    @property
    def ctr(self) -> float:
        """Click-through rate in percent (4 dp)."""
        if self.impressions == 0:
            return 0.0
        return _round(self.clicks / self.impressions * 100, 4)

    @property
    def cpc(self) -> float:
        if self.clicks == 0:
            return 0.0
        return _round(self.cost / self.clicks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "searchTerm": self.search_term,
            "campaignName": self.campaign_name,
            "adGroupName": self.ad_group_name,
            "keywordText": self.keyword_text,
            "cost": self.cost,
            "clicks": self.clicks,
            "impressions": self.impressions,
            "conversions": self.conversions,
            "costPerConversion": self.cost_per_conversion,
            "ctr": self.ctr,
            "cpc": self.cpc,
            "date": self.date,
        }


@dataclass(frozen=True)
class NegativeKeywordCandidate:
    """Scorer output (not persisted)."""
    search_term: str
    cost: float
    clicks: int
    conversions: float
    potential_savings: float
    recommended_match_type: str         # EXACT | PHRASE | BROAD
    recommended_level: str              # CAMPAIGN | AD_GROUP | SHARED_LIST
    campaign_name: str
    ad_group_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "searchTerm": self.search_term,
            "cost": self.cost,
            "clicks": self.clicks,
            "conversions": self.conversions,
            "potentialSavings": self.potential_savings,
            "recommendedMatchType": self.recommended_match_type,
            "recommendedLevel": self.recommended_level,
            "campaignName": self.campaign_name,
            "adGroupName": self.ad_group_name,
        }


# ---------------------------------------------------------------------------
# Submission targets (one variant per level)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CampaignTarget:
    campaign_id: str
    campaign_name: Optional[str] = None

    level = "CAMPAIGN"


@dataclass(frozen=True)
class AdGroupTarget:
    campaign_id: str
    ad_group_id: str
    campaign_name: Optional[str] = None
    ad_group_name: Optional[str] = None

    level = "AD_GROUP"


@dataclass(frozen=True)
class SharedListTarget:
    shared_list_id: str
    shared_list_name: Optional[str] = None

    level = "SHARED_LIST"


Target = Union[CampaignTarget, AdGroupTarget, SharedListTarget]


@dataclass(frozen=True)
class KeywordSubmission:
    """A validated request, ready to be appended to the ledger."""
    keyword_text: str
    match_type: str
    target: Target

    @property
    def level(self) -> str:
        return self.target.level


@dataclass(frozen=True)
class NegativeKeywordRequest:
    """A ledger row. Only status, message and processed_date ever change."""
    id: str
    keyword_text: str
    match_type: str
    level: str
    added_date: datetime
    status: str = STATUS_PENDING
    message: str = ""
    campaign_id: Optional[str] = None
    campaign_name: Optional[str] = None
    ad_group_id: Optional[str] = None
    ad_group_name: Optional[str] = None
    shared_list_id: Optional[str] = None
    shared_list_name: Optional[str] = None
    processed_date: Optional[datetime] = None

    @property
    def target(self) -> Optional[Target]:
        """Rebuild the level variant; None if the stored level is unknown."""
        if self.level == "CAMPAIGN" and self.campaign_id:
            return CampaignTarget(self.campaign_id, self.campaign_name)
        if self.level == "AD_GROUP" and self.campaign_id and self.ad_group_id:
            return AdGroupTarget(
                self.campaign_id, self.ad_group_id, self.campaign_name, self.ad_group_name
            )
        if self.level == "SHARED_LIST" and self.shared_list_id:
            return SharedListTarget(self.shared_list_id, self.shared_list_name)
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "keywordText": self.keyword_text,
            "matchType": self.match_type,
            "level": self.level,
            "campaignId": self.campaign_id or "",
            "campaignName": self.campaign_name or "",
            "adGroupId": self.ad_group_id or "",
            "adGroupName": self.ad_group_name or "",
            "sharedListId": self.shared_list_id or "",
            "sharedListName": self.shared_list_name or "",
            "addedDate": self.added_date.isoformat() if self.added_date else "",
            "status": self.status,
            "message": self.message,
            "processedDate": self.processed_date.isoformat() if self.processed_date else "",
        }


@dataclass(frozen=True)
class ProcessingTrigger:
    """Advisory 'work is available' marker."""
    action: str
    timestamp: datetime
    status: str                         # PENDING | COMPLETED
    message: Optional[str] = None
    processed_date: Optional[datetime] = None


@dataclass(frozen=True)
class CampaignCatalogEntry:
    """One enabled ad group (or a campaign with none) for submission dropdowns."""
    campaign_id: str
    campaign_name: str
    ad_group_id: Optional[str] = None
    ad_group_name: Optional[str] = None


@dataclass(frozen=True)
class SharedListEntry:
    shared_list_id: str
    shared_list_name: str


@dataclass
class AppendResult:
    """Outcome of one ledger append; failures are (position in input, AdmissionError)."""
    requests: List[NegativeKeywordRequest] = field(default_factory=list)
    failures: List[Tuple[int, AdmissionError]] = field(default_factory=list)

    @property
    def added(self) -> int:
        return len(self.requests)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def errors(self) -> List[str]:
        return [f"Keyword {pos + 1}: {msg}" for pos, msg in self.failures]
