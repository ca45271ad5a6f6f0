"""
In-memory AdsAccount for mock mode and tests.

The default structure mirrors the mock performance extract, so scored
opportunities can be submitted and provisioned end to end without an
account.
"""

from typing import Dict, List, Optional, Set, Tuple

from nk_core.errors import TransientAccountError
from nk_core.models import CampaignCatalogEntry, SharedListEntry
from nk_scorer.mock_extract import MOCK_STRUCTURE
from nk_worker.account import AccountEntity, AdsAccount, MutationOutcome


class MockAdsAccount(AdsAccount):
    """
    Campaigns, ad groups and shared lists held in dicts.

    Test hooks:
        reject[(kind, entity_id, keyword_text)] = "error"  -> refuse that mutation
        transient_after = n  -> raise TransientAccountError on mutation n+1
    """

    def __init__(
        self,
        campaigns: Optional[Dict[str, str]] = None,
        ad_groups: Optional[Dict[str, Tuple[str, str]]] = None,
        shared_lists: Optional[Dict[str, str]] = None,
    ):
        self.campaigns: Dict[str, str] = dict(campaigns or {})
        self.ad_groups: Dict[str, Tuple[str, str]] = dict(ad_groups or {})   # id -> (campaign_id, name)
        self.shared_lists: Dict[str, str] = dict(shared_lists or {})
        self.negatives: Dict[Tuple[str, str], Set[Tuple[str, str]]] = {}
        self.reject: Dict[Tuple[str, str, str], str] = {}
        self.transient_after: Optional[int] = None
        self.mutation_calls = 0

    @classmethod
    def from_mock_structure(cls) -> "MockAdsAccount":
        """Ids 1001.. for campaigns, 2001.. for ad groups, one shared list 3001."""
        campaigns: Dict[str, str] = {}
        ad_groups: Dict[str, Tuple[str, str]] = {}
        by_name: Dict[str, str] = {}

        for campaign_name, ad_group_name, _ in MOCK_STRUCTURE:
            if campaign_name not in by_name:
                by_name[campaign_name] = str(1001 + len(by_name))
                campaigns[by_name[campaign_name]] = campaign_name
            ad_groups[str(2001 + len(ad_groups))] = (by_name[campaign_name], ad_group_name)

        return cls(campaigns, ad_groups, {"3001": "Account Negatives"})

    def find_campaign(self, campaign_id: str) -> Optional[AccountEntity]:
        name = self.campaigns.get(campaign_id)
        return AccountEntity("CAMPAIGN", campaign_id, name) if name is not None else None

    def find_ad_group(self, ad_group_id: str) -> Optional[AccountEntity]:
        if ad_group_id not in self.ad_groups:
            return None
        return AccountEntity("AD_GROUP", ad_group_id, self.ad_groups[ad_group_id][1])

    def find_shared_list(self, shared_list_id: str) -> Optional[AccountEntity]:
        name = self.shared_lists.get(shared_list_id)
        return AccountEntity("SHARED_LIST", shared_list_id, name) if name is not None else None

    def add_negative_keyword(
        self, entity: AccountEntity, keyword_text: str, match_type: str
    ) -> MutationOutcome:
        if self.transient_after is not None and self.mutation_calls >= self.transient_after:
            raise TransientAccountError("Mock account unavailable")
        self.mutation_calls += 1

        error = self.reject.get((entity.kind, entity.id, keyword_text))
        if error:
            return MutationOutcome(success=False, error=error)

        self.negatives.setdefault((entity.kind, entity.id), set()).add((keyword_text, match_type))
        return MutationOutcome(success=True, resource_name=f"mock/{entity.kind}/{entity.id}/{keyword_text}")

    def list_campaigns(self) -> List[CampaignCatalogEntry]:
        entries = []
        for campaign_id, campaign_name in self.campaigns.items():
            groups = [(gid, name) for gid, (cid, name) in self.ad_groups.items() if cid == campaign_id]
            if not groups:
                entries.append(CampaignCatalogEntry(campaign_id, campaign_name))
            for ad_group_id, ad_group_name in groups:
                entries.append(CampaignCatalogEntry(campaign_id, campaign_name, ad_group_id, ad_group_name))
        return entries

    def list_shared_lists(self) -> List[SharedListEntry]:
        return [SharedListEntry(sid, name) for sid, name in self.shared_lists.items()]
