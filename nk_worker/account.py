"""
External account contract used by the Provisioning Worker.

Implementations:
- GoogleAdsAccount (nk_worker.google_ads_account) - live account via google-ads
- MockAdsAccount (nk_worker.mock_account) - in-memory, mock mode and tests

Lookups return None when the entity does not exist. Mutations return a
MutationOutcome; a refusal is success=False with the account's error text.
Anything that means "try again later" (auth, quota, connectivity) is raised
as TransientAccountError instead.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from nk_core.models import CampaignCatalogEntry, SharedListEntry


@dataclass(frozen=True)
class AccountEntity:
    """A campaign, ad group or shared set as the account knows it."""
    kind: str                   # CAMPAIGN | AD_GROUP | SHARED_LIST
    id: str
    name: str
    resource_name: Optional[str] = None


@dataclass(frozen=True)
class MutationOutcome:
    success: bool
    error: Optional[str] = None
    resource_name: Optional[str] = None


class AdsAccount(ABC):

    @abstractmethod
    def find_campaign(self, campaign_id: str) -> Optional[AccountEntity]:
        ...

    @abstractmethod
    def find_ad_group(self, ad_group_id: str) -> Optional[AccountEntity]:
        ...

    @abstractmethod
    def find_shared_list(self, shared_list_id: str) -> Optional[AccountEntity]:
        ...

    @abstractmethod
    def add_negative_keyword(
        self, entity: AccountEntity, keyword_text: str, match_type: str
    ) -> MutationOutcome:
        """Attach a negative keyword to the campaign / ad group / shared list."""

    @abstractmethod
    def list_campaigns(self) -> List[CampaignCatalogEntry]:
        """Enabled campaigns with their enabled ad groups."""

    @abstractmethod
    def list_shared_lists(self) -> List[SharedListEntry]:
        """Shared negative keyword lists."""
