"""
Google Ads API integration for negative keyword provisioning.

Handles:
- Client authentication (google-ads.yaml)
- Entity lookups (campaign, ad group, shared negative keyword list)
- Negative keyword mutations at all three levels
- Reference catalog listing (enabled campaigns / ad groups, shared lists)
- Search term performance collection (last 30 days)
- Error classification (transient vs. rejection)
"""

from datetime import date
from typing import Dict, List, Optional

from google.ads.googleads.client import GoogleAdsClient
from google.ads.googleads.errors import GoogleAdsException
from google.api_core import exceptions as api_exceptions

from nk_core.errors import ExternalRejection, TransientAccountError
from nk_core.logging_config import setup_logging
from nk_core.models import CampaignCatalogEntry, PerformanceRow, SharedListEntry
from nk_worker.account import AccountEntity, AdsAccount, MutationOutcome

logger = setup_logging(__name__)

# GoogleAdsError.error_code oneof names that mean "try again later"
TRANSIENT_ERROR_CODES = {
    "authentication_error",
    "authorization_error",
    "quota_error",
    "internal_error",
}

TRANSIENT_API_ERRORS = (
    api_exceptions.ServiceUnavailable,
    api_exceptions.DeadlineExceeded,
    api_exceptions.RetryError,
    ConnectionError,
)


def load_google_ads_client(config_path: str) -> GoogleAdsClient:
    """
    Load Google Ads API client from YAML configuration.

    Args:
        config_path: Path to google-ads.yaml file

    Returns:
        GoogleAdsClient instance

    Raises:
        FileNotFoundError: If config file doesn't exist
    """
    logger.info(f"Loading Google Ads client from {config_path}")

    try:
        client = GoogleAdsClient.load_from_storage(config_path)
        logger.info("Google Ads client loaded successfully")
        return client
    except FileNotFoundError:
        logger.error(f"Config file not found: {config_path}")
        raise


def _error_code_name(error) -> Optional[str]:
    try:
        return error.error_code._pb.WhichOneof("error_code")
    except AttributeError:
        return None


def is_transient(ex: GoogleAdsException) -> bool:
    """True if any error in the failure is an auth / quota / internal error."""
    errors = getattr(getattr(ex, "failure", None), "errors", None) or []
    return any(_error_code_name(e) in TRANSIENT_ERROR_CODES for e in errors)


def format_google_ads_error(ex: GoogleAdsException) -> str:
    """Join the error messages of a GoogleAdsException into one line."""
    errors = getattr(getattr(ex, "failure", None), "errors", None) or []
    messages = [e.message for e in errors if getattr(e, "message", None)]
    if messages:
        return "; ".join(messages)
    return f"Google Ads request {getattr(ex, 'request_id', '')} failed".strip()


class GoogleAdsAccount(AdsAccount):
    """
    AdsAccount backed by the Google Ads API.

    All GAQL queries interpolate numeric ids only; a non-numeric id is
    treated as "not found" without a request.
    """

    def __init__(self, client: GoogleAdsClient, customer_id: str):
        """
        Args:
            client: GoogleAdsClient instance
            customer_id: Customer ID (digits only, no dashes)
        """
        self.client = client
        self.customer_id = customer_id.replace("-", "")
        logger.info(f"GoogleAdsAccount initialized: customer_id={self.customer_id}")

    @classmethod
    def from_config(cls, config_path: str, customer_id: str) -> "GoogleAdsAccount":
        return cls(load_google_ads_client(config_path), customer_id)

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _search(self, query: str) -> list:
        ga_service = self.client.get_service("GoogleAdsService")
        try:
            return list(ga_service.search(customer_id=self.customer_id, query=query))
        except GoogleAdsException as ex:
            raise self._translate(ex) from ex
        except TRANSIENT_API_ERRORS as e:
            logger.error(f"Google Ads API unavailable: {e}")
            raise TransientAccountError(str(e)) from e

    def _translate(self, ex: GoogleAdsException) -> Exception:
        message = format_google_ads_error(ex)
        if is_transient(ex):
            logger.error(f"Transient Google Ads error (request {ex.request_id}): {message}")
            return TransientAccountError(message, request_id=ex.request_id)
        logger.warning(f"Google Ads rejected request {ex.request_id}: {message}")
        return ExternalRejection(message)

    def _match_type(self, match_type: str):
        match_type_enum = self.client.enums.KeywordMatchTypeEnum
        match_type_map = {
            "EXACT": match_type_enum.EXACT,
            "PHRASE": match_type_enum.PHRASE,
            "BROAD": match_type_enum.BROAD,
        }
        if match_type not in match_type_map:
            raise ValueError(f"Invalid match_type: {match_type}")
        return match_type_map[match_type]

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_campaign(self, campaign_id: str) -> Optional[AccountEntity]:
        if not str(campaign_id).isdigit():
            return None
        rows = self._search(f"""
            SELECT campaign.id, campaign.name, campaign.resource_name
            FROM campaign
            WHERE campaign.id = {campaign_id}
        """)
        for row in rows:
            return AccountEntity("CAMPAIGN", str(row.campaign.id), row.campaign.name,
                                 row.campaign.resource_name)
        logger.warning(f"Campaign not found: {campaign_id}")
        return None

    def find_ad_group(self, ad_group_id: str) -> Optional[AccountEntity]:
        if not str(ad_group_id).isdigit():
            return None
        rows = self._search(f"""
            SELECT ad_group.id, ad_group.name, ad_group.resource_name
            FROM ad_group
            WHERE ad_group.id = {ad_group_id}
        """)
        for row in rows:
            return AccountEntity("AD_GROUP", str(row.ad_group.id), row.ad_group.name,
                                 row.ad_group.resource_name)
        logger.warning(f"Ad group not found: {ad_group_id}")
        return None

    def find_shared_list(self, shared_list_id: str) -> Optional[AccountEntity]:
        if not str(shared_list_id).isdigit():
            return None
        rows = self._search(f"""
            SELECT shared_set.id, shared_set.name, shared_set.resource_name
            FROM shared_set
            WHERE shared_set.id = {shared_list_id}
              AND shared_set.type = 'NEGATIVE_KEYWORDS'
        """)
        for row in rows:
            return AccountEntity("SHARED_LIST", str(row.shared_set.id), row.shared_set.name,
                                 row.shared_set.resource_name)
        logger.warning(f"Shared list not found: {shared_list_id}")
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_negative_keyword(
        self, entity: AccountEntity, keyword_text: str, match_type: str
    ) -> MutationOutcome:
        """
        Add a negative keyword to a campaign, ad group or shared list.

        Returns:
            MutationOutcome(success=True, resource_name=...) or
            MutationOutcome(success=False, error=<joined API messages>)

        Raises:
            TransientAccountError: auth / quota / internal / connectivity failure
            ValueError: unknown entity kind or match type
        """
        match_type_value = self._match_type(match_type)

        if entity.kind == "CAMPAIGN":
            service = self.client.get_service("CampaignCriterionService")
            operation = self.client.get_type("CampaignCriterionOperation")
            criterion = operation.create
            criterion.campaign = entity.resource_name or service.campaign_path(
                self.customer_id, entity.id
            )
            criterion.negative = True
            mutate = service.mutate_campaign_criteria
        elif entity.kind == "AD_GROUP":
            service = self.client.get_service("AdGroupCriterionService")
            operation = self.client.get_type("AdGroupCriterionOperation")
            criterion = operation.create
            criterion.ad_group = entity.resource_name or service.ad_group_path(
                self.customer_id, entity.id
            )
            criterion.negative = True
            mutate = service.mutate_ad_group_criteria
        elif entity.kind == "SHARED_LIST":
            service = self.client.get_service("SharedCriterionService")
            operation = self.client.get_type("SharedCriterionOperation")
            criterion = operation.create
            criterion.shared_set = entity.resource_name or self.client.get_service(
                "SharedSetService"
            ).shared_set_path(self.customer_id, entity.id)
            mutate = service.mutate_shared_criteria
        else:
            raise ValueError(f"Unsupported entity kind: {entity.kind}")

        criterion.keyword.text = keyword_text
        criterion.keyword.match_type = match_type_value

        try:
            response = mutate(customer_id=self.customer_id, operations=[operation])
        except GoogleAdsException as ex:
            translated = self._translate(ex)
            if isinstance(translated, TransientAccountError):
                raise translated from ex
            return MutationOutcome(success=False, error=str(translated))
        except TRANSIENT_API_ERRORS as e:
            logger.error(f"Google Ads API unavailable: {e}")
            raise TransientAccountError(str(e)) from e

        resource_name = response.results[0].resource_name
        logger.info(
            f"Added negative keyword '{keyword_text}' ({match_type}) "
            f"to {entity.kind} {entity.id}: {resource_name}"
        )
        return MutationOutcome(success=True, resource_name=resource_name)

    # ------------------------------------------------------------------
    # Reference catalogs
    # ------------------------------------------------------------------

    def list_campaigns(self) -> List[CampaignCatalogEntry]:
        campaigns = self._search("""
            SELECT campaign.id, campaign.name
            FROM campaign
            WHERE campaign.status = 'ENABLED'
            ORDER BY campaign.name
        """)
        ad_groups = self._search("""
            SELECT campaign.id, ad_group.id, ad_group.name
            FROM ad_group
            WHERE campaign.status = 'ENABLED'
              AND ad_group.status = 'ENABLED'
            ORDER BY ad_group.name
        """)

        by_campaign: Dict[str, list] = {}
        for row in ad_groups:
            by_campaign.setdefault(str(row.campaign.id), []).append(
                (str(row.ad_group.id), row.ad_group.name)
            )

        entries = []
        for row in campaigns:
            campaign_id = str(row.campaign.id)
            groups = by_campaign.get(campaign_id)
            if not groups:
                entries.append(CampaignCatalogEntry(campaign_id, row.campaign.name))
                continue
            for ad_group_id, ad_group_name in groups:
                entries.append(
                    CampaignCatalogEntry(campaign_id, row.campaign.name, ad_group_id, ad_group_name)
                )

        logger.info(f"Listed {len(campaigns)} enabled campaigns ({len(entries)} catalog rows)")
        return entries

    def list_shared_lists(self) -> List[SharedListEntry]:
        rows = self._search("""
            SELECT shared_set.id, shared_set.name
            FROM shared_set
            WHERE shared_set.type = 'NEGATIVE_KEYWORDS'
              AND shared_set.status = 'ENABLED'
            ORDER BY shared_set.name
        """)
        return [SharedListEntry(str(r.shared_set.id), r.shared_set.name) for r in rows]

    # ------------------------------------------------------------------
    # Performance collection
    # ------------------------------------------------------------------

    def collect_search_terms(self, snapshot_date: Optional[date] = None) -> List[PerformanceRow]:
        """
        Search term performance for the last 30 days, search campaigns only,
        highest cost first. Cost is converted from micros to currency units.
        """
        snapshot = (snapshot_date or date.today()).isoformat()
        rows = self._search("""
            SELECT
                search_term_view.search_term,
                campaign.name,
                ad_group.name,
                segments.keyword.info.text,
                metrics.cost_micros,
                metrics.clicks,
                metrics.impressions,
                metrics.conversions
            FROM search_term_view
            WHERE segments.date DURING LAST_30_DAYS
              AND campaign.advertising_channel_type = 'SEARCH'
            ORDER BY metrics.cost_micros DESC
        """)

        out = []
        for i, row in enumerate(rows):
            out.append(
                PerformanceRow(
                    id=f"st_{i + 1}",
                    search_term=row.search_term_view.search_term,
                    campaign_name=row.campaign.name,
                    ad_group_name=row.ad_group.name,
                    keyword_text=row.segments.keyword.info.text or "",
                    cost=round(row.metrics.cost_micros / 1_000_000, 2),
                    clicks=int(row.metrics.clicks),
                    impressions=int(row.metrics.impressions),
                    conversions=float(row.metrics.conversions),
                    date=snapshot,
                )
            )
        logger.info(f"Collected {len(out)} search terms")
        return out
