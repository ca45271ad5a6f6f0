"""
Provisioning Service - the submission path and the read views.

Everything the API (and CLI) needs goes through here:
- submit()                  validate + append, write a processing trigger
- remove()                  delete a request regardless of status
- get_provisioning_state()  ledger grouped by level
- get_processing_status()   trigger summary
- request_processing()      manual "process now" trigger
- get_campaigns() / get_shared_lists() / get_dashboard() / get_opportunities()

Ledger state is never cached; catalogs and performance views are.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from nk_core.cache import TTLCache
from nk_core.constants import (
    DEFAULT_WORKER_INTERVAL_MINUTES,
    MAX_KEYWORDS_PER_REQUEST,
    TRIGGER_ACTION_PROCESS,
)
from nk_core.errors import StorageUnavailableError, ValidationError
from nk_core.logging_config import setup_logging
from nk_core.models import NegativeKeywordRequest
from nk_ledger.catalog import ReferenceCatalog
from nk_ledger.ledger import ProvisioningLedger
from nk_ledger.triggers import ProcessingTriggers
from nk_ledger.validator import validate_batch
from nk_scorer.dashboard import generate_dashboard_metrics
from nk_scorer.performance_store import PerformanceStore
from nk_scorer.scorer import calculate_impact, identify_opportunities

logger = setup_logging(__name__)

CACHE_CAMPAIGNS = "catalog:campaigns"
CACHE_SHARED_LISTS = "catalog:shared_lists"
CACHE_DASHBOARD = "performance:dashboard"
CACHE_OPPORTUNITIES = "performance:opportunities"


@dataclass
class SubmissionResult:
    added: int = 0
    failed: int = 0
    admission_failed: int = 0
    errors: List[str] = field(default_factory=list)
    requests: List[NegativeKeywordRequest] = field(default_factory=list)
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": self.added,
            "failed": self.failed,
            "errors": list(self.errors),
            "ids": [r.id for r in self.requests],
        }


def submission_message(added: int, interval_minutes: int) -> str:
    return (
        f"{added} negative keywords queued for addition to Google Ads. "
        f"Processing will occur automatically within {interval_minutes} minutes, "
        "or you can trigger it manually."
    )


class ProvisioningService:
    """Producer side of the pipeline plus read-only views."""

    def __init__(
        self,
        ledger: ProvisioningLedger,
        triggers: ProcessingTriggers,
        catalog: ReferenceCatalog,
        performance_store: PerformanceStore,
        cache: Optional[TTLCache] = None,
        max_keywords_per_request: int = MAX_KEYWORDS_PER_REQUEST,
        worker_interval_minutes: int = DEFAULT_WORKER_INTERVAL_MINUTES,
    ):
        self.ledger = ledger
        self.triggers = triggers
        self.catalog = catalog
        self.performance_store = performance_store
        self.cache = cache if cache is not None else TTLCache()
        self.max_keywords_per_request = max_keywords_per_request
        self.worker_interval_minutes = worker_interval_minutes

    @classmethod
    def from_db_path(cls, db_path: str, **kwargs) -> "ProvisioningService":
        """All stores on one DuckDB file."""
        return cls(
            ledger=ProvisioningLedger(db_path),
            triggers=ProcessingTriggers(db_path),
            catalog=ReferenceCatalog(db_path),
            performance_store=PerformanceStore(db_path),
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Submission path
    # ------------------------------------------------------------------

    def submit(self, keywords: Sequence[Dict[str, Any]]) -> SubmissionResult:
        """
        Validate and append a batch of keyword payloads.

        Invalid items are reported as "Keyword <n>: <errors>" (1-based batch
        position) and skipped; valid items are appended. Storage failures
        (including a ledger file locked by another process) come back the same
        way and are counted in admission_failed. A PENDING processing
        trigger is written when at least one item was added.

        Raises:
            ValidationError: batch is not a list, is empty, or is larger than
                max_keywords_per_request
        """
        if not isinstance(keywords, (list, tuple)) or len(keywords) == 0:
            raise ValidationError(["Keywords array is required and must not be empty"])
        if len(keywords) > self.max_keywords_per_request:
            raise ValidationError(
                [f"Maximum {self.max_keywords_per_request} keywords allowed per request"]
            )

        result = SubmissionResult()
        admissible = []
        errors_by_index: Dict[int, str] = {}
        lookup_names = True

        for item in validate_batch(keywords):
            if not item.valid:
                errors_by_index[item.index] = f"Keyword {item.index + 1}: {', '.join(item.errors)}"
                continue
            submission = item.submission
            if lookup_names:
                try:
                    submission = self.catalog.lookup_names(submission)
                except StorageUnavailableError as e:
                    # Names are display-only; admit without them
                    logger.warning(f"Catalog name lookup skipped: {e}")
                    lookup_names = False
            admissible.append((item.index, submission))

        appended = self.ledger.append([sub for _, sub in admissible])
        for position, error in appended.failures:
            batch_index = admissible[position][0]
            errors_by_index[batch_index] = f"Keyword {batch_index + 1}: {error}"

        result.added = appended.added
        result.admission_failed = appended.failed
        result.requests = appended.requests
        result.errors = [errors_by_index[i] for i in sorted(errors_by_index)]
        result.failed = len(result.errors)

        if result.added > 0:
            try:
                self.triggers.add(TRIGGER_ACTION_PROCESS)
            except StorageUnavailableError as e:
                # The scheduled run scans the ledger regardless of triggers
                logger.warning(f"Processing trigger not written: {e}")

        result.message = submission_message(result.added, self.worker_interval_minutes)
        logger.info(f"Submission: added={result.added}, failed={result.failed}")
        return result

    def remove(self, request_id: str) -> bool:
        return self.ledger.remove(request_id)

    def request_processing(self) -> Dict[str, Any]:
        """Ask for a worker run; the scheduled run picks it up either way."""
        trigger = self.triggers.add(TRIGGER_ACTION_PROCESS)
        logger.info("Manual processing requested")
        return {
            "action": trigger.action,
            "timestamp": trigger.timestamp.isoformat(),
            "status": trigger.status,
        }

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_provisioning_state(self) -> Dict[str, List[Dict[str, Any]]]:
        """{campaign, adGroup, shared, all} - every ledger row, in append order."""
        rows = self.ledger.list_all()
        return {
            "campaign": [r.to_dict() for r in rows if r.level == "CAMPAIGN"],
            "adGroup": [r.to_dict() for r in rows if r.level == "AD_GROUP"],
            "shared": [r.to_dict() for r in rows if r.level == "SHARED_LIST"],
            "all": [r.to_dict() for r in rows],
        }

    def get_processing_status(self) -> Dict[str, Any]:
        return self.triggers.status_summary()

    def get_campaigns(self) -> List[Dict[str, Any]]:
        return self.cache.get_or_load(CACHE_CAMPAIGNS, self.catalog.get_campaigns)

    def get_shared_lists(self) -> List[Dict[str, Any]]:
        return self.cache.get_or_load(CACHE_SHARED_LISTS, self.catalog.get_shared_lists)

    def get_dashboard(self) -> Dict[str, Any]:
        return self.cache.get_or_load(
            CACHE_DASHBOARD,
            lambda: generate_dashboard_metrics(self.performance_store.load_rows()).to_dict(),
        )

    def get_opportunities(self, limit: Optional[int] = None) -> Dict[str, Any]:
        """Scored candidates plus their combined impact."""
        def load():
            candidates = identify_opportunities(self.performance_store.load_rows())
            return {
                "opportunities": [c.to_dict() for c in candidates],
                "impact": calculate_impact(candidates),
            }

        data = self.cache.get_or_load(CACHE_OPPORTUNITIES, load)
        if limit is not None:
            return {"opportunities": data["opportunities"][:limit], "impact": data["impact"]}
        return data
