"""
Provisioning Worker - drains PENDING ledger requests against the account.

One run:
    1. Refresh reference catalogs (campaigns/ad groups, shared lists)
    2. Read PENDING requests in ledger order
    3. For each: look up the target entity, add the negative keyword
    4. Record ACTIVE / FAILED once per request
    5. Complete PENDING processing triggers, log the run summary

Error handling:
- Entity not found / mutation refused / unexpected exception -> that request FAILED
- TransientAccountError -> run stops, current and remaining requests stay PENDING
- Ledger write still failing after retries -> run stops the same way
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import duckdb

from nk_core.constants import LEVELS, STATUS_ACTIVE, STATUS_FAILED
from nk_core.errors import (
    InvalidTransitionError,
    InvariantViolation,
    RequestNotFoundError,
    StorageUnavailableError,
    TransientAccountError,
)
from nk_core.logging_config import setup_logging
from nk_core.models import AdGroupTarget, CampaignTarget, NegativeKeywordRequest, SharedListTarget
from nk_ledger.catalog import ReferenceCatalog
from nk_ledger.ledger import ProvisioningLedger, utcnow
from nk_ledger.triggers import ProcessingTriggers
from nk_worker.account import AdsAccount

logger = setup_logging(__name__)

STORAGE_ERRORS = (StorageUnavailableError, duckdb.Error)


@dataclass
class RunSummary:
    """Audit record of one worker run."""
    processed: int = 0
    active: int = 0
    failed: int = 0
    left_pending: int = 0
    aborted: bool = False
    abort_reason: Optional[str] = None
    results: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processed": self.processed,
            "active": self.active,
            "failed": self.failed,
            "left_pending": self.left_pending,
            "aborted": self.aborted,
            "abort_reason": self.abort_reason,
            "results": list(self.results),
        }


class ProvisioningWorker:
    """
    Consumer side of the pipeline.

    The worker is the only writer of request status. It never retries
    FAILED rows; PENDING rows left behind by an aborted run are picked up
    by the next scheduled run.
    """

    def __init__(
        self,
        ledger: ProvisioningLedger,
        account: AdsAccount,
        catalog: Optional[ReferenceCatalog] = None,
        triggers: Optional[ProcessingTriggers] = None,
    ):
        self.ledger = ledger
        self.account = account
        self.catalog = catalog
        self.triggers = triggers
        self.outcome_retries = 3
        self.outcome_retry_delay = 0.5

    def run(self) -> RunSummary:
        started_at = utcnow()
        summary = RunSummary()
        logger.info("Worker run started")

        try:
            self.refresh_catalogs()
        except TransientAccountError as e:
            return self._abort(summary, self._pending_count(), f"Catalog refresh: {e}")

        try:
            pending = self.ledger.list_pending()
        except STORAGE_ERRORS as e:
            return self._abort(summary, 0, f"Ledger unavailable: {e}")
        logger.info(f"Pending requests: {len(pending)}")

        for position, request in enumerate(pending):
            try:
                status, message = self._process_one(request)
            except TransientAccountError as e:
                return self._abort(summary, len(pending) - position, str(e))
            except Exception as e:
                logger.error(f"Unexpected error processing {request.id}: {e}")
                status, message = STATUS_FAILED, str(e) or type(e).__name__

            try:
                self._record(request, status, message, summary)
            except STORAGE_ERRORS as e:
                # The account already has this outcome; the row stays PENDING
                return self._abort(
                    summary,
                    len(pending) - position,
                    f"Outcome not recorded for {request.id} ({status}): {e}",
                )

        if self.triggers is not None:
            try:
                self.triggers.complete_pending(
                    f"Processed: {summary.active} successful, {summary.failed} failed",
                    before=started_at,
                )
            except STORAGE_ERRORS as e:
                logger.warning(f"Processing triggers not completed: {e}")

        logger.info(
            f"Worker run complete: processed={summary.processed}, "
            f"active={summary.active}, failed={summary.failed}"
        )
        return summary

    def refresh_catalogs(self) -> None:
        """
        Replace the reference catalogs from the account.

        TransientAccountError propagates; any other failure is logged and
        the previous catalog stays in place.
        """
        if self.catalog is None:
            return

        try:
            campaigns = self.account.list_campaigns()
            self.catalog.replace_campaigns(campaigns)
            shared_lists = self.account.list_shared_lists()
            self.catalog.replace_shared_lists(shared_lists)
        except TransientAccountError:
            raise
        except Exception as e:
            logger.error(f"Catalog refresh failed: {e}")
            return

        logger.info(f"Catalog refreshed: {len(campaigns)} campaign rows, {len(shared_lists)} shared lists")

    def _process_one(self, request: NegativeKeywordRequest) -> Tuple[str, str]:
        """Returns (status, message) for one request."""
        target = request.target

        if request.level not in LEVELS:
            return STATUS_FAILED, f"Invalid keyword level: {request.level}"
        if target is None:
            raise InvariantViolation(f"Missing target ids for {request.level} request")

        if isinstance(target, CampaignTarget):
            entity = self.account.find_campaign(target.campaign_id)
            if entity is None:
                return STATUS_FAILED, f"Campaign not found: {target.campaign_id}"
            label = "campaign"
        elif isinstance(target, AdGroupTarget):
            entity = self.account.find_ad_group(target.ad_group_id)
            if entity is None:
                return STATUS_FAILED, f"Ad group not found: {target.ad_group_id}"
            label = "ad group"
        elif isinstance(target, SharedListTarget):
            entity = self.account.find_shared_list(target.shared_list_id)
            if entity is None:
                return STATUS_FAILED, f"Shared list not found: {target.shared_list_id}"
            label = "shared list"
        else:
            return STATUS_FAILED, f"Invalid keyword level: {request.level}"

        outcome = self.account.add_negative_keyword(entity, request.keyword_text, request.match_type)
        if not outcome.success:
            logger.warning(f"Rejected '{request.keyword_text}' ({request.id}): {outcome.error}")
            return STATUS_FAILED, outcome.error or "Rejected by Google Ads"

        return STATUS_ACTIVE, f'Added to {label} "{entity.name}"'

    def _record(self, request: NegativeKeywordRequest, status: str, message: str, summary: RunSummary) -> bool:
        """
        Write the outcome, retrying storage errors.

        Raises:
            StorageUnavailableError / duckdb.Error: still failing after outcome_retries attempts
        """
        for attempt in range(self.outcome_retries):
            try:
                self.ledger.mark_outcome(request.id, status, message)
                break
            except (RequestNotFoundError, InvalidTransitionError) as e:
                # Removed or already processed while this run was in flight
                logger.warning(f"Outcome not recorded for {request.id}: {e}")
                return False
            except STORAGE_ERRORS as e:
                if attempt == self.outcome_retries - 1:
                    raise
                logger.warning(
                    f"Outcome write failed for {request.id} "
                    f"(attempt {attempt + 1}/{self.outcome_retries}): {e}"
                )
                time.sleep(self.outcome_retry_delay)

        summary.processed += 1
        if status == STATUS_ACTIVE:
            summary.active += 1
        else:
            summary.failed += 1
        summary.results.append({
            "id": request.id,
            "keyword_text": request.keyword_text,
            "level": request.level,
            "status": status,
            "message": message,
        })
        logger.info(f"{request.id} '{request.keyword_text}' -> {status}: {message}")
        return True

    def _pending_count(self) -> int:
        try:
            return len(self.ledger.list_pending())
        except STORAGE_ERRORS:
            return 0

    def _abort(self, summary: RunSummary, left_pending: int, reason: str) -> RunSummary:
        summary.aborted = True
        summary.abort_reason = reason
        summary.left_pending = left_pending
        logger.warning(
            f"Worker run aborted: {reason}. "
            f"{left_pending} requests left PENDING"
        )
        return summary
