"""Request validation, the provisioning ledger and the submission service."""

from nk_ledger.catalog import ReferenceCatalog
from nk_ledger.ledger import ProvisioningLedger, generate_request_id
from nk_ledger.service import ProvisioningService, SubmissionResult
from nk_ledger.triggers import ProcessingTriggers
from nk_ledger.validator import build_submission, validate_batch, validate_keyword

__all__ = [
    "ProvisioningLedger",
    "ProcessingTriggers",
    "ReferenceCatalog",
    "ProvisioningService",
    "SubmissionResult",
    "generate_request_id",
    "validate_keyword",
    "validate_batch",
    "build_submission",
]
