"""
Core types, configuration and infrastructure shared by the scorer, ledger and worker.
"""

from .errors import (
    NegativeKeywordError,
    ValidationError,
    AdmissionError,
    ExternalRejection,
    TransientAccountError,
    StorageUnavailableError,
    InvariantViolation,
    RequestNotFoundError,
    InvalidTransitionError,
)
from .models import (
    PerformanceRow,
    NegativeKeywordCandidate,
    CampaignTarget,
    AdGroupTarget,
    SharedListTarget,
    KeywordSubmission,
    NegativeKeywordRequest,
    ProcessingTrigger,
    CampaignCatalogEntry,
    SharedListEntry,
    AppendResult,
)

__all__ = [
    'NegativeKeywordError',
    'ValidationError',
    'AdmissionError',
    'ExternalRejection',
    'TransientAccountError',
    'StorageUnavailableError',
    'InvariantViolation',
    'RequestNotFoundError',
    'InvalidTransitionError',
    'PerformanceRow',
    'NegativeKeywordCandidate',
    'CampaignTarget',
    'AdGroupTarget',
    'SharedListTarget',
    'KeywordSubmission',
    'NegativeKeywordRequest',
    'ProcessingTrigger',
    'CampaignCatalogEntry',
    'SharedListEntry',
    'AppendResult',
]
