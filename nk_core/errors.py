"""
Error taxonomy for the provisioning pipeline.

Validation / admission errors are returned to the submitter per item.
Processing errors are written into the ledger row instead of raised,
except TransientAccountError which stops a worker run and leaves the
remaining requests PENDING for the next scheduled run.
"""

from typing import List, Optional


class NegativeKeywordError(Exception):
    """Base class for all provisioning errors."""


class ValidationError(NegativeKeywordError):
    """Malformed or incomplete request; never admitted to the ledger."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid request")


class AdmissionError(NegativeKeywordError):
    """Storage failure while appending an already-valid request (reported per item)."""


class ExternalRejection(NegativeKeywordError):
    """The external account refused the mutation (terminal)."""


class TransientAccountError(NegativeKeywordError):
    """The external account could not be reached or authenticated."""

    def __init__(self, message: str, request_id: Optional[str] = None):
        self.request_id = request_id
        super().__init__(message)


class StorageUnavailableError(NegativeKeywordError):
    """The DuckDB file stayed locked by another process after retrying."""


class InvariantViolation(NegativeKeywordError):
    """An admitted request bypassed validation (e.g. unknown level)."""


class RequestNotFoundError(NegativeKeywordError):
    """No ledger row with the given id."""


class InvalidTransitionError(NegativeKeywordError):
    """Status change attempted on a request that is no longer PENDING."""
