"""
Provisioning Worker: external account adapters, the worker run, scheduling and CLI.
"""

from .account import AccountEntity, AdsAccount, MutationOutcome
from .mock_account import MockAdsAccount
from .worker import ProvisioningWorker, RunSummary

__all__ = [
    'AccountEntity',
    'AdsAccount',
    'MutationOutcome',
    'MockAdsAccount',
    'ProvisioningWorker',
    'RunSummary',
]
