"""
Shared-Custody Vault - M-of-N threshold authorization engine
Owners jointly control a value store and external actions through proposals
"""

from .config import EngineConfig
from .errors import (
    AlreadyConfirmed, AlreadyExecuted, CancelUnauthorized, CustodyError,
    ExecutionFailed, InsufficientConfirmations, InsufficientFunds, InvalidAmount,
    InvalidConfiguration, InvalidDestination, InvalidThreshold, NotConfirmed,
    NotFound, ReentrantCall, Unauthorized
)
from .events import EventKind, EventLog, EventRecord
from .execution import ExecutionEngine
from .owners import OwnerRegistry
from .proposals import ProposalStore, Transaction, TransactionStatus
from .threshold import ThresholdPolicy
from .vault import MultiSigVault

__version__ = "0.1.0"
__all__ = [
    "EngineConfig",
    "EventKind",
    "EventLog",
    "EventRecord",
    "ExecutionEngine",
    "MultiSigVault",
    "OwnerRegistry",
    "ProposalStore",
    "ThresholdPolicy",
    "Transaction",
    "TransactionStatus",
    "CustodyError",
    "Unauthorized",
    "CancelUnauthorized",
    "InvalidConfiguration",
    "InvalidThreshold",
    "InvalidDestination",
    "InvalidAmount",
    "InsufficientFunds",
    "NotFound",
    "AlreadyExecuted",
    "AlreadyConfirmed",
    "NotConfirmed",
    "InsufficientConfirmations",
    "ExecutionFailed",
    "ReentrantCall"
]
