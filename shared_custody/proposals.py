"""
Proposed transactions and per-owner confirmation bookkeeping
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Set

from .errors import (
    AlreadyConfirmed, AlreadyExecuted, CancelUnauthorized, InsufficientFunds,
    InvalidAmount, InvalidDestination, NotConfirmed, NotFound
)
from .events import EventKind, EventLog
from .host.identity import NULL_ADDRESS, normalize_address
from .host.ledger import ValueLedger
from .owners import OwnerRegistry
from .threshold import ThresholdPolicy

logger = logging.getLogger(__name__)


class TransactionStatus(Enum):
    PENDING = "pending"
    EXECUTABLE = "executable"
    EXECUTED = "executed"
    CANCELLED = "cancelled"


@dataclass
class Transaction:
    """Action proposed by an owner, awaiting or past execution"""

    transaction_id: int
    target: str
    value: int
    payload: bytes
    proposer: str

    # State
    confirmed_by: Set[str] = field(default_factory=set)
    confirmations_count: int = 0
    # Terminal marker for both execution and cancellation
    executed: bool = False
    cancelled: bool = False

    def copy(self) -> 'Transaction':
        return replace(self, confirmed_by=set(self.confirmed_by))

    def to_dict(self) -> dict:
        return {
            'transaction_id': self.transaction_id,
            'target': self.target,
            'value': self.value,
            'payload': self.payload.hex(),
            'proposer': self.proposer,
            'confirmed_by': sorted(self.confirmed_by),
            'confirmations_count': self.confirmations_count,
            'executed': self.executed,
            'cancelled': self.cancelled
        }


class ProposalStore:
    """Append-only list of transactions addressed by creation index"""

    def __init__(self, registry: OwnerRegistry, policy: ThresholdPolicy, events: EventLog,
                 ledger: ValueLedger, account: str):
        self.registry = registry
        self.policy = policy
        self.events = events
        self.ledger = ledger
        self.account = account
        self._transactions: List[Transaction] = []

    def get(self, transaction_id: int) -> Transaction:
        """Live transaction record; raises NotFound for unknown ids"""
        if (isinstance(transaction_id, bool) or not isinstance(transaction_id, int)
                or not (0 <= transaction_id < len(self._transactions))):
            raise NotFound(f"Transaction {transaction_id!r} does not exist", transaction_id=transaction_id)
        return self._transactions[transaction_id]

    def _get_open(self, transaction_id: int) -> Transaction:
        tx = self.get(transaction_id)
        if tx.executed:
            raise AlreadyExecuted(f"Transaction {transaction_id} is already executed",
                                  transaction_id=transaction_id, cancelled=tx.cancelled)
        return tx

    def submit(self, target: str, value: int, payload: bytes, owner: str) -> int:
        """Propose a new transaction; confirmation is a separate call"""
        owner = self.registry.require_owner(owner, "submit transactions")

        destination = normalize_address(target)
        if destination is None or destination == NULL_ADDRESS:
            raise InvalidDestination(f"Invalid destination: {target!r}", target=target)

        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise InvalidAmount(f"Value must be a non-negative integer, got {value!r}", value=value)

        if not isinstance(payload, (bytes, bytearray, memoryview)):
            raise TypeError(f"Payload must be bytes, got {type(payload).__name__}")

        balance = self.ledger.balance_of(self.account)
        if value > balance:
            raise InsufficientFunds(f"Vault balance {balance} is below requested value {value}",
                                    balance=balance, value=value)

        tx = Transaction(
            transaction_id=len(self._transactions),
            target=destination,
            value=value,
            payload=bytes(payload),
            proposer=owner
        )
        self._transactions.append(tx)

        self.events.emit(
            EventKind.PROPOSED,
            transaction_id=tx.transaction_id,
            proposer=owner,
            target=destination,
            value=value,
            payload=tx.payload.hex()
        )
        logger.info("Transaction %d proposed by %s: %d to %s", tx.transaction_id, owner, value, destination)
        return tx.transaction_id

    def confirm(self, transaction_id: int, owner: str) -> int:
        """Record owner's confirmation; returns the new confirmation count"""
        owner = self.registry.require_owner(owner, "confirm transactions")
        tx = self._get_open(transaction_id)

        if owner in tx.confirmed_by:
            raise AlreadyConfirmed(f"{owner} already confirmed transaction {transaction_id}",
                                   transaction_id=transaction_id, owner=owner)

        tx.confirmed_by.add(owner)
        tx.confirmations_count += 1

        self.events.emit(EventKind.CONFIRMED, transaction_id=transaction_id, owner=owner,
                         confirmations=tx.confirmations_count)
        logger.info("Transaction %d confirmed by %s (%d/%d)", transaction_id, owner,
                    tx.confirmations_count, self.policy.threshold)
        return tx.confirmations_count

    def revoke(self, transaction_id: int, owner: str) -> int:
        """Withdraw owner's confirmation; returns the new confirmation count"""
        owner = self.registry.require_owner(owner, "revoke confirmations")
        tx = self._get_open(transaction_id)

        if owner not in tx.confirmed_by:
            raise NotConfirmed(f"{owner} has not confirmed transaction {transaction_id}",
                               transaction_id=transaction_id, owner=owner)

        tx.confirmed_by.discard(owner)
        tx.confirmations_count -= 1

        self.events.emit(EventKind.REVOKED, transaction_id=transaction_id, owner=owner,
                         confirmations=tx.confirmations_count)
        logger.info("Confirmation of %s on transaction %d revoked", owner, transaction_id)
        return tx.confirmations_count

    def cancel(self, transaction_id: int, owner: str) -> None:
        """Terminate a transaction without executing it.

        Any owner who confirmed the transaction may cancel it, not only the
        proposer. The executed flag is set as the terminal marker, so later
        confirm/execute/cancel calls fail with AlreadyExecuted; the cancelled
        flag tells the two terminal states apart.
        """
        owner = self.registry.require_owner(owner, "cancel transactions")
        tx = self._get_open(transaction_id)

        if owner not in tx.confirmed_by:
            raise CancelUnauthorized(f"{owner} must confirm transaction {transaction_id} before cancelling it",
                                     transaction_id=transaction_id, caller=owner)

        tx.executed = True
        tx.cancelled = True

        self.events.emit(EventKind.CANCELLED, transaction_id=transaction_id, owner=owner)
        logger.info("Transaction %d cancelled by %s", transaction_id, owner)

    # Read-only accessors

    def transaction(self, transaction_id: int) -> Transaction:
        return self.get(transaction_id).copy()

    def count(self, pending: bool = True, executed: bool = True) -> int:
        """Number of transactions after applying the filters"""
        return sum(1 for tx in self._transactions if self._matches(tx, pending, executed))

    def ids(self, start: int = 0, stop: Optional[int] = None,
            pending: bool = True, executed: bool = True) -> List[int]:
        """Transaction ids in [start, stop) matching the filters; negative bounds clamp to 0"""
        start = max(start, 0)
        if stop is not None:
            stop = max(stop, 0)
        window = self._transactions[start:stop]
        return [tx.transaction_id for tx in window if self._matches(tx, pending, executed)]

    @staticmethod
    def _matches(tx: Transaction, pending: bool, executed: bool) -> bool:
        return (pending and not tx.executed) or (executed and tx.executed)

    def confirmations(self, transaction_id: int) -> List[str]:
        """Owners who confirmed, in registry order"""
        tx = self.get(transaction_id)
        return [o for o in self.registry.owners if o in tx.confirmed_by]

    def is_confirmed(self, transaction_id: int) -> bool:
        return self.policy.is_met(self.get(transaction_id).confirmations_count)

    def status(self, transaction_id: int) -> TransactionStatus:
        tx = self.get(transaction_id)
        if tx.cancelled:
            return TransactionStatus.CANCELLED
        if tx.executed:
            return TransactionStatus.EXECUTED
        if self.policy.is_met(tx.confirmations_count):
            return TransactionStatus.EXECUTABLE
        return TransactionStatus.PENDING

    def __len__(self) -> int:
        return len(self._transactions)
