"""
Threshold-gated execution of confirmed transactions.

Ordering inside execute():

    checks -> in-flight guard -> executed=True -> external call -> (rollback on failure)

The executed flag is set before the host call, so a target that calls back
into the vault for the same transaction is rejected with AlreadyExecuted
before any value moves. The in-flight guard additionally refuses any nested
execution on the vault while a call is outstanding.
"""

import logging
from typing import Optional

from .config import EngineConfig
from .errors import (
    AlreadyExecuted, ExecutionFailed, InsufficientConfirmations,
    InvalidDestination, ReentrantCall
)
from .events import EventKind, EventLog
from .host.calls import CallResult
from .host.environment import HostEnvironment
from .host.identity import is_null_address
from .owners import OwnerRegistry
from .proposals import ProposalStore
from .threshold import ThresholdPolicy

logger = logging.getLogger(__name__)


class ExecutionEngine:
    """Moves a sufficiently confirmed transaction to executed, exactly once"""

    def __init__(self, registry: OwnerRegistry, policy: ThresholdPolicy, store: ProposalStore,
                 events: EventLog, host: HostEnvironment, account: str, config: EngineConfig):
        self.registry = registry
        self.policy = policy
        self.store = store
        self.events = events
        self.host = host
        self.account = account
        self.config = config
        self._in_flight: Optional[int] = None

    @property
    def in_flight(self) -> Optional[int]:
        """Id of the transaction whose external call is running, if any"""
        return self._in_flight

    def execute(self, transaction_id: int, owner: str) -> CallResult:
        owner = self.registry.require_owner(owner, "execute transactions")
        tx = self.store.get(transaction_id)

        if tx.executed:
            raise AlreadyExecuted(f"Transaction {transaction_id} is already executed",
                                  transaction_id=transaction_id, cancelled=tx.cancelled)

        threshold = self.policy.threshold
        if tx.confirmations_count < threshold:
            raise InsufficientConfirmations(
                f"Transaction {transaction_id} has {tx.confirmations_count} of {threshold} confirmations",
                transaction_id=transaction_id, confirmations=tx.confirmations_count, threshold=threshold
            )

        if is_null_address(tx.target):
            raise InvalidDestination(f"Transaction {transaction_id} has no destination",
                                     transaction_id=transaction_id, target=tx.target)

        if self._in_flight is not None:
            raise ReentrantCall(
                f"Transaction {self._in_flight} is executing; cannot start {transaction_id}",
                transaction_id=transaction_id, in_flight=self._in_flight
            )

        self._in_flight = transaction_id
        try:
            tx.executed = True
            self.events.emit(EventKind.EXECUTED, transaction_id=transaction_id, owner=owner,
                             confirmations=tx.confirmations_count, threshold=threshold)

            try:
                result = self.host.call(
                    sender=self.account,
                    target=tx.target,
                    value=tx.value,
                    payload=tx.payload,
                    gas_limit=self.config.call_gas_limit,
                    intrinsic_gas=self.config.intrinsic_gas(tx.payload)
                )
            except BaseException:
                # interrupts bypass CallResult; the ledger journal has already reverted
                tx.executed = False
                raise

            if not result.success:
                tx.executed = False
                self.events.emit(EventKind.EXECUTION_FAILED, transaction_id=transaction_id,
                                 owner=owner, reason=result.error)
                logger.warning("Transaction %d failed: %s", transaction_id, result.error)
                raise ExecutionFailed(f"Transaction {transaction_id} call failed: {result.error}",
                                      transaction_id=transaction_id, reason=result.error,
                                      gas_used=result.gas_used)
        finally:
            self._in_flight = None

        logger.info("Transaction %d executed by %s (%d gas)", transaction_id, owner, result.gas_used)
        return result
