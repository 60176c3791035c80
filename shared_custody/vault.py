import hashlib
import logging
import threading
from typing import Iterable, List, Optional

from .config import EngineConfig
from .errors import InvalidConfiguration
from .events import EventKind, EventLog
from .execution import ExecutionEngine
from .host.calls import CallContext, CallResult
from .host.environment import HostEnvironment
from .host.identity import AttestedCaller
from .owners import OwnerRegistry
from .proposals import ProposalStore, Transaction, TransactionStatus
from .threshold import ThresholdPolicy

logger = logging.getLogger(__name__)


class MultiSigVault:
    """M-of-N shared-custody vault.

    Every mutating entry point takes an AttestedCaller issued by the host; the
    address it carries is the only identity the vault trusts. One re-entrant
    lock serialises all operations, and is held across the external call in
    execute() so other threads wait while nested calls made by the target on
    the same thread can still enter.
    """

    def __init__(self, host: HostEnvironment = None, config: EngineConfig = None):
        self.host = host or HostEnvironment()
        self.config = config or EngineConfig.default()
        self.events = EventLog()
        self.vault_id: Optional[str] = None
        self.address: Optional[str] = None

        self._lock = threading.RLock()
        self._registry: Optional[OwnerRegistry] = None
        self._policy: Optional[ThresholdPolicy] = None
        self._store: Optional[ProposalStore] = None
        self._engine: Optional[ExecutionEngine] = None

    @classmethod
    def create(cls, owners: Iterable[str], threshold: int, host: HostEnvironment = None,
               config: EngineConfig = None) -> 'MultiSigVault':
        vault = cls(host, config)
        vault.initialize(owners, threshold)
        return vault

    def _generate_vault_id(self, owners: List[str], instance: int) -> str:
        """Generate vault ID from owners and host instance number"""
        hasher = hashlib.sha256()
        hasher.update(b"SHARED_CUSTODY_VAULT_V1")
        hasher.update(instance.to_bytes(8, 'big'))

        for owner in sorted(owners):
            hasher.update(bytes.fromhex(owner[2:]))

        return hasher.hexdigest()

    def initialize(self, owners: Iterable[str], threshold: int) -> None:
        """Set owners and threshold; allowed exactly once"""
        with self._lock:
            if self._registry is not None:
                raise InvalidConfiguration(f"Vault {self.vault_id} is already initialized",
                                           vault_id=self.vault_id)

            registry = OwnerRegistry(owners)
            policy = ThresholdPolicy(registry, threshold, self.events)

            vault_id = self._generate_vault_id(registry.owners, self.host.next_instance())
            address = self.host.instance_address(vault_id)

            self.vault_id = vault_id
            self.address = address
            self.events.vault_id = vault_id
            self._registry = registry
            self._policy = policy
            self._store = ProposalStore(registry, policy, self.events, self.host.ledger, address)
            self._engine = ExecutionEngine(registry, policy, self._store, self.events,
                                           self.host, address, self.config)
            self.host.deploy(address, self._accept_call)

            self.events.emit(EventKind.INITIALIZED, owners=registry.owners, threshold=threshold,
                             address=address)
            logger.info("Vault %s initialized: %d-of-%d", vault_id[:16], threshold, len(registry))

    def _require_initialized(self) -> None:
        if self._registry is None:
            raise InvalidConfiguration("Vault is not initialized")

    def _authenticate(self, caller: AttestedCaller) -> str:
        self._require_initialized()
        return self.host.attestor.verify(caller)

    def _accept_call(self, ctx: CallContext) -> bytes:
        # Plain value transfers to the vault land here; payloads are ignored
        return b""

    # Value store

    def receive(self, amount: int, caller: AttestedCaller = None) -> int:
        """Accept unsolicited value; returns the new balance.

        Without a caller the value enters from outside the ledger. With one,
        it is debited from the attested caller's own account and no other.
        """
        with self._lock:
            self._require_initialized()
            if caller is None:
                self.host.ledger.credit(self.address, amount)
            else:
                sender = self.host.attestor.verify(caller)
                self.host.ledger.transfer(sender, self.address, amount)
            logger.debug("Vault %s received %d", self.vault_id[:16], amount)
            return self.balance()

    def balance(self) -> int:
        self._require_initialized()
        return self.host.ledger.balance_of(self.address)

    # Mutating entry points

    def submit(self, target: str, value: int, payload: bytes, caller: AttestedCaller) -> int:
        with self._lock:
            owner = self._authenticate(caller)
            return self._store.submit(target, value, payload, owner)

    def confirm(self, transaction_id: int, caller: AttestedCaller) -> int:
        with self._lock:
            owner = self._authenticate(caller)
            return self._store.confirm(transaction_id, owner)

    def revoke(self, transaction_id: int, caller: AttestedCaller) -> int:
        with self._lock:
            owner = self._authenticate(caller)
            return self._store.revoke(transaction_id, owner)

    def cancel(self, transaction_id: int, caller: AttestedCaller) -> None:
        with self._lock:
            owner = self._authenticate(caller)
            self._store.cancel(transaction_id, owner)

    def execute(self, transaction_id: int, caller: AttestedCaller) -> CallResult:
        with self._lock:
            owner = self._authenticate(caller)
            return self._engine.execute(transaction_id, owner)

    def amend_threshold(self, new_threshold: int, caller: AttestedCaller) -> int:
        with self._lock:
            owner = self._authenticate(caller)
            return self._policy.amend(new_threshold, owner)

    # Read-only accessors

    @property
    def owners(self) -> List[str]:
        self._require_initialized()
        return self._registry.owners

    @property
    def threshold(self) -> int:
        self._require_initialized()
        return self._policy.threshold

    def is_owner(self, address: str) -> bool:
        self._require_initialized()
        return self._registry.is_owner(address)

    def transaction_count(self, pending: bool = True, executed: bool = True) -> int:
        with self._lock:
            self._require_initialized()
            return self._store.count(pending, executed)

    def transaction(self, transaction_id: int) -> Transaction:
        with self._lock:
            self._require_initialized()
            return self._store.transaction(transaction_id)

    def transaction_ids(self, start: int = 0, stop: int = None,
                        pending: bool = True, executed: bool = True) -> List[int]:
        with self._lock:
            self._require_initialized()
            return self._store.ids(start, stop, pending, executed)

    def confirmations(self, transaction_id: int) -> List[str]:
        with self._lock:
            self._require_initialized()
            return self._store.confirmations(transaction_id)

    def is_confirmed(self, transaction_id: int) -> bool:
        with self._lock:
            self._require_initialized()
            return self._store.is_confirmed(transaction_id)

    def status(self, transaction_id: int) -> TransactionStatus:
        with self._lock:
            self._require_initialized()
            return self._store.status(transaction_id)

    def to_dict(self) -> dict:
        """Summary of vault configuration and state"""
        with self._lock:
            self._require_initialized()
            return {
                'vault_id': self.vault_id,
                'address': self.address,
                'owners': self.owners,
                'threshold': self.threshold,
                'balance': self.balance(),
                'transaction_count': self._store.count()
            }
