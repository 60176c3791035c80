"""
Host environment: wires identity, ledger and contract calls together
"""

import hashlib
import logging
import threading
from typing import Callable, Dict, Optional

from .calls import CallContext, CallResult, GasMeter
from .identity import AttestedCaller, CallerAttestor, PrincipalKey, normalize_address
from .ledger import ValueLedger

logger = logging.getLogger(__name__)

ContractHandler = Callable[[CallContext], Optional[bytes]]


class HostEnvironment:
    """In-process stand-in for the platform that runs vault instances"""

    def __init__(self, ledger: ValueLedger = None, attestor: CallerAttestor = None):
        self.ledger = ledger or ValueLedger()
        self.attestor = attestor or CallerAttestor()
        self._contracts: Dict[str, ContractHandler] = {}
        self._instances = 0
        self._lock = threading.Lock()

    def deploy(self, address: str, handler: ContractHandler) -> str:
        """Install code at address; handler runs on every call to it"""
        normalized = normalize_address(address)
        if normalized is None:
            raise ValueError(f"Not an address: {address!r}")
        self._contracts[normalized] = handler
        return normalized

    def next_instance(self) -> int:
        with self._lock:
            self._instances += 1
            return self._instances

    def instance_address(self, instance_id: str) -> str:
        return "0x" + hashlib.sha256(bytes.fromhex(instance_id)).digest()[:20].hex()

    def caller_for(self, key: PrincipalKey) -> AttestedCaller:
        """Run the challenge/response handshake on behalf of a local key"""
        challenge = self.attestor.challenge(key.address)
        signature = key.sign_message(self.attestor.challenge_message(challenge))
        return self.attestor.attest(key.get_public_key_hex(), signature)

    def call(self, sender: str, target: str, value: int, payload: bytes,
             gas_limit: int, intrinsic_gas: int = 0) -> CallResult:
        """Transfer value and invoke target as one atomic effect.

        Any exception raised by the target (including OutOfGas and failures of
        nested calls it lets propagate) turns into an unsuccessful CallResult
        and every balance change made during the call is reverted.
        """
        meter = GasMeter(gas_limit)
        try:
            with self.ledger.atomic():
                meter.charge(intrinsic_gas)
                self.ledger.transfer(sender, target, value)
                handler = self._contracts.get(target)
                if handler is None:
                    return_data = b""
                else:
                    ctx = CallContext(self, sender, target, value, payload, meter)
                    return_data = bytes(handler(ctx) or b"")
        except Exception as e:
            logger.warning("Call %s -> %s failed after %d gas: %s", sender, target, meter.used, e)
            return CallResult(False, b"", meter.used, f"{type(e).__name__}: {e}")

        return CallResult(True, return_data, meter.used)
