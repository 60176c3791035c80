"""
External call primitives: gas metering and call context
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .environment import HostEnvironment
    from .identity import AttestedCaller


class OutOfGas(Exception):
    """Raised inside an external call when its compute budget is exhausted"""

    def __init__(self, limit: int, requested: int):
        super().__init__(f"Out of gas: limit {limit}, requested {requested}")
        self.limit = limit
        self.requested = requested


class GasMeter:
    """Bounded compute budget for one external call"""

    def __init__(self, limit: int):
        self.limit = limit
        self.used = 0

    @property
    def remaining(self) -> int:
        return self.limit - self.used

    def charge(self, amount: int) -> None:
        if amount < 0:
            raise ValueError("Gas charge must be non-negative")
        if self.used + amount > self.limit:
            requested = self.used + amount
            self.used = self.limit
            raise OutOfGas(self.limit, requested)
        self.used += amount


@dataclass
class CallContext:
    """What a contract target sees while it runs"""
    host: 'HostEnvironment'
    sender: str
    target: str
    value: int
    payload: bytes
    gas: GasMeter

    def as_caller(self) -> 'AttestedCaller':
        """Attested identity of the running target, for calls back into a vault"""
        return self.host.attestor.vouch(self.target)


@dataclass
class CallResult:
    success: bool
    return_data: bytes = b""
    gas_used: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'success': self.success,
            'return_data': self.return_data.hex(),
            'gas_used': self.gas_used,
            'error': self.error
        }
