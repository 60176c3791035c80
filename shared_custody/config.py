import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import InvalidConfiguration

ENV_PREFIX = "CUSTODY_"


@dataclass
class EngineConfig:
    """Tunable parameters for external call execution"""

    # Compute ceiling for a single external call
    call_gas_limit: int = 3_000_000
    # Intrinsic cost charged before the target runs
    call_base_gas: int = 700
    payload_byte_gas: int = 16

    def __post_init__(self):
        for name in ('call_gas_limit', 'call_base_gas', 'payload_byte_gas'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidConfiguration(f"{name} must be a non-negative integer, got {value!r}",
                                           field=name, value=value)
        if self.call_gas_limit == 0:
            raise InvalidConfiguration("call_gas_limit must be positive", field='call_gas_limit', value=0)

    @classmethod
    def default(cls) -> 'EngineConfig':
        """Generous budget for contract targets"""
        return cls()

    @classmethod
    def constrained(cls) -> 'EngineConfig':
        """Stipend-sized budget: enough to accept value, not to do real work"""
        return cls(
            call_gas_limit=2_300,
            call_base_gas=700,
            payload_byte_gas=16
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'EngineConfig':
        """Build config from CUSTODY_* environment variables"""
        if environ is None:
            environ = os.environ

        base = cls.default()
        values = {}
        for name in ('call_gas_limit', 'call_base_gas', 'payload_byte_gas'):
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is None:
                values[name] = getattr(base, name)
                continue
            try:
                values[name] = int(raw)
            except ValueError:
                raise InvalidConfiguration(f"{ENV_PREFIX + name.upper()} is not an integer: {raw!r}",
                                           field=name, value=raw) from None

        return cls(**values)

    def intrinsic_gas(self, payload: bytes) -> int:
        """Gas charged for a call before the target runs"""
        return self.call_base_gas + self.payload_byte_gas * len(payload)
