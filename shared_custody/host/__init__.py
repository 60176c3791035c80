"""
Host environment collaborators - identity attestation, value ledger, external calls
"""

from .identity import (
    NULL_ADDRESS, AttestedCaller, CallerAttestor, PrincipalKey,
    is_address, make_address, normalize_address
)
from .ledger import ValueLedger
from .calls import CallContext, CallResult, GasMeter, OutOfGas
from .environment import HostEnvironment

__all__ = [
    "NULL_ADDRESS",
    "AttestedCaller",
    "CallerAttestor",
    "PrincipalKey",
    "is_address",
    "make_address",
    "normalize_address",
    "ValueLedger",
    "CallContext",
    "CallResult",
    "GasMeter",
    "OutOfGas",
    "HostEnvironment"
]
