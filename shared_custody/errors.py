"""
Error taxonomy for the shared-custody engine
"""

from typing import Any, Dict


class CustodyError(ValueError):
    """Base class for every failure surfaced by the vault"""

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error for API responses"""
        return {
            'error': self.kind,
            'message': self.message,
            'details': dict(self.details)
        }


class Unauthorized(CustodyError):
    """Caller is not an owner, or its identity could not be attested"""


class CancelUnauthorized(Unauthorized):
    """Caller has not confirmed the transaction it tries to cancel"""


class InvalidConfiguration(CustodyError):
    """Bad initialization parameters or use of an uninitialized vault"""


class InvalidThreshold(CustodyError):
    pass


class InvalidDestination(CustodyError):
    pass


class InvalidAmount(CustodyError):
    pass


class InsufficientFunds(CustodyError):
    pass


class NotFound(CustodyError):
    pass


class AlreadyExecuted(CustodyError):
    """Transaction reached a terminal state (executed or cancelled)"""


class AlreadyConfirmed(CustodyError):
    pass


class NotConfirmed(CustodyError):
    pass


class InsufficientConfirmations(CustodyError):
    pass


class ExecutionFailed(CustodyError):
    """External call failed; internal state was rolled back"""


class ReentrantCall(CustodyError):
    """An execution is already in flight on this vault"""
