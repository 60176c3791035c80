"""
Native value ledger provided by the host
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, List

from ..errors import InsufficientFunds, InvalidAmount

logger = logging.getLogger(__name__)


def _check_amount(amount) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidAmount(f"Amount must be a non-negative integer, got {amount!r}", amount=amount)
    return amount


class ValueLedger:
    """Balances keyed by address with all-or-nothing journaling"""

    def __init__(self):
        self._balances: Dict[str, int] = {}
        self._transfer_history: List[dict] = []
        self._lock = threading.RLock()

    def balance_of(self, address: str) -> int:
        return self._balances.get(address, 0)

    def credit(self, address: str, amount: int) -> int:
        """Add value entering from outside the ledger"""
        amount = _check_amount(amount)
        with self._lock:
            self._balances[address] = self.balance_of(address) + amount
            logger.debug("Credited %d to %s", amount, address)
            return self._balances[address]

    def transfer(self, from_address: str, to_address: str, amount: int) -> None:
        """Move value between addresses"""
        amount = _check_amount(amount)
        with self._lock:
            from_balance = self.balance_of(from_address)
            if from_balance < amount:
                raise InsufficientFunds(
                    f"Balance of {from_address} is {from_balance}, need {amount}",
                    address=from_address, balance=from_balance, amount=amount
                )

            self._balances[from_address] = from_balance - amount
            self._balances[to_address] = self.balance_of(to_address) + amount
            self._transfer_history.append({
                'from': from_address,
                'to': to_address,
                'amount': amount
            })

    @contextmanager
    def atomic(self):
        """Restore every balance touched inside the block if it raises"""
        with self._lock:
            balances = dict(self._balances)
            history_len = len(self._transfer_history)
            try:
                yield self
            except BaseException:
                self._balances = balances
                del self._transfer_history[history_len:]
                logger.debug("Ledger journal rolled back to %d transfers", history_len)
                raise

    def get_transfer_history(self) -> List[dict]:
        return self._transfer_history.copy()
