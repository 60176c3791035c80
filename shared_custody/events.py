"""
Append-only record stream for external observers
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventKind(Enum):
    INITIALIZED = "initialized"
    PROPOSED = "proposed"
    CONFIRMED = "confirmed"
    REVOKED = "revoked"
    EXECUTED = "executed"
    EXECUTION_FAILED = "execution_failed"
    CANCELLED = "cancelled"
    THRESHOLD_CHANGED = "threshold_changed"


@dataclass(frozen=True)
class EventRecord:
    """Single observable state change"""
    sequence: int
    kind: EventKind
    vault_id: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            'sequence': self.sequence,
            'kind': self.kind.value,
            'vault_id': self.vault_id,
            'data': dict(self.data)
        }


class EventLog:
    """Ordered history of vault records with optional subscribers"""

    def __init__(self, vault_id: str = ""):
        self.vault_id = vault_id
        self._records: List[EventRecord] = []
        self._subscribers: List[Callable[[EventRecord], None]] = []
        self._lock = threading.Lock()

    def emit(self, kind: EventKind, **data: Any) -> EventRecord:
        """Append a record and notify subscribers"""
        with self._lock:
            record = EventRecord(len(self._records), kind, self.vault_id, data)
            self._records.append(record)
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(record)
            except Exception:
                # observers never influence vault state
                logger.exception("Event subscriber failed on %s #%d", kind.value, record.sequence)

        return record

    def subscribe(self, callback: Callable[[EventRecord], None]) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def records(self, kind: Optional[EventKind] = None) -> List[EventRecord]:
        """Get recorded events, optionally filtered by kind"""
        with self._lock:
            if kind is None:
                return self._records.copy()
            return [r for r in self._records if r.kind == kind]

    def __len__(self) -> int:
        return len(self._records)
