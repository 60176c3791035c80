import logging
from typing import Type

from .errors import CustodyError, InvalidConfiguration, InvalidThreshold
from .events import EventKind, EventLog
from .owners import OwnerRegistry

logger = logging.getLogger(__name__)


class ThresholdPolicy:
    """Number of distinct confirmations required to execute"""

    def __init__(self, registry: OwnerRegistry, threshold: int, events: EventLog):
        self.registry = registry
        self.events = events
        self._threshold = self._validate(threshold, InvalidConfiguration)

    def _validate(self, value, error: Type[CustodyError]) -> int:
        owner_count = len(self.registry)
        if isinstance(value, bool) or not isinstance(value, int):
            raise error(f"Threshold must be an integer, got {value!r}", threshold=value)
        if not (1 <= value <= owner_count):
            raise error(f"Threshold must be between 1 and {owner_count}, got {value}",
                        threshold=value, owner_count=owner_count)
        return value

    @property
    def threshold(self) -> int:
        return self._threshold

    def is_met(self, confirmations: int) -> bool:
        return confirmations >= self._threshold

    def amend(self, new_threshold: int, owner: str) -> int:
        """Replace the threshold; returns the previous value"""
        owner = self.registry.require_owner(owner, "change the threshold")
        new_threshold = self._validate(new_threshold, InvalidThreshold)

        previous, self._threshold = self._threshold, new_threshold
        self.events.emit(
            EventKind.THRESHOLD_CHANGED,
            previous=previous,
            threshold=new_threshold,
            owner=owner
        )
        logger.info("Threshold changed from %d to %d by %s", previous, new_threshold, owner)
        return previous
