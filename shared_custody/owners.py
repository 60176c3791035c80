from typing import Iterable, List

from .errors import InvalidConfiguration, Unauthorized
from .host.identity import NULL_ADDRESS, normalize_address


class OwnerRegistry:
    """Fixed set of principals allowed to operate the vault"""

    def __init__(self, owners: Iterable[str]):
        if owners is None or isinstance(owners, str):
            raise InvalidConfiguration("Owners must be a sequence of addresses", owners=owners)

        normalized = []
        for entry in owners:
            address = normalize_address(entry)
            if address is None:
                raise InvalidConfiguration(f"Invalid owner address: {entry!r}", owner=entry)
            if address == NULL_ADDRESS:
                raise InvalidConfiguration("Null address cannot be an owner", owner=entry)
            if address in normalized:
                raise InvalidConfiguration(f"Duplicate owner: {address}", owner=address)
            normalized.append(address)

        if not normalized:
            raise InvalidConfiguration("At least one owner is required")

        self._owners = tuple(normalized)
        self._members = frozenset(normalized)

    @property
    def owners(self) -> List[str]:
        return list(self._owners)

    def __len__(self) -> int:
        return len(self._owners)

    def __contains__(self, address) -> bool:
        return self.is_owner(address)

    def is_owner(self, address) -> bool:
        """Check if address is an owner"""
        return isinstance(address, str) and address.lower() in self._members

    def require_owner(self, address: str, action: str) -> str:
        if not self.is_owner(address):
            raise Unauthorized(f"{address} is not an owner and cannot {action}",
                               caller=address, action=action)
        return address.lower()
