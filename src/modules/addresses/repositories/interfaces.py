"""Address book interface used by the order engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional
from uuid import UUID

if TYPE_CHECKING:
    from modules.addresses.dtos import AddressSnapshot


class IAddressBook(ABC):
    @abstractmethod
    def resolve(self, address_id: UUID, owner_user_id: str) -> Optional[AddressSnapshot]:
        """Return a snapshot of the address if it belongs to ``owner_user_id``."""
