"""Django ORM implementation of the address book.

Follows the Null Object convention of the other repositories: a missing
or foreign address yields ``None`` and the caller decides which error
to raise.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from django.core.exceptions import ValidationError

from modules.addresses.dtos import AddressSnapshot
from modules.addresses.models import Address
from modules.addresses.repositories.interfaces import IAddressBook


class AddressDjangoRepository(IAddressBook):
    def resolve(self, address_id: UUID, owner_user_id: str) -> Optional[AddressSnapshot]:
        try:
            address = Address.objects.filter(
                id=address_id, user_id=str(owner_user_id)
            ).first()
        except (ValueError, ValidationError):
            return None
        if not address:
            return None
        return AddressSnapshot.from_entity(address)
