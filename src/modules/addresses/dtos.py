"""Address snapshot embedded into orders.

Orders store a copy of the address taken at creation time; later edits
to the address book never reach historical orders.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict
from uuid import UUID

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from modules.addresses.models import Address


class AddressSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    first_name: str
    last_name: str
    company: str = ""
    address1: str
    address2: str = ""
    city: str
    state: str
    postal_code: str
    country: str
    phone: str = ""

    @classmethod
    def from_entity(cls, address: Address) -> AddressSnapshot:
        return cls(
            id=address.id,
            first_name=address.first_name,
            last_name=address.last_name,
            company=address.company,
            address1=address.address1,
            address2=address.address2,
            city=address.city,
            state=address.state,
            postal_code=address.postal_code,
            country=address.country,
            phone=address.phone,
        )

    def to_record(self) -> Dict[str, Any]:
        """JSON-safe dict stored on the order row."""
        return self.model_dump(mode="json")
