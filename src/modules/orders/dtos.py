"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderItemDTO``: input for a single order line item.
- ``CreateOrderDTO``: input for order creation (nested items).
- ``UpdateOrderStatusDTO``: input for the administrative status update.
- ``OrderStatusDTO``: lightweight projection for polling clients.
- ``OrderPage``: one page of an order listing.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import OrderStatus
from modules.payments.constants import PaymentMethod

if TYPE_CHECKING:
    from modules.orders.models import Order


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single order item in a creation request.

    The client sends ``product_id``, an optional ``variant_id`` and
    ``quantity``.  The unit price is resolved by the Service Layer from
    the catalog.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    variant_id: Optional[UUID] = None
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item.
    - Each item quantity must be positive.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    items: List[CreateOrderItemDTO]
    shipping_address_id: UUID
    billing_address_id: UUID
    payment_method: PaymentMethod
    notes: Optional[str] = ""

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("At least one item is required.")
        return v


class UpdateOrderStatusDTO(BaseModel):
    """Immutable DTO for the administrative status update.

    ``tracking_number`` / ``notes`` overwrite the stored values only when
    supplied.
    """

    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    tracking_number: Optional[str] = None
    notes: Optional[str] = None


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderStatusDTO(BaseModel):
    """Status-only projection returned to polling clients."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    order_number: str
    status: str
    payment_status: str
    tracking_number: str
    updated_at: datetime


@dataclass(frozen=True)
class PricedLine:
    """A validated line item with its price snapshot."""

    product_id: UUID
    variant_id: Optional[UUID]
    name: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def lock_key(self) -> tuple[str, str]:
        return (str(self.product_id), str(self.variant_id or ""))


@dataclass(frozen=True)
class OrderPage:
    orders: List[Order]
    page: int
    page_size: int
    total_count: int
    total_pages: int

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1
