"""Catalog gateway interface.

The order engine depends on this contract only: it resolves a
product/variant to a ``PricedEntity`` and applies stock deltas.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional
from uuid import UUID

if TYPE_CHECKING:
    from modules.products.dtos import PricedEntity


class ICatalogGateway(ABC):
    """Contract for price/stock look-ups and atomic stock adjustment."""

    @abstractmethod
    def resolve(
        self, product_id: UUID, variant_id: Optional[UUID] = None
    ) -> PricedEntity:
        """Return the current price, stock and active flag.

        Raises ``ProductNotFound`` / ``VariantNotFound`` for unknown ids.
        """

    @abstractmethod
    def adjust_stock(
        self, product_id: UUID, variant_id: Optional[UUID], delta: int
    ) -> int:
        """Apply ``delta`` to the stock level and return the new level.

        A negative delta only applies when the resulting stock stays
        non-negative; otherwise ``InsufficientStock`` is raised and
        nothing changes.
        """
