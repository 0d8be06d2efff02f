"""Catalog domain exceptions.

Raised by the catalog gateway and surfaced unchanged by the order
engine; the API layer renders them through the shared error handler.
"""

from __future__ import annotations

from typing import Optional

from modules.core.exceptions import InactiveError, InsufficientStockError, NotFoundError


class ProductNotFound(NotFoundError):
    """The requested product does not exist."""


class VariantNotFound(NotFoundError):
    """The variant does not exist or does not belong to the product."""


class InactiveProduct(InactiveError):
    """The product (or variant) is disabled and cannot be sold."""


class InsufficientStock(InsufficientStockError):
    """Not enough stock to fulfil the requested quantity.

    ``product_name`` names the offending product so clients can tell
    which line failed.
    """

    def __init__(
        self,
        message: str,
        *,
        product_name: str,
        requested: Optional[int] = None,
        available: Optional[int] = None,
    ) -> None:
        super().__init__(message, attr="items")
        self.product_name = product_name
        self.requested = requested
        self.available = available
