"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.  Each one
carries an ``ErrorKind`` (see ``modules.core.exceptions``); the API
layer renders them through the shared exception handler.

Catalog and address errors raised during order creation are defined in
their own modules and re-exported here for convenience.
"""

from __future__ import annotations

from modules.addresses.exceptions import AddressNotFound
from modules.core.exceptions import (
    ConflictError,
    DomainValidationError,
    InternalError,
    NotFoundError,
)
from modules.products.exceptions import (
    InactiveProduct,
    InsufficientStock,
    ProductNotFound,
    VariantNotFound,
)

__all__ = [
    "AddressNotFound",
    "InactiveProduct",
    "InsufficientStock",
    "InvalidOrderStatus",
    "InvalidPageRequest",
    "OrderCannotBeCancelled",
    "OrderNotFound",
    "OrderNumberUnavailable",
    "ProductNotFound",
    "VariantNotFound",
]


class OrderNotFound(NotFoundError):
    """The order does not exist or is not owned by the caller."""


class InvalidOrderStatus(ConflictError):
    """A status transition is not allowed from the current status."""


class OrderCannotBeCancelled(InvalidOrderStatus):
    """Cancellation requested outside PENDING / CONFIRMED."""


class OrderNumberUnavailable(InternalError):
    """No unique order number could be generated within the retry budget."""


class InvalidPageRequest(DomainValidationError):
    """Page number or page size below 1."""
