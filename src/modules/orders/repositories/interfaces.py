"""Order repository interface.

Extends ``IRepository[Order]`` with the methods required by the Order
aggregate: atomic creation with items, row locking for state changes,
status history tracking and the polling projection.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` holds the order columns plus ``items`` (list of dicts
        with ``product_id``, ``variant_id``, ``quantity``, ``unit_price``).
        """

    @abstractmethod
    def get_by_id(self, id: str, user_id: Optional[str] = None) -> Optional[Order]:
        """Retrieve an order with prefetched items, payments and history.

        When ``user_id`` is given, orders owned by someone else are
        treated as missing.
        """

    @abstractmethod
    def get_for_update(self, id: str, user_id: Optional[str] = None) -> Optional[Order]:
        """Retrieve an order with a row-level lock."""

    @abstractmethod
    def list(
        self,
        user_id: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> models.QuerySet:
        """List orders, newest first, with optional filters."""

    @abstractmethod
    def get_status(self, id: str, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Return the status-only projection of an order."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        changed_by: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
