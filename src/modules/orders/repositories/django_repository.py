"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
All write operations are wrapped in ``transaction.atomic()`` so they join
the caller's unit of work (the service) or form their own.

Concurrency control on status changes uses ``select_for_update()``
to prevent two requests from mutating (or cancelling) the same order at
once.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import IntegrityError, models, transaction

from modules.orders.constants import ORDER_NUMBER_MAX_RETRIES
from modules.orders.exceptions import OrderNumberUnavailable
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

_ORDER_COLUMNS = (
    "user_id",
    "status",
    "payment_method",
    "payment_status",
    "subtotal",
    "tax_amount",
    "shipping_amount",
    "discount_amount",
    "currency",
    "shipping_address",
    "billing_address",
    "notes",
)

_STATUS_FIELDS = (
    "id",
    "order_number",
    "status",
    "payment_status",
    "tracking_number",
    "updated_at",
)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        The order number is generated here; on a unique-constraint
        collision the insert is retried with a fresh number inside a
        savepoint, so an existing order is never overwritten.
        """
        order = Order(**{key: data[key] for key in _ORDER_COLUMNS if key in data})
        self._insert_with_unique_number(order)

        items = data.get("items", [])
        for item_data in items:
            item = OrderItem(
                order=order,
                product_id=item_data["product_id"],
                variant_id=item_data.get("variant_id"),
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
            )
            item.save()

        log = logger.bind(order_id=str(order.id), item_count=len(items))
        log.info("order.persisted", order_number=order.order_number)

        return order

    def _insert_with_unique_number(self, order: Order) -> None:
        for attempt in range(ORDER_NUMBER_MAX_RETRIES):
            order.order_number = Order.generate_order_number()
            try:
                with transaction.atomic():
                    order.save(force_insert=True)
                return
            except IntegrityError:
                if not Order.objects.filter(order_number=order.order_number).exists():
                    raise
                logger.warning(
                    "order.number_collision",
                    order_number=order.order_number,
                    attempt=attempt + 1,
                )
        raise OrderNumberUnavailable(
            f"Failed to generate unique order_number after "
            f"{ORDER_NUMBER_MAX_RETRIES} attempts"
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _scoped(self, queryset: models.QuerySet, user_id: Optional[str]) -> models.QuerySet:
        if user_id is not None:
            queryset = queryset.filter(user_id=str(user_id))
        return queryset

    def get_by_id(self, id: str, user_id: Optional[str] = None) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        ``prefetch_related`` loads items (with product and variant),
        payment attempts and status history in batched queries.  Prevents
        N+1.  Returns ``None`` for non-existent, foreign or invalid IDs.
        """
        try:
            queryset = Order.objects.prefetch_related(
                "items__product", "items__variant", "payments", "status_history"
            ).filter(id=id)
            return self._scoped(queryset, user_id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str, user_id: Optional[str] = None) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Eager-loads items so the caller can iterate over them while the
        row is locked.  Returns ``None`` for non-existent, foreign or
        invalid IDs.
        """
        try:
            queryset = (
                Order.objects.select_for_update()
                .prefetch_related("items")
                .filter(id=id)
            )
            return self._scoped(queryset, user_id).first()
        except (ValueError, ValidationError):
            return None

    def list(
        self,
        user_id: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> models.QuerySet:
        """List orders newest first (ties broken by id).

        Supported filter keys are plain ORM look-ups, e.g. ``status``.
        """
        queryset = self._scoped(
            Order.objects.prefetch_related("items__product", "items__variant"),
            user_id,
        )
        if filters:
            queryset = queryset.filter(**filters)
        return queryset.order_by("-created_at", "-id")

    def get_status(self, id: str, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        try:
            queryset = self._scoped(Order.objects.filter(id=id), user_id)
            return queryset.values(*_STATUS_FIELDS).first()
        except (ValueError, ValidationError):
            return None

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist (create or update) an order."""
        entity.save()
        logger.info("order.saved", order_id=str(entity.id), status=entity.status)
        return entity

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        changed_by: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
        history = OrderStatusHistory(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            changed_by=changed_by or "",
            notes=notes or "",
        )
        history.save()

        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history
