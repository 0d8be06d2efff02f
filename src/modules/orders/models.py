"""Order, OrderItem, and OrderStatusHistory models.

Business rules implemented:
- ``total_amount`` is always ``subtotal + tax + shipping - discount``
  (recomputed on save, never taken from the client).
- Shipping and billing addresses are JSON snapshots copied at creation.
- ``shipped_at`` / ``delivered_at`` are set once, on the first transition
  into SHIPPED / DELIVERED, and never reset.
- Each status change generates an append-only history record.
- Order number auto-generated as human-readable identifier.
- OrderItem snapshots the unit price at creation time; ``line_total`` is
  always ``quantity * unit_price`` (calculated on save).
"""

from __future__ import annotations

import secrets
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    VALID_TRANSITIONS,
    OrderStatus,
)
from modules.payments.constants import PaymentMethod, PaymentStatus

logger = structlog.get_logger(__name__)


def _money_field(**kwargs: Any) -> models.DecimalField:
    return models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        **kwargs,
    )


class Order(BaseModel):
    """Order aggregate root.

    ``order_number`` is a human-readable identifier
    (format: ``ORD-YYYYMMDDHHMMSS-XXXXXX``).  The UUIDv7 ``id`` is used for
    all internal references and API lookups.  ``user_id`` is the opaque
    identifier of the owning user.
    """

    order_number: models.CharField = models.CharField(
        max_length=32, unique=True, editable=False
    )
    user_id: models.CharField = models.CharField(max_length=255)
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    payment_method: models.CharField = models.CharField(
        max_length=20, choices=PaymentMethod.choices
    )
    payment_status: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    subtotal: models.DecimalField = _money_field()
    tax_amount: models.DecimalField = _money_field()
    shipping_amount: models.DecimalField = _money_field()
    discount_amount: models.DecimalField = _money_field()
    total_amount: models.DecimalField = _money_field()
    currency: models.CharField = models.CharField(max_length=3, default="USD")
    shipping_address: models.JSONField = models.JSONField()
    billing_address: models.JSONField = models.JSONField()
    tracking_number: models.CharField = models.CharField(
        max_length=100, blank=True, default=""
    )
    notes: models.TextField = models.TextField(blank=True, default="")
    shipped_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    delivered_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["user_id", "-created_at"], name="orders_user_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(subtotal__gte=0)
                & models.Q(tax_amount__gte=0)
                & models.Q(shipping_amount__gte=0)
                & models.Q(discount_amount__gte=0)
                & models.Q(total_amount__gte=0),
                name="orders_amounts_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether *new_status* is a forward transition in the table."""
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    def transition_to(
        self,
        new_status: str,
        *,
        tracking_number: Optional[str] = None,
        notes: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> str:
        """Move to *new_status* and apply its timestamp side effects.

        Legality is the caller's concern.  Returns the previous status.
        """
        old_status = self.status
        now = at or timezone.now()

        if new_status == OrderStatus.SHIPPED and old_status != OrderStatus.SHIPPED:
            if self.shipped_at is None:
                self.shipped_at = now
        if new_status == OrderStatus.DELIVERED and old_status != OrderStatus.DELIVERED:
            if self.delivered_at is None:
                self.delivered_at = now

        if tracking_number is not None:
            self.tracking_number = tracking_number
        if notes is not None:
            self.notes = notes

        self.status = new_status
        return old_status

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDDHHMMSS-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d%H%M%S}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def recalculate_total(self) -> Decimal:
        self.total_amount = (
            self.subtotal + self.tax_amount + self.shipping_amount - self.discount_amount
        )
        return self.total_amount

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            self.order_number = self.generate_order_number()
        self.recalculate_total()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "total_amount" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["total_amount"]
        super().save(*args, **kwargs)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item linking an Order to a Product (and optionally a variant).

    ``unit_price`` is a **snapshot** of the price at the time of
    purchase; it never changes even if the catalog price is updated later.
    ``line_total`` is always ``quantity * unit_price``, recalculated on every save.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    variant: models.ForeignKey = models.ForeignKey(
        "products.ProductVariant",
        on_delete=models.PROTECT,
        related_name="order_items",
        null=True,
        blank=True,
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
    )
    line_total: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.unit_price is None:
            raise ValidationError({"unit_price": "Unit price is required."})
        self.line_total = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.product_id} x{self.quantity} (${self.line_total})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    ``changed_by`` is the opaque id of the acting user; an empty string
    means the change was performed by the system.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    changed_by: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order} : {self.old_status} -> {self.new_status}"
