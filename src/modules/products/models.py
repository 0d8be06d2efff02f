"""Product and ProductVariant models with stock control.

Business rules implemented:
- SKU must be unique in the system (normalised to uppercase).
- Inactive product or variant cannot be sold (enforced by the catalog gateway).
- Price must be greater than zero.
- Stock quantity cannot be negative (column type + CHECK constraint).
"""

from __future__ import annotations

from decimal import Decimal

import structlog

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class StockedItem(BaseModel):
    """Abstract sellable unit: price, stock and an active flag."""

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    stock_quantity = models.PositiveIntegerField(default=0)
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.ACTIVE,
    )

    class Meta:
        abstract = True

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE

    def clean(self) -> None:
        super().clean()
        if self.sku:
            self.sku = self.sku.strip().upper()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})
        if self.stock_quantity is not None and self.stock_quantity < 0:
            raise ValidationError(
                {"stock_quantity": "Stock quantity cannot be negative."}
            )

    def save(self, *args, **kwargs) -> None:
        if self.sku:
            self.sku = self.sku.strip().upper()
        super().save(*args, **kwargs)


class Product(StockedItem):
    """Product aggregate root.

    ``stock_quantity`` is only the stock of the plain product; each
    variant tracks its own stock independently.
    """

    description = models.TextField(blank=True, default="")

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(stock_quantity__gte=0),
                name="products_stock_non_negative",
            ),
        ]

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                sku=self.sku,
                name=self.name,
            )

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"


class ProductVariant(StockedItem):
    """A purchasable variation of a product (size, colour, ...)."""

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="variants",
    )

    class Meta:
        db_table = "product_variants"
        ordering = ["product_id", "name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="variants_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(stock_quantity__gte=0),
                name="variants_stock_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"
