"""Django ORM implementation of the catalog gateway.

Stock changes are single conditional ``UPDATE`` statements
(``stock_quantity = stock_quantity + delta WHERE stock_quantity >= -delta``),
so two concurrent reservations can never both observe the same last
units: the database serialises the row update and the loser matches
zero rows.  Callers run these inside their own ``transaction.atomic()``
block, which makes the decrement part of the order's unit of work.
"""

from __future__ import annotations

from typing import Optional, Type, Union
from uuid import UUID

import structlog

from django.core.exceptions import ValidationError
from django.db.models import F
from django.utils import timezone

from modules.products.dtos import PricedEntity, PricedProduct, PricedVariant
from modules.products.exceptions import InsufficientStock, ProductNotFound, VariantNotFound
from modules.products.models import Product, ProductVariant
from modules.products.repositories.interfaces import ICatalogGateway

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(ICatalogGateway):
    """Concrete catalog gateway backed by Django ORM."""

    # ------------------------------------------------------------------
    # Look-ups
    # ------------------------------------------------------------------

    def get_by_id(self, id: Union[str, UUID]) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_variant(
        self, product_id: Union[str, UUID], variant_id: Union[str, UUID]
    ) -> Optional[ProductVariant]:
        """Retrieve a variant scoped to its product (``None`` otherwise)."""
        try:
            return (
                ProductVariant.objects.select_related("product")
                .filter(id=variant_id, product_id=product_id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def resolve(
        self, product_id: UUID, variant_id: Optional[UUID] = None
    ) -> PricedEntity:
        product = self.get_by_id(product_id)
        if not product:
            raise ProductNotFound(f"Product with ID {product_id} not found.", attr="items")
        if variant_id is None:
            return PricedProduct.from_entity(product)

        variant = self.get_variant(product_id, variant_id)
        if not variant:
            raise VariantNotFound(
                f"Variant with ID {variant_id} not found for product {product.name}.",
                attr="items",
            )
        return PricedVariant.from_entity(variant)

    # ------------------------------------------------------------------
    # Stock
    # ------------------------------------------------------------------

    def adjust_stock(
        self, product_id: UUID, variant_id: Optional[UUID], delta: int
    ) -> int:
        model: Type[Union[Product, ProductVariant]]
        if variant_id is not None:
            model = ProductVariant
            lookup = {"id": variant_id, "product_id": product_id}
        else:
            model = Product
            lookup = {"id": product_id}

        queryset = model.objects.filter(**lookup)
        if delta < 0:
            queryset = queryset.filter(stock_quantity__gte=-delta)

        updated = 0
        if delta != 0:
            updated = queryset.update(
                stock_quantity=F("stock_quantity") + delta,
                updated_at=timezone.now(),
            )

        current = model.objects.filter(**lookup).values_list(
            "stock_quantity", flat=True
        ).first()
        if current is None:
            if variant_id is not None:
                raise VariantNotFound(f"Variant with ID {variant_id} not found.")
            raise ProductNotFound(f"Product with ID {product_id} not found.")

        if delta != 0 and not updated:
            name = self._display_name(product_id, variant_id)
            logger.warning(
                "catalog.stock_conflict",
                product_id=str(product_id),
                variant_id=str(variant_id) if variant_id else None,
                requested=-delta,
                available=current,
            )
            raise InsufficientStock(
                f"Insufficient stock for {name}: requested {-delta}, "
                f"available {current}.",
                product_name=name,
                requested=-delta,
                available=current,
            )

        logger.info(
            "catalog.stock_adjusted",
            product_id=str(product_id),
            variant_id=str(variant_id) if variant_id else None,
            delta=delta,
            stock=current,
        )
        return current

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _display_name(self, product_id: UUID, variant_id: Optional[UUID]) -> str:
        if variant_id is not None:
            variant = self.get_variant(product_id, variant_id)
            if variant:
                return f"{variant.product.name} ({variant.name})"
        product = self.get_by_id(product_id)
        return product.name if product else str(product_id)
