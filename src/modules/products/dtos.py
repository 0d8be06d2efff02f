"""Catalog DTOs consumed by the order engine.

``PricedEntity`` is a tagged union of the two sellable shapes: a plain
product or one of its variants.  Both expose the same capability
(``price``, ``stock``, ``active``) so callers never branch on the
underlying model.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Annotated, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from modules.products.models import Product, ProductVariant


class _Priced(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    name: str
    price: Decimal
    stock: int
    active: bool


class PricedProduct(_Priced):
    kind: Literal["product"] = "product"
    variant_id: Optional[UUID] = None

    @classmethod
    def from_entity(cls, product: Product) -> PricedProduct:
        return cls(
            product_id=product.id,
            name=product.name,
            price=product.price,
            stock=product.stock_quantity,
            active=product.is_active,
        )


class PricedVariant(_Priced):
    kind: Literal["variant"] = "variant"
    variant_id: UUID

    @classmethod
    def from_entity(cls, variant: ProductVariant) -> PricedVariant:
        product = variant.product
        return cls(
            product_id=product.id,
            variant_id=variant.id,
            name=f"{product.name} ({variant.name})",
            price=variant.price,
            stock=variant.stock_quantity,
            # a variant is only sellable while its product is
            active=variant.is_active and product.is_active,
        )


PricedEntity = Annotated[Union[PricedProduct, PricedVariant], Field(discriminator="kind")]
