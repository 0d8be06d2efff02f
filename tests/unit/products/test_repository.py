"""Unit tests for the catalog gateway (ProductDjangoRepository).

Covers:
- resolve(): plain products and variants as a tagged PricedEntity.
- Variant naming and the parent product's active flag.
- adjust_stock(): conditional decrement, increments, missing rows.
- SKU normalisation and price/stock model rules.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import TypeAdapter

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from modules.products.dtos import PricedEntity, PricedProduct, PricedVariant
from modules.products.exceptions import (
    InsufficientStock,
    ProductNotFound,
    VariantNotFound,
)
from modules.products.models import Product, ProductStatus, ProductVariant
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.repositories.interfaces import ICatalogGateway

pytestmark = pytest.mark.unit


@pytest.fixture()
def gateway():
    return ProductDjangoRepository()


class TestInterface:
    def test_implements_interface(self, gateway):
        assert isinstance(gateway, ICatalogGateway)


# ===========================================================================
# resolve
# ===========================================================================


class TestResolve:
    def test_plain_product(self, gateway, product_a):
        entity = gateway.resolve(product_a.id)

        assert isinstance(entity, PricedProduct)
        assert entity.kind == "product"
        assert entity.variant_id is None
        assert entity.price == Decimal("10.00")
        assert entity.stock == 100
        assert entity.active is True

    def test_variant(self, gateway, shirt, shirt_large):
        entity = gateway.resolve(shirt.id, shirt_large.id)

        assert isinstance(entity, PricedVariant)
        assert entity.kind == "variant"
        assert entity.product_id == shirt.id
        assert entity.variant_id == shirt_large.id
        assert entity.name == "T-Shirt (Large)"
        assert entity.price == Decimal("22.00")
        assert entity.stock == 5

    def test_inactive_product(self, gateway, inactive_product):
        assert gateway.resolve(inactive_product.id).active is False

    def test_variant_inactive_when_parent_inactive(self, gateway, shirt, shirt_large):
        shirt.status = ProductStatus.INACTIVE
        shirt.save()
        assert gateway.resolve(shirt.id, shirt_large.id).active is False

    def test_inactive_variant(self, gateway, shirt, shirt_large):
        shirt_large.status = ProductStatus.INACTIVE
        shirt_large.save()
        assert gateway.resolve(shirt.id, shirt_large.id).active is False

    def test_unknown_product(self, gateway):
        with pytest.raises(ProductNotFound) as exc_info:
            gateway.resolve(uuid4())
        assert exc_info.value.attr == "items"

    def test_unknown_variant(self, gateway, shirt):
        with pytest.raises(VariantNotFound):
            gateway.resolve(shirt.id, uuid4())

    def test_variant_of_another_product(self, gateway, product_a, shirt_large):
        with pytest.raises(VariantNotFound):
            gateway.resolve(product_a.id, shirt_large.id)

    def test_discriminated_union_round_trip(self, gateway, shirt, shirt_large):
        entity = gateway.resolve(shirt.id, shirt_large.id)
        parsed = TypeAdapter(PricedEntity).validate_python(entity.model_dump())
        assert isinstance(parsed, PricedVariant)


# ===========================================================================
# adjust_stock
# ===========================================================================


class TestAdjustStock:
    def test_decrement(self, gateway, product_a):
        assert gateway.adjust_stock(product_a.id, None, -30) == 70
        product_a.refresh_from_db()
        assert product_a.stock_quantity == 70

    def test_decrement_to_zero(self, gateway, low_stock_product):
        assert gateway.adjust_stock(low_stock_product.id, None, -2) == 0

    def test_decrement_below_zero_refused(self, gateway, low_stock_product):
        with pytest.raises(InsufficientStock) as exc_info:
            gateway.adjust_stock(low_stock_product.id, None, -3)

        error = exc_info.value
        assert error.product_name == "Low Stock Product"
        assert error.requested == 3
        assert error.available == 2
        low_stock_product.refresh_from_db()
        assert low_stock_product.stock_quantity == 2

    def test_increment(self, gateway, low_stock_product):
        assert gateway.adjust_stock(low_stock_product.id, None, 8) == 10

    def test_zero_delta_reads_current(self, gateway, product_a):
        assert gateway.adjust_stock(product_a.id, None, 0) == 100

    def test_variant_stock(self, gateway, shirt, shirt_large):
        assert gateway.adjust_stock(shirt.id, shirt_large.id, -5) == 0
        shirt.refresh_from_db()
        assert shirt.stock_quantity == 0

        with pytest.raises(InsufficientStock) as exc_info:
            gateway.adjust_stock(shirt.id, shirt_large.id, -1)
        assert exc_info.value.product_name == "T-Shirt (Large)"

    def test_missing_product(self, gateway):
        with pytest.raises(ProductNotFound):
            gateway.adjust_stock(uuid4(), None, 1)

    def test_missing_variant(self, gateway, shirt):
        with pytest.raises(VariantNotFound):
            gateway.adjust_stock(shirt.id, uuid4(), -1)

    def test_bumps_updated_at(self, gateway, product_a):
        before = product_a.updated_at
        gateway.adjust_stock(product_a.id, None, -1)
        product_a.refresh_from_db()
        assert product_a.updated_at >= before


# ===========================================================================
# Model rules
# ===========================================================================


class TestStockedItemRules:
    def test_sku_normalised(self):
        product = Product.objects.create(sku="  abc-1 ", name="Thing", price=Decimal("1.00"))
        assert product.sku == "ABC-1"

    def test_sku_unique(self, product_a):
        with pytest.raises(IntegrityError), transaction.atomic():
            Product.objects.create(sku="prod-a", name="Dup", price=Decimal("1.00"))

    def test_clean_rejects_zero_price(self):
        with pytest.raises(ValidationError):
            Product(sku="FREE", name="Free", price=Decimal("0.00")).clean()

    def test_database_rejects_zero_price(self):
        with pytest.raises(IntegrityError), transaction.atomic():
            Product.objects.create(sku="FREE", name="Free", price=Decimal("0.00"))

    def test_variant_is_protected_product(self, shirt, shirt_large):
        from django.db.models import ProtectedError

        with pytest.raises(ProtectedError):
            shirt.delete()

    def test_variant_listing(self, shirt, shirt_large):
        ProductVariant.objects.create(
            product=shirt, sku="SHIRT-S", name="Small", price=Decimal("20.00")
        )
        assert shirt.variants.count() == 2
