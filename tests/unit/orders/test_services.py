"""Unit tests for OrderService.create_order and the query operations.

Covers:
- Order creation: pricing, price snapshots, stock reservation.
- Variant lines priced and reserved against the variant.
- Address ownership and snapshotting.
- Product validation (unknown, inactive, insufficient stock).
- Atomicity: a failing line rolls back every reservation.
- Stock exhausted between validation and reservation.
- Notification dispatched after commit only.
- get_order / list_orders / get_order_status ownership and paging.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import (
    AddressNotFound,
    InactiveProduct,
    InsufficientStock,
    InvalidPageRequest,
    OrderNotFound,
    ProductNotFound,
    VariantNotFound,
)
from modules.orders.models import Order, OrderStatusHistory
from modules.products.dtos import PricedProduct
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.unit


# ===========================================================================
# create_order: Happy Path
# ===========================================================================


class TestCreateOrderSuccess:
    def test_creates_pending_order(self, service, order_dto_factory, product_a, product_b, user):
        order = service.create_order(order_dto_factory((product_a, 2), (product_b, 1)))

        assert order.status == OrderStatus.PENDING
        assert order.order_number.startswith("ORD-")
        assert order.user_id == str(user.pk)
        assert order.items.count() == 2

    def test_totals(self, service, order_dto_factory, product_a, product_b):
        # 2 x 10.00 + 1 x 25.50 = 45.50
        order = service.create_order(order_dto_factory((product_a, 2), (product_b, 1)))
        order.refresh_from_db()

        assert order.subtotal == Decimal("45.50")
        assert order.tax_amount == Decimal("4.55")
        assert order.shipping_amount == Decimal("10.00")
        assert order.discount_amount == Decimal("0.00")
        assert order.total_amount == Decimal("60.05")
        assert order.currency == "USD"

    def test_threshold_subtotal_pays_shipping(self, service, order_dto_factory, product_a):
        order = service.create_order(order_dto_factory((product_a, 10)))

        assert order.subtotal == Decimal("100.00")
        assert order.shipping_amount == Decimal("10.00")
        assert order.total_amount == Decimal("120.00")

    def test_large_order_ships_free(self, service, order_dto_factory, product_a, product_b):
        # 10.00 + 4 x 25.50 = 112.00
        order = service.create_order(order_dto_factory((product_a, 1), (product_b, 4)))

        assert order.shipping_amount == Decimal("0.00")
        assert order.total_amount == Decimal("123.20")

    def test_reserves_stock(self, service, order_dto_factory, product_a, product_b):
        service.create_order(order_dto_factory((product_a, 3), (product_b, 5)))

        product_a.refresh_from_db()
        product_b.refresh_from_db()
        assert product_a.stock_quantity == 97
        assert product_b.stock_quantity == 45

    def test_snapshots_unit_price(self, service, order_dto_factory, product_a):
        order = service.create_order(order_dto_factory((product_a, 2)))
        item = order.items.get()

        Product.objects.filter(id=product_a.id).update(price=Decimal("99.99"))

        item.refresh_from_db()
        assert item.unit_price == Decimal("10.00")
        assert item.line_total == Decimal("20.00")

    def test_snapshots_addresses(self, service, order_dto_factory, product_a, address):
        order = service.create_order(order_dto_factory((product_a, 1)))

        address.city = "Shelbyville"
        address.save()

        order.refresh_from_db()
        assert order.shipping_address["city"] == "Springfield"
        assert order.shipping_address["id"] == str(address.id)
        assert order.billing_address == order.shipping_address

    def test_separate_billing_address(
        self, service, order_dto_factory, product_a, user, address_factory
    ):
        billing = address_factory(user.pk, address1="1 Billing Way", company="ACME")
        order = service.create_order(
            order_dto_factory((product_a, 1), billing_address_id=billing.id)
        )

        assert order.billing_address["address1"] == "1 Billing Way"
        assert order.billing_address["company"] == "ACME"
        assert order.shipping_address["address1"] == "742 Evergreen Terrace"

    def test_records_initial_history(self, service, order_dto_factory, product_a, user):
        order = service.create_order(order_dto_factory((product_a, 1)))

        history = OrderStatusHistory.objects.get(order=order)
        assert history.old_status is None
        assert history.new_status == OrderStatus.PENDING
        assert history.notes == "Order created"
        assert history.changed_by == str(user.pk)

    def test_keeps_payment_method_and_notes(self, service, order_dto_factory, product_a):
        order = service.create_order(
            order_dto_factory((product_a, 1), payment_method="PAYPAL", notes="Gift wrap")
        )
        assert order.payment_method == "PAYPAL"
        assert order.payment_status == "PENDING"
        assert order.notes == "Gift wrap"


class TestCreateOrderWithVariants:
    def test_variant_price_and_stock(self, service, order_dto_factory, shirt, shirt_large):
        order = service.create_order(order_dto_factory((shirt, 2, shirt_large)))

        item = order.items.get()
        assert item.variant_id == shirt_large.id
        assert item.unit_price == Decimal("22.00")
        assert order.subtotal == Decimal("44.00")

        shirt.refresh_from_db()
        shirt_large.refresh_from_db()
        assert shirt_large.stock_quantity == 3
        # the parent product's own stock is untouched
        assert shirt.stock_quantity == 0

    def test_variant_of_other_product(self, service, order_dto_factory, product_a, shirt_large):
        with pytest.raises(VariantNotFound):
            service.create_order(order_dto_factory((product_a, 1, shirt_large)))

    def test_variant_out_of_stock(self, service, order_dto_factory, shirt, shirt_large):
        with pytest.raises(InsufficientStock) as exc_info:
            service.create_order(order_dto_factory((shirt, 6, shirt_large)))

        assert exc_info.value.product_name == "T-Shirt (Large)"
        assert exc_info.value.available == 5

    def test_inactive_parent_blocks_variant(self, service, order_dto_factory, shirt, shirt_large):
        Product.objects.filter(id=shirt.id).update(status=ProductStatus.INACTIVE)

        with pytest.raises(InactiveProduct):
            service.create_order(order_dto_factory((shirt, 1, shirt_large)))


# ===========================================================================
# create_order: Validation failures
# ===========================================================================


class TestCreateOrderValidation:
    def test_unknown_shipping_address(self, service, order_dto_factory, product_a):
        with pytest.raises(AddressNotFound) as exc_info:
            service.create_order(
                order_dto_factory((product_a, 1), shipping_address_id=uuid4())
            )
        assert exc_info.value.attr == "shipping_address_id"

    def test_foreign_shipping_address(
        self, service, order_dto_factory, product_a, foreign_address
    ):
        with pytest.raises(AddressNotFound) as exc_info:
            service.create_order(
                order_dto_factory((product_a, 1), shipping_address_id=foreign_address.id)
            )
        assert str(exc_info.value) == "Shipping address not found."

    def test_foreign_billing_address(
        self, service, order_dto_factory, product_a, foreign_address
    ):
        with pytest.raises(AddressNotFound) as exc_info:
            service.create_order(
                order_dto_factory((product_a, 1), billing_address_id=foreign_address.id)
            )
        assert exc_info.value.attr == "billing_address_id"

    def test_unknown_product(self, service, order_dto_factory):
        ghost = Product(id=uuid4())
        with pytest.raises(ProductNotFound):
            service.create_order(order_dto_factory((ghost, 1)))

    def test_inactive_product(self, service, order_dto_factory, inactive_product):
        with pytest.raises(InactiveProduct) as exc_info:
            service.create_order(order_dto_factory((inactive_product, 1)))
        assert "Retired Product" in str(exc_info.value)

    def test_insufficient_stock(self, service, order_dto_factory, low_stock_product):
        with pytest.raises(InsufficientStock) as exc_info:
            service.create_order(order_dto_factory((low_stock_product, 3)))

        error = exc_info.value
        assert error.product_name == "Low Stock Product"
        assert error.requested == 3
        assert error.available == 2
        assert error.attr == "items"

    def test_failure_creates_nothing(self, service, order_dto_factory, low_stock_product):
        with pytest.raises(InsufficientStock):
            service.create_order(order_dto_factory((low_stock_product, 3)))

        assert Order.objects.count() == 0
        assert OrderStatusHistory.objects.count() == 0


# ===========================================================================
# create_order: Atomicity
# ===========================================================================


class TestCreateOrderAtomicity:
    def test_failing_line_rolls_back_earlier_reservations(
        self, service, order_dto_factory, product_a, low_stock_product
    ):
        with pytest.raises(InsufficientStock):
            service.create_order(
                order_dto_factory((product_a, 5), (low_stock_product, 10))
            )

        product_a.refresh_from_db()
        low_stock_product.refresh_from_db()
        assert product_a.stock_quantity == 100
        assert low_stock_product.stock_quantity == 2
        assert Order.objects.count() == 0

    def test_stock_taken_after_validation(self, service, order_dto_factory, product_a, low_stock_product):
        """Stock sold elsewhere between the check and the reservation."""
        real_resolve = ProductDjangoRepository.resolve

        def stale_resolve(self, product_id, variant_id=None):
            entity = real_resolve(self, product_id, variant_id)
            if product_id == low_stock_product.id:
                # another buyer takes the last units right after we looked
                Product.objects.filter(id=product_id).update(stock_quantity=0)
                return PricedProduct(**{**entity.model_dump(), "stock": 2})
            return entity

        with patch.object(ProductDjangoRepository, "resolve", stale_resolve):
            with pytest.raises(InsufficientStock) as exc_info:
                service.create_order(
                    order_dto_factory((product_a, 4), (low_stock_product, 2))
                )

        assert exc_info.value.available == 0
        product_a.refresh_from_db()
        assert product_a.stock_quantity == 100
        assert Order.objects.count() == 0

    def test_persistence_failure_restores_stock(self, service, order_dto_factory, product_a):
        with patch(
            "modules.orders.repositories.django_repository.OrderItem.save",
            side_effect=RuntimeError("disk full"),
        ):
            with pytest.raises(RuntimeError):
                service.create_order(order_dto_factory((product_a, 4)))

        product_a.refresh_from_db()
        assert product_a.stock_quantity == 100
        assert Order.objects.count() == 0


# ===========================================================================
# Notifications
# ===========================================================================


class TestCreateOrderNotification:
    def test_dispatched_after_commit(
        self, service, order_dto_factory, product_a, sink, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            order = service.create_order(order_dto_factory((product_a, 1)))

        assert len(callbacks) == 1
        assert sink.created == [order.id]

    def test_not_dispatched_on_failure(
        self, service, order_dto_factory, low_stock_product, sink, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(InsufficientStock):
                service.create_order(order_dto_factory((low_stock_product, 9)))

        assert callbacks == []
        assert sink.created == []


# ===========================================================================
# Queries
# ===========================================================================


@pytest.fixture()
def place_order(service, order_dto_factory, product_a):
    def place(**overrides):
        return service.create_order(order_dto_factory((product_a, 1), **overrides))

    return place


class TestGetOrder:
    def test_owner_can_read(self, service, place_order, user):
        order = place_order()
        fetched = service.get_order(str(order.id), user_id=str(user.pk))
        assert fetched.id == order.id

    def test_other_user_gets_not_found(self, service, place_order, other_user):
        order = place_order()
        with pytest.raises(OrderNotFound):
            service.get_order(str(order.id), user_id=str(other_user.pk))

    def test_invalid_id(self, service, user):
        with pytest.raises(OrderNotFound):
            service.get_order("not-a-uuid", user_id=str(user.pk))


class TestListOrders:
    def test_newest_first_and_scoped(
        self, service, place_order, user, other_user, address_factory, product_a
    ):
        first = place_order()
        second = place_order()
        foreign_address = address_factory(other_user.pk)
        service.create_order(
            CreateOrderDTO(
                user_id=str(other_user.pk),
                items=[CreateOrderItemDTO(product_id=product_a.id, quantity=1)],
                shipping_address_id=foreign_address.id,
                billing_address_id=foreign_address.id,
                payment_method="CASH_ON_DELIVERY",
            )
        )

        page = service.list_orders(user_id=str(user.pk))

        assert [o.id for o in page.orders] == [second.id, first.id]
        assert page.total_count == 2
        assert page.total_pages == 1
        assert not page.has_next
        assert not page.has_prev

    def test_status_filter(self, service, place_order, user):
        keep = place_order()
        cancelled = place_order()
        service.cancel_order(cancelled.id, user_id=str(user.pk))

        page = service.list_orders(user_id=str(user.pk), status=OrderStatus.PENDING)
        assert [o.id for o in page.orders] == [keep.id]

    def test_paging(self, service, place_order, user):
        for _ in range(5):
            place_order()

        page = service.list_orders(user_id=str(user.pk), page=2, page_size=2)

        assert len(page.orders) == 2
        assert page.total_count == 5
        assert page.total_pages == 3
        assert page.has_next
        assert page.has_prev

    def test_page_past_the_end_is_empty(self, service, place_order, user):
        place_order()
        page = service.list_orders(user_id=str(user.pk), page=9)

        assert page.orders == []
        assert page.total_count == 1
        assert not page.has_next

    def test_page_size_capped(self, service, place_order, user):
        place_order()
        page = service.list_orders(user_id=str(user.pk), page_size=500)
        assert page.page_size == 100

    def test_page_below_one_lists_every_bad_field(self, service, user):
        with pytest.raises(InvalidPageRequest) as exc_info:
            service.list_orders(user_id=str(user.pk), page=0, page_size=-5)

        assert [error["attr"] for error in exc_info.value.errors] == ["page", "page_size"]

    def test_no_orders(self, service, user):
        page = service.list_orders(user_id=str(user.pk))
        assert page.orders == []
        assert page.total_pages == 0
        assert not page.has_next


class TestGetOrderStatus:
    def test_projection(self, service, place_order, user):
        order = place_order()
        projection = service.get_order_status(str(order.id), user_id=str(user.pk))

        assert projection.id == order.id
        assert projection.order_number == order.order_number
        assert projection.status == OrderStatus.PENDING
        assert projection.payment_status == "PENDING"
        assert projection.tracking_number == ""

    def test_other_user_gets_not_found(self, service, place_order, other_user):
        order = place_order()
        with pytest.raises(OrderNotFound):
            service.get_order_status(str(order.id), user_id=str(other_user.pk))

