from decimal import Decimal

import pytest

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.addresses.models import Address
from modules.addresses.repositories.django_repository import AddressDjangoRepository
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.notifications import INotificationSink
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.payments.constants import PaymentMethod
from modules.products.models import Product, ProductStatus, ProductVariant
from modules.products.repositories.django_repository import ProductDjangoRepository

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@pytest.fixture()
def user():
    return User.objects.create_user(username="shopper", password="testpass123")


@pytest.fixture()
def other_user():
    return User.objects.create_user(username="someone-else", password="testpass123")


@pytest.fixture()
def staff_user():
    return User.objects.create_user(
        username="backoffice", password="testpass123", is_staff=True
    )


@pytest.fixture()
def auth_client(user):
    """APIClient with a force-authenticated customer."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def staff_client(staff_user):
    """APIClient with a force-authenticated staff member."""
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


# ---------------------------------------------------------------------------
# Address book
# ---------------------------------------------------------------------------


@pytest.fixture()
def address_factory():
    """Create an address owned by `user_id`."""

    def make(user_id, **overrides):
        data = {
            "user_id": str(user_id),
            "first_name": "Jane",
            "last_name": "Doe",
            "address1": "742 Evergreen Terrace",
            "city": "Springfield",
            "state": "IL",
            "postal_code": "62704",
            "country": "US",
            "phone": "+1 555 0100",
        }
        data.update(overrides)
        return Address.objects.create(**data)

    return make


@pytest.fixture()
def address(user, address_factory):
    return address_factory(user.pk, is_default=True)


@pytest.fixture()
def foreign_address(other_user, address_factory):
    return address_factory(other_user.pk, first_name="Mallory")


@pytest.fixture()
def order_dto_factory(user, address):
    """Build a ``CreateOrderDTO`` for ``user`` shipping/billing to ``address``."""

    def make(*lines, **overrides):
        data = {
            "user_id": str(user.pk),
            "items": [
                CreateOrderItemDTO(
                    product_id=line[0].id,
                    quantity=line[1],
                    variant_id=line[2].id if len(line) > 2 else None,
                )
                for line in lines
            ],
            "shipping_address_id": address.id,
            "billing_address_id": address.id,
            "payment_method": PaymentMethod.CREDIT_CARD,
            "notes": "Test order",
        }
        data.update(overrides)
        return CreateOrderDTO(**data)

    return make


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def product_a():
    return Product.objects.create(
        sku="PROD-A",
        name="Product A",
        price=Decimal("10.00"),
        stock_quantity=100,
        status=ProductStatus.ACTIVE,
    )


@pytest.fixture()
def product_b():
    return Product.objects.create(
        sku="PROD-B",
        name="Product B",
        price=Decimal("25.50"),
        stock_quantity=50,
        status=ProductStatus.ACTIVE,
    )


@pytest.fixture()
def inactive_product():
    return Product.objects.create(
        sku="PROD-OFF",
        name="Retired Product",
        price=Decimal("5.00"),
        stock_quantity=10,
        status=ProductStatus.INACTIVE,
    )


@pytest.fixture()
def low_stock_product():
    return Product.objects.create(
        sku="PROD-LOW",
        name="Low Stock Product",
        price=Decimal("15.00"),
        stock_quantity=2,
        status=ProductStatus.ACTIVE,
    )


@pytest.fixture()
def shirt():
    return Product.objects.create(
        sku="SHIRT",
        name="T-Shirt",
        price=Decimal("20.00"),
        stock_quantity=0,
        status=ProductStatus.ACTIVE,
    )


@pytest.fixture()
def shirt_large(shirt):
    return ProductVariant.objects.create(
        product=shirt,
        sku="SHIRT-L",
        name="Large",
        price=Decimal("22.00"),
        stock_quantity=5,
    )


# ---------------------------------------------------------------------------
# Service wiring
# ---------------------------------------------------------------------------


class RecordingSink(INotificationSink):
    """Notification sink that records what would have been sent."""

    def __init__(self):
        self.created = []
        self.status_changes = []

    def notify_order_created(self, order_id):
        self.created.append(order_id)

    def notify_status_changed(self, order_id, new_status):
        self.status_changes.append((order_id, new_status))


@pytest.fixture()
def sink():
    return RecordingSink()


@pytest.fixture()
def service(sink):
    return OrderService(
        order_repository=OrderDjangoRepository(),
        catalog_gateway=ProductDjangoRepository(),
        address_book=AddressDjangoRepository(),
        notification_sink=sink,
    )


@pytest.fixture()
def strict_service(sink):
    return OrderService(
        order_repository=OrderDjangoRepository(),
        catalog_gateway=ProductDjangoRepository(),
        address_book=AddressDjangoRepository(),
        notification_sink=sink,
        strict_transitions=True,
    )
