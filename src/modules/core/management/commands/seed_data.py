from __future__ import annotations

import random
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.addresses.models import Address, AddressType
from modules.addresses.repositories.django_repository import AddressDjangoRepository
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO, UpdateOrderStatusDTO
from modules.orders.exceptions import InsufficientStock
from modules.orders.notifications import INotificationSink
from modules.orders.pricing import PricingPolicy
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.payments.constants import PaymentMethod
from modules.products.models import Product, ProductStatus, ProductVariant
from modules.products.repositories.django_repository import ProductDjangoRepository


class _SilentSink(INotificationSink):
    """Seed orders are not announced to anyone."""

    def notify_order_created(self, order_id: UUID) -> None:
        pass

    def notify_status_changed(self, order_id: UUID, new_status: str) -> None:
        pass


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users = self._seed_users()
        addresses = self._seed_addresses(users)
        products = self._seed_products()
        orders_created = self._seed_orders(users, addresses, products)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users)}, "
                f"addresses={len(addresses)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> list:
        User = get_user_model()
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
        customers = []
        for username in ("alice", "bob", "carol"):
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(username, password=f"{username}123")
            customers.append(user)
        return customers

    def _seed_addresses(self, users: Iterable) -> dict[str, Address]:
        self.stdout.write("Creating addresses...")
        addresses: dict[str, Address] = {}
        for user in users:
            address, _ = Address.objects.get_or_create(
                user_id=str(user.pk),
                is_default=True,
                defaults={
                    "type": AddressType.BOTH,
                    "first_name": user.username.capitalize(),
                    "last_name": "Example",
                    "address1": f"{random.randint(1, 999)} Main Street",
                    "city": "Springfield",
                    "state": "IL",
                    "postal_code": "62701",
                    "country": "US",
                },
            )
            addresses[str(user.pk)] = address
        self.stdout.write(self.style.SUCCESS("Creating addresses... Done!"))
        return addresses

    def _seed_products(self) -> list[tuple[Product, ProductVariant | None]]:
        self.stdout.write("Creating products...")
        sellables: list[tuple[Product, ProductVariant | None]] = []
        catalog = [
            ("ELEC-001", "27in Monitor", Decimal("299.90"), []),
            ("ELEC-002", "Mechanical Keyboard", Decimal("89.90"), []),
            ("ELEC-003", "Wireless Mouse", Decimal("24.90"), []),
            ("APP-001", "Cotton T-Shirt", Decimal("19.90"), ["S", "M", "L"]),
            ("APP-002", "Hoodie", Decimal("49.90"), ["M", "L"]),
            ("OFF-001", "A4 Paper (500 sheets)", Decimal("6.50"), []),
            ("OFF-002", "Desk Lamp", Decimal("34.00"), []),
        ]
        for sku, name, price, sizes in catalog:
            product, _ = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "price": price,
                    "stock_quantity": random.randint(10, 200),
                    "status": ProductStatus.ACTIVE,
                },
            )
            if not sizes:
                sellables.append((product, None))
            for size in sizes:
                variant, _ = ProductVariant.objects.get_or_create(
                    sku=f"{sku}-{size}",
                    defaults={
                        "product": product,
                        "name": size,
                        "price": price,
                        "stock_quantity": random.randint(10, 100),
                    },
                )
                sellables.append((product, variant))
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return sellables

    def _seed_orders(
        self,
        users: list,
        addresses: dict[str, Address],
        sellables: list[tuple[Product, ProductVariant | None]],
    ) -> int:
        self.stdout.write("Creating orders...")
        if not users or not sellables:
            self.stdout.write(self.style.WARNING("Skipping orders (no users/products)."))
            return 0

        service = OrderService(
            order_repository=OrderDjangoRepository(),
            catalog_gateway=ProductDjangoRepository(),
            address_book=AddressDjangoRepository(),
            notification_sink=_SilentSink(),
            pricing_policy=PricingPolicy.from_settings(),
        )
        final_statuses = [
            OrderStatus.PENDING,
            OrderStatus.CONFIRMED,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
        ]

        orders_created = 0
        for i in range(30):
            user = random.choice(users)
            address = addresses[str(user.pk)]
            picks = random.sample(sellables, k=min(random.randint(1, 3), len(sellables)))
            dto = CreateOrderDTO(
                user_id=str(user.pk),
                items=[
                    CreateOrderItemDTO(
                        product_id=product.id,
                        variant_id=variant.id if variant else None,
                        quantity=random.randint(1, 3),
                    )
                    for product, variant in picks
                ],
                shipping_address_id=address.id,
                billing_address_id=address.id,
                payment_method=random.choice(PaymentMethod.values),
                notes=f"Seed order {i + 1}",
            )
            try:
                order = service.create_order(dto)
            except InsufficientStock:
                continue

            target = random.choice(final_statuses)
            if target != OrderStatus.PENDING:
                service.update_status(
                    order.id,
                    UpdateOrderStatusDTO(
                        status=target,
                        tracking_number=f"TRK{random.randint(100000, 999999)}"
                        if target in (OrderStatus.SHIPPED, OrderStatus.DELIVERED)
                        else None,
                    ),
                )
            orders_created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return orders_created
