"""Order service layer (Use Cases).

Orchestrates the core business logic for order creation,
status management, and cancellation.  All write operations
are atomic; the service defines the unit-of-work boundary.

Business rules enforced:
- Shipping and billing addresses must belong to the acting user.
- Products / variants must exist and be active.
- Stock is reserved with a conditional decrement in the same transaction
  as the order rows; any shortfall rolls everything back.
- Stock is restored on cancellation, atomically with the status change,
  and only from PENDING / CONFIRMED.
- ``shipped_at`` / ``delivered_at`` are set once on entering their status.
- History is recorded on every status change.
- Notifications are dispatched only after commit and never fail the call.
"""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

import structlog
from django.core.paginator import EmptyPage, Paginator
from django.db import transaction

from modules.addresses.exceptions import AddressNotFound
from modules.orders.constants import (
    CANCELLABLE_STATES,
    DEFAULT_PAGE_SIZE,
    INITIAL_STATUS,
    MAX_PAGE_SIZE,
    OrderStatus,
)
from modules.orders.dtos import OrderPage, OrderStatusDTO, PricedLine
from modules.orders.exceptions import (
    InactiveProduct,
    InsufficientStock,
    InvalidOrderStatus,
    InvalidPageRequest,
    OrderCannotBeCancelled,
    OrderNotFound,
)
from modules.orders.pricing import PricingPolicy
from modules.payments.constants import PaymentStatus

if TYPE_CHECKING:
    from modules.addresses.dtos import AddressSnapshot
    from modules.addresses.repositories.interfaces import IAddressBook
    from modules.orders.dtos import (
        CreateOrderDTO,
        CreateOrderItemDTO,
        UpdateOrderStatusDTO,
    )
    from modules.orders.models import Order
    from modules.orders.notifications import INotificationSink
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import ICatalogGateway

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives its collaborators via constructor injection (DIP): the order
    repository, the catalog gateway, the address book and the
    notification sink.  ``strict_transitions`` turns on forward-only
    validation for the administrative status update.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        catalog_gateway: ICatalogGateway,
        address_book: IAddressBook,
        notification_sink: INotificationSink,
        pricing_policy: Optional[PricingPolicy] = None,
        strict_transitions: bool = False,
    ) -> None:
        self._order_repo = order_repository
        self._catalog = catalog_gateway
        self._address_book = address_book
        self._notifier = notification_sink
        self._pricing = pricing_policy or PricingPolicy()
        self._strict_transitions = strict_transitions

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Create a new order with atomic stock reservation.

        Steps:
        1. Resolve shipping then billing address (owned by the user).
        2. For each item: resolve product/variant, check it is active and
           has enough stock, snapshot the unit price.
        3. Price the order (subtotal -> tax -> shipping -> total).
        4. Reserve stock with a conditional decrement per line (sorted
           by product/variant id to keep lock order stable).
        5. Persist order + items and the initial history record.
        6. After commit, dispatch the confirmation notification.

        Raises:
            AddressNotFound: an address is missing or not owned by the user.
            ProductNotFound / VariantNotFound: a referenced item is unknown.
            InactiveProduct: a product or variant is disabled.
            InsufficientStock: not enough stock, at validation or commit time.
        """
        log = logger.bind(user_id=dto.user_id)
        log.info("order.creation_started", item_count=len(dto.items))

        # 1. Addresses
        shipping_address = self._resolve_address(
            dto.shipping_address_id, dto.user_id, "shipping_address_id"
        )
        billing_address = self._resolve_address(
            dto.billing_address_id, dto.user_id, "billing_address_id"
        )

        # 2. Items
        lines = [self._price_line(item) for item in dto.items]

        # 3. Totals
        totals = self._pricing.calculate(sum((line.line_total for line in lines)))

        # 4. Reserve stock
        for line in sorted(lines, key=lambda line: line.lock_key):
            remaining = self._catalog.adjust_stock(
                line.product_id, line.variant_id, -line.quantity
            )
            log.info(
                "order.stock_reserved",
                product_id=str(line.product_id),
                variant_id=str(line.variant_id) if line.variant_id else None,
                quantity=line.quantity,
                remaining=remaining,
            )

        # 5. Persist order + items
        order = self._order_repo.create(
            {
                "user_id": dto.user_id,
                "status": INITIAL_STATUS,
                "payment_method": dto.payment_method,
                "payment_status": PaymentStatus.PENDING,
                "subtotal": totals.subtotal,
                "tax_amount": totals.tax_amount,
                "shipping_amount": totals.shipping_amount,
                "discount_amount": totals.discount_amount,
                "currency": totals.currency,
                "shipping_address": shipping_address.to_record(),
                "billing_address": billing_address.to_record(),
                "notes": dto.notes or "",
                "items": [
                    {
                        "product_id": line.product_id,
                        "variant_id": line.variant_id,
                        "quantity": line.quantity,
                        "unit_price": line.unit_price,
                    }
                    for line in lines
                ],
            }
        )
        self._order_repo.add_history(
            order_id=order.id,
            status=INITIAL_STATUS,
            notes="Order created",
            changed_by=dto.user_id,
        )

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=str(order.total_amount),
        )
        self._on_order_created(order)
        return order

    def update_status(
        self,
        order_id: UUID,
        dto: UpdateOrderStatusDTO,
        changed_by: str = "",
    ) -> Order:
        """Set an order's status (administrative, not owner-scoped).

        Permissive by default: any status may be set, except that a
        ``CANCELLED`` order is never reopened.  With ``strict_transitions``
        only the forward transitions of ``VALID_TRANSITIONS`` are accepted.
        Setting ``CANCELLED`` goes through the cancellation unit of work so
        stock is restored.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: transition rejected (strict mode, leaving
                CANCELLED, or a cancellation outside PENDING / CONFIRMED).
        """
        self._apply_status(order_id, dto, changed_by)
        return self.get_order(str(order_id))

    @transaction.atomic
    def _apply_status(
        self, order_id: UUID, dto: UpdateOrderStatusDTO, changed_by: str
    ) -> None:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        new_status = dto.status
        log = logger.bind(
            order_id=str(order_id),
            current_status=order.status,
            new_status=new_status,
        )

        if self._strict_transitions and not order.can_transition_to(new_status):
            log.warning("order.invalid_transition")
            raise InvalidOrderStatus(
                f"Cannot transition from {order.status} to {new_status}.",
                attr="status",
            )

        # stock of a cancelled order is already back on the shelf
        if order.status == OrderStatus.CANCELLED and new_status != OrderStatus.CANCELLED:
            log.warning("order.reopen_rejected")
            raise InvalidOrderStatus(
                f"Cancelled orders cannot be moved to {new_status}.",
                attr="status",
            )

        if new_status == OrderStatus.CANCELLED:
            self._cancel_locked(
                order,
                notes=dto.notes,
                changed_by=changed_by,
                tracking_number=dto.tracking_number,
            )
        else:
            old_status = order.transition_to(
                new_status,
                tracking_number=dto.tracking_number,
                notes=dto.notes,
            )
            self._order_repo.save(order)
            self._order_repo.add_history(
                order_id=order.id,
                status=new_status,
                notes=dto.notes or "",
                old_status=old_status,
                changed_by=changed_by,
            )
            log.info("order.status_updated")
            self._on_status_changed(order, old_status, new_status)

    def cancel_order(
        self, order_id: UUID, user_id: Optional[str], notes: str = ""
    ) -> Order:
        """Cancel an order owned by ``user_id`` and restore its stock.

        Acquires a row-level lock on the order **first** so concurrent
        cancellations cannot restore stock twice.  ``user_id=None`` skips
        the ownership scope (administrative use).

        Raises:
            OrderNotFound: order does not exist or is not owned by the user.
            OrderCannotBeCancelled: status is not PENDING / CONFIRMED.
        """
        self._cancel(order_id, user_id, notes)
        return self.get_order(str(order_id), user_id=user_id)

    @transaction.atomic
    def _cancel(self, order_id: UUID, user_id: Optional[str], notes: str) -> None:
        order = self._order_repo.get_for_update(str(order_id), user_id=user_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        self._cancel_locked(order, notes=notes, changed_by=user_id or "")

    def _cancel_locked(
        self,
        order: Order,
        notes: Optional[str],
        changed_by: str,
        tracking_number: Optional[str] = None,
    ) -> None:
        """Cancellation unit of work; the caller holds the order row lock."""
        log = logger.bind(order_id=str(order.id), current_status=order.status)

        if order.status not in CANCELLABLE_STATES:
            log.warning("order.cancel_not_allowed")
            raise OrderCannotBeCancelled(
                f"Order cannot be cancelled at this stage (status {order.status})."
            )

        items = sorted(
            order.items.all(),
            key=lambda item: (str(item.product_id), str(item.variant_id or "")),
        )
        for item in items:
            restored = self._catalog.adjust_stock(
                item.product_id, item.variant_id, item.quantity
            )
            log.info(
                "order.stock_released",
                product_id=str(item.product_id),
                variant_id=str(item.variant_id) if item.variant_id else None,
                quantity=item.quantity,
                restored_stock=restored,
            )

        old_status = order.transition_to(
            OrderStatus.CANCELLED,
            tracking_number=tracking_number,
            notes=notes or None,
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.CANCELLED,
            notes=notes or "Order cancelled",
            old_status=old_status,
            changed_by=changed_by,
        )

        log.info("order.cancelled")
        self._on_status_changed(order, old_status, OrderStatus.CANCELLED)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str, user_id: Optional[str] = None) -> Order:
        """Retrieve a single order with items, payments and history.

        Raises:
            OrderNotFound: if the order does not exist (or is not owned
                by ``user_id`` when given).
        """
        order = self._order_repo.get_by_id(str(order_id), user_id=user_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(
        self,
        user_id: Optional[str],
        status: Optional[str] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> OrderPage:
        """Return one page of orders, newest first.

        ``page_size`` above ``MAX_PAGE_SIZE`` is capped.

        Raises:
            InvalidPageRequest: ``page`` or ``page_size`` is below 1.
        """
        errors = [
            {"detail": "Must be 1 or greater.", "attr": name}
            for name, value in (("page", page), ("page_size", page_size))
            if int(value) < 1
        ]
        if errors:
            raise InvalidPageRequest("Invalid page request.", errors=errors)

        page_size = min(int(page_size), MAX_PAGE_SIZE)
        page = int(page)
        filters = {"status": status} if status else None

        paginator = Paginator(self._order_repo.list(user_id, filters), page_size)
        try:
            orders: List[Order] = list(paginator.page(page).object_list)
        except EmptyPage:
            orders = []

        return OrderPage(
            orders=orders,
            page=page,
            page_size=page_size,
            total_count=paginator.count,
            total_pages=paginator.num_pages if paginator.count else 0,
        )

    def get_order_status(self, order_id: str, user_id: Optional[str]) -> OrderStatusDTO:
        """Return the polling projection of an order.

        Raises:
            OrderNotFound: if the order does not exist or is not owned.
        """
        row = self._order_repo.get_status(str(order_id), user_id=user_id)
        if not row:
            raise OrderNotFound(f"Order {order_id} not found.")
        return OrderStatusDTO(**row)

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _resolve_address(
        self, address_id: UUID, user_id: str, field: str
    ) -> AddressSnapshot:
        snapshot = self._address_book.resolve(address_id, user_id)
        if not snapshot:
            label = field.replace("_id", "").replace("_", " ").capitalize()
            raise AddressNotFound(f"{label} not found.", attr=field)
        return snapshot

    def _price_line(self, item: CreateOrderItemDTO) -> PricedLine:
        entity = self._catalog.resolve(item.product_id, item.variant_id)
        if not entity.active:
            raise InactiveProduct(f"Product {entity.name} is not available.", attr="items")
        if entity.stock < item.quantity:
            raise InsufficientStock(
                f"Insufficient stock for {entity.name}: requested "
                f"{item.quantity}, available {entity.stock}.",
                product_name=entity.name,
                requested=item.quantity,
                available=entity.stock,
            )
        return PricedLine(
            product_id=entity.product_id,
            variant_id=entity.variant_id,
            name=entity.name,
            quantity=item.quantity,
            unit_price=entity.price,
        )

    # ------------------------------------------------------------------
    # Notification hooks (run after commit)
    # ------------------------------------------------------------------

    def _on_order_created(self, order: Order) -> None:
        transaction.on_commit(
            partial(self._notifier.notify_order_created, order.id), robust=True
        )

    def _on_status_changed(self, order: Order, old_status: str, new_status: str) -> None:
        logger.info(
            "order.event.status_changed",
            order_id=str(order.id),
            old_status=old_status,
            new_status=new_status,
        )
        transaction.on_commit(
            partial(self._notifier.notify_status_changed, order.id, new_status),
            robust=True,
        )
