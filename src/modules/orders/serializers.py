"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import DEFAULT_PAGE_SIZE, OrderStatus
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.payments.constants import PaymentMethod
from modules.payments.models import Payment

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single item in an order creation request."""

    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    quantity = serializers.IntegerField(min_value=1)


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    shipping_address_id = serializers.UUIDField()
    billing_address_id = serializers.UUIDField()
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class UpdateOrderStatusSerializer(serializers.Serializer):
    """Validates the administrative status update payload."""

    status = serializers.ChoiceField(choices=OrderStatus.choices)
    tracking_number = serializers.CharField(
        required=False, allow_blank=True, max_length=100
    )
    notes = serializers.CharField(required=False, allow_blank=True)


class CancelOrderSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class OrderListQuerySerializer(serializers.Serializer):
    """Validates list query parameters (status filter and pager)."""

    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    # values above MAX_PAGE_SIZE are capped by the service
    page_size = serializers.IntegerField(
        min_value=1,
        required=False,
        default=DEFAULT_PAGE_SIZE,
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items with price snapshot."""

    product_name = serializers.CharField(source="product.name", read_only=True)
    variant_name = serializers.CharField(
        source="variant.name", read_only=True, allow_null=True
    )

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "variant_id",
            "variant_name",
            "quantity",
            "unit_price",
            "line_total",
        ]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "id",
            "amount",
            "method",
            "status",
            "transaction_id",
            "created_at",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "changed_by",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with items, payments and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user_id",
            "status",
            "payment_method",
            "payment_status",
            "subtotal",
            "tax_amount",
            "shipping_amount",
            "discount_amount",
            "total_amount",
            "currency",
            "shipping_address",
            "billing_address",
            "tracking_number",
            "notes",
            "shipped_at",
            "delivered_at",
            "created_at",
            "updated_at",
            "items",
            "payments",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Serializer for order lists (items only, no payments/history)."""

    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "payment_status",
            "total_amount",
            "currency",
            "created_at",
            "items",
        ]
        read_only_fields = fields


class OrderCreatedSerializer(serializers.ModelSerializer):
    """Creation response: identifiers, total and initial status."""

    class Meta:
        model = Order
        fields = ["id", "order_number", "total_amount", "status"]
        read_only_fields = fields
