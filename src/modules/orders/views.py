"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions propagate to the shared exception handler
(``modules.core.exceptions.api_exception_handler``), which renders
them with their error kind. The view never swallows exceptions.
"""

from __future__ import annotations

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.addresses.repositories.django_repository import AddressDjangoRepository
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO, UpdateOrderStatusDTO
from modules.orders.notifications import CeleryNotificationSink
from modules.orders.pricing import PricingPolicy
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    OrderCreatedSerializer,
    OrderListQuerySerializer,
    OrderListSerializer,
    OrderSerializer,
    UpdateOrderStatusSerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository


def build_order_service() -> OrderService:
    """Wire the order service with its Django-backed collaborators."""
    return OrderService(
        order_repository=OrderDjangoRepository(),
        catalog_gateway=ProductDjangoRepository(),
        address_book=AddressDjangoRepository(),
        notification_sink=CeleryNotificationSink(),
        pricing_policy=PricingPolicy.from_settings(),
        strict_transitions=settings.ORDERS_STRICT_TRANSITIONS,
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Customers see and cancel only their own orders; the status update is
    restricted to staff.  Does **not** extend ``ModelViewSet``; all ORM
    access goes through the service/repository layer.
    """

    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_permissions(self):
        if self.action == "update_status":
            return [IsAuthenticated(), IsAdminUser()]
        return super().get_permissions()

    def get_throttles(self) -> list[BaseThrottle]:
        """Define throttling scopes per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "order_status"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    @staticmethod
    def _user_id(request: Request) -> str:
        return str(request.user.pk)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        data = create_serializer.validated_data
        dto = CreateOrderDTO(
            user_id=self._user_id(request),
            items=[
                CreateOrderItemDTO(
                    product_id=item["product_id"],
                    variant_id=item.get("variant_id"),
                    quantity=item["quantity"],
                )
                for item in data["items"]
            ],
            shipping_address_id=data["shipping_address_id"],
            billing_address_id=data["billing_address_id"],
            payment_method=data["payment_method"],
            notes=data.get("notes", ""),
        )

        order = self._service.create_order(dto)
        out = OrderCreatedSerializer(order)
        return Response(out.data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/?status=&page=&page_size="""
        query = OrderListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        page = self._service.list_orders(
            user_id=self._user_id(request),
            status=params.get("status"),
            page=params["page"],
            page_size=params["page_size"],
        )
        return Response(
            {
                "orders": OrderListSerializer(page.orders, many=True).data,
                "pagination": {
                    "current_page": page.page,
                    "page_size": page.page_size,
                    "total_pages": page.total_pages,
                    "total_count": page.total_count,
                    "has_next": page.has_next,
                    "has_prev": page.has_prev,
                },
            }
        )

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(str(pk), user_id=self._user_id(request))
        serializer = OrderSerializer(order)
        return Response(serializer.data)

    # ------------------------------------------------------------------
    # Status polling / administrative update
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get"], url_path="status")
    def order_status(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/status/ (lightweight polling payload)."""
        projection = self._service.get_order_status(
            str(pk), user_id=self._user_id(request)
        )
        return Response(projection.model_dump(mode="json"))

    @order_status.mapping.put
    def update_status(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/status/ (staff only)."""
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = UpdateOrderStatusDTO(**serializer.validated_data)

        order = self._service.update_status(
            order_id=str(pk),
            dto=dto,
            changed_by=self._user_id(request),
        )
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Cancel (dedicated action)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post", "put"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Cancels an order owned by the caller and restores its stock.
        """
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self._service.cancel_order(
            order_id=str(pk),
            user_id=self._user_id(request),
            notes=serializer.validated_data["notes"],
        )
        return Response(OrderSerializer(order).data)
