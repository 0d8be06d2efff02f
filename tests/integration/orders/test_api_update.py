"""Integration tests for the status update and cancel endpoints.

Covers:
- PUT /status/ is staff-only (403 for customers, 401 anonymous).
- Staff can move an order to any status; tracking/notes persisted.
- Strict mode rejects non-forward transitions with 409.
- Staff cancellation through PUT /status/ restores stock.
- POST/PUT /cancel/ by the owner restores stock; conflicts on repeat.
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.models import OrderStatusHistory

pytestmark = pytest.mark.integration


@pytest.fixture()
def order(service, order_dto_factory, product_a):
    return service.create_order(order_dto_factory((product_a, 4)))


def status_url(order_id):
    return f"/api/v1/orders/{order_id}/status/"


def cancel_url(order_id):
    return f"/api/v1/orders/{order_id}/cancel/"


class TestUpdateStatusPermissions:
    def test_customer_is_forbidden(self, auth_client, order):
        response = auth_client.put(status_url(order.id), {"status": "SHIPPED"}, format="json")

        assert response.status_code == 403
        assert response.json()["errors"][0]["code"] == "FORBIDDEN"
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING

    def test_anonymous_is_unauthorized(self, api_client, order):
        response = api_client.put(status_url(order.id), {"status": "SHIPPED"}, format="json")
        assert response.status_code == 401


class TestUpdateStatus:
    def test_staff_ships_order(self, staff_client, order, staff_user):
        response = staff_client.put(
            status_url(order.id),
            {"status": "SHIPPED", "tracking_number": "1Z999", "notes": "Carrier picked up"},
            format="json",
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "SHIPPED"
        assert data["tracking_number"] == "1Z999"
        assert data["notes"] == "Carrier picked up"
        assert data["shipped_at"] is not None

        entry = OrderStatusHistory.objects.filter(order=order).first()
        assert entry.changed_by == str(staff_user.pk)

    def test_staff_can_skip_states_by_default(self, staff_client, order):
        response = staff_client.put(status_url(order.id), {"status": "DELIVERED"}, format="json")

        assert response.status_code == 200
        assert response.json()["delivered_at"] is not None

    def test_strict_mode_rejects_skip(self, staff_client, order, settings):
        settings.ORDERS_STRICT_TRANSITIONS = True
        response = staff_client.put(status_url(order.id), {"status": "DELIVERED"}, format="json")

        assert response.status_code == 409
        error = response.json()["errors"][0]
        assert error["code"] == "CONFLICT"
        assert error["attr"] == "status"

    def test_unknown_status(self, staff_client, order):
        response = staff_client.put(status_url(order.id), {"status": "LOST"}, format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "status"

    def test_unknown_order(self, staff_client):
        response = staff_client.put(status_url(uuid4()), {"status": "SHIPPED"}, format="json")
        assert response.status_code == 404

    def test_staff_cancel_restores_stock(self, staff_client, order, product_a):
        response = staff_client.put(status_url(order.id), {"status": "CANCELLED"}, format="json")

        assert response.status_code == 200
        product_a.refresh_from_db()
        assert product_a.stock_quantity == 100

    def test_staff_cancel_after_shipping_conflicts(self, staff_client, order):
        staff_client.put(status_url(order.id), {"status": "SHIPPED"}, format="json")
        response = staff_client.put(status_url(order.id), {"status": "CANCELLED"}, format="json")

        assert response.status_code == 409

    def test_staff_cannot_reopen_cancelled_order(self, staff_client, order, product_a):
        staff_client.put(status_url(order.id), {"status": "CANCELLED"}, format="json")
        response = staff_client.put(status_url(order.id), {"status": "PENDING"}, format="json")

        assert response.status_code == 409
        assert response.json()["errors"][0]["attr"] == "status"
        product_a.refresh_from_db()
        assert product_a.stock_quantity == 100

    def test_staff_can_update_any_users_order(self, staff_client, order):
        response = staff_client.put(status_url(order.id), {"status": "CONFIRMED"}, format="json")
        assert response.status_code == 200


class TestCancelOrder:
    def test_owner_cancels(self, auth_client, order, product_a):
        response = auth_client.post(cancel_url(order.id), {"notes": "Ordered by mistake"}, format="json")

        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"
        product_a.refresh_from_db()
        assert product_a.stock_quantity == 100

    def test_put_also_cancels(self, auth_client, order):
        response = auth_client.put(cancel_url(order.id), {}, format="json")
        assert response.status_code == 200

    def test_second_cancel_conflicts(self, auth_client, order, product_a):
        auth_client.post(cancel_url(order.id), {}, format="json")
        response = auth_client.post(cancel_url(order.id), {}, format="json")

        assert response.status_code == 409
        assert "cannot be cancelled" in response.json()["errors"][0]["detail"]
        product_a.refresh_from_db()
        assert product_a.stock_quantity == 100

    def test_shipped_order_conflicts(self, auth_client, staff_client, order, product_a):
        staff_client.put(status_url(order.id), {"status": "SHIPPED"}, format="json")
        response = auth_client.post(cancel_url(order.id), {}, format="json")

        assert response.status_code == 409
        product_a.refresh_from_db()
        assert product_a.stock_quantity == 96

    def test_other_user_gets_404(self, api_client, other_user, order):
        api_client.force_authenticate(user=other_user)
        response = api_client.post(cancel_url(order.id), {}, format="json")
        assert response.status_code == 404
