"""Celery tasks for order notifications.

Rendering and delivering the actual e-mail belongs to an external
service; these tasks gather the data a message needs and log it.
"""

import structlog
from celery import shared_task

from modules.orders.models import Order

logger = structlog.get_logger(__name__)


@shared_task(name="orders.send_order_confirmation", ignore_result=True)
def send_order_confirmation(order_id: str) -> dict:
    order = Order.objects.filter(id=order_id).first()
    if order is None:
        logger.warning("notification.order_missing", order_id=order_id)
        return {"status": "skipped", "order_id": order_id}

    logger.info(
        "notification.order_confirmation",
        order_id=order_id,
        order_number=order.order_number,
        user_id=order.user_id,
        total_amount=str(order.total_amount),
        currency=order.currency,
    )
    return {"status": "sent", "order_id": order_id}


@shared_task(name="orders.send_order_status_update", ignore_result=True)
def send_order_status_update(order_id: str, new_status: str) -> dict:
    order = Order.objects.filter(id=order_id).first()
    if order is None:
        logger.warning("notification.order_missing", order_id=order_id)
        return {"status": "skipped", "order_id": order_id}

    logger.info(
        "notification.order_status_update",
        order_id=order_id,
        order_number=order.order_number,
        user_id=order.user_id,
        new_status=new_status,
        tracking_number=order.tracking_number,
    )
    return {"status": "sent", "order_id": order_id}
