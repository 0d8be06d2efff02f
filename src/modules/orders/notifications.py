"""Notification sink for order lifecycle messages.

Dispatch is best-effort: the order is already committed when the sink is
called, so a failure to enqueue is logged and never reaches the caller.
Nothing here retries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID

import structlog

from modules.orders.tasks import send_order_confirmation, send_order_status_update

logger = structlog.get_logger(__name__)


class INotificationSink(ABC):
    @abstractmethod
    def notify_order_created(self, order_id: UUID) -> None:
        """Queue the order confirmation message."""

    @abstractmethod
    def notify_status_changed(self, order_id: UUID, new_status: str) -> None:
        """Queue the status-update message."""


class CeleryNotificationSink(INotificationSink):
    """Enqueues Celery tasks without waiting for them."""

    def notify_order_created(self, order_id: UUID) -> None:
        self._enqueue(send_order_confirmation, str(order_id))

    def notify_status_changed(self, order_id: UUID, new_status: str) -> None:
        self._enqueue(send_order_status_update, str(order_id), str(new_status))

    @staticmethod
    def _enqueue(task: Any, *args: str) -> None:
        try:
            task.delay(*args)
        except Exception:
            logger.exception("notification.dispatch_failed", task=task.name, args=args)
        else:
            logger.info("notification.dispatched", task=task.name, args=args)
