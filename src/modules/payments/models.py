"""Payment attempts recorded against an order.

Capture and settlement happen in an external gateway; this model only
keeps what the gateway reported so an order can show its latest
attempts.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel
from modules.payments.constants import PaymentMethod, PaymentStatus


class Payment(BaseModel):
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    transaction_id = models.CharField(max_length=255, blank=True, default="")
    gateway_response = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "payments"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["order", "-created_at"], name="payments_order_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.method} {self.amount} [{self.status}]"
