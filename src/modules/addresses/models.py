"""Address book entries owned by a user.

``user_id`` is the opaque identifier supplied by the authentication
layer; addresses are only ever resolved together with their owner.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class AddressType(models.TextChoices):
    BILLING = "BILLING", "Billing"
    SHIPPING = "SHIPPING", "Shipping"
    BOTH = "BOTH", "Both"


class Address(BaseModel):
    user_id = models.CharField(max_length=255, db_index=True)
    type = models.CharField(
        max_length=10,
        choices=AddressType.choices,
        default=AddressType.BOTH,
    )
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    company = models.CharField(max_length=255, blank=True, default="")
    address1 = models.CharField(max_length=255)
    address2 = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=20)
    country = models.CharField(max_length=100)
    phone = models.CharField(max_length=30, blank=True, default="")
    is_default = models.BooleanField(default=False)

    class Meta:
        db_table = "addresses"
        ordering = ["-is_default", "-created_at"]

    def __str__(self) -> str:
        return f"{self.first_name} {self.last_name}, {self.address1}, {self.city}"
