"""Pricing engine.

Computes order totals from the subtotal in a fixed order:
subtotal -> tax -> shipping -> total.  Free shipping applies only when
the subtotal is *strictly greater* than the threshold.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

CENT = Decimal("0.01")


def to_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    currency: str


@dataclass(frozen=True)
class PricingPolicy:
    tax_rate: Decimal = Decimal("0.10")
    free_shipping_threshold: Decimal = Decimal("100.00")
    flat_shipping_fee: Decimal = Decimal("10.00")
    currency: str = "USD"

    @classmethod
    def from_settings(cls) -> PricingPolicy:
        return cls(
            tax_rate=Decimal(str(settings.ORDER_TAX_RATE)),
            free_shipping_threshold=Decimal(str(settings.ORDER_FREE_SHIPPING_THRESHOLD)),
            flat_shipping_fee=Decimal(str(settings.ORDER_FLAT_SHIPPING_FEE)),
            currency=settings.ORDER_CURRENCY,
        )

    def shipping_for(self, subtotal: Decimal) -> Decimal:
        if subtotal > self.free_shipping_threshold:
            return Decimal("0.00")
        return to_money(self.flat_shipping_fee)

    def calculate(self, subtotal: Decimal) -> OrderTotals:
        subtotal = to_money(subtotal)
        tax_amount = to_money(subtotal * self.tax_rate)
        shipping_amount = self.shipping_for(subtotal)
        discount_amount = Decimal("0.00")
        return OrderTotals(
            subtotal=subtotal,
            tax_amount=tax_amount,
            shipping_amount=shipping_amount,
            discount_amount=discount_amount,
            total_amount=subtotal + tax_amount + shipping_amount - discount_amount,
            currency=self.currency,
        )
