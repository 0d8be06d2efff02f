"""Payment enumerations shared with the orders module."""

from django.db import models


class PaymentMethod(models.TextChoices):
    CREDIT_CARD = "CREDIT_CARD", "Credit card"
    DEBIT_CARD = "DEBIT_CARD", "Debit card"
    PAYPAL = "PAYPAL", "PayPal"
    STRIPE = "STRIPE", "Stripe"
    BANK_TRANSFER = "BANK_TRANSFER", "Bank transfer"
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY", "Cash on delivery"


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PROCESSING = "PROCESSING", "Processing"
    COMPLETED = "COMPLETED", "Completed"
    FAILED = "FAILED", "Failed"
    CANCELLED = "CANCELLED", "Cancelled"
    REFUNDED = "REFUNDED", "Refunded"
