"""Order domain constants.

Status choices, payment enums and the transition table of the order
state machine.

Fulfilment moves forward only: a live order may jump ahead to any later
status (a seller can mark a PENDING order DELIVERED directly) or be
cancelled, but never goes back.  DELIVERED and CANCELLED are terminal.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PROCESSING = "PROCESSING", "Processing"
    SHIPPED = "SHIPPED", "Shipped"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"


class PaymentMethod(models.TextChoices):
    CREDIT_CARD = "CREDIT_CARD", "Credit card"
    DEBIT_CARD = "DEBIT_CARD", "Debit card"
    BANK_TRANSFER = "BANK_TRANSFER", "Bank transfer"
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY", "Cash on delivery"


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"
    FAILED = "FAILED", "Failed"
    REFUNDED = "REFUNDED", "Refunded"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PROCESSING: {
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# Statuses from which the customer-facing cancel endpoint is allowed.
CUSTOMER_CANCELLABLE: set[str] = {OrderStatus.PENDING, OrderStatus.PROCESSING}

ORDER_NUMBER_MAX_RETRIES = 5
