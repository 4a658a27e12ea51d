"""Order domain constants.

Defines status choices, payment methods and the order state machine.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    NOTIFY_DELIVERY = "notify_delivery", "Delivery notified"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    OUT_FOR_DELIVERY = "out_for_delivery", "Out for delivery"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class PaymentMethod(models.TextChoices):
    COD = "cod", "Cash on delivery"
    ONLINE = "online", "Online"


# Legacy clients send the UPI flavour of online payment.
PAYMENT_METHOD_ALIASES: dict[str, str] = {"online_upi": PaymentMethod.ONLINE}


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {
        OrderStatus.CONFIRMED,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.CANCELLED,
    },
    OrderStatus.CONFIRMED: {
        OrderStatus.NOTIFY_DELIVERY,
        OrderStatus.PROCESSING,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.CANCELLED,
    },
    OrderStatus.NOTIFY_DELIVERY: {
        OrderStatus.PROCESSING,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# Statuses from which the ordering customer may still cancel.
CUSTOMER_CANCELLABLE_STATES: set[str] = {OrderStatus.PENDING, OrderStatus.CONFIRMED}

# Statuses from which the delivery head can hand an unassigned order to a boy.
ASSIGNABLE_STATES: set[str] = {
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.NOTIFY_DELIVERY,
    OrderStatus.SHIPPED,
}

# Statuses a delivery boy may take an order from without the head.
AVAILABLE_FOR_PICKUP_STATES: set[str] = {OrderStatus.PENDING, OrderStatus.CONFIRMED}

# Reached only through assignment or take, never through a plain status update.
ASSIGNMENT_ONLY_STATES: set[str] = {OrderStatus.OUT_FOR_DELIVERY}

DELIVERY_OTP_LENGTH = 6
QR_TOKEN_BYTES = 24
