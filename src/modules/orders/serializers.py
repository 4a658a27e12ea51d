"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.

Creation input keeps the storefront's camelCase keys; ``source`` maps
them onto the snake_case names the DTOs expect.  Output is snake_case.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.delivery.serializers import DeliveryBoySummarySerializer
from modules.orders.models import Order, OrderItem, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class ShippingDetailsInputSerializer(serializers.Serializer):
    firstName = serializers.CharField(source="first_name")
    lastName = serializers.CharField(source="last_name")
    email = serializers.EmailField()
    phone = serializers.CharField()
    address = serializers.CharField()
    city = serializers.CharField()
    state = serializers.CharField()
    pincode = serializers.CharField()
    country = serializers.CharField(required=False, default="India")


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single item in an order creation request.

    A client ``price`` is accepted for compatibility and ignored.
    """

    productId = serializers.UUIDField(source="product_id")
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, write_only=True
    )
    selectedSize = serializers.CharField(
        source="selected_size", required=False, allow_null=True, allow_blank=True
    )
    selectedColor = serializers.CharField(
        source="selected_color", required=False, allow_null=True, allow_blank=True
    )


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    shippingDetails = ShippingDetailsInputSerializer(source="shipping_details")
    paymentMethod = serializers.CharField(source="payment_method", default="cod")
    paid = serializers.BooleanField(default=False)
    orderNotes = serializers.CharField(
        source="order_notes", required=False, default="", allow_blank=True
    )
    subtotal = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False
    )
    deliveryFee = serializers.DecimalField(
        source="delivery_fee",
        max_digits=12,
        decimal_places=2,
        min_value=0,
        default=0,
    )
    total = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False
    )


class NotesSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class UpdateStatusSerializer(NotesSerializer):
    status = serializers.CharField()
    trackingId = serializers.CharField(
        source="tracking_id", required=False, allow_blank=True, max_length=100
    )


class AssignOrderSerializer(serializers.Serializer):
    orderId = serializers.UUIDField(source="order_id")
    boyId = serializers.CharField(source="boy_id")


class DeliveryOtpSerializer(serializers.Serializer):
    otp = serializers.CharField(required=False, allow_blank=True, default="")


class QrConfirmSerializer(serializers.Serializer):
    orderId = serializers.CharField(
        source="order_id", required=False, allow_blank=True, default=""
    )
    boyId = serializers.CharField(
        source="boy_id", required=False, allow_blank=True, default=""
    )
    qrToken = serializers.CharField(
        source="qr_token", required=False, allow_blank=True, default=""
    )


class SettlementSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False
    )
    method = serializers.CharField(required=False)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items with product snapshot."""

    product_title = serializers.CharField(source="product.title", read_only=True)
    shop_id = serializers.UUIDField(source="product.shop_id", read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_title",
            "shop_id",
            "quantity",
            "unit_price",
            "subtotal",
            "selected_size",
            "selected_color",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "user_id",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class SettlementOutputSerializer(serializers.Serializer):
    method = serializers.CharField(source="settlement_method")
    paid_to_admin = serializers.BooleanField()
    paid_to_shop = serializers.BooleanField()
    paid_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    settled_at = serializers.DateTimeField()


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history.

    Never exposes the delivery OTP or QR token.
    """

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)
    assigned_to = DeliveryBoySummarySerializer(read_only=True)
    settlement = SettlementOutputSerializer(source="*", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "customer_id",
            "status",
            "items",
            "shipping_details",
            "payment_method",
            "paid",
            "order_notes",
            "subtotal",
            "delivery_fee",
            "total",
            "assigned_to",
            "tracking_id",
            "order_date",
            "estimated_delivery",
            "delivery_notification_at",
            "settlement",
            "version",
            "created_at",
            "updated_at",
            "status_history",
        ]
        read_only_fields = fields


class CustomerOrderSerializer(OrderSerializer):
    """Order as seen by its customer, who hands the codes to the delivery boy."""

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + [
            "delivery_otp",
            "qr_token",
            "otp_expires_at",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists (no nested history)."""

    assigned_to = serializers.CharField(
        source="assigned_to.boy_id", read_only=True, default=None
    )

    class Meta:
        model = Order
        fields = [
            "id",
            "customer_id",
            "status",
            "payment_method",
            "paid",
            "total",
            "assigned_to",
            "paid_to_shop",
            "paid_to_admin",
            "order_date",
            "estimated_delivery",
            "created_at",
        ]
        read_only_fields = fields
