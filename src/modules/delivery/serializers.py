"""Delivery roster DRF serializers (output only).

Input is parsed into Pydantic DTOs in the views; these serializers only
render model instances.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.delivery.models import DeliveryBoy


def mask_aadhar(raw: str) -> str:
    """Mask an Aadhaar number, showing only the last 4 digits."""
    suffix = raw[-4:] if raw else "????"
    return f"********{suffix}"


class DeliveryBoySerializer(serializers.ModelSerializer):
    aadhar = serializers.SerializerMethodField()
    location = serializers.SerializerMethodField()
    assigned_orders = serializers.SerializerMethodField()

    class Meta:
        model = DeliveryBoy
        fields = [
            "id",
            "boy_id",
            "name",
            "phone",
            "email",
            "aadhar",
            "location",
            "is_available",
            "is_active",
            "total_deliveries",
            "rating",
            "assigned_orders",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_aadhar(self, obj: DeliveryBoy) -> str:
        return mask_aadhar(obj.aadhar)

    def get_location(self, obj: DeliveryBoy) -> dict:
        return {
            "lat": obj.location_lat,
            "lng": obj.location_lng,
            "address": obj.location_address,
        }

    def get_assigned_orders(self, obj: DeliveryBoy) -> list:
        return [str(order_id) for order_id in obj.assigned_order_ids]


class DeliveryBoySummarySerializer(serializers.ModelSerializer):
    """Compact representation embedded in order responses."""

    class Meta:
        model = DeliveryBoy
        fields = ["id", "boy_id", "name", "phone", "is_available"]
        read_only_fields = fields
