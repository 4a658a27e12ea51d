"""Order API views.

Exposes the ``OrderService`` via HTTP using one DRF ViewSet per role.
Views parse input, resolve the caller's ``RequestActor`` and render the
result; domain exceptions propagate to the project exception handler.
"""

from __future__ import annotations

from typing import Optional

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.serializers import Serializer
from rest_framework.throttling import BaseThrottle
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.core.context import get_actor
from modules.core.permissions import (
    IsDeliveryBoy,
    IsDeliveryHead,
    IsPlatformAdmin,
    IsShopOwner,
)
from modules.delivery.repositories.django_repository import (
    DeliveryBoyDjangoRepository,
)
from modules.delivery.serializers import DeliveryBoySerializer
from modules.orders.dtos import CreateOrderDTO, SettlementDTO
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    AssignOrderSerializer,
    CreateOrderSerializer,
    CustomerOrderSerializer,
    DeliveryOtpSerializer,
    NotesSerializer,
    OrderListSerializer,
    OrderSerializer,
    QrConfirmSerializer,
    SettlementSerializer,
    UpdateStatusSerializer,
)
from modules.orders.services import OrderService


def build_order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        delivery_repository=DeliveryBoyDjangoRepository(),
    )


def _validated(serializer_class: type[Serializer], request: Request) -> dict:
    serializer = serializer_class(data=request.data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class _OrderViewSet(GenericViewSet):
    """Shared wiring: service injection and paginated list rendering.

    Does **not** extend ``ModelViewSet``; all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def _paginated(self, queryset, serializer_class=OrderListSerializer) -> Response:
        page = self.paginate_queryset(queryset)
        serializer = serializer_class(page, many=True)
        return self.get_paginated_response(serializer.data)


# ---------------------------------------------------------------------------
# Customer
# ---------------------------------------------------------------------------


class CustomerOrderViewSet(_OrderViewSet):
    """Orders placed by the authenticated customer (``/user/orders/``)."""

    permission_classes = [IsAuthenticated]
    serializer_class = CustomerOrderSerializer

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: Optional[str]
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def create(self, request: Request) -> Response:
        """POST /api/v1/user/orders/"""
        data = _validated(CreateOrderSerializer, request)
        dto = CreateOrderDTO.model_validate(data)
        order = self._service.create_order(get_actor(request).user_id, dto)
        return Response(
            CustomerOrderSerializer(order).data, status=status.HTTP_201_CREATED
        )

    def list(self, request: Request) -> Response:
        """GET /api/v1/user/orders/"""
        return self._paginated(
            self._service.customer_orders(get_actor(request).user_id)
        )

    def retrieve(self, request: Request, pk: str) -> Response:
        """GET /api/v1/user/orders/{pk}/"""
        order = self._service.get_customer_order(pk, get_actor(request).user_id)
        return Response(CustomerOrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str) -> Response:
        """POST /api/v1/user/orders/{pk}/cancel/"""
        data = _validated(NotesSerializer, request)
        order = self._service.cancel_order(
            pk, get_actor(request).user_id, notes=data["notes"]
        )
        return Response(CustomerOrderSerializer(order).data)


# ---------------------------------------------------------------------------
# Shop
# ---------------------------------------------------------------------------


class ShopOrderViewSet(_OrderViewSet):
    """Orders containing the caller's products (``/shop/orders/``)."""

    permission_classes = [IsAuthenticated, IsShopOwner]

    def list(self, request: Request) -> Response:
        """GET /api/v1/shop/orders/"""
        return self._paginated(self._service.shop_orders(get_actor(request).shop_id))

    @action(detail=False, methods=["get"])
    def stats(self, request: Request) -> Response:
        """GET /api/v1/shop/orders/stats/"""
        return Response(self._service.shop_stats(get_actor(request).shop_id))

    @action(detail=True, methods=["put"])
    def confirm(self, request: Request, pk: str) -> Response:
        """PUT /api/v1/shop/orders/{pk}/confirm/"""
        actor = get_actor(request)
        order = self._service.confirm_order(pk, actor.shop_id, actor.user_id)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["put"], url_path="notify-delivery")
    def notify_delivery(self, request: Request, pk: str) -> Response:
        """PUT /api/v1/shop/orders/{pk}/notify-delivery/"""
        actor = get_actor(request)
        order = self._service.notify_delivery(pk, actor.shop_id, actor.user_id)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["put"])
    def deliver(self, request: Request, pk: str) -> Response:
        """PUT /api/v1/shop/orders/{pk}/deliver/"""
        actor = get_actor(request)
        order = self._service.mark_delivered(pk, actor.shop_id, actor.user_id)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["put"], url_path="status")
    def update_status(self, request: Request, pk: str) -> Response:
        """PUT /api/v1/shop/orders/{pk}/status/"""
        data = _validated(UpdateStatusSerializer, request)
        actor = get_actor(request)
        order = self._service.update_status(
            pk,
            actor.shop_id,
            actor.user_id,
            new_status=data["status"].strip().lower(),
            notes=data["notes"],
            tracking_id=data.get("tracking_id"),
        )
        return Response(OrderSerializer(order).data)


# ---------------------------------------------------------------------------
# Delivery boy
# ---------------------------------------------------------------------------


class DeliveryOrderViewSet(_OrderViewSet):
    """Pickup and drop-off for delivery boys (``/delivery/orders/``)."""

    permission_classes = [IsAuthenticated, IsDeliveryBoy]

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = "delivery_confirmation" if self.action == "confirm" else None
        return super().get_throttles()

    @action(detail=False, methods=["get"])
    def available(self, request: Request) -> Response:
        """GET /api/v1/delivery/orders/available/"""
        return self._paginated(self._service.available_orders())

    @action(detail=False, methods=["get"])
    def mine(self, request: Request) -> Response:
        """GET /api/v1/delivery/orders/mine/"""
        return self._paginated(
            self._service.delivery_boy_orders(get_actor(request).delivery_boy_id)
        )

    @action(detail=True, methods=["post"])
    def take(self, request: Request, pk: str) -> Response:
        """POST /api/v1/delivery/orders/{pk}/take/"""
        actor = get_actor(request)
        order = self._service.take_order(pk, actor.delivery_boy_id, actor.user_id)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def confirm(self, request: Request, pk: str) -> Response:
        """POST /api/v1/delivery/orders/{pk}/confirm/  body: {otp}"""
        data = _validated(DeliveryOtpSerializer, request)
        actor = get_actor(request)
        order = self._service.confirm_delivery(
            pk, actor.delivery_boy_id, data["otp"], user_id=actor.user_id
        )
        return Response(OrderSerializer(order).data)


class DeliveryQrConfirmView(APIView):
    """POST /api/v1/delivery/confirm/  body: {orderId, boyId, qrToken}

    Public endpoint hit by the QR scanner; possession of the token is the
    credential.
    """

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_scope = "delivery_confirmation"

    def post(self, request: Request) -> Response:
        data = _validated(QrConfirmSerializer, request)
        order = build_order_service().confirm_delivery_by_qr(
            data["order_id"], data["boy_id"], data["qr_token"]
        )
        return Response(OrderSerializer(order).data)


# ---------------------------------------------------------------------------
# Delivery head
# ---------------------------------------------------------------------------


class DeliveryHeadOrderViewSet(_OrderViewSet):
    """Assignment desk for delivery heads (``/delivery-head/orders/``)."""

    permission_classes = [IsAuthenticated, IsDeliveryHead]

    @action(detail=False, methods=["get"])
    def unassigned(self, request: Request) -> Response:
        """GET /api/v1/delivery-head/orders/unassigned/"""
        return self._paginated(self._service.unassigned_orders())

    @action(detail=False, methods=["post"])
    def assign(self, request: Request) -> Response:
        """POST /api/v1/delivery-head/orders/assign/  body: {orderId, boyId}"""
        data = _validated(AssignOrderSerializer, request)
        order, boy = self._service.assign_order(
            data["order_id"], data["boy_id"], assigned_by=get_actor(request).user_id
        )
        return Response(
            {
                "order": OrderSerializer(order).data,
                "deliveryBoy": DeliveryBoySerializer(boy).data,
            }
        )


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class AdminOrderViewSet(_OrderViewSet):
    """Platform-wide order administration (``/admin/orders/``)."""

    permission_classes = [IsAuthenticated, IsPlatformAdmin]
    filterset_class = OrderFilter
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    ordering_fields = ["created_at", "order_date", "total", "status"]
    ordering = ["-created_at", "-id"]

    def get_queryset(self):
        return self._service.all_orders()

    def list(self, request: Request) -> Response:
        """GET /api/v1/admin/orders/

        Filtering is handled by ``OrderFilter`` and ordering by
        ``OrderingFilter``.  Results are paginated.
        """
        return self._paginated(self.filter_queryset(self.get_queryset()))

    def retrieve(self, request: Request, pk: str) -> Response:
        """GET /api/v1/admin/orders/{pk}/"""
        return Response(OrderSerializer(self._service.get_order(pk)).data)

    @action(detail=False, methods=["get"])
    def stats(self, request: Request) -> Response:
        """GET /api/v1/admin/orders/stats/"""
        return Response(self._service.order_stats())

    @action(detail=True, methods=["put"], url_path="settle-shop")
    def settle_shop(self, request: Request, pk: str) -> Response:
        """PUT /api/v1/admin/orders/{pk}/settle-shop/"""
        dto = SettlementDTO.model_validate(_validated(SettlementSerializer, request))
        order = self._service.settle_with_shop(pk, dto)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="settle/pay-shop")
    def pay_shop(self, request: Request, pk: str) -> Response:
        """POST /api/v1/admin/orders/{pk}/settle/pay-shop/"""
        return self.settle_shop(request, pk)

    @action(detail=True, methods=["post"], url_path="settle/admin-receive")
    def admin_receive(self, request: Request, pk: str) -> Response:
        """POST /api/v1/admin/orders/{pk}/settle/admin-receive/"""
        order = self._service.receive_admin_payment(pk)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str) -> Response:
        """POST /api/v1/admin/orders/{pk}/cancel/"""
        data = _validated(NotesSerializer, request)
        order = self._service.cancel_order_as_admin(
            pk, get_actor(request).user_id, notes=data["notes"]
        )
        return Response(OrderSerializer(order).data)


class AdminPayoutSummaryView(APIView):
    """GET /api/v1/admin/payouts/summary/"""

    permission_classes = [IsAuthenticated, IsPlatformAdmin]

    def get(self, request: Request) -> Response:
        return Response(build_order_service().payout_summary())
