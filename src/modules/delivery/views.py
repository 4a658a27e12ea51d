"""Delivery-head roster API views.

Exposes ``DeliveryBoyService`` via HTTP.  Domain exceptions propagate to
the project-wide exception handler, which renders them with the
standard error body.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.core.permissions import IsDeliveryHead
from modules.delivery.dtos import CreateDeliveryBoyDTO, UpdateDeliveryBoyDTO
from modules.delivery.repositories.django_repository import (
    DeliveryBoyDjangoRepository,
)
from modules.delivery.serializers import DeliveryBoySerializer
from modules.delivery.services import DeliveryBoyService
from modules.orders.repositories.django_repository import OrderDjangoRepository


def build_roster_service() -> DeliveryBoyService:
    return DeliveryBoyService(
        repository=DeliveryBoyDjangoRepository(),
        order_repository=OrderDjangoRepository(),
    )


class DeliveryBoyViewSet(GenericViewSet):
    """Roster management for approved delivery heads.

    Boys are addressed by their external ``boy_id`` (e.g. ``DB001``).
    """

    permission_classes = [IsAuthenticated, IsDeliveryHead]
    serializer_class = DeliveryBoySerializer
    lookup_field = "boy_id"
    lookup_value_regex = r"[^/]+"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_roster_service()

    def get_queryset(self):
        return self._service.list_boys()

    def list(self, request: Request) -> Response:
        """GET /api/v1/delivery-head/boys/"""
        page = self.paginate_queryset(self.get_queryset())
        serializer = DeliveryBoySerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/delivery-head/boys/"""
        dto = CreateDeliveryBoyDTO.model_validate(request.data)
        boy = self._service.add_boy(dto)
        return Response(DeliveryBoySerializer(boy).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request: Request, boy_id: str) -> Response:
        """GET /api/v1/delivery-head/boys/{boy_id}/"""
        boy = self._service.get_boy(boy_id)
        return Response(DeliveryBoySerializer(boy).data)

    def update(self, request: Request, boy_id: str) -> Response:
        """PUT/PATCH /api/v1/delivery-head/boys/{boy_id}/"""
        dto = UpdateDeliveryBoyDTO.model_validate(request.data)
        boy = self._service.update_boy(boy_id, dto)
        return Response(DeliveryBoySerializer(boy).data)

    def partial_update(self, request: Request, boy_id: str) -> Response:
        return self.update(request, boy_id)

    def destroy(self, request: Request, boy_id: str) -> Response:
        """DELETE /api/v1/delivery-head/boys/{boy_id}/"""
        self._service.deactivate_boy(boy_id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def release(self, request: Request, boy_id: str) -> Response:
        """POST /api/v1/delivery-head/boys/{boy_id}/release/"""
        boy = self._service.release_boy(boy_id)
        return Response(DeliveryBoySerializer(boy).data)


class DeliveryDashboardStatsView(APIView):
    """GET /api/v1/delivery-head/dashboard/stats/"""

    permission_classes = [IsAuthenticated, IsDeliveryHead]

    def get(self, request: Request) -> Response:
        return Response(build_roster_service().dashboard_stats())
