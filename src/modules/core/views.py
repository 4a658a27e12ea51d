import time
from typing import Any, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.context import get_actor
from modules.core.models import EventStatus, OutboxEvent

logger = structlog.get_logger()


def _probe_database() -> Dict[str, Any]:
    start = time.monotonic()
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
    }


def _probe_cache() -> Dict[str, Any]:
    start = time.monotonic()
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
    }


def _outbox_backlog() -> Dict[str, Any]:
    pending = OutboxEvent.objects.pending()
    oldest = pending.values_list("created_at", flat=True).first()
    return {
        "pending": pending.count(),
        "failed": OutboxEvent.objects.filter(status=EventStatus.FAILED).count(),
        "oldest_pending_at": oldest.isoformat() if oldest else None,
    }


def health_check(request: HttpRequest) -> JsonResponse:
    """Public liveness/readiness probe.

    Returns 503 when the database or the cache is unreachable.  The outbox
    backlog is informational only: a stuck relay degrades event delivery,
    not the order API.
    """
    services: Dict[str, Dict[str, Any]] = {}
    # A failing probe makes the service unhealthy.
    for name, probe in (("database", _probe_database), ("cache", _probe_cache)):
        try:
            services[name] = probe()
        except Exception:
            services[name] = {"status": "down"}
            logger.error("health_check.probe_failed", service=name, exc_info=True)

    healthy = all(service["status"] == "up" for service in services.values())
    if services["database"]["status"] == "up":
        services["outbox"] = _outbox_backlog()

    status = "healthy" if healthy else "unhealthy"
    logger.info("health_check.completed", status=status)
    return JsonResponse(
        {
            "status": status,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )


class MeView(APIView):
    """Return the authenticated caller and the marketplace roles they hold.

    * No token  -> 401
    * Bad token -> 401
    * Valid JWT -> 200
    """

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        actor = get_actor(request)
        return Response(
            {
                "user": str(request.user),
                "roles": actor.roles,
                "shop_id": actor.shop_id,
                "delivery_boy_id": actor.delivery_boy_id,
                "delivery_head_id": actor.delivery_head_id,
            }
        )
