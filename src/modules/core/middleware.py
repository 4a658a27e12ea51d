import time
import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger()


class CorrelationIdMiddleware:
    """Binds a correlation id to every log line emitted while serving a request.

    The id comes from the ``X-Request-ID`` header when the client (or the
    storefront's proxy) sends one, otherwise a fresh UUID4 is generated.
    It is echoed back on the response so support can match a failed
    order call to its log lines.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = _incoming_request_id(request) or str(uuid.uuid4())
        correlation_id_var.set(cid)
        request.correlation_id = cid

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=cid, method=request.method, path=request.path
        )

        started = time.monotonic()
        logger.info("request_started")

        response = self.get_response(request)

        logger.info(
            "request_finished",
            status_code=response.status_code,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )

        response[REQUEST_ID_HEADER] = cid
        return response


def _incoming_request_id(request: HttpRequest) -> str:
    # Oversized or multi-line ids would let a client forge log lines.
    value = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if len(value) > MAX_REQUEST_ID_LENGTH or not value.isprintable():
        return ""
    return value
