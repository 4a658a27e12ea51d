"""Asynchronous tasks of the core module."""

from __future__ import annotations

import structlog
from celery import shared_task

from modules.core.models import OutboxEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

RELAY_BATCH_SIZE = 100


@shared_task(name="core.relay_outbox_events")
def relay_outbox_events(batch_size: int = RELAY_BATCH_SIZE) -> dict:
    """Publish pending outbox events on the in-process event bus.

    Events whose type has no subscriber, or whose handler raises, are
    marked ``FAILED`` with the error recorded; they are not retried here.
    """
    published = 0
    failed = 0
    pending = OutboxEvent.objects.pending()[:batch_size]

    for outbox_event in pending:
        log = logger.bind(
            outbox_event_id=str(outbox_event.id),
            event_type=outbox_event.event_type,
            aggregate_id=outbox_event.aggregate_id,
        )
        event_class = event_bus.resolve(outbox_event.event_type)
        if event_class is None:
            outbox_event.mark_as_failed(
                f"No subscriber registered for {outbox_event.event_type}."
            )
            log.warning("outbox.unroutable_event")
            failed += 1
            continue

        try:
            event_bus.publish(event_class.from_payload(outbox_event.payload))
        except (KeyError, TypeError, ValueError) as exc:
            outbox_event.mark_as_failed(str(exc))
            log.warning("outbox.publish_failed", error=str(exc))
            failed += 1
            continue

        outbox_event.mark_as_published()
        published += 1

    logger.info("outbox.relay_finished", published=published, failed=failed)
    return {"published": published, "failed": failed}
