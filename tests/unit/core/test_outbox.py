"""Unit tests for the transactional outbox.

Covers:
- OutboxEvent defaults and state transitions.
- The ``core.relay_outbox_events`` task publishing pending events on the
  in-process bus.
"""

from __future__ import annotations

import uuid
from unittest.mock import patch

import pytest

from modules.core.models import EventStatus, OutboxEvent
from modules.core.tasks import relay_outbox_events
from modules.orders.events import OrderCreated

pytestmark = pytest.mark.unit


def _make_event(**overrides) -> OutboxEvent:
    aggregate_id = str(uuid.uuid4())
    defaults = {
        "event_type": "OrderCreated",
        "payload": {
            "aggregate_id": aggregate_id,
            "event_id": str(uuid.uuid4()),
            "occurred_on": "2026-03-01T10:00:00+00:00",
            "event_name": "OrderCreated",
            "customer_id": "7",
            "status": "pending",
            "total": "539.00",
        },
        "aggregate_id": aggregate_id,
        "topic": "orders",
    }
    defaults.update(overrides)
    return OutboxEvent.objects.create(**defaults)


class TestOutboxEventModel:
    def test_defaults(self):
        event = _make_event()
        event.refresh_from_db()
        assert event.status == EventStatus.PENDING
        assert event.processed_at is None
        assert event.error_message is None
        assert event.retry_count == 0
        assert event.id.version == 7

    def test_mark_as_published(self):
        event = _make_event()
        event.mark_as_published()
        event.refresh_from_db()
        assert event.status == EventStatus.PUBLISHED
        assert event.processed_at is not None

    def test_mark_as_failed_increments_retry(self):
        event = _make_event()
        event.mark_as_failed("Error 1")
        event.mark_as_failed("Error 2")
        event.refresh_from_db()
        assert event.status == EventStatus.FAILED
        assert event.retry_count == 2
        assert event.error_message == "Error 2"

    def test_pending_skips_processed_events(self):
        first = _make_event()
        done = _make_event()
        done.mark_as_published()
        failed = _make_event()
        failed.mark_as_failed("boom")

        assert list(OutboxEvent.objects.pending()) == [first]

    def test_str_representation(self):
        event = _make_event(event_type="OrderSettled", aggregate_id="order-456")
        assert str(event) == "OrderSettled [PENDING] (order-456)"


class TestRelayOutboxEvents:
    def test_pending_events_are_published(self):
        event = _make_event()

        with patch("modules.orders.handlers.order_created_handler.handle") as handle:
            result = relay_outbox_events.delay()

        assert result.result == {"published": 1, "failed": 0}
        published = handle.call_args.args[0]
        assert isinstance(published, OrderCreated)
        assert str(published.aggregate_id) == event.aggregate_id
        assert published.total == "539.00"
        event.refresh_from_db()
        assert event.status == EventStatus.PUBLISHED

    def test_unroutable_event_is_marked_failed(self):
        event = _make_event(event_type="ShopOpened")

        result = relay_outbox_events()

        assert result == {"published": 0, "failed": 1}
        event.refresh_from_db()
        assert event.status == EventStatus.FAILED
        assert "ShopOpened" in event.error_message

    def test_malformed_payload_is_marked_failed(self):
        event = _make_event(payload={"total": "1.00"})

        result = relay_outbox_events()

        assert result == {"published": 0, "failed": 1}
        event.refresh_from_db()
        assert event.status == EventStatus.FAILED

    def test_processed_events_are_skipped(self):
        _make_event().mark_as_published()
        assert relay_outbox_events() == {"published": 0, "failed": 0}

    def test_batch_size_limits_the_run(self):
        for _ in range(3):
            _make_event()

        assert relay_outbox_events(batch_size=2)["published"] == 2
        assert OutboxEvent.objects.filter(status=EventStatus.PENDING).count() == 1

    def test_events_written_by_the_order_service_are_relayed(self, make_order):
        make_order()
        assert relay_outbox_events()["published"] == 1
