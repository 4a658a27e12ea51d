"""Shared model infrastructure.

- ``BaseModel``: UUIDv7 primary key plus ``created_at`` / ``updated_at``.
- ``OutboxEvent``: domain events written in the same transaction as the
  aggregate that raised them, relayed later by ``core.relay_outbox_events``.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import TYPE_CHECKING

import uuid6
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone

if TYPE_CHECKING:
    from shared.domain.events import DomainEvent


class BaseModel(models.Model):
    """Abstract base with a time-ordered UUID key."""

    id = models.UUIDField(primary_key=True, default=uuid6.uuid7, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        # auto_now fields are skipped when update_fields is given.
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "updated_at"]
        super().save(*args, **kwargs)


class EventStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PUBLISHED = "PUBLISHED", "Published"
    FAILED = "FAILED", "Failed"


class OutboxQuerySet(models.QuerySet):
    def pending(self) -> OutboxQuerySet:
        """Events awaiting relay, oldest first."""
        return self.filter(status=EventStatus.PENDING).order_by("created_at")

    def record(self, event: DomainEvent, topic: str) -> OutboxEvent:
        """Store *event* as a JSON-safe payload (UUIDs, dates and decimals as strings)."""
        payload = json.loads(json.dumps(asdict(event), cls=DjangoJSONEncoder))
        return self.create(
            event_type=event.event_name,
            aggregate_id=str(event.aggregate_id),
            payload=payload,
            topic=topic,
        )


class OutboxEvent(BaseModel):
    """A domain event waiting to be published on the event bus.

    Rows are only ever created through ``OutboxEvent.objects.record`` inside
    the repository transaction, so an order write and its events commit or
    roll back together.  The relay never retries: a row that cannot be
    published stays ``FAILED`` with the error kept for inspection.
    """

    event_type = models.CharField(max_length=100)
    payload = models.JSONField()
    aggregate_id = models.CharField(max_length=255)
    topic = models.CharField(max_length=100)
    status = models.CharField(
        max_length=20,
        choices=EventStatus.choices,
        default=EventStatus.PENDING,
    )
    processed_at = models.DateTimeField(null=True, blank=True, default=None)
    error_message = models.TextField(null=True, blank=True, default=None)  # noqa: DJ01
    retry_count = models.PositiveIntegerField(default=0)

    objects = OutboxQuerySet.as_manager()

    class Meta:
        db_table = "outbox_events"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["event_type"], name="outbox_event_type_idx"),
            models.Index(fields=["aggregate_id"], name="outbox_aggregate_id_idx"),
            models.Index(
                fields=["status", "created_at"], name="outbox_status_created_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.event_type} [{self.status}] ({self.aggregate_id})"

    def mark_as_published(self) -> None:
        self.status = EventStatus.PUBLISHED
        self.processed_at = timezone.now()
        self.save(update_fields=["status", "processed_at"])

    def mark_as_failed(self, error: str) -> None:
        """Record a failed publish attempt; ``retry_count`` counts attempts."""
        self.status = EventStatus.FAILED
        self.error_message = error
        self.processed_at = timezone.now()
        self.retry_count += 1
        self.save(
            update_fields=["status", "error_message", "processed_at", "retry_count"]
        )
