"""Unit tests for the outbox relay task and event round-trip."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.core.models import EventStatus, OutboxEvent
from modules.core.tasks import publish_outbox_events
from modules.orders.events import OrderCancelled, OrderCreated
from modules.orders.repositories.django_repository import _serialize_event_payload
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


class _Recorder:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


class _Exploding:
    def handle(self, event):
        raise RuntimeError("handler down")


@pytest.fixture()
def bus(monkeypatch):
    bus = InMemoryEventBus()
    monkeypatch.setattr("modules.core.tasks.event_bus", bus)
    return bus


def _outbox_row(event: DomainEvent) -> OutboxEvent:
    return OutboxEvent.objects.create(
        event_type=event.event_name,
        aggregate_id=str(event.aggregate_id),
        payload=_serialize_event_payload(event),
        topic="orders",
    )


class TestEventPayload:
    def test_round_trip_restores_event(self):
        event = OrderCreated(
            aggregate_id=uuid4(),
            order_number="ORD-20261016120000-ABCDEF01",
            customer_id=str(uuid4()),
            total="154.00",
        )

        restored = DomainEvent.from_payload(_serialize_event_payload(event))

        assert restored == event
        assert isinstance(restored, OrderCreated)

    def test_payload_is_json_friendly(self):
        payload = _serialize_event_payload(OrderCancelled(aggregate_id=uuid4(), reason="x"))
        assert payload["event_name"] == "OrderCancelled"
        assert isinstance(payload["aggregate_id"], str)
        assert isinstance(payload["occurred_on"], str)


class TestPublishOutboxEvents:
    def test_publishes_pending_rows(self, bus):
        recorder = _Recorder()
        bus.subscribe(OrderCancelled, recorder)
        row = _outbox_row(OrderCancelled(aggregate_id=uuid4(), reason="changed my mind"))

        result = publish_outbox_events()

        assert result == {"published": 1, "failed": 0}
        row.refresh_from_db()
        assert row.status == EventStatus.PUBLISHED
        assert row.processed_at is not None
        assert recorder.events[0].reason == "changed my mind"

    def test_failed_handler_marks_row_for_retry(self, bus):
        bus.subscribe(OrderCancelled, _Exploding())
        row = _outbox_row(OrderCancelled(aggregate_id=uuid4()))

        result = publish_outbox_events()

        assert result == {"published": 0, "failed": 1}
        row.refresh_from_db()
        assert row.status == EventStatus.FAILED
        assert row.retry_count == 1
        assert "handler down" in row.error_message

    def test_exhausted_rows_are_skipped(self, bus):
        row = _outbox_row(OrderCancelled(aggregate_id=uuid4()))
        OutboxEvent.objects.filter(id=row.id).update(
            status=EventStatus.FAILED, retry_count=5
        )

        assert publish_outbox_events(max_retries=5) == {"published": 0, "failed": 0}

    def test_published_rows_are_not_resent(self, bus):
        recorder = _Recorder()
        bus.subscribe(OrderCancelled, recorder)
        _outbox_row(OrderCancelled(aggregate_id=uuid4()))

        publish_outbox_events()
        publish_outbox_events()

        assert len(recorder.events) == 1

    def test_order_lifecycle_events_reach_bus(
        self, bus, order_service, placed_order, customer
    ):
        recorder = _Recorder()
        bus.subscribe(OrderCreated, recorder)
        bus.subscribe(OrderCancelled, recorder)
        order_service.cancel_order(placed_order.id, "changed my mind", customer)

        publish_outbox_events()

        assert [type(e) for e in recorder.events] == [OrderCreated, OrderCancelled]
        assert recorder.events[0].order_number == placed_order.order_number


def test_order_handlers_subscribed_on_startup():
    from modules.orders.handlers import (
        order_cancelled_handler,
        order_created_handler,
        order_status_changed_handler,
    )
    from modules.orders.events import OrderStatusChanged
    from shared.infrastructure.bus import event_bus

    assert order_created_handler in event_bus.handlers_for(OrderCreated)
    assert order_cancelled_handler in event_bus.handlers_for(OrderCancelled)
    assert order_status_changed_handler in event_bus.handlers_for(OrderStatusChanged)
