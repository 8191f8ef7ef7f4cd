"""Django ORM implementation of the Order repository.

Concurrency control on status updates uses ``select_for_update()``; the
order row stays locked until the service's transaction ends, so two
transitions on the same order run one after the other.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.core.models import OutboxEvent
from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        items = data.pop("items")
        order = Order(**data)
        order.save()

        for item_data in items:
            OrderItem(order=order, **item_data).save()

        logger.info("order.persisted", order_id=str(order.id), item_count=len(items))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _with_relations(self) -> "models.QuerySet[Order]":
        return (
            Order.objects.alive()
            .select_related("customer")
            .prefetch_related("items__product", "status_history")
        )

    def get_by_id(self, id: str) -> Optional[Order]:
        """Returns ``None`` for non-existent or malformed IDs."""
        try:
            return self._with_relations().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Lock only the order row; items are loaded by a separate query."""
        try:
            return (
                Order.objects.alive()
                .select_for_update()
                .prefetch_related("items__product")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self) -> "models.QuerySet[Order]":
        return self._with_relations()

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        return self._with_relations().filter(idempotency_key=key).first()

    def count_voucher_uses(self, code: str, customer_id: Any) -> int:
        return (
            Order.objects.alive()
            .filter(customer_id=customer_id, voucher_code=code)
            .exclude(status=OrderStatus.CANCELLED)
            .count()
        )

    # ------------------------------------------------------------------
    # Save (IRepository contract) + outbox
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist the order and write its pending domain events to the outbox."""
        entity.save()

        events = entity.domain_events
        for event in events:
            OutboxEvent.objects.create(
                event_type=event.event_name,
                aggregate_id=str(event.aggregate_id),
                payload=_serialize_event_payload(event),
                topic=OUTBOX_TOPIC,
            )
        entity.clear_domain_events()

        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user_id: Optional[UUID] = None,
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            user_id=user_id,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history


def _serialize_event_payload(event: Any) -> Dict[str, Any]:
    return json.loads(json.dumps(_normalize_for_json(asdict(event))))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, list):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value
