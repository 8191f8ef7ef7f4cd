"""Outbox relay task.

Order events are written to ``outbox_events`` inside the same database
transaction as the order change.  This task drains them afterwards and
hands each one to the in-process event bus.
"""

from __future__ import annotations

from typing import Dict

import structlog
from celery import shared_task
from django.db import transaction

from modules.core.models import OutboxEvent
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

OUTBOX_BATCH_SIZE = 100
OUTBOX_MAX_RETRIES = 5


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events(
    batch_size: int = OUTBOX_BATCH_SIZE,
    max_retries: int = OUTBOX_MAX_RETRIES,
) -> Dict[str, int]:
    """Publish deliverable outbox rows in creation order."""
    published = 0
    failed = 0

    with transaction.atomic():
        rows = list(
            OutboxEvent.objects.deliverable(max_retries).select_for_update(
                skip_locked=True
            )[:batch_size]
        )
        for row in rows:
            log = logger.bind(
                outbox_id=str(row.id),
                event_type=row.event_type,
                aggregate_id=row.aggregate_id,
            )
            try:
                event = DomainEvent.from_payload(row.payload)
                event_bus.publish(event)
            except Exception as exc:  # noqa: BLE001 - handler failures are recorded, not raised
                row.mark_as_failed(str(exc))
                failed += 1
                log.exception("outbox.publish_failed", retry_count=row.retry_count)
                continue
            row.mark_as_published()
            published += 1
            log.info("outbox.published")

    logger.info("outbox.relay_finished", published=published, failed=failed)
    return {"published": published, "failed": failed}
