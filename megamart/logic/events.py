"""Domain event constants and publisher.

Order, payment and review flows call publish() after a successful write.
Events are logged and kept in an in-process buffer so tests can observe them.
"""

from __future__ import annotations

from typing import Any, Dict, List
import logging

logger = logging.getLogger(__name__)

ORDER_CREATED = "order.created"
ORDER_STATUS_CHANGED = "order.status_changed"
PAYMENT_CREATED = "payment.created"
PAYMENT_STATUS_UPDATED = "payment.status_updated"
PAYMENT_WEBHOOK_RECEIVED = "payment.webhook_received"
REVIEW_SUBMITTED = "review.submitted"
PRODUCT_RATING_RECOMPUTED = "product.rating_recomputed"


def publish(event_type: str, payload: Dict[str, Any]) -> None:
    logger.info("event_publish type=%s payload=%s", event_type, payload)
    EVENT_BUFFER.append({"type": event_type, "payload": payload})


EVENT_BUFFER: List[Dict[str, Any]] = []


def get_buffered_events(clear: bool = True) -> List[Dict[str, Any]]:
    """Return buffered domain events; optionally clear the buffer."""
    events = list(EVENT_BUFFER)
    if clear:
        EVENT_BUFFER.clear()
    return events


__all__ = [
    "ORDER_CREATED",
    "ORDER_STATUS_CHANGED",
    "PAYMENT_CREATED",
    "PAYMENT_STATUS_UPDATED",
    "PAYMENT_WEBHOOK_RECEIVED",
    "REVIEW_SUBMITTED",
    "PRODUCT_RATING_RECOMPUTED",
    "publish",
    "get_buffered_events",
    "EVENT_BUFFER",
]
