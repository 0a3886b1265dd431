"""
backend/cabinbook/services/events.py

Event emitter: pushes booking lifecycle events to a Redis list for
consumption by notification workers (owner dashboards, payment flow).

Emission never affects the outcome of the operation that triggered it:
a Redis failure is logged and dropped.
"""

import json
import time
import logging

from ..config import settings
from ..redis_client import redis_client

logger = logging.getLogger(__name__)


def emit_event(event_type: str, payload: dict) -> None:
    """
    Emit a p2p event (instant delivery).

    Pushed to the Redis list named by `settings.events_queue`.
    No-op when Redis is not configured.
    """
    if redis_client is None:
        logger.debug(f"Event skipped (no redis): {event_type}")
        return

    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis_client.rpush(settings.events_queue, json.dumps(event, default=str))
        logger.info(f"Event emitted: {event_type} → {settings.events_queue}")
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")


def booking_payload(booking) -> dict:
    return {
        "booking_id": booking.id,
        "cabin_id": booking.cabin_id,
        "professional_id": booking.professional_id,
        "date": booking.date.isoformat(),
        "shift": booking.shift,
        "price": booking.price,
        "status": booking.status,
    }
