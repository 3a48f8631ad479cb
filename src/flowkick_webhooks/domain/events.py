"""Webhook event catalog.

Naming convention: ``{resource}.{action}``. Producers emit only names from
this catalog; a subscription listing :data:`WILDCARD` receives all of them.
"""
from __future__ import annotations

from enum import Enum


class WebhookEventType(str, Enum):
    # Contact events
    USER_CREATED = "user.created"
    USER_UPDATED = "user.updated"
    USER_DELETED = "user.deleted"

    # Booking events
    BOOKING_CREATED = "booking.created"
    BOOKING_UPDATED = "booking.updated"
    BOOKING_CANCELLED = "booking.cancelled"
    BOOKING_COMPLETED = "booking.completed"

    # QR code events
    QR_CREATED = "qr.created"
    QR_SCANNED = "qr.scanned"
    QR_VALIDATED = "qr.validated"

    # Tag events
    TAG_ADDED = "tag.added"
    TAG_REMOVED = "tag.removed"

    # Custom field events
    CUSTOM_FIELD_UPDATED = "customfield.updated"

    # Sent only by the "test webhook" operation
    WEBHOOK_TEST = "webhook.test"


WILDCARD = "*"

ALL_EVENTS: frozenset[str] = frozenset(e.value for e in WebhookEventType)


def is_known_event(event: str) -> bool:
    return event in ALL_EVENTS


def event_name(event: WebhookEventType | str) -> str:
    """Accept either the enum member or its string value."""
    return event.value if isinstance(event, WebhookEventType) else event
