"""Webhook domain primitives."""
from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator
from pydantic_core import to_jsonable_python

from flowkick_webhooks.domain.events import WILDCARD


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({DeliveryStatus.SUCCESS, DeliveryStatus.FAILED})


def utc_timestamp(moment: datetime | None = None) -> str:
    """RFC3339 UTC timestamp with millisecond precision, e.g. ``2026-01-29T12:00:00.000Z``."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class WebhookSubscription(BaseModel):
    id: UUID
    tenant_id: str
    name: str | None = None
    url: str
    secret: str = Field(repr=False, exclude=True)
    events: list[str] = Field(default_factory=list)
    active: bool = True
    timeout_ms: int = Field(default=10_000, gt=0)
    retry_attempts: int = Field(default=3, ge=0)
    retry_delay: float = Field(default=60, ge=0)
    success_count: int = 0
    failed_count: int = 0
    last_delivery_at: datetime | None = None
    last_delivery_status: DeliveryStatus | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("events", mode="before")
    @classmethod
    def _parse_events(cls, value: Any) -> Any:
        # stored as a JSON text column by older schemas
        if isinstance(value, str):
            return json.loads(value)
        return value

    def listens_to(self, event: str) -> bool:
        return event in self.events or WILDCARD in self.events

    @property
    def max_attempts(self) -> int:
        return self.retry_attempts + 1


class WebhookSubscriptionCreate(BaseModel):
    """Validated input for registering a subscription."""

    tenant_id: str = Field(min_length=1)
    url: HttpUrl
    events: list[str] = Field(min_length=1)
    name: str | None = Field(default=None, max_length=255)
    retry_attempts: int = Field(default=3, ge=0, le=10)
    retry_delay: int = Field(default=60, ge=1, le=3600)
    timeout_ms: int = Field(default=10_000, ge=1000, le=60_000)
    active: bool = True

    @field_validator("events")
    @classmethod
    def _normalize_events(cls, value: list[str]) -> list[str]:
        events = [e.strip() for e in value if e and e.strip()]
        events = list(dict.fromkeys(events))
        if not events:
            raise ValueError("events must be a non-empty list")
        return events


class WebhookPayload(BaseModel):
    """Envelope shared by every subscription notified for one event occurrence."""

    model_config = ConfigDict(frozen=True)

    event: str
    timestamp: str
    data: Any = None
    metadata: dict[str, Any] | None = None

    @classmethod
    def build(
        cls,
        event: str,
        data: Any,
        metadata: dict[str, Any] | None = None,
        *,
        now: datetime | None = None,
    ) -> "WebhookPayload":
        return cls(event=event, timestamp=utc_timestamp(now), data=data, metadata=metadata)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "event": self.event,
            "timestamp": self.timestamp,
            "data": self.data,
        }
        if self.metadata is not None:
            body["metadata"] = self.metadata
        return body

    def to_json(self) -> str:
        return json.dumps(
            to_jsonable_python(self.to_dict()),
            separators=(",", ":"),
            ensure_ascii=False,
        )

    def to_bytes(self) -> bytes:
        return self.to_json().encode("utf-8")


class WebhookDelivery(BaseModel):
    id: UUID
    subscription_id: UUID
    event: str
    payload: str
    payload_size_bytes: int
    attempt: int
    status: DeliveryStatus
    status_code: int | None = None
    response_body: str | None = None
    duration_ms: int | None = None
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class DeliveryResult(BaseModel):
    """Outcome of one delivery attempt (or of the last attempt of a retry sequence)."""

    success: bool
    status_code: int | None = None
    duration_ms: int | None = None
    error: str | None = None
    delivery_id: UUID | None = None
    retryable: bool = True


class DispatchSummary(BaseModel):
    event: str
    matched: int = 0
    succeeded: int = 0
    failed: int = 0
