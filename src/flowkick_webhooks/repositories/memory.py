"""In-memory stores with the same contracts as the asyncpg repositories.

Used when the service is embedded without PostgreSQL and throughout the tests.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Tuple
from uuid import UUID, uuid4

from flowkick_webhooks.core.exceptions import InvalidStatusTransitionError, NotFoundError
from flowkick_webhooks.domain.webhooks import (
    TERMINAL_STATUSES,
    DeliveryStatus,
    WebhookDelivery,
    WebhookSubscription,
    WebhookSubscriptionCreate,
)
from flowkick_webhooks.signing import generate_secret


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemorySubscriptionStore:
    """Subscriptions and their counters. Implements SubscriptionStore and StatisticsStore."""

    def __init__(self) -> None:
        self._items: Dict[UUID, WebhookSubscription] = {}
        self._lock = asyncio.Lock()

    def add(self, subscription: WebhookSubscription) -> WebhookSubscription:
        self._items[subscription.id] = subscription
        return subscription

    async def create(self, data: WebhookSubscriptionCreate) -> WebhookSubscription:
        now = _now()
        subscription = WebhookSubscription(
            id=uuid4(),
            tenant_id=data.tenant_id,
            name=data.name,
            url=str(data.url),
            secret=generate_secret(),
            events=data.events,
            active=data.active,
            timeout_ms=data.timeout_ms,
            retry_attempts=data.retry_attempts,
            retry_delay=data.retry_delay,
            created_at=now,
            updated_at=now,
        )
        return self.add(subscription)

    def snapshot(self, subscription_id: UUID) -> WebhookSubscription:
        return self._items[subscription_id].model_copy()

    async def get(self, tenant_id: str, subscription_id: UUID) -> WebhookSubscription:
        sub = self._items.get(subscription_id)
        if sub is None or sub.tenant_id != tenant_id:
            raise NotFoundError("Webhook subscription not found")
        return sub.model_copy()

    async def list_active(self, tenant_id: str) -> List[WebhookSubscription]:
        return [
            sub.model_copy()
            for sub in self._items.values()
            if sub.tenant_id == tenant_id and sub.active
        ]

    async def increment_success(self, subscription_id: UUID, at: datetime) -> None:
        async with self._lock:
            sub = self._require(subscription_id)
            sub.success_count += 1
            sub.last_delivery_at = at
            sub.last_delivery_status = DeliveryStatus.SUCCESS
            sub.updated_at = _now()

    async def increment_failure(self, subscription_id: UUID, at: datetime) -> None:
        async with self._lock:
            sub = self._require(subscription_id)
            sub.failed_count += 1
            sub.last_delivery_at = at
            sub.last_delivery_status = DeliveryStatus.FAILED
            sub.updated_at = _now()

    def _require(self, subscription_id: UUID) -> WebhookSubscription:
        sub = self._items.get(subscription_id)
        if sub is None:
            raise NotFoundError("Webhook subscription not found")
        return sub


class InMemoryDeliveryLedger:
    """Delivery ledger kept in insertion order."""

    def __init__(self) -> None:
        self._rows: Dict[UUID, WebhookDelivery] = {}
        self._lock = asyncio.Lock()

    @property
    def rows(self) -> List[WebhookDelivery]:
        return [row.model_copy() for row in self._rows.values()]

    def rows_for(self, subscription_id: UUID) -> List[WebhookDelivery]:
        return [row for row in self.rows if row.subscription_id == subscription_id]

    async def create_pending(
        self,
        *,
        subscription_id: UUID,
        event: str,
        payload: str,
        payload_size_bytes: int,
        attempt: int,
    ) -> UUID:
        row = WebhookDelivery(
            id=uuid4(),
            subscription_id=subscription_id,
            event=event,
            payload=payload,
            payload_size_bytes=payload_size_bytes,
            attempt=attempt,
            status=DeliveryStatus.PENDING,
            created_at=_now(),
        )
        async with self._lock:
            self._rows[row.id] = row
        return row.id

    async def finalize(
        self,
        delivery_id: UUID,
        *,
        status: DeliveryStatus,
        duration_ms: int,
        status_code: int | None = None,
        response_body: str | None = None,
        error_message: str | None = None,
    ) -> None:
        if status not in TERMINAL_STATUSES:
            raise InvalidStatusTransitionError(f"Cannot finalize delivery as {status.value}")
        async with self._lock:
            row = self._rows.get(delivery_id)
            if row is None:
                raise NotFoundError("Webhook delivery not found")
            if row.status is not DeliveryStatus.PENDING:
                raise InvalidStatusTransitionError(
                    f"Delivery {delivery_id} already finalized as {row.status.value}"
                )
            self._rows[delivery_id] = row.model_copy(
                update={
                    "status": status,
                    "status_code": status_code,
                    "response_body": response_body,
                    "duration_ms": duration_ms,
                    "error_message": error_message,
                    "updated_at": _now(),
                }
            )

    async def list_by_subscription(
        self, subscription_id: UUID, *, limit: int = 50, offset: int = 0
    ) -> Tuple[List[WebhookDelivery], int]:
        matching = list(reversed(self.rows_for(subscription_id)))
        return matching[offset : offset + limit], len(matching)
