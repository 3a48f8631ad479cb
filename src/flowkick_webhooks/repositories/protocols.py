"""Store interfaces consumed by the delivery core.

Both the asyncpg repositories and the in-memory stores satisfy these.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Protocol, Tuple
from uuid import UUID

from flowkick_webhooks.domain.webhooks import DeliveryStatus, WebhookDelivery, WebhookSubscription


class SubscriptionStore(Protocol):
    async def list_active(self, tenant_id: str) -> List[WebhookSubscription]:
        ...

    async def get(self, tenant_id: str, subscription_id: UUID) -> WebhookSubscription:
        ...


class StatisticsStore(Protocol):
    async def increment_success(self, subscription_id: UUID, at: datetime) -> None:
        ...

    async def increment_failure(self, subscription_id: UUID, at: datetime) -> None:
        ...


class DeliveryLedger(Protocol):
    async def create_pending(
        self,
        *,
        subscription_id: UUID,
        event: str,
        payload: str,
        payload_size_bytes: int,
        attempt: int,
    ) -> UUID:
        ...

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
        ...

    async def list_by_subscription(
        self, subscription_id: UUID, *, limit: int = 50, offset: int = 0
    ) -> Tuple[List[WebhookDelivery], int]:
        ...
