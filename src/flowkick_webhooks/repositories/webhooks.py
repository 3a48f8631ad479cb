"""Webhook repositories (subscriptions + delivery ledger)."""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Tuple
from uuid import UUID

from asyncpg import Pool, Record  # type: ignore[import-untyped]

from flowkick_webhooks.core.exceptions import InvalidStatusTransitionError, NotFoundError
from flowkick_webhooks.domain.webhooks import (
    TERMINAL_STATUSES,
    DeliveryStatus,
    WebhookDelivery,
    WebhookSubscription,
    WebhookSubscriptionCreate,
)
from flowkick_webhooks.repositories.base import BaseRepository
from flowkick_webhooks.signing import generate_secret

STALE_PENDING_ERROR = "Abandoned: no result recorded before the process stopped"


class WebhookSubscriptionRepository(BaseRepository):
    """Subscription reads plus the atomic statistics counters."""

    def __init__(self, pool: Pool):
        super().__init__(pool)

    @staticmethod
    def _to_model(record: Record) -> WebhookSubscription:
        return WebhookSubscription.model_validate(dict(record))

    async def create(self, data: WebhookSubscriptionCreate) -> WebhookSubscription:
        record = await self._fetchrow(
            """
            INSERT INTO webhook_subscriptions (
                tenant_id, name, url, secret, events, active,
                timeout_ms, retry_attempts, retry_delay
            )
            VALUES ($1, $2, $3, $4, $5::text[], $6, $7, $8, $9)
            RETURNING *
            """,
            data.tenant_id,
            data.name,
            str(data.url),
            generate_secret(),
            data.events,
            data.active,
            data.timeout_ms,
            data.retry_attempts,
            data.retry_delay,
        )
        assert record is not None
        return self._to_model(record)

    async def get(self, tenant_id: str, subscription_id: UUID) -> WebhookSubscription:
        record = await self._fetchrow(
            "SELECT * FROM webhook_subscriptions WHERE tenant_id = $1 AND id = $2",
            tenant_id,
            subscription_id,
        )
        if record is None:
            raise NotFoundError("Webhook subscription not found")
        return self._to_model(record)

    async def list_active(self, tenant_id: str) -> List[WebhookSubscription]:
        records = await self._fetch(
            """
            SELECT *
            FROM webhook_subscriptions
            WHERE tenant_id = $1
              AND active = true
            ORDER BY created_at ASC
            """,
            tenant_id,
        )
        return [self._to_model(r) for r in records]

    async def increment_success(self, subscription_id: UUID, at: datetime) -> None:
        await self._increment(subscription_id, at, DeliveryStatus.SUCCESS)

    async def increment_failure(self, subscription_id: UUID, at: datetime) -> None:
        await self._increment(subscription_id, at, DeliveryStatus.FAILED)

    async def _increment(self, subscription_id: UUID, at: datetime, status: DeliveryStatus) -> None:
        # single statement so concurrent deliveries never lose an increment
        column = "success_count" if status is DeliveryStatus.SUCCESS else "failed_count"
        record = await self._fetchrow(
            f"""
            UPDATE webhook_subscriptions
            SET {column} = {column} + 1,
                last_delivery_at = $2,
                last_delivery_status = $3,
                updated_at = now()
            WHERE id = $1
            RETURNING id
            """,
            subscription_id,
            at,
            status.value,
        )
        if record is None:
            raise NotFoundError("Webhook subscription not found")


class WebhookDeliveryRepository(BaseRepository):
    """Append-only ledger: one row per HTTP attempt."""

    def __init__(self, pool: Pool):
        super().__init__(pool)

    @staticmethod
    def _to_model(record: Record | dict[str, Any]) -> WebhookDelivery:
        return WebhookDelivery.model_validate(dict(record))

    async def create_pending(
        self,
        *,
        subscription_id: UUID,
        event: str,
        payload: str,
        payload_size_bytes: int,
        attempt: int,
    ) -> UUID:
        record = await self._fetchrow(
            """
            INSERT INTO webhook_deliveries (
                subscription_id, event, payload, payload_size_bytes, attempt, status
            )
            VALUES ($1, $2, $3, $4, $5, 'pending')
            RETURNING id
            """,
            subscription_id,
            event,
            payload,
            payload_size_bytes,
            attempt,
        )
        assert record is not None
        return record["id"]

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
        record = await self._fetchrow(
            """
            UPDATE webhook_deliveries
            SET status = $2,
                status_code = $3,
                response_body = $4,
                duration_ms = $5,
                error_message = $6,
                updated_at = now()
            WHERE id = $1 AND status = 'pending'
            RETURNING id
            """,
            delivery_id,
            status.value,
            status_code,
            response_body,
            duration_ms,
            error_message,
        )
        if record is not None:
            return
        existing = await self._fetchrow(
            "SELECT status FROM webhook_deliveries WHERE id = $1", delivery_id
        )
        if existing is None:
            raise NotFoundError("Webhook delivery not found")
        raise InvalidStatusTransitionError(
            f"Delivery {delivery_id} already finalized as {existing['status']}"
        )

    async def list_by_subscription(
        self, subscription_id: UUID, *, limit: int = 50, offset: int = 0
    ) -> Tuple[List[WebhookDelivery], int]:
        records = await self._fetch(
            """
            SELECT *,
                   COUNT(*) OVER() AS total_count
            FROM webhook_deliveries
            WHERE subscription_id = $1
            ORDER BY created_at DESC, attempt DESC
            LIMIT $2 OFFSET $3
            """,
            subscription_id,
            limit,
            offset,
        )
        items: List[WebhookDelivery] = []
        total: int | None = None
        for rec in records:
            rec_dict = dict(rec)
            total_value = rec_dict.pop("total_count", None)
            if total_value is not None:
                total = int(total_value)
            items.append(self._to_model(rec_dict))
        if total is None:
            total = await self._count_by_subscription(subscription_id)
        return items, total

    async def _count_by_subscription(self, subscription_id: UUID) -> int:
        record = await self._fetchrow(
            "SELECT COUNT(*) AS total FROM webhook_deliveries WHERE subscription_id = $1",
            subscription_id,
        )
        return int(record["total"]) if record else 0

    async def fail_stale_pending(self, created_before: datetime) -> int:
        """Fail rows left ``pending`` by a process that died mid-call.

        Returns the number of rows updated.
        """
        result = await self._execute(
            """
            UPDATE webhook_deliveries
            SET status = 'failed',
                error_message = $2,
                updated_at = now()
            WHERE status = 'pending'
              AND created_at < $1
            """,
            created_before,
            STALE_PENDING_ERROR,
        )
        return self._affected(result)

    async def delete_old_succeeded(self, created_before: datetime) -> int:
        """Purge successful rows older than *created_before*. Returns count."""
        result = await self._execute(
            "DELETE FROM webhook_deliveries WHERE status = 'success' AND created_at < $1",
            created_before,
        )
        return self._affected(result)
