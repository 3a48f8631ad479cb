"""Webhook operator service (test deliveries + ledger queries)."""
from __future__ import annotations

from typing import List
from uuid import UUID

from flowkick_webhooks.domain.events import WebhookEventType
from flowkick_webhooks.domain.webhooks import DeliveryResult, WebhookDelivery, WebhookPayload
from flowkick_webhooks.repositories.protocols import DeliveryLedger, SubscriptionStore
from flowkick_webhooks.services.delivery import DeliveryExecutor
from flowkick_webhooks.services.statistics import StatisticsUpdater

TEST_MESSAGE = "This is a test webhook from Flowkick"


class WebhookService:
    def __init__(
        self,
        subscriptions: SubscriptionStore,
        ledger: DeliveryLedger,
        executor: DeliveryExecutor,
        statistics: StatisticsUpdater,
    ):
        self._subscriptions = subscriptions
        self._ledger = ledger
        self._executor = executor
        self._statistics = statistics

    async def send_test(self, tenant_id: str, subscription_id: UUID) -> DeliveryResult:
        """Send one ``webhook.test`` delivery, without retries."""
        sub = await self._subscriptions.get(tenant_id, subscription_id)
        payload = WebhookPayload.build(
            WebhookEventType.WEBHOOK_TEST.value,
            {
                "message": TEST_MESSAGE,
                "webhookId": str(sub.id),
                "webhookName": sub.name,
            },
            {"test": True},
        )
        result = await self._executor.deliver(sub, payload)
        if sub.active:
            await self._statistics.record_outcome(sub.id, result)
        return result

    async def list_deliveries(
        self,
        tenant_id: str,
        subscription_id: UUID,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[List[WebhookDelivery], int]:
        # scope check: raises NotFoundError for another tenant's subscription
        await self._subscriptions.get(tenant_id, subscription_id)
        return await self._ledger.list_by_subscription(subscription_id, limit=limit, offset=offset)
