"""Bounded retry loop around :class:`DeliveryExecutor`."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import structlog

from flowkick_webhooks.domain.webhooks import DeliveryResult, WebhookPayload, WebhookSubscription
from flowkick_webhooks.services.delivery import DeliveryExecutor

logger = structlog.get_logger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class RetryCoordinator:
    """Runs up to ``retry_attempts + 1`` sequential attempts for one subscription.

    The delay between attempts is fixed (``retry_delay`` seconds), not
    exponential. Each attempt gets its own ledger row with an incrementing
    attempt number. The result of the last attempt is returned.
    """

    def __init__(self, executor: DeliveryExecutor, *, sleep: SleepFn = asyncio.sleep):
        self._executor = executor
        self._sleep = sleep

    async def deliver_with_retry(
        self, subscription: WebhookSubscription, payload: WebhookPayload
    ) -> DeliveryResult:
        max_attempts = subscription.max_attempts
        result = DeliveryResult(success=False)

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                await self._sleep(subscription.retry_delay)

            result = await self._executor.deliver(subscription, payload, attempt)
            if result.success or not result.retryable:
                break

            logger.info(
                "webhook_attempt_failed",
                subscription_id=str(subscription.id),
                webhook_event=payload.event,
                attempt=attempt,
                max_attempts=max_attempts,
                error=result.error,
            )

        return result
