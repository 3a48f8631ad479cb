"""Event fan-out to every interested subscription of a tenant."""
from __future__ import annotations

import asyncio
from typing import Any, Set

import structlog

from flowkick_webhooks.domain.events import WebhookEventType, event_name, is_known_event
from flowkick_webhooks.domain.webhooks import (
    DeliveryResult,
    DispatchSummary,
    WebhookPayload,
    WebhookSubscription,
)
from flowkick_webhooks.repositories.protocols import SubscriptionStore
from flowkick_webhooks.services.retry import RetryCoordinator
from flowkick_webhooks.services.statistics import StatisticsUpdater

logger = structlog.get_logger(__name__)


class EventDispatcher:
    """Entry point for domain-event producers.

    :meth:`emit` never raises. A webhook endpoint being down must not fail the
    booking, QR scan or tag change that produced the event, so every error is
    logged and absorbed here.
    """

    def __init__(
        self,
        subscriptions: SubscriptionStore,
        coordinator: RetryCoordinator,
        statistics: StatisticsUpdater,
    ):
        self._subscriptions = subscriptions
        self._coordinator = coordinator
        self._statistics = statistics
        self._background: Set[asyncio.Task[DispatchSummary]] = set()

    async def emit(
        self,
        tenant_id: str,
        event: WebhookEventType | str,
        data: Any,
        metadata: dict[str, Any] | None = None,
    ) -> DispatchSummary:
        name = event_name(event)
        summary = DispatchSummary(event=name)
        log = logger.bind(tenant_id=tenant_id, webhook_event=name)

        if not is_known_event(name):
            log.warning("webhook_unknown_event")
            return summary

        try:
            candidates = await self._subscriptions.list_active(tenant_id)
            matching = [s for s in candidates if s.active and s.listens_to(name)]
            if not matching:
                log.debug("webhook_no_subscribers")
                return summary

            payload = WebhookPayload.build(name, data, metadata)
            outcomes = await asyncio.gather(
                *(self._notify(sub, payload) for sub in matching),
                return_exceptions=True,
            )
        except Exception:
            log.exception("webhook_emit_failed")
            return summary

        results: list[DeliveryResult] = []
        for sub, outcome in zip(matching, outcomes):
            if isinstance(outcome, BaseException):
                log.error(
                    "webhook_notify_failed",
                    subscription_id=str(sub.id),
                    error=str(outcome),
                    error_type=type(outcome).__name__,
                )
                outcome = DeliveryResult(success=False, error=str(outcome) or "Internal error")
            results.append(outcome)

        summary.matched = len(results)
        summary.succeeded = sum(1 for r in results if r.success)
        summary.failed = summary.matched - summary.succeeded
        log.info(
            "webhook_event_dispatched",
            matched=summary.matched,
            succeeded=summary.succeeded,
            failed=summary.failed,
        )
        return summary

    async def _notify(
        self, subscription: WebhookSubscription, payload: WebhookPayload
    ) -> DeliveryResult:
        try:
            result = await self._coordinator.deliver_with_retry(subscription, payload)
        except Exception as exc:
            logger.exception(
                "webhook_delivery_sequence_failed",
                subscription_id=str(subscription.id),
                webhook_event=payload.event,
            )
            result = DeliveryResult(success=False, error=str(exc) or "Internal error")

        try:
            await self._statistics.record_outcome(subscription.id, result)
        except Exception:
            logger.exception(
                "webhook_statistics_update_failed",
                subscription_id=str(subscription.id),
            )
        return result

    def emit_nowait(
        self,
        tenant_id: str,
        event: WebhookEventType | str,
        data: Any,
        metadata: dict[str, Any] | None = None,
    ) -> asyncio.Task[DispatchSummary]:
        """Schedule :meth:`emit` in the background and return immediately."""
        task = asyncio.create_task(self.emit(tenant_id, event, data, metadata))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._background)

    async def drain(self) -> None:
        """Wait for every scheduled emission to settle."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
