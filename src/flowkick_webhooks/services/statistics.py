"""Per-subscription delivery counters."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable
from uuid import UUID

from flowkick_webhooks.domain.webhooks import DeliveryResult
from flowkick_webhooks.repositories.protocols import StatisticsStore


class StatisticsUpdater:
    def __init__(
        self,
        store: StatisticsStore,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._store = store
        self._clock = clock

    async def record_outcome(self, subscription_id: UUID, result: DeliveryResult) -> None:
        """Bump the success or failure counter and the last-delivery fields."""
        now = self._clock()
        if result.success:
            await self._store.increment_success(subscription_id, now)
        else:
            await self._store.increment_failure(subscription_id, now)
