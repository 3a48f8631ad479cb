"""Worker: fail ledger rows abandoned in ``pending``."""
from __future__ import annotations

from datetime import datetime, timedelta

from flowkick_webhooks.db.pool import get_pool
from flowkick_webhooks.repositories.webhooks import WebhookDeliveryRepository
from flowkick_webhooks.settings import settings


async def webhook_fail_stale_pending(now: datetime) -> str | None:
    """Mark rows ``pending`` for longer than ``webhook_stale_pending_minutes`` as failed.

    The cutoff is far above the largest per-request timeout, so rows of
    attempts still in flight are never touched.
    """
    pool = await get_pool()
    cutoff = now - timedelta(minutes=settings.webhook_stale_pending_minutes)
    failed = await WebhookDeliveryRepository(pool).fail_stale_pending(cutoff)
    return f"failed_stale={failed}" if failed else None
