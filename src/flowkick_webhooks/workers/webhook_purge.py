"""Worker: purge old successful ledger rows."""
from __future__ import annotations

from datetime import datetime, timedelta

from flowkick_webhooks.db.pool import get_pool
from flowkick_webhooks.repositories.webhooks import WebhookDeliveryRepository
from flowkick_webhooks.settings import settings


async def webhook_purge_succeeded(now: datetime) -> str | None:
    """Delete ``success`` rows older than ``webhook_succeeded_retention_days``; failures are kept."""
    pool = await get_pool()
    cutoff = now - timedelta(days=settings.webhook_succeeded_retention_days)
    deleted = await WebhookDeliveryRepository(pool).delete_old_succeeded(cutoff)
    return f"purged={deleted}" if deleted else None
