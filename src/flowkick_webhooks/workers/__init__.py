"""Background maintenance of the delivery ledger.

Each task module exports one async function compatible with
:class:`WorkerTask`; :data:`worker` runs them all on a fixed interval.
"""
from __future__ import annotations

from flowkick_webhooks.settings import settings
from flowkick_webhooks.workers.webhook_purge import webhook_purge_succeeded
from flowkick_webhooks.workers.webhook_reclaim import webhook_fail_stale_pending
from flowkick_webhooks.workers.worker import BackgroundWorker, WorkerTask

worker = BackgroundWorker(
    interval_seconds=settings.worker_interval_seconds,
    tasks=[
        WorkerTask(name="webhook_fail_stale_pending", fn=webhook_fail_stale_pending),
        WorkerTask(name="webhook_purge_succeeded", fn=webhook_purge_succeeded),
    ],
)

start_background_worker = worker.start
stop_background_worker = worker.stop

__all__ = [
    "BackgroundWorker",
    "WorkerTask",
    "worker",
    "start_background_worker",
    "stop_background_worker",
]
