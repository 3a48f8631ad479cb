from flowkick_webhooks.services.delivery import DeliveryExecutor
from flowkick_webhooks.services.dispatcher import EventDispatcher
from flowkick_webhooks.services.retry import RetryCoordinator
from flowkick_webhooks.services.statistics import StatisticsUpdater
from flowkick_webhooks.services.webhooks import WebhookService

__all__ = [
    "DeliveryExecutor",
    "EventDispatcher",
    "RetryCoordinator",
    "StatisticsUpdater",
    "WebhookService",
]
