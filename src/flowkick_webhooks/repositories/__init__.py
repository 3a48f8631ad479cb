from flowkick_webhooks.repositories.memory import InMemoryDeliveryLedger, InMemorySubscriptionStore
from flowkick_webhooks.repositories.protocols import DeliveryLedger, StatisticsStore, SubscriptionStore
from flowkick_webhooks.repositories.webhooks import (
    WebhookDeliveryRepository,
    WebhookSubscriptionRepository,
)

__all__ = [
    "DeliveryLedger",
    "InMemoryDeliveryLedger",
    "InMemorySubscriptionStore",
    "StatisticsStore",
    "SubscriptionStore",
    "WebhookDeliveryRepository",
    "WebhookSubscriptionRepository",
]
