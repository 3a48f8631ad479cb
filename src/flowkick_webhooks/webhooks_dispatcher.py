"""Wiring of the delivery pipeline and its aiohttp lifecycle hooks."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass

from aiohttp import ClientSession, TCPConnector, web

from flowkick_webhooks.db.pool import get_pool
from flowkick_webhooks.repositories.protocols import DeliveryLedger, StatisticsStore, SubscriptionStore
from flowkick_webhooks.repositories.webhooks import (
    WebhookDeliveryRepository,
    WebhookSubscriptionRepository,
)
from flowkick_webhooks.services.delivery import DEFAULT_USER_AGENT, DeliveryExecutor
from flowkick_webhooks.services.dispatcher import EventDispatcher
from flowkick_webhooks.services.retry import RetryCoordinator, SleepFn
from flowkick_webhooks.services.statistics import StatisticsUpdater
from flowkick_webhooks.services.webhooks import WebhookService
from flowkick_webhooks.settings import settings

WEBHOOK_SESSION_KEY = "webhook_http_session"
WEBHOOK_DISPATCHER_KEY = "webhook_dispatcher"
WEBHOOK_SERVICE_KEY = "webhook_service"


@dataclass
class WebhookComponents:
    dispatcher: EventDispatcher
    service: WebhookService


def create_http_session(pool_size: int | None = None) -> ClientSession:
    """Shared client; per-request deadlines are set by the executor."""
    connector = TCPConnector(limit=pool_size or settings.webhook_http_pool_size)
    return ClientSession(connector=connector)


def build_webhook_components(
    session: ClientSession,
    subscriptions: SubscriptionStore,
    ledger: DeliveryLedger,
    statistics_store: StatisticsStore,
    *,
    user_agent: str = DEFAULT_USER_AGENT,
    sleep: SleepFn = asyncio.sleep,
) -> WebhookComponents:
    executor = DeliveryExecutor(session, ledger, user_agent=user_agent)
    statistics = StatisticsUpdater(statistics_store)
    dispatcher = EventDispatcher(
        subscriptions,
        RetryCoordinator(executor, sleep=sleep),
        statistics,
    )
    service = WebhookService(subscriptions, ledger, executor, statistics)
    return WebhookComponents(dispatcher=dispatcher, service=service)


def install_webhook_components(
    app: web.Application,
    components: WebhookComponents,
    session: ClientSession | None = None,
) -> None:
    app[WEBHOOK_DISPATCHER_KEY] = components.dispatcher
    app[WEBHOOK_SERVICE_KEY] = components.service
    if session is not None:
        app[WEBHOOK_SESSION_KEY] = session


async def start_webhook_dispatcher(app: web.Application) -> None:
    """``on_startup`` hook: PostgreSQL-backed pipeline with one pooled HTTP session."""
    pool = await get_pool()
    session = create_http_session()
    subscriptions = WebhookSubscriptionRepository(pool)
    components = build_webhook_components(
        session,
        subscriptions,
        WebhookDeliveryRepository(pool),
        subscriptions,
        user_agent=settings.webhook_user_agent,
    )
    install_webhook_components(app, components, session)


async def stop_webhook_dispatcher(app: web.Application) -> None:
    """``on_cleanup`` hook: let scheduled emissions settle, then close the session."""
    dispatcher: EventDispatcher | None = app.get(WEBHOOK_DISPATCHER_KEY)
    if dispatcher is not None:
        await dispatcher.drain()
    session: ClientSession | None = app.get(WEBHOOK_SESSION_KEY)
    if session is not None:
        await session.close()
