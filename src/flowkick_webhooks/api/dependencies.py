"""Accessors for the webhook components installed on the application."""
from __future__ import annotations

from aiohttp import web

from flowkick_webhooks.services.dispatcher import EventDispatcher
from flowkick_webhooks.services.webhooks import WebhookService
from flowkick_webhooks.webhooks_dispatcher import WEBHOOK_DISPATCHER_KEY, WEBHOOK_SERVICE_KEY


def _component(request: web.Request, key: str):
    value = request.app.get(key)
    if value is None:
        raise web.HTTPServiceUnavailable(text="Webhook delivery is not initialized")
    return value


def get_dispatcher(request: web.Request) -> EventDispatcher:
    return _component(request, WEBHOOK_DISPATCHER_KEY)


def get_webhook_service(request: web.Request) -> WebhookService:
    return _component(request, WEBHOOK_SERVICE_KEY)
