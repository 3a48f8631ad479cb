"""API router composition for aiohttp."""
from __future__ import annotations

from aiohttp import web

from flowkick_webhooks.api.routes import events, webhooks

ROUTE_MODULES = [
    events,
    webhooks,
]


def setup_routes(app: web.Application) -> None:
    """Attach API routes to the aiohttp application."""
    for module in ROUTE_MODULES:
        app.add_routes(module.routes)
