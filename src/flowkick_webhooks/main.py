"""aiohttp application entrypoint."""
from __future__ import annotations

from aiohttp import web

from flowkick_webhooks.api.router import setup_routes
from flowkick_webhooks.db.migrations import create_migration_runner
from flowkick_webhooks.db.pool import close_pool, init_pool
from flowkick_webhooks.logging_config import configure_logging
from flowkick_webhooks.middleware.trace import create_trace_middleware
from flowkick_webhooks.settings import settings
from flowkick_webhooks.webhooks_dispatcher import start_webhook_dispatcher, stop_webhook_dispatcher
from flowkick_webhooks.workers import start_background_worker, stop_background_worker


async def healthcheck(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok", "service": settings.app_name, "env": settings.env})


def create_app() -> web.Application:
    app = web.Application()
    app.middlewares.append(create_trace_middleware(settings.app_name))

    app.router.add_get("/health", healthcheck)
    setup_routes(app)

    app.on_startup.append(init_pool)
    app.on_startup.append(create_migration_runner())
    app.on_startup.append(start_webhook_dispatcher)
    app.on_startup.append(start_background_worker)
    # cleanup hooks run in registration order
    app.on_cleanup.append(stop_background_worker)
    app.on_cleanup.append(stop_webhook_dispatcher)
    app.on_cleanup.append(close_pool)
    return app


def main() -> None:
    configure_logging(settings.log_level)
    web.run_app(create_app(), host=settings.host, port=settings.port, access_log=None)


if __name__ == "__main__":
    main()
