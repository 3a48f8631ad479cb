from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Mapping
from uuid import uuid4

import pytest
from aiohttp import ClientSession, web

from flowkick_webhooks.domain.webhooks import WebhookSubscription
from flowkick_webhooks.repositories.memory import InMemoryDeliveryLedger, InMemorySubscriptionStore
from flowkick_webhooks.webhooks_dispatcher import WebhookComponents, build_webhook_components
from tests.utils import TENANT_ID


@dataclass
class ReceivedRequest:
    headers: Mapping[str, str]
    body: bytes


@dataclass
class Endpoint:
    """Local HTTP receiver; responds with queued (status, text) pairs, then ``default``."""

    url: str = ""
    default: tuple[int, str] = (200, '{"received": true}')
    responses: list[tuple[int, str]] = field(default_factory=list)
    delay: float = 0.0
    requests: list[ReceivedRequest] = field(default_factory=list)

    async def handle(self, request: web.Request) -> web.Response:
        body = await request.read()
        self.requests.append(ReceivedRequest(headers=request.headers.copy(), body=body))
        if self.delay:
            await asyncio.sleep(self.delay)
        status, text = self.responses.pop(0) if self.responses else self.default
        return web.Response(status=status, text=text)


async def _start_endpoint(aiohttp_server, path: str = "/hook") -> Endpoint:
    endpoint = Endpoint()
    app = web.Application()
    app.router.add_post(path, endpoint.handle)
    server = await aiohttp_server(app)
    endpoint.url = str(server.make_url(path))
    return endpoint


@pytest.fixture
async def endpoint(aiohttp_server) -> Endpoint:
    return await _start_endpoint(aiohttp_server)


@pytest.fixture
def endpoint_factory(aiohttp_server):
    async def factory() -> Endpoint:
        return await _start_endpoint(aiohttp_server)

    return factory


@pytest.fixture
async def http_session():
    async with ClientSession() as session:
        yield session


@pytest.fixture
def subscriptions() -> InMemorySubscriptionStore:
    return InMemorySubscriptionStore()


@pytest.fixture
def ledger() -> InMemoryDeliveryLedger:
    return InMemoryDeliveryLedger()


@pytest.fixture
def make_subscription(subscriptions) -> Callable[..., WebhookSubscription]:
    """Register a subscription in the in-memory store; fast retry/timeout defaults."""

    def factory(url: str, **overrides) -> WebhookSubscription:
        fields = {
            "id": uuid4(),
            "tenant_id": TENANT_ID,
            "name": "test hook",
            "url": url,
            "secret": "test-secret",
            "events": ["*"],
            "active": True,
            "timeout_ms": 2000,
            "retry_attempts": 0,
            "retry_delay": 0,
        }
        fields.update(overrides)
        return subscriptions.add(WebhookSubscription(**fields))

    return factory


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def components(http_session, subscriptions, ledger, sleeps) -> WebhookComponents:
    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return build_webhook_components(
        http_session,
        subscriptions,
        ledger,
        subscriptions,
        sleep=fake_sleep,
    )
