"""Operator endpoints: test delivery and delivery ledger."""
from __future__ import annotations

from aiohttp import web

from flowkick_webhooks.api.dependencies import get_webhook_service
from flowkick_webhooks.api.utils import (
    paginated_response,
    pagination_params,
    parse_uuid,
    require_tenant_id,
)
from flowkick_webhooks.core.exceptions import NotFoundError

routes = web.RouteTableDef()


@routes.post("/api/v1/webhooks/{subscription_id}/test")
async def send_test_webhook(request: web.Request):
    tenant_id = require_tenant_id(request)
    subscription_id = parse_uuid(request.match_info["subscription_id"], "subscription_id")
    service = get_webhook_service(request)
    try:
        result = await service.send_test(tenant_id, subscription_id)
    except NotFoundError as exc:
        raise web.HTTPNotFound(text=str(exc)) from exc
    return web.json_response(
        {
            "status": "delivered" if result.success else "failed",
            "result": result.model_dump(mode="json"),
        }
    )


@routes.get("/api/v1/webhooks/{subscription_id}/deliveries")
async def list_deliveries(request: web.Request):
    tenant_id = require_tenant_id(request)
    subscription_id = parse_uuid(request.match_info["subscription_id"], "subscription_id")
    limit, offset = pagination_params(request)
    service = get_webhook_service(request)
    try:
        items, total = await service.list_deliveries(
            tenant_id, subscription_id, limit=limit, offset=offset
        )
    except NotFoundError as exc:
        raise web.HTTPNotFound(text=str(exc)) from exc
    payload = paginated_response(
        [item.model_dump(mode="json") for item in items],
        limit=limit,
        offset=offset,
        key="deliveries",
        total=total,
    )
    return web.json_response(payload)
