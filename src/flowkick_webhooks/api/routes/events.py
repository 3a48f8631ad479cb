"""Event ingress for domain-event producers running in other services."""
from __future__ import annotations

from typing import Any

from aiohttp import web
from pydantic import BaseModel, Field, ValidationError

from flowkick_webhooks.api.dependencies import get_dispatcher
from flowkick_webhooks.api.utils import read_json, require_tenant_id
from flowkick_webhooks.domain.events import is_known_event

routes = web.RouteTableDef()


class EventEmitDTO(BaseModel):
    event: str = Field(min_length=1)
    data: Any = None
    metadata: dict[str, Any] | None = None


@routes.post("/api/v1/events")
async def emit_event(request: web.Request):
    tenant_id = require_tenant_id(request)
    body = await read_json(request)
    try:
        dto = EventEmitDTO.model_validate(body)
    except ValidationError as exc:
        raise web.HTTPBadRequest(text=exc.json()) from exc
    if not is_known_event(dto.event):
        raise web.HTTPBadRequest(text=f"Unknown event: {dto.event}")

    # the producer is answered before delivery; outcomes land in the ledger
    get_dispatcher(request).emit_nowait(tenant_id, dto.event, dto.data, dto.metadata)
    return web.json_response({"status": "accepted", "event": dto.event}, status=202)
