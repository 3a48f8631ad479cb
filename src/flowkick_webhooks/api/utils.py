"""Request parsing helpers shared by route handlers."""
from __future__ import annotations

from typing import Any
from uuid import UUID

from aiohttp import web

from flowkick_webhooks.middleware.trace import TENANT_ID_HEADER

MAX_PAGE_SIZE = 200


async def read_json(request: web.Request) -> dict[str, Any]:
    """Parse JSON body from request, raising HTTPBadRequest on invalid input."""
    try:
        data = await request.json()
    except Exception as exc:
        raise web.HTTPBadRequest(text="Invalid JSON payload") from exc
    if not isinstance(data, dict):
        raise web.HTTPBadRequest(text="JSON body must be an object")
    return data


def parse_uuid(value: str, label: str = "id") -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise web.HTTPBadRequest(text=f"Invalid {label}") from exc


def require_tenant_id(request: web.Request) -> str:
    tenant_id = (request.headers.get(TENANT_ID_HEADER) or "").strip()
    if not tenant_id:
        raise web.HTTPBadRequest(text=f"Header {TENANT_ID_HEADER} is required")
    return tenant_id


def pagination_params(request: web.Request) -> tuple[int, int]:
    try:
        limit = int(request.rel_url.query.get("limit", 50))
        offset = int(request.rel_url.query.get("offset", 0))
    except ValueError as exc:
        raise web.HTTPBadRequest(text="limit and offset must be integers") from exc
    if limit < 1 or offset < 0:
        raise web.HTTPBadRequest(text="limit must be positive and offset non-negative")
    return min(limit, MAX_PAGE_SIZE), offset


def paginated_response(
    items: list[Any], *, limit: int, offset: int, key: str, total: int
) -> dict[str, Any]:
    return {key: items, "total": total, "limit": limit, "offset": offset}
