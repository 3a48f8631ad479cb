"""Middleware for trace_id / request_id / tenant_id logging context."""
from __future__ import annotations

import time
from uuid import UUID, uuid4

import structlog
from aiohttp import web

TRACE_ID_HEADER = "X-Trace-Id"
REQUEST_ID_HEADER = "X-Request-Id"
TENANT_ID_HEADER = "X-Tenant-Id"

logger = structlog.get_logger(__name__)


def is_valid_uuid(value: str) -> bool:
    try:
        UUID(value)
        return True
    except (ValueError, AttributeError):
        return False


def _incoming_id(request: web.Request, header: str) -> str:
    value = request.headers.get(header)
    if not value or not is_valid_uuid(value):
        return str(uuid4())
    return value


def create_trace_middleware(service_name: str):
    """Create trace middleware with specified service name."""

    @web.middleware
    async def trace_middleware(request: web.Request, handler):
        start_time = time.monotonic()
        trace_id = _incoming_id(request, TRACE_ID_HEADER)
        request_id = _incoming_id(request, REQUEST_ID_HEADER)
        request["trace_id"] = trace_id
        request["request_id"] = request_id

        # contextvars are copied into tasks created while handling the request,
        # so background deliveries keep the trace_id of the emitting call
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            trace_id=trace_id,
            request_id=request_id,
            service=service_name,
            method=request.method,
            path=request.path,
        )
        tenant_id = request.headers.get(TENANT_ID_HEADER)
        if tenant_id:
            structlog.contextvars.bind_contextvars(tenant_id=tenant_id)

        try:
            response = await handler(request)
            logger.info(
                "request_completed",
                status_code=response.status,
                duration_ms=round((time.monotonic() - start_time) * 1000, 2),
            )
            response.headers[TRACE_ID_HEADER] = trace_id
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except web.HTTPException as e:
            logger.warning(
                "request_failed",
                status_code=e.status_code,
                duration_ms=round((time.monotonic() - start_time) * 1000, 2),
                error=e.text,
            )
            raise
        except Exception as e:
            logger.error(
                "request_error",
                duration_ms=round((time.monotonic() - start_time) * 1000, 2),
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            raise
        finally:
            structlog.contextvars.clear_contextvars()

    return trace_middleware
