"""Single webhook delivery attempt (sign, record, POST, finalize)."""
from __future__ import annotations

import asyncio
import time

import structlog
from aiohttp import ClientResponse, ClientSession, ClientTimeout

from flowkick_webhooks.domain.webhooks import (
    DeliveryResult,
    DeliveryStatus,
    WebhookPayload,
    WebhookSubscription,
)
from flowkick_webhooks.repositories.protocols import DeliveryLedger
from flowkick_webhooks.signing import sign

logger = structlog.get_logger(__name__)

DEFAULT_USER_AGENT = "Flowkick-Webhook/1.0"
RESPONSE_BODY_LIMIT = 1000
ERROR_EXCERPT_LIMIT = 200
INACTIVE_ERROR = "Webhook subscription is inactive"

SIGNATURE_HEADER = "X-Webhook-Signature"
EVENT_HEADER = "X-Webhook-Event"
TIMESTAMP_HEADER = "X-Webhook-Timestamp"
DELIVERY_ID_HEADER = "X-Webhook-ID"
ATTEMPT_HEADER = "X-Webhook-Attempt"


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


async def _read_limited(resp: ClientResponse, limit: int = RESPONSE_BODY_LIMIT) -> bytes:
    """Read at most *limit* bytes of the response body; the rest is discarded."""
    buf = bytearray()
    while len(buf) < limit:
        chunk = await resp.content.read(limit - len(buf))
        if not chunk:
            break
        buf.extend(chunk)
    return bytes(buf)


class DeliveryExecutor:
    """Performs one HTTP attempt and writes its outcome to the ledger.

    :meth:`deliver` never raises: every failure mode becomes a
    :class:`DeliveryResult` with ``success=False``.
    """

    def __init__(
        self,
        session: ClientSession,
        ledger: DeliveryLedger,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self._session = session
        self._ledger = ledger
        self._user_agent = user_agent

    async def deliver(
        self,
        subscription: WebhookSubscription,
        payload: WebhookPayload,
        attempt: int = 1,
    ) -> DeliveryResult:
        if not subscription.active:
            return DeliveryResult(success=False, error=INACTIVE_ERROR, retryable=False)

        log = logger.bind(
            subscription_id=str(subscription.id),
            webhook_event=payload.event,
            attempt=attempt,
        )
        try:
            body = payload.to_bytes()
            signature = sign(body, subscription.secret)
            delivery_id = await self._ledger.create_pending(
                subscription_id=subscription.id,
                event=payload.event,
                payload=body.decode("utf-8"),
                payload_size_bytes=len(body),
                attempt=attempt,
            )
        except Exception as exc:
            log.exception("webhook_delivery_record_failed")
            return DeliveryResult(success=False, error=str(exc) or "Internal error")

        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: signature,
            EVENT_HEADER: payload.event,
            TIMESTAMP_HEADER: payload.timestamp,
            DELIVERY_ID_HEADER: str(delivery_id),
            ATTEMPT_HEADER: str(attempt),
            "User-Agent": self._user_agent,
        }

        started = time.monotonic()
        status_code: int | None = None
        response_body: str | None = None
        transport_error: str | None = None
        try:
            async with self._session.post(
                subscription.url,
                data=body,
                headers=headers,
                timeout=ClientTimeout(total=subscription.timeout_ms / 1000),
            ) as resp:
                status_code = resp.status
                raw = await _read_limited(resp)
                # PostgreSQL text columns reject NUL
                response_body = raw.decode("utf-8", errors="replace").replace("\x00", "")
        except asyncio.TimeoutError:
            transport_error = f"Timeout after {subscription.timeout_ms}ms"
        except Exception as exc:
            transport_error = str(exc) or "Network error"
        duration_ms = _elapsed_ms(started)

        if transport_error is not None:
            # the deadline may fire after the status line arrived; keep the status
            response_body = None
            success = False
            ledger_error = transport_error
            error = transport_error
        else:
            assert status_code is not None
            success = 200 <= status_code < 300
            ledger_error = (
                None
                if success
                else f"HTTP {status_code}: {(response_body or '')[:ERROR_EXCERPT_LIMIT]}"
            )
            error = None if success else f"HTTP {status_code}"

        try:
            await self._ledger.finalize(
                delivery_id,
                status=DeliveryStatus.SUCCESS if success else DeliveryStatus.FAILED,
                status_code=status_code,
                response_body=response_body,
                duration_ms=duration_ms,
                error_message=ledger_error,
            )
        except Exception:
            log.exception("webhook_delivery_finalize_failed", delivery_id=str(delivery_id))

        if success:
            log.info(
                "webhook_delivered",
                delivery_id=str(delivery_id),
                status_code=status_code,
                duration_ms=duration_ms,
            )
        else:
            log.warning(
                "webhook_delivery_failed",
                delivery_id=str(delivery_id),
                status_code=status_code,
                duration_ms=duration_ms,
                error=error,
            )

        return DeliveryResult(
            success=success,
            status_code=status_code,
            duration_ms=duration_ms,
            error=error,
            delivery_id=delivery_id,
        )
