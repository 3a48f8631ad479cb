from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from flowkick_webhooks.domain.events import ALL_EVENTS, WILDCARD, WebhookEventType, is_known_event
from flowkick_webhooks.domain.webhooks import (
    WebhookPayload,
    WebhookSubscription,
    WebhookSubscriptionCreate,
    utc_timestamp,
)


def _subscription(**overrides) -> WebhookSubscription:
    fields = {
        "id": uuid4(),
        "tenant_id": "tenant-1",
        "url": "http://example.com/hook",
        "secret": "top-secret",
        "events": ["booking.created"],
    }
    fields.update(overrides)
    return WebhookSubscription(**fields)


class TestEventCatalog:
    def test_catalog_contains_domain_events(self):
        for name in (
            "user.created",
            "user.updated",
            "booking.created",
            "booking.updated",
            "booking.cancelled",
            "booking.completed",
            "qr.created",
            "qr.scanned",
            "qr.validated",
            "tag.added",
            "tag.removed",
            "customfield.updated",
            "webhook.test",
        ):
            assert name in ALL_EVENTS

    def test_names_are_namespaced(self):
        for name in ALL_EVENTS:
            resource, _, action = name.partition(".")
            assert resource and action

    def test_wildcard_is_not_an_event(self):
        assert not is_known_event(WILDCARD)
        assert is_known_event(WebhookEventType.QR_VALIDATED.value)


class TestPayload:
    def test_body_is_compact_json_in_envelope_order(self):
        payload = WebhookPayload(
            event="qr.validated",
            timestamp="2026-01-29T12:00:00.000Z",
            data={"code": "ABC123"},
            metadata={"source": "scanner", "action": "validated"},
        )
        assert payload.to_json() == (
            '{"event":"qr.validated","timestamp":"2026-01-29T12:00:00.000Z",'
            '"data":{"code":"ABC123"},"metadata":{"source":"scanner","action":"validated"}}'
        )

    def test_metadata_omitted_when_absent(self):
        payload = WebhookPayload(event="tag.added", timestamp="t", data={"tag": {"name": "vip"}})
        assert "metadata" not in json.loads(payload.to_json())

    def test_non_ascii_kept_and_size_counted_in_bytes(self):
        payload = WebhookPayload(event="user.updated", timestamp="t", data={"firstName": "Zoë"})
        assert "Zoë" in payload.to_json()
        assert len(payload.to_bytes()) == len(payload.to_json()) + 1

    def test_serializes_datetimes_and_uuids_in_data(self):
        booking_id = UUID("12345678-1234-5678-1234-567812345678")
        payload = WebhookPayload(
            event="booking.created",
            timestamp="t",
            data={"id": booking_id, "startTime": datetime(2026, 2, 1, 9, 30, tzinfo=timezone.utc)},
        )
        body = json.loads(payload.to_bytes())
        assert body["data"]["id"] == str(booking_id)
        assert body["data"]["startTime"].startswith("2026-02-01T09:30:00")

    def test_serialization_is_deterministic(self):
        payload = WebhookPayload.build("booking.updated", {"b": 2, "a": [1, {"z": None}]})
        assert payload.to_bytes() == payload.to_bytes()

    def test_payload_is_immutable(self):
        payload = WebhookPayload.build("tag.removed", {"tag": "x"})
        with pytest.raises(ValidationError):
            payload.event = "tag.added"

    def test_build_uses_rfc3339_utc_timestamp(self):
        payload = WebhookPayload.build("qr.scanned", {})
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", payload.timestamp)

    def test_utc_timestamp_converts_offsets(self):
        moment = datetime.fromisoformat("2026-01-29T14:00:00.123456+02:00")
        assert utc_timestamp(moment) == "2026-01-29T12:00:00.123Z"


class TestSubscription:
    def test_listens_to_literal_event_only(self):
        sub = _subscription(events=["booking.created"])
        assert sub.listens_to("booking.created")
        assert not sub.listens_to("booking.updated")

    def test_wildcard_listens_to_every_event(self):
        sub = _subscription(events=[WILDCARD])
        assert all(sub.listens_to(name) for name in ALL_EVENTS)

    def test_events_accepted_as_json_text(self):
        sub = _subscription(events='["qr.scanned", "qr.validated"]')
        assert sub.events == ["qr.scanned", "qr.validated"]

    def test_secret_hidden_from_dump_and_repr(self):
        sub = _subscription()
        assert "secret" not in sub.model_dump()
        assert "top-secret" not in repr(sub)
        assert sub.secret == "top-secret"

    def test_max_attempts_counts_first_try(self):
        assert _subscription(retry_attempts=2).max_attempts == 3


class TestSubscriptionCreate:
    def test_defaults(self):
        dto = WebhookSubscriptionCreate(
            tenant_id="tenant-1", url="https://example.com/hook", events=["*"]
        )
        assert (dto.retry_attempts, dto.retry_delay, dto.timeout_ms) == (3, 60, 10_000)

    def test_events_are_stripped_and_deduplicated(self):
        dto = WebhookSubscriptionCreate(
            tenant_id="t", url="https://example.com/hook", events=[" tag.added", "tag.added", ""]
        )
        assert dto.events == ["tag.added"]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"events": []},
            {"events": ["  "]},
            {"url": "not a url"},
            {"retry_attempts": 11},
            {"retry_delay": 0},
            {"retry_delay": 3601},
            {"timeout_ms": 999},
            {"timeout_ms": 60_001},
        ],
    )
    def test_rejects_out_of_range_values(self, overrides):
        fields = {"tenant_id": "t", "url": "https://example.com/hook", "events": ["*"]}
        fields.update(overrides)
        with pytest.raises(ValidationError):
            WebhookSubscriptionCreate(**fields)
