from __future__ import annotations

import hmac
import re
from hashlib import sha256

import pytest

from flowkick_webhooks.signing import generate_secret, sign, verify

BODY = b'{"event":"qr.validated","timestamp":"2026-01-29T12:00:00.000Z","data":{"code":"ABC123"}}'


def test_sign_is_hex_hmac_sha256():
    expected = hmac.new(b"test-secret", BODY, sha256).hexdigest()
    assert sign(BODY, "test-secret") == expected


@pytest.mark.parametrize("secret", ["s", "test-secret", "ключ", "x" * 128])
def test_verify_accepts_own_signature(secret):
    assert verify(BODY, sign(BODY, secret), secret) is True


def test_verify_rejects_tampered_body():
    signature = sign(BODY, "test-secret")
    tampered = BODY.replace(b"ABC123", b"ABC124")
    assert verify(tampered, signature, "test-secret") is False


def test_verify_rejects_wrong_secret():
    signature = sign(BODY, "test-secret")
    assert verify(BODY, signature, "test-secret2") is False


@pytest.mark.parametrize("signature", ["", "invalid", "sha256=abc", "é" * 64])
def test_verify_rejects_malformed_signature(signature):
    assert verify(BODY, signature, "test-secret") is False


def test_verify_ignores_hex_case():
    assert verify(BODY, sign(BODY, "k").upper(), "k") is True


def test_generate_secret_is_32_random_bytes_hex():
    first, second = generate_secret(), generate_secret()
    assert re.fullmatch(r"[0-9a-f]{64}", first)
    assert first != second
